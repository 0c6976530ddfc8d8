from __future__ import annotations
import json
import logging
import os
from typing import Dict, Any
from backend.core.config import settings

logger = logging.getLogger(__name__)

class JsonStateStore:
    """
    Whole-state JSON file persistence for saved QR codes.
    Writes go to a temp file first so a crash never leaves half a document.
    """
    def __init__(self, path: str | None = None):
        self.path = path or settings.storage_path

    def load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def save(self, state: Dict[str, Any]) -> None:
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2, default=str)
        os.replace(tmp, self.path)
        logger.debug("State written to %s", self.path)
