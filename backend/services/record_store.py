from __future__ import annotations
import json
import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from backend.models.common import QRCodeType
from backend.models.design import DesignSettings
from backend.models.records import QRCodeCreate, QRCodeRecord, QRCodeUpdate
from backend.services.payload_encoder import encode, parse_intent

logger = logging.getLogger(__name__)

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def new_token(prefix: str = "qr") -> str:
    """qr_<epoch ms>_<9 base36 chars>, the id shape the web client uses."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def serialize_content(qr_type: QRCodeType, content: Dict[str, Any]) -> str:
    # keep only the fields of this kind, in their stored (camelCase) spelling
    intent = parse_intent(qr_type, content)
    data = intent.model_dump(mode="json", by_alias=True, exclude={"type"}, exclude_defaults=True)
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def serialize_design(design: DesignSettings) -> str:
    data = design.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def parse_content(record: QRCodeRecord) -> Dict[str, Any]:
    return json.loads(record.content) if record.content else {}


def parse_design(record: QRCodeRecord) -> DesignSettings:
    return DesignSettings.model_validate_json(record.design_settings or "{}")


class QRCodeRecordStore:
    """
    In-memory registry of saved QR codes.

    Holds only the intent fields and render settings; payloads are derived
    again from type + content whenever they are needed.
    """

    def __init__(self):
        self.records: Dict[str, QRCodeRecord] = {}

    # ---------- persistence ----------
    def load_state(self, state: Dict[str, Any]) -> None:
        for raw in state.get("qrCodes", []):
            rec = QRCodeRecord.model_validate(raw)
            self.records[rec.id] = rec

    def dump_state(self) -> Dict[str, Any]:
        return {
            "qrCodes": [r.model_dump(mode="json", by_alias=True) for r in self.records.values()],
        }

    # ---------- CRUD ----------
    def create(self, req: QRCodeCreate, user_id: str) -> QRCodeRecord:
        now = datetime.now(timezone.utc)
        rec = QRCodeRecord(
            id=new_token(),
            user_id=user_id,
            name=req.name,
            type=req.type,
            content=serialize_content(req.type, req.content),
            design_settings=serialize_design(req.design_settings),
            is_dynamic=req.is_dynamic,
            short_url=new_token() if req.is_dynamic else None,
            is_active=True,
            expires_at=req.expires_at,
            max_scans=req.max_scans,
            created_at=now,
            updated_at=now,
        )
        self.records[rec.id] = rec
        logger.info("Created QR code %s (%s) for %s", rec.id, rec.type.value, user_id)
        return rec

    def get(self, qr_id: str) -> QRCodeRecord:
        rec = self.records.get(qr_id)
        if not rec:
            raise KeyError("qr code not found")
        return rec

    def list(
        self,
        user_id: Optional[str] = None,
        search: Optional[str] = None,
        qr_type: Optional[QRCodeType] = None,
    ) -> List[QRCodeRecord]:
        term = (search or "").strip().lower()
        out = []
        for rec in self.records.values():
            if user_id is not None and rec.user_id != user_id:
                continue
            if qr_type is not None and rec.type != qr_type:
                continue
            if term and term not in rec.name.lower() and term not in rec.type.value:
                continue
            out.append(rec)
        out.sort(key=lambda r: r.created_at, reverse=True)
        return out

    def update(self, qr_id: str, req: QRCodeUpdate) -> QRCodeRecord:
        rec = self.get(qr_id)
        changes: Dict[str, Any] = {}

        if req.name is not None:
            changes["name"] = req.name
        new_type = req.type or rec.type
        if req.content is not None:
            changes["content"] = serialize_content(new_type, req.content)
        elif new_type != rec.type:
            changes["content"] = serialize_content(new_type, parse_content(rec))
        changes["type"] = new_type
        if req.design_settings is not None:
            changes["design_settings"] = serialize_design(req.design_settings)
        if req.is_active is not None:
            changes["is_active"] = req.is_active
        if "expires_at" in req.model_fields_set:
            changes["expires_at"] = req.expires_at
        if "max_scans" in req.model_fields_set:
            changes["max_scans"] = req.max_scans

        changes["updated_at"] = datetime.now(timezone.utc)
        rec = rec.model_copy(update=changes)
        self.records[qr_id] = rec
        logger.info("Updated QR code %s", qr_id)
        return rec

    def set_active(self, qr_id: str, active: bool) -> QRCodeRecord:
        return self.update(qr_id, QRCodeUpdate(is_active=active))

    def delete(self, qr_id: str) -> None:
        if self.records.pop(qr_id, None) is not None:
            logger.info("Deleted QR code %s", qr_id)

    def delete_many(self, qr_ids: Iterable[str]) -> List[str]:
        deleted = [i for i in qr_ids if i in self.records]
        for qr_id in deleted:
            self.delete(qr_id)
        return deleted

    # ---------- derived ----------
    def payload_for(self, rec: QRCodeRecord) -> str:
        return encode(rec.type, parse_content(rec))
