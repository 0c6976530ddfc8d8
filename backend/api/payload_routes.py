from __future__ import annotations
import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backend.models.common import ImageFormat, QRCodeType
from backend.models.design import DesignSettings
from backend.services.payload_encoder import encode
from backend.services.qr_renderer import MEDIA_TYPES, RenderError, render

logger = logging.getLogger(__name__)

router = APIRouter()

class PayloadRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: QRCodeType
    content: Dict[str, Any] = Field(default_factory=dict)

class PayloadResponse(BaseModel):
    type: QRCodeType
    payload: str

class RenderRequest(PayloadRequest):
    design_settings: DesignSettings = Field(default_factory=DesignSettings)
    format: ImageFormat = ImageFormat.png

# ---- live preview ----
@router.post("/payload", response_model=PayloadResponse)
def build_payload(req: PayloadRequest):
    return PayloadResponse(type=req.type, payload=encode(req.type, req.content))

@router.post("/render")
def render_preview(req: RenderRequest):
    payload = encode(req.type, req.content)
    try:
        image = render(payload, req.design_settings, req.format)
    except RenderError as e:
        logger.info("Preview render failed for %s: %s", req.type.value, e)
        raise HTTPException(status_code=422, detail=str(e))
    return Response(content=image, media_type=MEDIA_TYPES[req.format])
