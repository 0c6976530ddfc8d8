from __future__ import annotations
import logging
from typing import List, Optional

from fastapi import APIRouter, Header, HTTPException, Query, Response

from backend.models.common import ImageFormat, QRCodeType
from backend.models.records import BulkDeleteRequest, QRCodeCreate, QRCodeRecord, QRCodeResponse, QRCodeUpdate
from backend.services.qr_renderer import MEDIA_TYPES, RenderError, export_filename, render
from backend.services.record_store import QRCodeRecordStore, parse_content, parse_design
from backend.services.storage import JsonStateStore

logger = logging.getLogger(__name__)

router = APIRouter()

# Module-level singletons, loaded from disk once at import
REGISTRY = QRCodeRecordStore()
STORE = JsonStateStore()

def _load_once():
    state = STORE.load()
    if state:
        REGISTRY.load_state(state)

def _save():
    STORE.save(REGISTRY.dump_state())

_load_once()

def _to_response(rec: QRCodeRecord) -> QRCodeResponse:
    return QRCodeResponse(
        id=rec.id,
        user_id=rec.user_id,
        name=rec.name,
        type=rec.type,
        content=parse_content(rec),
        design_settings=parse_design(rec),
        payload=REGISTRY.payload_for(rec),
        status=rec.status(),
        is_dynamic=rec.is_dynamic,
        is_active=rec.is_active,
        short_url=rec.short_url,
        expires_at=rec.expires_at,
        max_scans=rec.max_scans,
        created_at=rec.created_at,
        updated_at=rec.updated_at,
    )

def _owns(qr_id: str, user_id: str) -> bool:
    rec = REGISTRY.records.get(qr_id)
    return rec is not None and rec.user_id == user_id

def _get_or_404(qr_id: str, user_id: str) -> QRCodeRecord:
    # another owner's record looks the same as a missing one
    if not _owns(qr_id, user_id):
        raise HTTPException(status_code=404, detail="qr code not found")
    return REGISTRY.get(qr_id)

# ---------- CRUD ----------
@router.post("/qr-codes", response_model=QRCodeResponse, status_code=201)
def create_qr_code(req: QRCodeCreate, x_user_id: str = Header(default="anonymous")):
    rec = REGISTRY.create(req, user_id=x_user_id)
    _save()
    return _to_response(rec)

@router.get("/qr-codes", response_model=List[QRCodeResponse])
def list_qr_codes(
    search: Optional[str] = None,
    type: Optional[QRCodeType] = None,
    x_user_id: str = Header(default="anonymous"),
):
    return [_to_response(r) for r in REGISTRY.list(user_id=x_user_id, search=search, qr_type=type)]

@router.get("/qr-codes/{qr_id}", response_model=QRCodeResponse)
def get_qr_code(qr_id: str, x_user_id: str = Header(default="anonymous")):
    return _to_response(_get_or_404(qr_id, x_user_id))

@router.put("/qr-codes/{qr_id}", response_model=QRCodeResponse)
def update_qr_code(qr_id: str, req: QRCodeUpdate, x_user_id: str = Header(default="anonymous")):
    _get_or_404(qr_id, x_user_id)
    rec = REGISTRY.update(qr_id, req)
    _save()
    return _to_response(rec)

@router.post("/qr-codes/{qr_id}/pause", response_model=QRCodeResponse)
def pause_qr_code(qr_id: str, x_user_id: str = Header(default="anonymous")):
    _get_or_404(qr_id, x_user_id)
    rec = REGISTRY.set_active(qr_id, False)
    _save()
    return _to_response(rec)

@router.post("/qr-codes/{qr_id}/resume", response_model=QRCodeResponse)
def resume_qr_code(qr_id: str, x_user_id: str = Header(default="anonymous")):
    _get_or_404(qr_id, x_user_id)
    rec = REGISTRY.set_active(qr_id, True)
    _save()
    return _to_response(rec)

@router.delete("/qr-codes/{qr_id}")
def delete_qr_code(qr_id: str, x_user_id: str = Header(default="anonymous")):
    _get_or_404(qr_id, x_user_id)
    REGISTRY.delete(qr_id)
    _save()
    return {"deleted": qr_id}

@router.post("/qr-codes/bulk-delete")
def bulk_delete_qr_codes(req: BulkDeleteRequest, x_user_id: str = Header(default="anonymous")):
    deleted = REGISTRY.delete_many([i for i in req.ids if _owns(i, x_user_id)])
    _save()
    return {"deleted": deleted}

# ---------- export ----------
@router.get("/qr-codes/{qr_id}/image")
def download_qr_image(
    qr_id: str,
    format: ImageFormat = ImageFormat.png,
    filename: Optional[str] = Query(default=None, description="Download name without extension"),
    x_user_id: str = Header(default="anonymous"),
):
    rec = _get_or_404(qr_id, x_user_id)
    try:
        image = render(REGISTRY.payload_for(rec), parse_design(rec), format)
    except RenderError as e:
        logger.warning("Render failed for %s: %s", qr_id, e)
        raise HTTPException(status_code=422, detail=str(e))
    name = export_filename(filename or rec.name, format)
    return Response(
        content=image,
        media_type=MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="{name}"'},
    )
