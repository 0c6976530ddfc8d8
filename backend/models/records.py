from __future__ import annotations
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backend.models.common import QRCodeType, QRStatus
from backend.models.design import DesignSettings


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QRCodeRecord(CamelModel):
    """
    Persisted document. content and designSettings are kept as JSON text so
    the stored shape matches what the web client writes.
    """
    id: str = Field(..., examples=["qr_1717228800000_k3j9x0q2a"])
    user_id: str
    name: str
    type: QRCodeType
    content: str = Field(..., description="Serialized intent fields")
    design_settings: str = Field(..., description="Serialized DesignSettings")
    is_dynamic: bool = False
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    short_url: Optional[str] = None
    password_hash: Optional[str] = None
    expires_at: Optional[datetime] = None
    max_scans: Optional[int] = Field(default=None, ge=0)

    def status(self, now: Optional[datetime] = None) -> QRStatus:
        now = now or datetime.now(timezone.utc)
        if self.expires_at:
            expires = self.expires_at
            if expires.tzinfo is None:
                expires = expires.replace(tzinfo=timezone.utc)
            if expires < now:
                return QRStatus.expired
        if not self.is_active:
            return QRStatus.paused
        return QRStatus.active


def _require_name(v: Optional[str]) -> Optional[str]:
    if v is not None and not v.strip():
        raise ValueError("name must not be empty")
    return v.strip() if v is not None else v


class QRCodeCreate(CamelModel):
    name: Annotated[str, AfterValidator(_require_name)] = Field(..., examples=["Shop front door"])
    type: QRCodeType
    content: Dict[str, Any] = Field(default_factory=dict)
    design_settings: DesignSettings = Field(default_factory=DesignSettings)
    is_dynamic: bool = True
    expires_at: Optional[datetime] = None
    max_scans: Optional[int] = Field(default=None, ge=0)


class QRCodeUpdate(CamelModel):
    name: Annotated[Optional[str], AfterValidator(_require_name)] = None
    type: Optional[QRCodeType] = None
    content: Optional[Dict[str, Any]] = None
    design_settings: Optional[DesignSettings] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None
    max_scans: Optional[int] = Field(default=None, ge=0)


class QRCodeResponse(CamelModel):
    id: str
    user_id: str
    name: str
    type: QRCodeType
    content: Dict[str, Any]
    design_settings: DesignSettings
    payload: str
    status: QRStatus
    is_dynamic: bool
    is_active: bool
    short_url: Optional[str] = None
    expires_at: Optional[datetime] = None
    max_scans: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class BulkDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)
