from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backend.core.config import settings


class DesignSettings(BaseModel):
    """
    Visual settings for the rendered image. Only the renderer reads these;
    the payload never depends on them.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    foreground_color: str = Field(default="#000000", examples=["#000000", "#6366f1"])
    background_color: str = Field(default="#ffffff", examples=["#ffffff", "#1f2937"])
    size: int = Field(default=settings.default_size, gt=0, le=settings.max_size, description="Edge length in pixels")

    logo_url: Optional[str] = Field(default=None, description="http(s) URL or local path of a centred logo")
    logo_size: Optional[int] = Field(default=None, gt=0, description="Logo edge in pixels, defaults to a fraction of size")

    # Carried for the UI; the renderer does not draw frames or eye shapes
    template: Optional[str] = None
    frame_style: Optional[str] = None
    eye_pattern: Optional[str] = None
