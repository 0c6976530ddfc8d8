from __future__ import annotations
import base64
import io
import logging
import mimetypes
import re
from typing import Optional

import qrcode
import qrcode.image.svg
import requests
from PIL import Image, ImageColor, ImageDraw, UnidentifiedImageError
from qrcode.exceptions import DataOverflowError

from backend.core.config import settings
from backend.models.common import ImageFormat
from backend.models.design import DesignSettings

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    ImageFormat.png: "image/png",
    ImageFormat.svg: "image/svg+xml",
    ImageFormat.pdf: "application/pdf",
}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]+")


class RenderError(Exception):
    """The payload could not be turned into an image."""


def _build_symbol(payload: str) -> qrcode.QRCode:
    if not payload:
        raise RenderError("empty payload")
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=settings.quiet_zone,
    )
    try:
        qr.add_data(payload)
        qr.make(fit=True)
    except UnicodeEncodeError as e:
        raise RenderError("payload is not encodable text") from e
    except (DataOverflowError, ValueError) as e:
        # newer qrcode releases report overflow as an invalid version (ValueError)
        raise RenderError(f"payload too large for a QR symbol ({len(payload)} chars)") from e
    return qr


def _check_colors(design: DesignSettings) -> None:
    for label, value in (("foreground", design.foreground_color), ("background", design.background_color)):
        try:
            ImageColor.getrgb(value)
        except ValueError as e:
            raise RenderError(f"invalid {label} color: {value!r}") from e


def logo_data_url(path: str) -> str:
    """Inline a local image file as a data URL, for operator-side tools."""
    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    with open(path, "rb") as f:
        encoded = base64.b64encode(f.read()).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


def load_logo(ref: str) -> Image.Image:
    """
    Load a logo from an http(s) URL or a base64 data URL.
    Local paths are refused: design settings arrive from HTTP clients.
    Raises on any failure; callers decide whether that is fatal.
    """
    if ref.startswith(("http://", "https://")):
        r = requests.get(ref, timeout=settings.logo_fetch_timeout_seconds)
        r.raise_for_status()
        raw = r.content
    elif ref.startswith("data:"):
        _, _, encoded = ref.partition(",")
        raw = base64.b64decode(encoded)
    else:
        raise ValueError("logo must be an http(s) or data URL")
    logo = Image.open(io.BytesIO(raw))
    logo.load()
    return logo.convert("RGBA")


def _overlay_logo(img: Image.Image, design: DesignSettings) -> Image.Image:
    """Centre the logo on a background-coloured plate. Falls back to img on failure."""
    try:
        logo = load_logo(design.logo_url)
    except (requests.RequestException, OSError, UnidentifiedImageError, ValueError) as e:
        logger.warning("Logo %r could not be loaded, rendering without it: %s", design.logo_url, e)
        return img

    size = design.size
    pad = settings.logo_padding
    logo_size = min(design.logo_size or int(size * settings.logo_scale), size)
    x = (size - logo_size) // 2
    y = (size - logo_size) // 2

    out = img.convert("RGBA")
    draw = ImageDraw.Draw(out)
    draw.rectangle(
        [x - pad, y - pad, x + logo_size + pad - 1, y + logo_size + pad - 1],
        fill=design.background_color,
    )
    logo = logo.resize((logo_size, logo_size), Image.LANCZOS)
    out.paste(logo, (x, y), logo)
    return out.convert("RGB")


def render_image(payload: str, design: DesignSettings) -> Image.Image:
    """Raster symbol at design.size x design.size, logo drawn last if any."""
    _check_colors(design)
    qr = _build_symbol(payload)
    img = qr.make_image(
        fill_color=design.foreground_color,
        back_color=design.background_color,
    ).convert("RGB")
    img = img.resize((design.size, design.size), Image.NEAREST)

    if design.logo_url:
        img = _overlay_logo(img, design)
    return img


class StyledSvgPathImage(qrcode.image.svg.SvgPathImage):
    """Single-path SVG that honours fill_color / back_color like the PIL factory."""

    def __init__(self, *args, fill_color="#000000", back_color=None, edge_px=None, **kwargs):
        # all three are read while the base class builds the document
        self.background = back_color
        self.edge_px = edge_px
        self.QR_PATH_STYLE = {**qrcode.image.svg.SvgPathImage.QR_PATH_STYLE, "fill": fill_color}
        super().__init__(*args, **kwargs)

    def _svg(self, *args, **kwargs):
        el = super()._svg(*args, **kwargs)
        # viewBox keeps module units, width/height give the pixel edge
        if self.edge_px:
            el.set("width", str(self.edge_px))
            el.set("height", str(self.edge_px))
        return el


def _render_svg(payload: str, design: DesignSettings) -> bytes:
    _check_colors(design)
    qr = _build_symbol(payload)
    img = qr.make_image(
        image_factory=StyledSvgPathImage,
        fill_color=design.foreground_color,
        back_color=design.background_color,
        edge_px=design.size,
    )
    buf = io.BytesIO()
    img.save(buf)
    return buf.getvalue()


def render(payload: str, design: Optional[DesignSettings] = None, image_format: ImageFormat = ImageFormat.png) -> bytes:
    """
    Encode payload text as a QR image (error correction M).

    Returns the encoded file bytes. Raises RenderError when the payload is
    empty, over capacity, or the colors are not parseable. A logo that
    fails to load never fails the render.
    """
    design = design or DesignSettings()
    if image_format == ImageFormat.svg:
        return _render_svg(payload, design)

    img = render_image(payload, design)
    buf = io.BytesIO()
    img.save(buf, format="PDF" if image_format == ImageFormat.pdf else "PNG")
    return buf.getvalue()


def export_filename(name: Optional[str], image_format: ImageFormat = ImageFormat.png) -> str:
    stem = _UNSAFE_FILENAME_CHARS.sub("_", (name or "").strip()).strip(" ._")
    return f"{stem or 'qr-code'}.{image_format.value}"
