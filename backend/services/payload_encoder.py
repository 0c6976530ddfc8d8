from __future__ import annotations
from datetime import datetime, timezone
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Union
from urllib.parse import quote

from pydantic import ValidationError

from backend.models.common import QRCodeType, SocialPlatform
from backend.models.intents import (
    INTENT_MODELS,
    AppIntent,
    CalendarIntent,
    EmailIntent,
    FileIntent,
    Intent,
    IntentBase,
    LocationIntent,
    PhoneIntent,
    SmsIntent,
    SocialIntent,
    UrlIntent,
    VCardIntent,
    WifiIntent,
)

SOCIAL_PROFILE_URLS: Mapping[str, str] = MappingProxyType({
    SocialPlatform.instagram.value: "https://instagram.com/{username}",
    SocialPlatform.twitter.value: "https://twitter.com/{username}",
    SocialPlatform.linkedin.value: "https://linkedin.com/in/{username}",
    SocialPlatform.facebook.value: "https://facebook.com/{username}",
    SocialPlatform.tiktok.value: "https://tiktok.com/@{username}",
    SocialPlatform.youtube.value: "https://youtube.com/@{username}",
})

# encodeURIComponent leaves these unescaped on top of letters, digits and "-_.~"
_URI_COMPONENT_SAFE = "!*'()"


# ---------- escaping ----------
def _normalize_newlines(s: str) -> str:
    return s.replace("\r\n", "\n").replace("\r", "\n")


def escape_text_value(s: str) -> str:
    """vCard 3.0 / iCalendar TEXT value escaping (RFC 2426, RFC 5545)."""
    return (
        _normalize_newlines(s)
        .replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def escape_wifi_value(s: str) -> str:
    out = s.replace("\\", "\\\\")
    for ch in (";", ",", ":", '"'):
        out = out.replace(ch, "\\" + ch)
    return out


def quote_component(s: str) -> str:
    # lone surrogates go out as their raw UTF-8 bytes instead of raising
    return quote(s.encode("utf-8", "surrogatepass"), safe=_URI_COMPONENT_SAFE)


def _single_line(s: str) -> str:
    """URI-valued vCard properties take no TEXT escaping; line breaks are dropped."""
    return _normalize_newlines(s).replace("\n", "")


def format_utc_basic(value: Union[datetime, str, None]) -> str:
    """
    Local (naive) or offset-aware timestamp -> YYYYMMDDTHHMMSSZ.
    Returns "" when the value is missing or not a timestamp.
    """
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            return ""
    try:
        # naive datetimes are taken as local wall-clock time
        utc = value.astimezone(timezone.utc)
    except (OverflowError, OSError, ValueError):
        return ""
    return utc.strftime("%Y%m%dT%H%M%SZ")


def _format_coordinate(v: float) -> str:
    if float(v).is_integer():
        return str(int(v))
    # plain decimal, never exponent form (5e-05 -> 0.00005)
    return format(Decimal(repr(float(v))), "f")


# ---------- formatters ----------
def encode_url(intent: Union[UrlIntent, AppIntent, FileIntent]) -> str:
    return intent.url


def encode_vcard(intent: VCardIntent) -> str:
    full_name = " ".join(part for part in (intent.first_name, intent.last_name) if part)
    lines = [
        "BEGIN:VCARD",
        "VERSION:3.0",
        f"FN:{escape_text_value(full_name)}",
        f"ORG:{escape_text_value(intent.company)}",
        f"TITLE:{escape_text_value(intent.job_title)}",
        f"TEL:{_single_line(intent.phone)}",
        f"EMAIL:{_single_line(intent.email)}",
        f"URL:{_single_line(intent.website)}",
        f"ADR:;;{escape_text_value(intent.address)};;;;",
        "END:VCARD",
    ]
    return "\n".join(lines)


def encode_wifi(intent: WifiIntent) -> str:
    hidden = "true" if intent.hidden else "false"
    return (
        f"WIFI:T:{intent.security.value};"
        f"S:{escape_wifi_value(intent.ssid)};"
        f"P:{escape_wifi_value(intent.password)};"
        f"H:{hidden};;"
    )


def encode_email(intent: EmailIntent) -> str:
    return f"mailto:{intent.to}?subject={quote_component(intent.subject)}&body={quote_component(intent.body)}"


def encode_sms(intent: SmsIntent) -> str:
    return f"sms:{intent.number}?body={quote_component(intent.message)}"


def encode_phone(intent: PhoneIntent) -> str:
    return f"tel:{intent.phone}"


def encode_social(intent: SocialIntent) -> str:
    template = SOCIAL_PROFILE_URLS.get(intent.platform.strip().lower())
    username = intent.username.strip().lstrip("@")
    if template and username:
        return template.format(username=username)
    return intent.url or ""


def encode_calendar(intent: CalendarIntent) -> str:
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "BEGIN:VEVENT",
        f"SUMMARY:{escape_text_value(intent.event_title)}",
        f"DTSTART:{format_utc_basic(intent.start_date)}",
        f"DTEND:{format_utc_basic(intent.end_date)}",
        f"LOCATION:{escape_text_value(intent.location)}",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\n".join(lines)


def encode_location(intent: LocationIntent) -> str:
    # without both coordinates there is no location to point at
    if intent.latitude is None or intent.longitude is None:
        return ""
    return f"geo:{_format_coordinate(intent.latitude)},{_format_coordinate(intent.longitude)}"


_FORMATTERS: Mapping[QRCodeType, Callable[[Any], str]] = MappingProxyType({
    QRCodeType.url: encode_url,
    QRCodeType.app: encode_url,
    QRCodeType.file: encode_url,
    QRCodeType.vcard: encode_vcard,
    QRCodeType.wifi: encode_wifi,
    QRCodeType.email: encode_email,
    QRCodeType.sms: encode_sms,
    QRCodeType.phone: encode_phone,
    QRCodeType.social: encode_social,
    QRCodeType.calendar: encode_calendar,
    QRCodeType.location: encode_location,
})


# ---------- entry points ----------
def _as_kind(kind: Union[QRCodeType, str, None]) -> Optional[QRCodeType]:
    if isinstance(kind, QRCodeType):
        return kind
    try:
        return QRCodeType(str(kind).strip().lower())
    except ValueError:
        return None


def parse_intent(kind: Union[QRCodeType, str], fields: Optional[Mapping[str, Any]]) -> IntentBase:
    """
    Build the typed intent for `kind` from a loose field bag.

    Fields of other kinds are ignored. A field that fails validation is
    dropped and treated as not filled in, so half-typed form input still
    yields an intent. Raises ValueError only for an unknown kind.
    """
    qr_type = _as_kind(kind)
    if qr_type is None:
        raise ValueError(f"unknown QR code type: {kind!r}")
    model = INTENT_MODELS[qr_type]

    # errors report the alias, input may use either spelling
    canonical = {}
    for name, info in model.model_fields.items():
        canonical[name] = name
        if info.alias:
            canonical[info.alias] = name

    data: Dict[str, Any] = {k: v for k, v in dict(fields or {}).items() if k != "type"}
    while True:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            bad = {canonical.get(err["loc"][0]) for err in e.errors() if err.get("loc")}
            keys = [k for k in data if canonical.get(k) in bad]
            if not keys:
                return model()
            for key in keys:
                data.pop(key)


def encode_intent(intent: Intent) -> str:
    return _FORMATTERS[intent.type](intent)


def encode(kind: Union[QRCodeType, str, None], fields: Union[Mapping[str, Any], IntentBase, None] = None) -> str:
    """
    Turn a kind + field bag into the text carried by the symbol.

    Never raises: incomplete input gives a degenerate (possibly empty)
    payload so a live preview can always be drawn.
    """
    if isinstance(fields, IntentBase):
        if _as_kind(kind) in (None, fields.type):
            return encode_intent(fields)
        fields = fields.model_dump(by_alias=True)

    bag: Mapping[str, Any] = fields if isinstance(fields, Mapping) else {}
    qr_type = _as_kind(kind)
    if qr_type is None:
        url = bag.get("url")
        return url if isinstance(url, str) else ""

    return encode_intent(parse_intent(qr_type, bag))
