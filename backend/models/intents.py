from __future__ import annotations
from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from backend.models.common import QRCodeType, WifiSecurity


class IntentBase(BaseModel):
    """
    Fields are stored camelCase (firstName, eventTitle, ...) but can be
    populated by their python names too. Keys that belong to another kind
    are dropped on construction.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        coerce_numbers_to_str=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # null from storage means "not filled in", so let the defaults apply
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class UrlIntent(IntentBase):
    type: Literal[QRCodeType.url] = QRCodeType.url
    url: str = ""


class AppIntent(IntentBase):
    type: Literal[QRCodeType.app] = QRCodeType.app
    url: str = ""


class FileIntent(IntentBase):
    type: Literal[QRCodeType.file] = QRCodeType.file
    url: str = ""


class VCardIntent(IntentBase):
    type: Literal[QRCodeType.vcard] = QRCodeType.vcard
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    job_title: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    address: str = ""


class WifiIntent(IntentBase):
    type: Literal[QRCodeType.wifi] = QRCodeType.wifi
    ssid: str = ""
    password: str = ""
    security: WifiSecurity = WifiSecurity.wpa
    hidden: bool = False

    @field_validator("security", mode="before")
    @classmethod
    def _normalize_security(cls, v: Any) -> Any:
        if isinstance(v, WifiSecurity):
            return v
        text = str(v).strip()
        if not text:
            return WifiSecurity.wpa
        if text.lower() == "nopass":
            return WifiSecurity.nopass
        if text.upper() == "WEP":
            return WifiSecurity.wep
        # WPA2/WPA3 and anything unrecognised are advertised as WPA
        return WifiSecurity.wpa


class EmailIntent(IntentBase):
    type: Literal[QRCodeType.email] = QRCodeType.email
    to: str = ""
    subject: str = ""
    body: str = ""


class SmsIntent(IntentBase):
    type: Literal[QRCodeType.sms] = QRCodeType.sms
    number: str = ""
    message: str = ""


class PhoneIntent(IntentBase):
    type: Literal[QRCodeType.phone] = QRCodeType.phone
    phone: str = ""


class SocialIntent(IntentBase):
    type: Literal[QRCodeType.social] = QRCodeType.social
    platform: str = ""
    username: str = ""
    url: str = ""


class CalendarIntent(IntentBase):
    type: Literal[QRCodeType.calendar] = QRCodeType.calendar
    event_title: str = ""
    start_date: Optional[Union[datetime, str]] = None
    end_date: Optional[Union[datetime, str]] = None
    location: str = ""


class LocationIntent(IntentBase):
    type: Literal[QRCodeType.location] = QRCodeType.location
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)


Intent = Annotated[
    Union[
        UrlIntent,
        AppIntent,
        FileIntent,
        VCardIntent,
        WifiIntent,
        EmailIntent,
        SmsIntent,
        PhoneIntent,
        SocialIntent,
        CalendarIntent,
        LocationIntent,
    ],
    Field(discriminator="type"),
]

INTENT_MODELS: Dict[QRCodeType, Type[IntentBase]] = {
    QRCodeType.url: UrlIntent,
    QRCodeType.app: AppIntent,
    QRCodeType.file: FileIntent,
    QRCodeType.vcard: VCardIntent,
    QRCodeType.wifi: WifiIntent,
    QRCodeType.email: EmailIntent,
    QRCodeType.sms: SmsIntent,
    QRCodeType.phone: PhoneIntent,
    QRCodeType.social: SocialIntent,
    QRCodeType.calendar: CalendarIntent,
    QRCodeType.location: LocationIntent,
}
