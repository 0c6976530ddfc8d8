from enum import Enum

class QRCodeType(str, Enum):
    url = "url"
    vcard = "vcard"
    wifi = "wifi"
    email = "email"
    sms = "sms"
    phone = "phone"
    social = "social"
    app = "app"
    file = "file"
    calendar = "calendar"
    location = "location"

class WifiSecurity(str, Enum):
    wpa = "WPA"
    wep = "WEP"
    nopass = "nopass"

class SocialPlatform(str, Enum):
    instagram = "instagram"
    twitter = "twitter"
    linkedin = "linkedin"
    facebook = "facebook"
    tiktok = "tiktok"
    youtube = "youtube"

class ImageFormat(str, Enum):
    png = "png"
    svg = "svg"
    pdf = "pdf"

class QRStatus(str, Enum):
    active = "active"
    paused = "paused"
    expired = "expired"
