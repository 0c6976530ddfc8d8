import os

from backend.models.common import ImageFormat, QRCodeType
from backend.models.design import DesignSettings
from backend.services.payload_encoder import encode
from backend.services.qr_renderer import RenderError, export_filename, logo_data_url, render

# Prompted fields per kind, in form order
FIELDS = {
    QRCodeType.url: ["url"],
    QRCodeType.app: ["url"],
    QRCodeType.file: ["url"],
    QRCodeType.vcard: ["firstName", "lastName", "company", "jobTitle", "phone", "email", "website", "address"],
    QRCodeType.wifi: ["ssid", "password", "security", "hidden"],
    QRCodeType.email: ["to", "subject", "body"],
    QRCodeType.sms: ["number", "message"],
    QRCodeType.phone: ["phone"],
    QRCodeType.social: ["platform", "username", "url"],
    QRCodeType.calendar: ["eventTitle", "startDate", "endDate", "location"],
    QRCodeType.location: ["latitude", "longitude"],
}

DEFAULTS = {"security": "WPA", "hidden": "false"}

def prompt(msg: str, default: str = "") -> str:
    s = input(f"{msg}{' ['+default+']' if default else ''}: ").strip()
    return s if s else default

def build_content(qr_type: QRCodeType) -> dict:
    """
    Ask for each field of the chosen kind. Blank answers are left out,
    the encoder treats them as not filled in.
    """
    content = {}
    for field in FIELDS[qr_type]:
        value = prompt(field, DEFAULTS.get(field, ""))
        if value:
            content[field] = value
    return content

def logo_ref(value: str):
    # the renderer only takes URLs, so local files are inlined here
    if value and os.path.isfile(value):
        return logo_data_url(value)
    return value or None

def main():
    out_dir = prompt("Output folder", "qr_codes")
    os.makedirs(out_dir, exist_ok=True)

    kinds = "|".join(t.value for t in QRCodeType)
    qr_type = QRCodeType(prompt(f"Type ({kinds})", "url"))
    content = build_content(qr_type)
    payload = encode(qr_type, content)

    fmt = ImageFormat(prompt("Format (png|svg|pdf)", "png"))
    design = DesignSettings(
        foreground_color=prompt("Foreground color", "#000000"),
        background_color=prompt("Background color", "#ffffff"),
        size=int(prompt("Size (px)", "512")),
        logo_url=logo_ref(prompt("Logo path or URL (optional)", "")),
    )

    try:
        image = render(payload, design, fmt)
    except RenderError as e:
        raise SystemExit(f"Cannot render: {e}")

    path = os.path.join(out_dir, export_filename(prompt("File name", qr_type.value), fmt))
    with open(path, "wb") as f:
        f.write(image)

    print("\n QR created:")
    print("File:", path)
    print("Payload:", payload)

    if fmt == ImageFormat.png:
        from studio.qr.qr_reader import QRReader  # lazy import, OpenCV is heavy
        decoded = QRReader().decode_bytes(image)
        print("Verified:" if decoded == payload else "Read back differs:", decoded)

if __name__ == "__main__":
    main()
