from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="QR_", env_file=".env", extra="ignore")

    storage_path: str = Field(default="qr_codes_state.json", description="JSON persistence file")
    log_level: str = Field(default="INFO")

    default_size: int = Field(default=512, description="Rendered image edge in pixels")
    max_size: int = Field(default=2048, description="Largest edge a caller may request")
    quiet_zone: int = Field(default=2, description="Border around the symbol, in modules")

    logo_scale: float = Field(default=0.2, description="Logo edge as a fraction of the image when no logo_size is set")
    logo_padding: int = Field(default=5, description="Backing plate margin around the logo, in pixels")
    logo_fetch_timeout_seconds: int = Field(default=5)

settings = Settings()
