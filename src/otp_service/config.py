"""OTP Service — configuration loaded from environment."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── HTTP ──────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origins: str = ""

    # ── SMTP transport ────────────────────────────────────
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_timeout_seconds: float = 30.0
    mail_sender_name: str = "OTP Service"

    # ── OTP lifecycle ─────────────────────────────────────
    otp_expiry_minutes: int = Field(default=5, gt=0)
    sweep_interval_seconds: float = Field(default=60.0, gt=0)

    # ── Identity provider ─────────────────────────────────
    identity_provider: Literal["firebase", "local"] = "firebase"
    firebase_service_account: str = ""
    database_url: str = "sqlite+aiosqlite:///./otp_service.db"

    # ── App ───────────────────────────────────────────────
    app_name: str = "OTP Service"
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def cors_origins(self) -> list[str]:
        """``ALLOWED_ORIGINS`` split on commas, blanks dropped."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def smtp_implicit_tls(self) -> bool:
        return self.smtp_port == 465


# Singleton settings instance
settings = Settings()
