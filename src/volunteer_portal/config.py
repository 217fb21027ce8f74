"""Volunteer Portal — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Database ──────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./volunteer_portal.db"

    # ── SMTP ──────────────────────────────────────────────
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    email_from: str = "contactus@anaraskills.org"

    # ── Document store (Cloudinary unsigned uploads) ──────
    cloudinary_cloud_name: str = ""
    cloudinary_upload_preset: str = ""
    cloudinary_base_url: str = "https://api.cloudinary.com/v1_1"

    # ── Auth tokens ───────────────────────────────────────
    jwt_secret: str = "change_me"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 7 * 24 * 60
    reset_password_expire_minutes: int = 15
    frontend_url: str = "http://localhost:3000"

    # ── Email verification ────────────────────────────────
    otp_ttl_seconds: int = 300
    otp_resend_cooldown_seconds: int = 300
    otp_max_attempts: int = 5
    otp_cleanup_interval_minutes: int = 10

    # ── App ───────────────────────────────────────────────
    registration_prefix: str = "ASF/FE"
    app_name: str = "Anara Skills Foundation"
    debug: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
