from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from backend project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_ssl: bool = True

    # JWT (tokens are issued by the auth service; we only verify them)
    secret_key: str
    access_token_expire_minutes: int = 15
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Practice-wide scheduling rules
    default_timezone: str = "Asia/Kolkata"
    slot_interval_minutes: int = 30
    max_session_duration_minutes: int = 480
    booking_reference_prefix: str = "MW"
    # Shown as the meeting location of in-person sessions
    contact_address: str = ""

    # Defaults for newly created therapists
    default_session_duration: int = 60
    default_buffer_time: int = 15
    default_advance_booking_days: int = 30
    default_min_booking_notice: int = 24  # hours

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


settings = Settings()
