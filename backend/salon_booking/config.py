# backend/salon_booking/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./data/salon.db"
    redis_url: str | None = None

    # Shared secret for admin endpoints (x-admin-token header)
    admin_token: str | None = None

    api_prefix: str = ""
    cors_origins: list[str] = [
        "http://localhost:3050",
        "http://localhost:5173",
    ]

    lock_ttl_seconds: float = 30.0
    lock_sweep_interval_seconds: float = 300.0
    cache_ttl_seconds: int = 30
    retention_months: int = 3
    enforce_working_days: bool = False

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        prefix = "sqlite+aiosqlite:///./"
        if url.startswith(prefix):
            # Relative sqlite path -> absolute, anchored at repo root
            absolute_path = BASE_DIR / url.replace(prefix, "")
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite+aiosqlite:///{absolute_path}"
        return url


settings = Settings()
