# transit_checkin/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Store ─────────────────────────────────────────────────────────────
    STORE_BACKEND: str = "firebase"             # firebase | memory
    FIREBASE_DATABASE_URL: str = "https://trss-66f69-default-rtdb.firebaseio.com"
    FIREBASE_AUTH_TOKEN: Optional[str] = None   # ID token or database secret, sent as ?auth=
    STORE_TIMEOUT_SECONDS: float = 10.0

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8080

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on API endpoints

    # ── Check-in ──────────────────────────────────────────────────────────
    ATTENDANCE_MODE: str = "trip"               # trip | simple
    DEFAULT_DIRECTION: str = "IDA"
    DEFAULT_AVATAR_URL: str = "https://i.pravatar.cc/150?img=1"

    # ── Maintenance ───────────────────────────────────────────────────────
    RECONCILE_ON_STARTUP: bool = False

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"                       # relative paths resolve from the project root
    LOG_TO_FILE: bool = True
    LOG_MAX_MB: int = 5
    LOG_BACKUP_COUNT: int = 10

    @property
    def trip_aware(self) -> bool:
        return self.ATTENDANCE_MODE.strip().lower() != "simple"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
