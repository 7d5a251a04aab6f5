# config.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ---- App ----
    APP_NAME: str = "GearGuard"

    # ---- DB ----
    DATABASE_URL: str = "sqlite:///./gearguard.db"
    DB_ECHO: bool = False

    # ---- Avatars ----
    AVATAR_DIR: str = "media/avatars"
    AVATAR_BASE_URL: str = "/media/avatars"
    AVATAR_MAX_SIZE_MB: int = 5
    DICEBEAR_BASE_URL: str = "https://api.dicebear.com"
    DICEBEAR_STYLE: str = "avataaars"

    # ---- Seed admin (init_db.py) ----
    ADMIN_EMAIL: str = "admin@gearguard.local"
    ADMIN_PASSWORD: str = "admin123"

    # ---- Sessions / display ----
    SESSION_COOKIE: str = "session_id"
    TIMEZONE: str = "UTC"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="GEARGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
