from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """App settings loaded from environment variables (.env)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Campus Events"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # SECURITY
    SECRET_KEY: str = "CHANGE_ME"
    COOKIE_SECURE: bool = False   # set True behind HTTPS
    COOKIE_SAMESITE: str = "lax"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 12  # 12h

    # CORS
    CORS_ALLOW_ORIGINS: str = "*"  # "*" or "https://a.com,https://b.com"
    CORS_ALLOW_CREDENTIALS: bool = False

    # DATABASE / CACHE
    DATABASE_URL: str = "mysql+pymysql://root:@127.0.0.1:3306/campus_events"
    REDIS_URL: str = "redis://127.0.0.1:6379/0"  # empty disables caching
    FORM_SCHEMA_CACHE_SECONDS: int = 60

    # DEV BOOTSTRAP
    AUTO_CREATE_ADMIN: bool = True
    DEFAULT_ADMIN_EMAIL: str = "admin@campus.local"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"
    DEFAULT_ADMIN_NAME: str = "Dev Admin"

    # SAMPLE DATA (for local testing)
    AUTO_SEED_SAMPLE: bool = False
    SAMPLE_SEED_PASSWORD: str = "123"

    def cors_origins(self) -> list[str]:
        s = (self.CORS_ALLOW_ORIGINS or "").strip()
        if not s or s == "*":
            return ["*"]
        return [x.strip() for x in s.split(",") if x.strip()]


settings = Settings()
