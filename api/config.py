"""Service configuration from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "FreshPress Subscriptions API"
    ENVIRONMENT: str = "dev"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "postgresql+asyncpg://freshpress:freshpress@db:5432/freshpress"
    REDIS_URL: str = "redis://redis:6379/0"

    # Shared secret for the cron trigger (Authorization: Bearer <secret>)
    CRON_SECRET: str = ""

    # Delivery calendar
    TIMEZONE: str = "Asia/Kolkata"
    ORDER_CUTOFF_HOUR: int = 18
    DELIVERY_HOUR: int = 8
    BLACKOUT_WEEKDAY: int = 6  # datetime.weekday(): Sunday

    # Reconciliation drift tolerance
    WEEKLY_DRIFT_TOLERANCE_DAYS: int = 14
    DEFAULT_DRIFT_TOLERANCE_DAYS: int = 10

    # Admin pause
    INDEFINITE_PAUSE_DEFERRAL_DAYS: int = 7
    PAUSE_REACTIVATION_GRACE_MONTHS: int = 3
    INDEFINITE_PAUSE_CEILING_MONTHS: int = 6

    # Self-service pause
    USER_PAUSE_NOTICE_HOURS: int = 24
    USER_REACTIVATION_WINDOW_MONTHS: int = 3

    SCHEDULE_SETTINGS_CACHE_SECONDS: int = 300

    # Email / messaging automation webhook
    NOTIFY_WEBHOOK_URL: str | None = None

    class Config:
        env_file = ".env"
        extra = "allow"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
