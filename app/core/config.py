from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str

    REDIS_URL: str

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours

    RATE_LIMIT: int = 100
    RATE_LIMIT_WINDOW: int = 600  # 10 minutes

    IDEMPOTENCY_TTL: int = 300  # 5 minutes
    VIEW_CACHE_TTL: int = 120   # 2 minutes

    WEBHOOK_URL: Optional[str] = None
    WEBHOOK_TIMEOUT: int = 10
    WEBHOOK_RETRIES: int = 3

    CELERY_BROKER_URL: str
    CELERY_BACKEND: str
    REMINDER_LEAD_MINUTES: int = 15

    STRICT_STATUS_TRANSITIONS: bool = False
    EMIT_CANCEL_ACTIVITY: bool = False
    REJECT_PAST_FOLLOW_UPS: bool = False

    HOT_LEAD_BUDGET: int = 5_000_000  # 50 lakh

    API_TITLE: str = "Realty CRM Leads Service"
    API_DESCRIPTION: str = "Lead lifecycle, follow-up scheduling and channel partner attribution"
    API_VERSION: str = "1.0.0"

    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
