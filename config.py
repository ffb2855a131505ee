from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    # Hosted backend
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None
    # Direct Postgres URL of the hosted backend, only needed for schema creation
    DATABASE_URL: Optional[str] = None

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    TOKEN_TTL_HOURS: int = 24
    ADMIN_PIN: str = "000"

    # Attendance capture
    ALLOWED_RADIUS_METERS: float = 500.0
    LOCATION_TIMEOUT_SECONDS: float = 15.0
    PHOTO_JPEG_QUALITY: int = 80
    CAMERA_INDEX: int = 0
    RECENT_LOGS_LIMIT: int = 100

    # Declared business rule, enforced outside this service
    LOG_RETENTION_DAYS: int = 30

    # Localisation
    DEFAULT_LANGUAGE: str = "ar"
    COMPANY_NAME: str = "نظام المقاولات الذكي"

    # Twilio
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None
    ADMIN_ALERT_PHONE: Optional[str] = None
    DEFAULT_COUNTRY_CODE: str = "+966"

    # API Configuration
    API_VERSION: str = "v1"
    API_PREFIX: str = "/api"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

@lru_cache()
def get_settings():
    return Settings()

settings = get_settings()
