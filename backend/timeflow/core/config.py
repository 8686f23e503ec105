from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # App
    APP_NAME: str = "TimeFlow Workforce Analytics"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Database
    DATABASE_URL: str = "postgresql://timeflow_user:timeflow_pass@db:5432/timeflow_db"

    # Frontend (CORS)
    FRONTEND_URL: Optional[str] = None

    # Wall-clock analysis happens in the company's local time
    ANALYTICS_TIMEZONE: str = "Europe/Madrid"

    # Lookback windows
    ANOMALY_LOOKBACK_DAYS: int = 30
    INSIGHTS_LOOKBACK_MONTHS: int = 3

    # Periodic company-wide anomaly scan
    ANOMALY_SCAN_ENABLED: bool = True
    ANOMALY_SCAN_INTERVAL_SECONDS: int = 60 * 60  # hourly
    ANOMALY_SCAN_STARTUP_DELAY_SECONDS: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
