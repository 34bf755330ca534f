from pydantic_settings import BaseSettings
from pydantic import validator


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "Attendance Rollup Engine"
    DEBUG: bool = False

    # Database settings
    DATABASE_URL: str = "sqlite:///./attendance.db"
    DATABASE_ECHO: bool = False

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Alert evaluation settings
    ROLLING_WINDOW_DAYS: int = 30

    # Identifier prefixes for generated ids
    ALERT_ID_PREFIX: str = "alert"
    THRESHOLD_ID_PREFIX: str = "thresh"

    @validator("DATABASE_URL")
    def validate_database_url(cls, v):
        if not v:
            raise ValueError("DATABASE_URL is required")
        return v

    @validator("LOG_LEVEL")
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported LOG_LEVEL: {v}")
        return level

    @validator("ROLLING_WINDOW_DAYS")
    def validate_window(cls, v):
        if v <= 0:
            raise ValueError("ROLLING_WINDOW_DAYS must be positive")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
