# /core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./parking.db"
    LOCAL_TIMEZONE: str = "Asia/Kolkata"
    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
