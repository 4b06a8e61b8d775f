from pydantic_settings import BaseSettings
from typing import Optional
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    # Application Settings
    APP_NAME: str = "SkinSense Routines"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Security
    SECRET_KEY: str = os.getenv("SECRET_KEY", "")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Database
    MONGODB_URL: str = os.getenv("MONGODB_URL", "mongodb://localhost:27017/skinsense")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "skinsense")
    # Only replica sets / Atlas support multi-document transactions
    MONGODB_USE_TRANSACTIONS: bool = os.getenv("MONGODB_USE_TRANSACTIONS", "false").lower() == "true"

    # OpenAI
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_ROUTINE_MODEL: str = os.getenv("OPENAI_ROUTINE_MODEL", "gpt-4o-mini")
    AI_TEMPERATURE: float = float(os.getenv("AI_TEMPERATURE", "0.7"))
    AI_MAX_TOKENS: int = int(os.getenv("AI_MAX_TOKENS", "4096"))
    AI_REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("AI_REQUEST_TIMEOUT_SECONDS", "30"))

    # Routine generation
    MIN_PRODUCTS_FOR_ROUTINE: int = 3
    REGENERATION_WORKERS: int = int(os.getenv("REGENERATION_WORKERS", "2"))

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Allow extra fields from .env file

settings = Settings()

# Validate critical settings for production
if not settings.DEBUG:
    if not settings.SECRET_KEY:
        raise ValueError("SECRET_KEY must be set in production environment")
    if len(settings.SECRET_KEY) < 32:
        raise ValueError("SECRET_KEY should be at least 32 characters for security")
