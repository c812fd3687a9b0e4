"""
Configuration management for the Instructor Verification API
Loads settings from environment variables
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./instructor_verification.db"

    # Security (tokens are issued by the identity provider)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Instructor Verification API"
    VERSION: str = "1.0.0"

    # CORS
    BACKEND_CORS_ORIGINS: str = '["http://localhost:3000", "http://localhost:5173"]'

    # Application
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Admin listings
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # AI verification (OpenAI)
    OPENAI_API_KEY: str = ""
    AI_VERIFICATION_MODEL: str = "gpt-4o"
    AI_VERIFICATION_TIMEOUT: float = 30.0

    # Notification delivery
    NOTIFICATION_WEBHOOK_URL: str = ""
    NOTIFICATION_TIMEOUT: float = 5.0

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow"
    )

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from JSON string"""
        try:
            return json.loads(self.BACKEND_CORS_ORIGINS)
        except ValueError:
            return ["http://localhost:3000", "http://localhost:5173"]


# Global settings instance
settings = Settings()
