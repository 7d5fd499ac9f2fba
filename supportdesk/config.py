"""Application settings loaded from environment variables / .env."""
from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./supportdesk.db"

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4"
    OPENAI_CLASSIFIER_MODEL: str = "gpt-3.5-turbo"
    OPENAI_TIMEOUT: float = 30.0  # seconds, applied per call
    OPENAI_MAX_RETRIES: int = 3

    # Chat
    CHAT_RATE_LIMIT_PER_MINUTE: int = 20
    CHAT_HISTORY_LIMIT: int = 10
    CHAT_TICKET_CONTEXT_LIMIT: int = 5

    # CORS
    ALLOWED_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


settings = Settings()
