import logging
import os
import sys
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import ConfigError

# Load environment variables from .env file
load_dotenv()


def _env(name: str, default: Optional[str] = None):
    return lambda: os.getenv(name, default)


class Settings(BaseModel):
    # LLM (OpenAI-compatible chat completions)
    openai_api_key: Optional[str] = Field(default_factory=_env("OPENAI_API_KEY"))
    openai_model: str = Field(default_factory=_env("OPENAI_MODEL", "gpt-4o-mini"))
    openai_base_url: str = Field(default_factory=_env("OPENAI_BASE_URL", "https://api.openai.com/v1"))
    model_timeout: float = Field(default_factory=lambda: float(os.getenv("MODEL_TIMEOUT", "60")))

    # Database
    database_url: Optional[str] = Field(default_factory=_env("DATABASE_URL"))
    db_ssl_mode: Optional[str] = Field(default_factory=_env("DB_SSLMODE"))
    db_pool_size: int = Field(default_factory=lambda: int(os.getenv("DB_POOL_SIZE", "5")))

    # Schema snapshot cache
    schema_cache_seconds: float = Field(
        default_factory=lambda: float(os.getenv("SCHEMA_CACHE_SECONDS", "300"))
    )

    # Server
    host: str = Field(default_factory=_env("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "4000")))
    cors_origins: str = Field(default_factory=_env("CORS_ORIGINS", "*"))
    log_level: str = Field(default_factory=_env("LOG_LEVEL", "INFO"))

    def missing(self) -> list[str]:
        """Names of required environment variables that are not set."""
        required = {
            "OPENAI_API_KEY": self.openai_api_key,
            "DATABASE_URL": self.database_url,
        }
        return [name for name, value in required.items() if not value]

    def require(self) -> None:
        missing = self.missing()
        if missing:
            raise ConfigError(f"Missing {', '.join(missing)} in environment.")

    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


# Create a global settings object
settings = Settings()
