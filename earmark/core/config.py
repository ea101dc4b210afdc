import logging
import os
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

APP_MODES = ("development", "production")

INSECURE_SECRET_DEFAULTS = [
    "dev-session-key-change-in-prod",
    "development-secret-change-in-production",
    "secret",
    "changeme",
]


def _get_version() -> str:
    """Read version from pyproject.toml or environment variable."""
    if env_version := os.getenv("EARMARK_VERSION"):
        return env_version

    try:
        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            content = pyproject_path.read_text()
            for line in content.split("\n"):
                if line.startswith("version"):
                    # Parse: version = "0.1.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
    except OSError:
        pass

    return "0.0.0-dev"


APP_VERSION = _get_version()


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Earmark"
    APP_ENV: str = "production"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Storage
    AUDIO_PATH: str = "/audio"
    DB_PATH: str = "/app/data/earmark.db"
    SCAN_ON_STARTUP: bool = True

    # Authentication
    SESSION_SECRET_KEY: str = "dev-session-key-change-in-prod"  # In production, ALWAYS override via env var
    SESSION_MAX_AGE_DAYS: int = 7
    PASSWORD_HASH: str = ""

    # Number of reverse proxies in front of the app (0 = use the socket peer)
    TRUST_PROXY_DEPTH: int = 1

    # Request throttling (sliding windows kept in Redis)
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT_ATTEMPTS: int = 5
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    API_RATE_LIMIT_REQUESTS: int = 100
    API_RATE_LIMIT_WINDOW_SECONDS: int = 60

    # Cross-origin frontends allowed in development, comma separated
    CORS_ORIGINS: str = "http://localhost:5173"

    @property
    def DATABASE_URL(self) -> str:
        return f"sqlite+aiosqlite:///{self.DB_PATH}"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        v = v.lower()
        if v not in APP_MODES:
            raise ValueError("APP_ENV must be 'development' or 'production'")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid LOG_LEVEL: {v}")
        return v

    @field_validator("TRUST_PROXY_DEPTH")
    @classmethod
    def validate_proxy_depth(cls, v: int) -> int:
        if v < 0:
            raise ValueError("TRUST_PROXY_DEPTH must be zero or a positive integer")
        return v

    @field_validator("SESSION_SECRET_KEY")
    @classmethod
    def validate_session_secret(cls, v: str, info) -> str:
        """Reject empty, short or well-known session secrets outside development."""
        if not v or v.strip() == "":
            raise ValueError(
                "SESSION_SECRET_KEY must be set in environment variables. "
                "Generate a secure random key using: openssl rand -base64 32"
            )

        if v.lower() in INSECURE_SECRET_DEFAULTS:
            development = (
                info.data.get("APP_ENV") == "development"
                or info.data.get("DEBUG", False)
            )
            if not development:
                raise ValueError(
                    "SESSION_SECRET_KEY is using an insecure default value. "
                    "Generate a secure key using: openssl rand -base64 32"
                )

            logger.warning(
                "SESSION_SECRET_KEY is using an insecure default value in development mode. "
                "This MUST be changed in production!"
            )
        elif len(v) < 32:
            raise ValueError(
                "SESSION_SECRET_KEY must be at least 32 characters long. "
                "Generate a secure key using: openssl rand -base64 32"
            )

        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
