"""Application settings and configuration."""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = Path.home() / ".mcp-context-memory" / "context.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Context Memory Store"
    app_version: str = "0.3.0"
    debug: bool = False
    environment: str = "development"  # development, test, production

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Database
    # Path of the SQLite file; ignored when DATABASE_URL is set explicitly.
    mcp_context_db_path: Optional[str] = None
    database_url: str = ""
    database_echo: bool = False

    # Actor resolution: hostname recorded for the current system
    system_name: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("database_url", mode="before")
    @classmethod
    def fix_database_url(cls, v: str) -> str:
        """Auto-convert plain sqlite:// URLs to the async driver."""
        if isinstance(v, str) and v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @model_validator(mode="after")
    def default_database_url(self) -> "Settings":
        """Build the SQLite URL from MCP_CONTEXT_DB_PATH when no URL is given."""
        if not self.database_url:
            path = Path(self.mcp_context_db_path).expanduser() if self.mcp_context_db_path else DEFAULT_DB_PATH
            self.database_url = f"sqlite+aiosqlite:///{path}"
        return self

    @property
    def database_path(self) -> Optional[Path]:
        """Filesystem path of the SQLite database, None for in-memory stores."""
        prefix = "sqlite+aiosqlite:///"
        if not self.database_url.startswith(prefix):
            return None
        raw = self.database_url[len(prefix):]
        if not raw or raw == ":memory:":
            return None
        return Path(raw)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
