"""Application settings and configuration."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(
        default="Cloud Image Store",
        description="Application name"
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version"
    )
    environment: Literal["local", "dev", "stage", "prod"] = Field(
        default="local",
        description="Deployment environment"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Storage Configuration
    storage_type: Literal["gcs", "memory"] = Field(
        default="memory",
        description="Object store backend for images"
    )
    gcs_bucket: Optional[str] = Field(
        default=None,
        description="Google Cloud Storage bucket holding the images"
    )
    gcs_project: Optional[str] = Field(
        default=None,
        description="Google Cloud project (defaults to the key file's project)"
    )
    not_found_policy: Literal["raise", "return_none"] = Field(
        default="raise",
        description="Behaviour of image reads for missing objects"
    )

    # Credential Configuration
    gcs_account_id: Optional[str] = Field(
        default=None,
        description="Service account id (email)"
    )
    gcs_key_dir: Path = Field(
        default=Path("keys"),
        description="Directory containing service account key files"
    )
    gcs_key_name: str = Field(
        default="service-account.pem",
        description="Key file name within the key directory (PEM or JSON)"
    )
    gcs_scope: Literal["full_control", "read_only", "read_write"] = Field(
        default="full_control",
        description="Authorization scope granted to the credential"
    )

    @field_validator("gcs_key_dir", mode="before")
    @classmethod
    def resolve_key_dir(cls, v: str | Path) -> Path:
        """Ensure the key directory is a Path object."""
        if isinstance(v, str):
            return Path(v)
        return v

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Path to log file (if None, logs to stdout only)"
    )

    @property
    def log_level_numeric(self) -> int:
        """Get numeric log level."""
        return getattr(logging, self.log_level)

    @property
    def gcs_key_path(self) -> Path:
        """Get the full path of the service account key file."""
        return self.gcs_key_dir / self.gcs_key_name

    def configure_logging(self) -> None:
        """Configure logging based on settings."""
        import sys

        # Base logging configuration
        handlers: list[logging.Handler] = []

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        handlers.append(console_handler)

        # File handler if specified
        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_file)
            handlers.append(file_handler)

        # Configure formatter
        if self.log_json:
            # JSON formatter for structured logging
            import json

            class JSONFormatter(logging.Formatter):
                def format(self, record: logging.LogRecord) -> str:
                    log_obj = {
                        "timestamp": self.formatTime(record),
                        "level": record.levelname,
                        "logger": record.name,
                        "message": record.getMessage(),
                        "module": record.module,
                        "function": record.funcName,
                        "line": record.lineno,
                    }
                    if record.exc_info:
                        log_obj["exception"] = self.formatException(record.exc_info)
                    return json.dumps(log_obj)

            formatter = JSONFormatter()
        else:
            formatter = logging.Formatter(self.log_format)

        # Apply formatter to all handlers
        for handler in handlers:
            handler.setFormatter(formatter)

        # Configure root logger
        logging.basicConfig(
            level=self.log_level_numeric,
            handlers=handlers,
            force=True,
        )

        # Set specific logger levels
        if self.debug:
            logging.getLogger("cloud_image_store").setLevel(logging.DEBUG)
        else:
            # Reduce noise from third-party libraries
            logging.getLogger("urllib3").setLevel(logging.WARNING)
            logging.getLogger("google").setLevel(logging.WARNING)
            logging.getLogger("PIL").setLevel(logging.WARNING)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
