"""
Configuration management for tekton-watch.

Settings are read from environment variables (and an optional .env file)
and may be overridden by command-line flags.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

from .models import DiffMode

DEFAULT_API = "http://tekton-dashboard.tekton-pipelines:9097"
DEFAULT_NAMESPACE = "tekton-pipelines"


class WatchConfig(BaseSettings):
    """Configuration for a single watch session."""

    model_config = {
        "env_prefix": "TEKTON_",
        "env_file": ".env",
        "case_sensitive": False,
        "populate_by_name": True,
        "extra": "ignore",
    }

    api: str = Field(default=DEFAULT_API, description="API base address, or a comma-separated list")
    namespace: str = Field(default=DEFAULT_NAMESPACE, description="Namespace the pipelines run in")
    event_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("EVENT_ID", "TEKTON_EVENT_ID"),
        description="Trigger event id of the run to watch",
    )
    jwt: Optional[str] = Field(default=None, description="Bearer token")
    token_file: Optional[Path] = Field(default=None, description="File holding the bearer token")
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "TEKTON_LOG_LEVEL"),
        description="Logging level",
    )

    max_retries: int = Field(default=100, ge=0, description="Failed lookups tolerated before giving up")
    retry_interval: float = Field(default=1.0, ge=0, description="Seconds between lookups while locating")
    poll_interval: float = Field(default=5.0, ge=0, description="Seconds between polls while streaming")
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    max_duration: Optional[float] = Field(default=None, gt=0, description="Cap on total watch time")
    verify_tls: bool = True
    log_diff_mode: DiffMode = Field(default=DiffMode.STRIP, description="How new log text is diffed")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase for logging compatibility."""
        return v.upper()

    @field_validator("api")
    @classmethod
    def require_endpoint(cls, v: str) -> str:
        if not _split_endpoints(v):
            raise ValueError("at least one API address is required")
        return v

    @property
    def endpoints(self) -> List[str]:
        """Configured API base addresses in order."""
        return _split_endpoints(self.api)


def _split_endpoints(value: str) -> List[str]:
    return [part.strip().rstrip("/") for part in value.split(",") if part.strip()]
