"""Pydantic models describing mirrorkit configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HttpConfig(BaseModel):
    """Transport settings for the cached fetcher."""

    model_config = ConfigDict(extra="allow")

    timeout_seconds: float = Field(default=30.0, gt=0)
    user_agent: str = "mirrorkit/0.1"
    headers: Dict[str, str] = Field(default_factory=dict)
    base_url: Optional[str] = None
    chunk_size: int = Field(default=65536, ge=1)
    retries: int = Field(default=1, ge=0)
    backoff_seconds: float = Field(default=1.0, ge=0)

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: Optional[str]) -> Optional[str]:
        """Only absolute http(s) URLs make sense as a base for relative references."""

        if value is None or not value.strip():
            return None
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must be an absolute http(s) URL.")
        return value

    def request_headers(self) -> dict[str, str]:
        """Default headers sent with every request."""

        merged = {"User-Agent": self.user_agent}
        merged.update(self.headers)
        return merged


class RuntimeConfig(BaseModel):
    """Execution-time configuration such as the download directory and log file."""

    model_config = ConfigDict(extra="allow")

    directory: Path = Path(".")
    log_path: Optional[Path] = None


class MirrorConfig(BaseModel):
    """Root configuration object."""

    model_config = ConfigDict(extra="allow")

    http: HttpConfig = Field(default_factory=HttpConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)


__all__ = ["HttpConfig", "MirrorConfig", "RuntimeConfig"]
