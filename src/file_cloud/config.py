from __future__ import annotations

from datetime import timedelta
import os
from typing import Any
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import field_validator, model_validator
from pydantic.dataclasses import dataclass
from uvicorn.config import LOG_LEVELS

DEFAULT_ENDPOINT = "s3.us-west-1.amazonaws.com"
DEFAULT_REGION = "us-west-1"

# setting name -> environment variable
ENVIRONMENT = {
    "bucket": "BUCKET",
    "key": "KEY",
    "secret": "SECRET",
    "endpoint": "S3_ENDPOINT",
    "region": "S3_REGION",
    "secure": "S3_SECURE",
    "cdn": "CDN",
    "host": "HOST",
    "port": "PORT",
    "user": "USERNAME",
    "password": "PASSWORD",
    "plausible": "PLAUSIBLE",
    "log_level": "LOG_LEVEL",
}


@dataclass
class Settings:
    bucket: str
    key: str
    secret: str
    endpoint: str = DEFAULT_ENDPOINT
    region: str = DEFAULT_REGION
    secure: bool = True
    cdn: str = ""
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8080
    user: str = ""
    password: str = ""
    plausible: str = ""
    log_level: str = "info"
    token_length: int = 5
    cache_size: int = 128
    timeout: float = 30.0
    signed_url_ttl: int = 900  # seconds

    @field_validator("bucket", "key", "secret", "endpoint")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("port")
    @classmethod
    def _valid_port(cls, value: int) -> int:
        if not 1 <= value <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {value}")
        return value

    @field_validator("cdn")
    @classmethod
    def _valid_cdn(cls, value: str) -> str:
        if not value:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"CDN must be an http or https URL, got {value!r}")
        if not parsed.netloc:
            raise ValueError(f"CDN URL has no host: {value!r}")
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _valid_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level

    @field_validator("token_length", "cache_size")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be positive")
        return value

    @model_validator(mode="after")
    def _auth_pair(self) -> Settings:
        if bool(self.user) != bool(self.password):
            raise ValueError("basic auth needs both a username and a password")
        return self

    @property
    def auth_enabled(self) -> bool:
        return bool(self.user and self.password)

    @property
    def signed_url_expiry(self) -> timedelta:
        return timedelta(seconds=self.signed_url_ttl)

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Read settings from the environment and `.env`; overrides that are not None win."""
        load_dotenv()
        values: dict[str, Any] = {}
        for name, variable in ENVIRONMENT.items():
            value = os.environ.get(variable)
            if value is not None:
                values[name] = value
        values.update({k: v for k, v in overrides.items() if v is not None})
        values.setdefault("bucket", "")
        values.setdefault("key", "")
        values.setdefault("secret", "")
        return cls(**values)
