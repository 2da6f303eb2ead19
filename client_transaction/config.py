"""
Configuration for transaction id derivation.

Settings come from defaults, ``CLIENT_TX_*`` environment variables, or a
YAML mapping with the same field names.
"""

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "CLIENT_TX_"


class TransactionSettings(BaseModel):
    """Knobs for page extraction and the ondemand script fetch."""

    cdn_host: str = Field(default="abs.twimg.com", description="Host serving the ondemand script")
    home_page_url: str = Field(default="https://x.com", description="Page carrying the verification key")
    verification_meta_name: str = Field(default="twitter-site-verification")
    frame_id_prefix: str = Field(default="loading-x-anim")
    fetch_timeout: float = Field(default=10.0, gt=0, description="Seconds before a fetch is abandoned")
    fetch_backend: Literal["httpx", "curl_cffi"] = "httpx"
    impersonate: str = Field(default="chrome124", description="curl_cffi browser fingerprint")
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/140.0.0.0 Safari/537.36"
    )
    log_level: str = "INFO"
    json_logging: bool = False

    @field_validator("cdn_host")
    @classmethod
    def validate_cdn_host(cls, v):
        """Accept a bare host, tolerating a pasted scheme or trailing slash."""
        v = v.strip()
        for scheme in ("https://", "http://"):
            if v.startswith(scheme):
                v = v[len(scheme):]
        v = v.rstrip("/")
        if not v:
            raise ValueError("CDN host cannot be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        return v.upper()

    def ondemand_url(self, version: str) -> str:
        """Fully qualified URL of the ondemand script for a page version."""
        return f"https://{self.cdn_host}/responsive-web/client-web/ondemand.s.{version}a.js"

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "TransactionSettings":
        """
        Build settings from ``CLIENT_TX_<FIELD>`` environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Settings with unset fields left at their defaults
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "TransactionSettings":
        """
        Load settings from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file does not hold a mapping
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as file:
            config = yaml.safe_load(file)

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ValueError(f"Configuration file must contain a mapping: {config_path}")
        return cls(**config)
