"""
Centralized configuration for cipherstore.

All configuration is loaded from environment variables with sensible defaults.

Usage:
    from cipherstore.config import get_config
    cfg = get_config()
    print(cfg.api_url)      # "http://127.0.0.1:8080" or $CIPHERSTORE_API_URL
    print(cfg.cache_path)   # ~/.cipherstore/ciphers.json
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Config:
    """Top-level cipherstore configuration."""

    api_url: str = "http://127.0.0.1:8080"
    api_token: str = ""
    secret_key: str = ""  # hex encoded, 32 bytes
    workspace: Path = field(default_factory=lambda: Path.home() / ".cipherstore")
    timeout: float = 30.0

    @property
    def cache_path(self) -> Path:
        return self.workspace / "ciphers.json"


# Singleton
_config: Config | None = None


def get_config() -> Config:
    """Get or create the singleton config from environment variables."""
    global _config
    if _config is not None:
        return _config
    _config = _load_from_env()
    return _config


def _load_from_env() -> Config:
    """Load configuration from environment variables."""
    workspace = Path(os.environ.get("CIPHERSTORE_WORKSPACE", Path.home() / ".cipherstore"))

    return Config(
        api_url=os.environ.get("CIPHERSTORE_API_URL", "http://127.0.0.1:8080").rstrip("/"),
        api_token=os.environ.get("CIPHERSTORE_API_TOKEN", ""),
        secret_key=os.environ.get("CIPHERSTORE_SECRET_KEY", ""),
        workspace=workspace.expanduser(),
        timeout=float(os.environ.get("CIPHERSTORE_TIMEOUT", "30")),
    )


def reset_config() -> None:
    """Reset the singleton config (for testing)."""
    global _config
    _config = None
