"""Runtime settings read from ``DEPHEALTH_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_NPM_REGISTRY = "https://registry.npmjs.org"
DEFAULT_PYPI_URL = "https://pypi.org/pypi"
DEFAULT_OSV_URL = "https://api.osv.dev"


@dataclass(frozen=True)
class Settings:
    npm_registry: str = DEFAULT_NPM_REGISTRY
    pypi_url: str = DEFAULT_PYPI_URL
    osv_url: str = DEFAULT_OSV_URL
    latest_timeout: float = 5.0  # seconds, "latest version" lookups
    metadata_timeout: float = 10.0  # seconds, full package records
    audit_timeout: float = 60.0  # seconds, external audit commands
    concurrency: int = 8


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


def _env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


def load_settings() -> Settings:
    """Build :class:`Settings` from the environment, falling back to defaults."""
    return Settings(
        npm_registry=os.environ.get("DEPHEALTH_NPM_REGISTRY", DEFAULT_NPM_REGISTRY).rstrip("/"),
        pypi_url=os.environ.get("DEPHEALTH_PYPI_URL", DEFAULT_PYPI_URL).rstrip("/"),
        osv_url=os.environ.get("DEPHEALTH_OSV_URL", DEFAULT_OSV_URL).rstrip("/"),
        latest_timeout=_env_float("DEPHEALTH_LATEST_TIMEOUT", 5.0),
        metadata_timeout=_env_float("DEPHEALTH_METADATA_TIMEOUT", 10.0),
        audit_timeout=_env_float("DEPHEALTH_AUDIT_TIMEOUT", 60.0),
        concurrency=max(_env_int("DEPHEALTH_CONCURRENCY", 8), 1),
    )
