"""
Settings
Runtime configuration read from environment variables, with CLI overrides.
"""
import os
from dataclasses import dataclass, replace
from typing import Dict, Any, Optional


ENV_PREFIX = "NBPACKAGES_"

DEFAULT_PYPI_URL = "https://pypi.org/pypi"
DEFAULT_LIST_TIMEOUT = 15
DEFAULT_PIP_TIMEOUT = 300


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one run of the dialog."""
    python_path: Optional[str] = None
    log_level: str = "INFO"
    list_timeout: int = DEFAULT_LIST_TIMEOUT
    pip_timeout: int = DEFAULT_PIP_TIMEOUT
    pypi_url: str = DEFAULT_PYPI_URL


def _read_int(environ, key: str, default: int) -> int:
    raw = environ.get(ENV_PREFIX + key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{key} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{ENV_PREFIX}{key} must be positive, got {value}")
    return value


def load_settings(overrides: Optional[Dict[str, Any]] = None, environ=None) -> Settings:
    """Build Settings from the environment, then apply non-None overrides."""
    if environ is None:
        environ = os.environ

    settings = Settings(
        python_path=environ.get(ENV_PREFIX + "PYTHON") or None,
        log_level=(environ.get(ENV_PREFIX + "LOG_LEVEL") or "INFO").upper(),
        list_timeout=_read_int(environ, "LIST_TIMEOUT", DEFAULT_LIST_TIMEOUT),
        pip_timeout=_read_int(environ, "PIP_TIMEOUT", DEFAULT_PIP_TIMEOUT),
        pypi_url=(environ.get(ENV_PREFIX + "PYPI_URL") or DEFAULT_PYPI_URL).rstrip("/"),
    )

    if overrides:
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "log_level" in changes:
            changes["log_level"] = changes["log_level"].upper()
        if "pypi_url" in changes:
            changes["pypi_url"] = changes["pypi_url"].rstrip("/")
        settings = replace(settings, **changes)

    return settings
