"""
Runtime settings
----------------
Read once from the environment; every value has a default so the CLI
works out of the box:

  export STOREFRONT_DATA_DIR=/var/lib/storefront
  export STOREFRONT_STORE_TIMEOUT=2.5
  export STOREFRONT_LOG_LEVEL=DEBUG
  export STOREFRONT_LOG_JSON=true
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# Repository root when installed in editable mode.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


def _bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "on"}


def _float(name: str, default: float | None) -> float | None:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    if v.strip().lower() in {"none", "off", "0"}:
        return None
    try:
        value = float(v)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got {v!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {v!r}")
    return value


@dataclass(frozen=True)
class Settings:
    data_dir: Path = _DEFAULT_DATA_DIR
    # Upper bound for any single store call; None disables the bound.
    store_timeout: float | None = 5.0
    notification_timeout: float | None = 30.0
    log_level: str = "INFO"
    log_json: bool = False

    @staticmethod
    def from_env() -> Settings:
        data_dir = os.getenv("STOREFRONT_DATA_DIR")
        return Settings(
            data_dir=Path(data_dir).expanduser() if data_dir else _DEFAULT_DATA_DIR,
            store_timeout=_float("STOREFRONT_STORE_TIMEOUT", 5.0),
            notification_timeout=_float("STOREFRONT_NOTIFICATION_TIMEOUT", 30.0),
            log_level=os.getenv("STOREFRONT_LOG_LEVEL", "INFO").strip().upper(),
            log_json=_bool("STOREFRONT_LOG_JSON", False),
        )
