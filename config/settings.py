"""Configuration helpers for the QR Studio project."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

HISTORY_KEY = "qrHistory"


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    data_dir: Path = Path("data")
    output_dir: Path = Path("outputs")
    log_dir: Path = Path("logs")
    history_key: str = HISTORY_KEY
    max_history_items: int = 12
    max_chars: int = 2953  # byte-mode capacity of version 40 at level L
    duplicate_window_ms: int = 60_000
    storage_quota_bytes: int = 5 * 1024 * 1024
    default_size: int = 256
    default_error_correction: str = "M"
    default_foreground: str = "#000000"
    default_background: str = "#ffffff"
    quiet_zone: int = 4
    log_level: str = "INFO"
    metadata: dict[str, Any] = field(default_factory=dict)


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip()


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= minimum else default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if not raw:
        return default
    return Path(raw).expanduser()


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    defaults = AppConfig()
    level = (os.getenv("QR_ERROR_CORRECTION") or defaults.default_error_correction).strip().upper()
    if level not in ("L", "M", "Q", "H"):
        level = defaults.default_error_correction

    metadata: dict[str, Any] = {}
    if env_path.exists():
        metadata["env_file"] = str(env_path.resolve())

    return AppConfig(
        data_dir=_env_path("QR_DATA_DIR", defaults.data_dir),
        output_dir=_env_path("QR_OUTPUT_DIR", defaults.output_dir),
        log_dir=_env_path("QR_LOG_DIR", defaults.log_dir),
        max_history_items=_env_int("QR_MAX_HISTORY_ITEMS", defaults.max_history_items, minimum=1),
        max_chars=_env_int("QR_MAX_CHARS", defaults.max_chars, minimum=1),
        duplicate_window_ms=_env_int("QR_DUPLICATE_WINDOW_MS", defaults.duplicate_window_ms),
        storage_quota_bytes=_env_int("QR_STORAGE_QUOTA_BYTES", defaults.storage_quota_bytes, minimum=1),
        default_size=_env_int("QR_DEFAULT_SIZE", defaults.default_size, minimum=1),
        default_error_correction=level,
        default_foreground=os.getenv("QR_FOREGROUND") or defaults.default_foreground,
        default_background=os.getenv("QR_BACKGROUND") or defaults.default_background,
        log_level=(os.getenv("QR_LOG_LEVEL") or defaults.log_level).strip().upper(),
        metadata=metadata,
    )
