"""Logging helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from config.settings import AppConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that flood INFO output while Gradio serves requests.
NOISY_LOGGERS = ("PIL", "httpx", "urllib3", "asyncio")


def resolve_level(name: Optional[str], default: int = logging.INFO) -> int:
    """Map a level name such as ``"debug"`` to its numeric value."""
    if not name:
        return default
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else default


def setup_logging(config: AppConfig, level: Optional[int] = None) -> logging.Logger:
    """Configure root handlers once and return the application logger.

    ``level`` overrides ``config.log_level``. History activity goes to
    ``<log_dir>/qr_studio.log`` as well as stderr.
    """
    if level is None:
        level = resolve_level(config.log_level)
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_dir / "qr_studio.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return logging.getLogger("qr_studio")
