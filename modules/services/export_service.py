"""Download and clipboard export of rendered QR codes."""

from __future__ import annotations

import logging
import subprocess
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from PIL import Image

from modules.errors import ClipboardUnavailable
from modules.services.history_service import now_ms
from modules.utils.clipboard import SystemClipboard
from modules.utils.image_utils import image_to_data_url, image_to_png_bytes

logger = logging.getLogger(__name__)


class CopyMode(str, Enum):
    """What actually landed on the clipboard."""

    IMAGE = "image"
    DATA_URL = "data_url"


class ExportService:
    """Write QR images to disk and hand them to the clipboard."""

    def __init__(
        self,
        output_dir: Path,
        clipboard: Optional[SystemClipboard] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.clipboard = clipboard
        self._clock = clock

    def export_png(self, image: Image.Image, filename: Optional[str] = None) -> Path:
        """Persist an image as ``qr-code-<ms>.png`` and return the file path."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        target = self.output_dir / (filename or f"qr-code-{self._clock()}.png")
        image.save(target, format="PNG")
        logger.info("Exported QR code to %s", target)
        return target

    def copy_to_clipboard(self, image: Image.Image) -> CopyMode:
        """Copy the PNG; fall back to its data URL as text when images are unsupported."""
        clipboard = self.clipboard or SystemClipboard()
        try:
            clipboard.copy_image(image_to_png_bytes(image))
            return CopyMode.IMAGE
        except (ClipboardUnavailable, subprocess.SubprocessError, OSError) as exc:
            logger.warning("Image clipboard copy failed, falling back to data URL: %s", exc)

        try:
            clipboard.copy_text(image_to_data_url(image))
        except (subprocess.SubprocessError, OSError) as exc:
            raise ClipboardUnavailable(f"clipboard copy failed: {exc}") from exc
        return CopyMode.DATA_URL
