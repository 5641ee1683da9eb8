"""System clipboard helpers for copying rendered QR codes."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Optional, Sequence

from modules.errors import ClipboardUnavailable

logger = logging.getLogger(__name__)


class SystemClipboard:
    """Adapter that writes images and text using system clipboard helpers."""

    _IMAGE_WRITERS: Sequence[tuple[str, Sequence[str]]] = (
        ("wl-copy", ("wl-copy", "--type", "image/png")),
        ("xclip", ("xclip", "-selection", "clipboard", "-t", "image/png")),
    )
    _TEXT_WRITERS: Sequence[tuple[str, Sequence[str]]] = (
        ("wl-copy", ("wl-copy",)),
        ("xclip", ("xclip", "-selection", "clipboard")),
        ("xsel", ("xsel", "--clipboard", "--input")),
        ("pbcopy", ("pbcopy",)),
    )

    def __init__(self) -> None:
        self._image_cmd = self._find_command(self._IMAGE_WRITERS)
        self._text_cmd = self._find_command(self._TEXT_WRITERS)
        logger.debug("Clipboard helpers: image=%s text=%s", self._image_cmd, self._text_cmd)

    def _find_command(self, candidates: Sequence[tuple[str, Sequence[str]]]) -> Optional[list[str]]:
        for name, cmd in candidates:
            if shutil.which(name):
                return list(cmd)
        return None

    @property
    def available(self) -> bool:
        return self._image_cmd is not None or self._text_cmd is not None

    def copy_image(self, png_bytes: bytes) -> None:
        if self._image_cmd is None:
            raise ClipboardUnavailable("no clipboard helper supports images; install wl-copy or xclip")
        subprocess.run(self._image_cmd, check=True, input=png_bytes, timeout=5)

    def copy_text(self, value: str) -> None:
        if self._text_cmd is None:
            raise ClipboardUnavailable("clipboard helpers missing; install wl-copy, xclip, or xsel")
        subprocess.run(self._text_cmd, check=True, input=value, text=True, timeout=5)
