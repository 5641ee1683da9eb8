"""Export and clipboard tests."""

from __future__ import annotations

import subprocess

import pytest
from PIL import Image

from modules.errors import ClipboardUnavailable
from modules.services.export_service import CopyMode, ExportService
from modules.utils import clipboard as clipboard_module
from modules.utils.clipboard import SystemClipboard
from modules.utils.image_utils import DATA_URL_PREFIX


class DummyClipboard:
    """Records what was copied; image copies can be made to fail."""

    def __init__(self, image_fails: bool = False, text_fails: bool = False) -> None:
        self.image_fails = image_fails
        self.text_fails = text_fails
        self.images: list[bytes] = []
        self.texts: list[str] = []

    def copy_image(self, png_bytes: bytes) -> None:
        if self.image_fails:
            raise ClipboardUnavailable("no image support")
        self.images.append(png_bytes)

    def copy_text(self, value: str) -> None:
        if self.text_fails:
            raise subprocess.CalledProcessError(1, ["xclip"])
        self.texts.append(value)


def sample_image() -> Image.Image:
    return Image.new("RGB", (32, 32), "white")


def test_export_png_uses_timestamped_name(tmp_path):
    exporter = ExportService(tmp_path / "out", clock=lambda: 1_234)

    path = exporter.export_png(sample_image())

    assert path == tmp_path / "out" / "qr-code-1234.png"
    with Image.open(path) as saved:
        assert saved.size == (32, 32)


def test_copy_image_success():
    clipboard = DummyClipboard()
    exporter = ExportService("unused", clipboard=clipboard)

    assert exporter.copy_to_clipboard(sample_image()) is CopyMode.IMAGE
    assert clipboard.images[0].startswith(b"\x89PNG")
    assert clipboard.texts == []


def test_copy_falls_back_to_data_url():
    clipboard = DummyClipboard(image_fails=True)
    exporter = ExportService("unused", clipboard=clipboard)

    assert exporter.copy_to_clipboard(sample_image()) is CopyMode.DATA_URL
    assert clipboard.texts[0].startswith(DATA_URL_PREFIX)


def test_copy_reports_failure_when_fallback_fails():
    clipboard = DummyClipboard(image_fails=True, text_fails=True)
    exporter = ExportService("unused", clipboard=clipboard)

    with pytest.raises(ClipboardUnavailable):
        exporter.copy_to_clipboard(sample_image())


def test_system_clipboard_without_helpers(monkeypatch):
    monkeypatch.setattr(clipboard_module.shutil, "which", lambda name: None)
    clipboard = SystemClipboard()

    assert clipboard.available is False
    with pytest.raises(ClipboardUnavailable):
        clipboard.copy_image(b"png")
    with pytest.raises(ClipboardUnavailable):
        clipboard.copy_text("text")


def test_system_clipboard_invokes_helper(monkeypatch):
    calls = []
    monkeypatch.setattr(
        clipboard_module.shutil, "which", lambda name: f"/usr/bin/{name}" if name == "xclip" else None
    )
    monkeypatch.setattr(
        clipboard_module.subprocess, "run", lambda cmd, **kwargs: calls.append((cmd, kwargs))
    )
    clipboard = SystemClipboard()

    clipboard.copy_image(b"png-bytes")
    clipboard.copy_text("hello")

    assert calls[0][0] == ["xclip", "-selection", "clipboard", "-t", "image/png"]
    assert calls[0][1]["input"] == b"png-bytes"
    assert calls[1][0] == ["xclip", "-selection", "clipboard"]
    assert calls[1][1]["text"] is True


def test_system_clipboard_logs_chosen_helpers(monkeypatch, caplog):
    monkeypatch.setattr(
        clipboard_module.shutil, "which", lambda name: f"/usr/bin/{name}" if name == "xsel" else None
    )

    with caplog.at_level("DEBUG", logger="modules.utils.clipboard"):
        SystemClipboard()

    assert "image=None" in caplog.text
    assert "xsel" in caplog.text
