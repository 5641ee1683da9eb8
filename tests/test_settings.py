"""Configuration loading tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from config.settings import AppConfig, load_config

ENV_VARS = (
    "QR_DATA_DIR",
    "QR_OUTPUT_DIR",
    "QR_LOG_DIR",
    "QR_MAX_HISTORY_ITEMS",
    "QR_MAX_CHARS",
    "QR_DUPLICATE_WINDOW_MS",
    "QR_STORAGE_QUOTA_BYTES",
    "QR_DEFAULT_SIZE",
    "QR_ERROR_CORRECTION",
    "QR_FOREGROUND",
    "QR_BACKGROUND",
    "QR_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # blank values read as defaults
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
    yield


def test_defaults_match_history_contract(tmp_path):
    config = load_config(str(tmp_path / "missing.env"))

    assert config.history_key == "qrHistory"
    assert config.max_history_items == 12
    assert config.max_chars == 2953
    assert config.duplicate_window_ms == 60_000
    assert config.default_error_correction == "M"
    assert config.data_dir == AppConfig().data_dir


def test_env_file_overrides(tmp_path):
    env_file = tmp_path / "qr.env"
    env_file.write_text(
        "\n".join(
            [
                "# comment",
                f"QR_DATA_DIR={tmp_path / 'store'}",
                "QR_MAX_HISTORY_ITEMS=5",
                "QR_ERROR_CORRECTION=h",
                "QR_FOREGROUND=#112233",
                "",
            ]
        ),
        encoding="utf-8",
    )
    config = load_config(str(env_file))

    assert config.data_dir == Path(tmp_path / "store")
    assert config.max_history_items == 5
    assert config.default_error_correction == "H"
    assert config.default_foreground == "#112233"
    assert config.metadata["env_file"] == str(env_file.resolve())


def test_invalid_values_fall_back(tmp_path, monkeypatch):
    monkeypatch.setenv("QR_MAX_HISTORY_ITEMS", "lots")
    monkeypatch.setenv("QR_DUPLICATE_WINDOW_MS", "-5")
    monkeypatch.setenv("QR_ERROR_CORRECTION", "Z")

    config = load_config(str(tmp_path / "missing.env"))

    assert config.max_history_items == 12
    assert config.duplicate_window_ms == 60_000
    assert config.default_error_correction == "M"


def test_log_level_from_env(tmp_path, monkeypatch):
    assert load_config(str(tmp_path / "missing.env")).log_level == "INFO"

    monkeypatch.setenv("QR_LOG_LEVEL", " debug ")

    assert load_config(str(tmp_path / "missing.env")).log_level == "DEBUG"
