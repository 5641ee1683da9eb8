"""Detect what kind of payload a QR text carries."""

from __future__ import annotations

import re
from enum import Enum
from urllib.parse import urlsplit


class ContentType(str, Enum):
    """Informational label stored alongside history records."""

    URL = "URL"
    EMAIL = "Email"
    PHONE = "Phone"
    WIFI = "WiFi"
    TEXT = "Text"


_URL_PATTERN = re.compile(r"^(https?://)?([^\s.@/]+\.)+[a-z]{2,}(/.*)?$", re.IGNORECASE)
_MAILTO_PATTERN = re.compile(r"^mailto:[^\s@]+@[^\s@]+\.[^\s@]+$", re.IGNORECASE)
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_TEL_PATTERN = re.compile(r"^tel:\+?\d+$", re.IGNORECASE)
_PHONE_PATTERN = re.compile(r"^\+?\d+$")
_WIFI_PATTERN = re.compile(r"^WIFI:", re.IGNORECASE)

CONTENT_LABELS = {
    ContentType.URL: "🔗 网址",
    ContentType.EMAIL: "✉️ 邮箱",
    ContentType.PHONE: "📞 电话",
    ContentType.WIFI: "📶 WiFi",
    ContentType.TEXT: "📝 文本",
}


def is_url(text: str) -> bool:
    if any(ch.isspace() for ch in text):
        return False
    try:
        parts = urlsplit(text)
    except ValueError:
        return False
    if parts.scheme and parts.netloc:
        return True
    return bool(_URL_PATTERN.match(text))


def is_email(text: str) -> bool:
    return bool(_MAILTO_PATTERN.match(text) or _EMAIL_PATTERN.match(text))


def is_phone(text: str) -> bool:
    return bool(_TEL_PATTERN.match(text) or _PHONE_PATTERN.match(text))


def is_wifi(text: str) -> bool:
    return bool(_WIFI_PATTERN.match(text))


def classify(text: str) -> ContentType:
    """Return the content type of ``text``; checks run URL, Email, Phone, WiFi."""
    candidate = text.strip()
    if is_url(candidate):
        return ContentType.URL
    if is_email(candidate):
        return ContentType.EMAIL
    if is_phone(candidate):
        return ContentType.PHONE
    if is_wifi(candidate):
        return ContentType.WIFI
    return ContentType.TEXT


def parse_content_type(value: object) -> ContentType | None:
    """Map a stored label back to a ContentType, ignoring unknown values."""
    if isinstance(value, ContentType):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ContentType(value)
    except ValueError:
        return None
