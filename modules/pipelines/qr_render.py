"""QR rendering service built on the ``qrcode`` library."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

import qrcode
from PIL import Image, ImageColor
from qrcode.exceptions import DataOverflowError

from config.settings import AppConfig
from modules.errors import RenderError, ValidationError
from modules.services.history_service import now_ms
from modules.utils.content_type import ContentType, classify
from modules.utils.image_utils import image_to_data_url


class ErrorCorrectionLevel(str, Enum):
    """QR error-correction levels, from most capacity to most resilience."""

    L = "L"
    M = "M"
    Q = "Q"
    H = "H"

    @property
    def constant(self) -> int:
        return {
            ErrorCorrectionLevel.L: qrcode.constants.ERROR_CORRECT_L,
            ErrorCorrectionLevel.M: qrcode.constants.ERROR_CORRECT_M,
            ErrorCorrectionLevel.Q: qrcode.constants.ERROR_CORRECT_Q,
            ErrorCorrectionLevel.H: qrcode.constants.ERROR_CORRECT_H,
        }[self]


_RGBA_PATTERN = re.compile(
    r"^rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*[\d.]+\s*)?\)$",
    re.IGNORECASE,
)


def normalize_color(value: Any, default: str) -> str:
    """Return ``value`` as ``#rrggbb``; accepts hex, rgb()/rgba() and colour names."""
    if not isinstance(value, str) or not value.strip():
        return default
    candidate = value.strip()
    match = _RGBA_PATTERN.match(candidate)
    if match:
        channels = [max(0, min(255, round(float(part)))) for part in match.groups()]
        return "#{:02x}{:02x}{:02x}".format(*channels)
    try:
        red, green, blue = ImageColor.getrgb(candidate)[:3]
    except ValueError as exc:
        raise ValidationError(f"无法识别的颜色：{candidate}") from exc
    return f"#{red:02x}{green:02x}{blue:02x}"


def validate_text(text: Optional[str], max_chars: int) -> str:
    """Check that the trimmed input is non-empty and within ``max_chars``."""
    trimmed = (text or "").strip()
    if not trimmed:
        raise ValidationError("❌ 内容不能为空")
    if len(trimmed) > max_chars:
        raise ValidationError(f"❌ 内容过长（{len(trimmed)}/{max_chars}）")
    return trimmed


def char_counter(text: Optional[str], max_chars: int) -> tuple[str, str]:
    """Return the counter label and its usage level (normal, warning, danger)."""
    length = len(text or "")
    if length > max_chars * 0.9:
        level = "danger"
    elif length > max_chars * 0.7:
        level = "warning"
    else:
        level = "normal"
    return f"{length} / {max_chars} 字符", level


@dataclass(slots=True)
class QRRequest:
    """Request data for QR rendering."""

    text: str
    size: int = 256
    foreground: str = "#000000"
    background: str = "#ffffff"
    error_correction: ErrorCorrectionLevel = ErrorCorrectionLevel.M
    quiet_zone: int = 4


@dataclass(slots=True)
class QRResult:
    """Rendered QR image plus the data needed to save or export it."""

    image: Image.Image
    data_url: str
    request: QRRequest
    content_type: ContentType
    version: int
    created_at: int = field(default_factory=now_ms)

    @property
    def text(self) -> str:
        return self.request.text

    @property
    def size(self) -> int:
        return self.request.size


class QRRenderService:
    """Facade around ``qrcode.QRCode`` producing square PNG-ready images."""

    def __init__(self, config: AppConfig, clock: Callable[[], int] = now_ms) -> None:
        self.config = config
        self._clock = clock

    def build_request(
        self,
        text: str,
        size: Optional[int] = None,
        foreground: Optional[str] = None,
        background: Optional[str] = None,
        error_correction: Optional[str] = None,
    ) -> QRRequest:
        """Validate raw UI values and turn them into a QRRequest."""
        validate_text(text, self.config.max_chars)
        level_name = (error_correction or self.config.default_error_correction).strip().upper()
        try:
            level = ErrorCorrectionLevel(level_name)
        except ValueError as exc:
            raise ValidationError(f"未知的纠错级别：{error_correction}") from exc
        return QRRequest(
            text=text,
            size=int(size or self.config.default_size),
            foreground=normalize_color(foreground, self.config.default_foreground),
            background=normalize_color(background, self.config.default_background),
            error_correction=level,
            quiet_zone=self.config.quiet_zone,
        )

    def render(self, request: QRRequest) -> QRResult:
        """Render ``request`` into an RGB image of ``size`` x ``size`` pixels."""
        validate_text(request.text, self.config.max_chars)
        if request.size <= 0:
            raise ValidationError("❌ 尺寸必须为正数")

        qr = qrcode.QRCode(
            version=None,
            error_correction=request.error_correction.constant,
            box_size=1,
            border=max(0, request.quiet_zone),
        )
        qr.add_data(request.text)
        try:
            qr.make(fit=True)
        except DataOverflowError as exc:
            raise RenderError(
                f"内容超出纠错级别 {request.error_correction.value} 的容量，请降低纠错级别或缩短内容"
            ) from exc
        except ValueError as exc:
            raise RenderError(f"生成二维码失败：{exc}") from exc

        total_modules = qr.modules_count + 2 * max(0, request.quiet_zone)
        qr.box_size = max(1, request.size // total_modules)
        try:
            rendered = qr.make_image(
                fill_color=request.foreground,
                back_color=request.background,
            ).get_image()
        except ValueError as exc:
            raise RenderError(f"生成二维码失败：{exc}") from exc

        image = rendered.convert("RGB").resize(
            (request.size, request.size), Image.Resampling.NEAREST
        )
        return QRResult(
            image=image,
            data_url=image_to_data_url(image),
            request=request,
            content_type=classify(request.text),
            version=int(qr.version),
            created_at=self._clock(),
        )
