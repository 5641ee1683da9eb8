"""QRRenderService 单元测试。"""

from __future__ import annotations

import pytest

from config.settings import AppConfig
from modules.errors import RenderError, ValidationError
from modules.pipelines import qr_render
from modules.pipelines.qr_render import ErrorCorrectionLevel, QRRequest, QRRenderService
from modules.utils.content_type import ContentType
from modules.utils.image_utils import DATA_URL_PREFIX, data_url_to_image


def build_service(**overrides) -> QRRenderService:
    config = AppConfig(**overrides)
    return QRRenderService(config, clock=lambda: 1_700_000_000_000)


def test_render_produces_square_image_of_requested_size():
    service = build_service()
    result = service.render(QRRequest(text="https://example.com", size=300))

    assert result.image.size == (300, 300)
    assert result.image.mode == "RGB"
    assert result.data_url.startswith(DATA_URL_PREFIX)
    assert result.content_type is ContentType.URL
    assert result.created_at == 1_700_000_000_000
    assert result.version >= 1


def test_render_applies_colors():
    service = build_service()
    result = service.render(
        QRRequest(text="hola", size=200, foreground="#ff0000", background="#00ff00")
    )

    colors = {color for _, color in result.image.getcolors(maxcolors=16)}
    assert colors == {(255, 0, 0), (0, 255, 0)}
    # 静区使用背景色
    assert result.image.getpixel((0, 0)) == (0, 255, 0)


def test_data_url_decodes_back_to_same_size():
    result = build_service().render(QRRequest(text="hola", size=160))

    decoded = data_url_to_image(result.data_url)

    assert decoded.size == (160, 160)


def test_higher_level_needs_larger_version():
    service = build_service()
    text = "x" * 200
    low = service.render(QRRequest(text=text, error_correction=ErrorCorrectionLevel.L))
    high = service.render(QRRequest(text=text, error_correction=ErrorCorrectionLevel.H))

    assert high.version > low.version


def test_render_overflow_raises_render_error():
    service = build_service()
    text = "a" * 2_900

    with pytest.raises(RenderError):
        service.render(QRRequest(text=text, error_correction=ErrorCorrectionLevel.H))


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_validate_text_rejects_empty(text):
    with pytest.raises(ValidationError, match="不能为空"):
        qr_render.validate_text(text, 2953)


def test_validate_text_rejects_too_long():
    with pytest.raises(ValidationError, match="2954/2953"):
        qr_render.validate_text("a" * 2954, 2953)


def test_validate_text_counts_trimmed_length():
    assert qr_render.validate_text("  abc  ", 3) == "abc"


def test_build_request_normalizes_inputs():
    service = build_service(default_size=256)
    request = service.build_request(
        "hola",
        size=None,
        foreground="rgba(255, 0, 0, 1)",
        background="#FFF",
        error_correction="q",
    )

    assert request.size == 256
    assert request.foreground == "#ff0000"
    assert request.background == "#ffffff"
    assert request.error_correction is ErrorCorrectionLevel.Q


def test_build_request_rejects_unknown_level():
    with pytest.raises(ValidationError):
        build_service().build_request("hola", error_correction="Z")


def test_normalize_color_falls_back_to_default():
    assert qr_render.normalize_color(None, "#123456") == "#123456"
    assert qr_render.normalize_color("", "#123456") == "#123456"
    with pytest.raises(ValidationError):
        qr_render.normalize_color("not-a-colour", "#000000")


@pytest.mark.parametrize(
    "length, level",
    [(0, "normal"), (70, "normal"), (71, "warning"), (90, "warning"), (91, "danger")],
)
def test_char_counter_levels(length, level):
    label, actual = qr_render.char_counter("a" * length, 100)

    assert label == f"{length} / 100 字符"
    assert actual == level
