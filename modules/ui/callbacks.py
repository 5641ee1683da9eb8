"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from config.settings import AppConfig
from modules.errors import ClipboardUnavailable, RenderError, StorageError, ValidationError
from modules.pipelines.qr_render import QRRenderService, QRResult, char_counter
from modules.services.export_service import CopyMode, ExportService
from modules.services.history_service import HistoryRecord, HistoryStore, SaveOutcome
from modules.utils.content_type import CONTENT_LABELS, ContentType, classify
from modules.utils.image_utils import data_url_to_image, generate_thumbnail

logger = logging.getLogger(__name__)

GalleryItem = Tuple[Any, str]
Choice = Tuple[str, str]

EMPTY_HISTORY_MESSAGE = "还没有保存的二维码。生成后点击“保存到历史”。"


def _format_time(timestamp_ms: int, fmt: str = "%Y-%m-%d %H:%M") -> str:
    try:
        return datetime.fromtimestamp(timestamp_ms / 1000).strftime(fmt)
    except (OverflowError, OSError, ValueError):
        return "-"


def _truncate(text: str, max_length: int = 20) -> str:
    return text[:max_length] + "..." if len(text) > max_length else text


def _content_label(content_type: Optional[ContentType], text: str) -> str:
    return CONTENT_LABELS[content_type or classify(text)]


def build_callbacks(
    config: AppConfig,
    renderer: Optional[QRRenderService] = None,
    history: Optional[HistoryStore] = None,
    exporter: Optional[ExportService] = None,
) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions."""

    def _ensure_renderer() -> QRRenderService:
        if renderer is None:
            raise RuntimeError("二维码生成服务未配置")
        return renderer

    def _normalize_size(value: Any, default: Optional[int] = None) -> int:
        fallback = default or config.default_size
        try:
            numeric = int(float(value))
        except (TypeError, ValueError):
            return fallback
        return max(128, min(numeric, 1024))

    def _info_markdown(result: QRResult) -> str:
        size = result.size
        return "\n".join(
            [
                f"- 长度：{len(result.text)}",
                f"- 类型：{_content_label(result.content_type, result.text)}",
                f"- 尺寸：{size} × {size}",
                f"- 版本：{result.version}",
                f"- 时间：{_format_time(result.created_at)}",
            ]
        )

    def _state_from(result: QRResult) -> Dict[str, Any]:
        return {
            "text": result.text,
            "size": result.size,
            "data_url": result.data_url,
            "content_type": result.content_type.value,
            "created_at": result.created_at,
        }

    def _state_image(state: Optional[Dict[str, Any]]) -> Any:
        if not state or not state.get("data_url"):
            return None
        try:
            return data_url_to_image(state["data_url"])
        except ValueError as exc:
            logger.warning("Discarding unreadable QR state: %s", exc)
            return None

    def _history_view() -> tuple[List[GalleryItem], List[Choice]]:
        if history is None:
            return [], []
        gallery: List[GalleryItem] = []
        choices: List[Choice] = []
        for record in history.load():
            caption = f"{_truncate(record.text)} · {_format_time(record.timestamp, '%m-%d %H:%M')}"
            choices.append((caption, str(record.id)))
            try:
                thumb = generate_thumbnail(data_url_to_image(record.image_data))
            except (ValueError, OSError):
                continue
            gallery.append((thumb, caption))
        return gallery, choices

    def _render(
        text: str,
        size: Any,
        error_correction: str,
        foreground: str,
        background: str,
    ) -> tuple[Optional[Any], str, str, Optional[Dict[str, Any]]]:
        service = _ensure_renderer()
        try:
            request = service.build_request(
                text,
                size=_normalize_size(size),
                foreground=foreground,
                background=background,
                error_correction=error_correction,
            )
            result = service.render(request)
        except ValidationError as exc:
            return None, str(exc), "", None
        except RenderError as exc:
            logger.warning("QR render failed: %s", exc)
            return None, f"❌ 生成失败：{exc}", "", None
        return result.image, "✅ 二维码生成成功", _info_markdown(result), _state_from(result)

    def on_text_change(text: str) -> str:
        label, level = char_counter(text, config.max_chars)
        if level == "danger":
            return f"**🔴 {label}**"
        if level == "warning":
            return f"**🟠 {label}**"
        return label

    def on_generate(
        text: str,
        size: Any,
        error_correction: str,
        foreground: str,
        background: str,
    ) -> tuple[Optional[Any], str, str, Optional[Dict[str, Any]]]:
        return _render(text, size, error_correction, foreground, background)

    def on_clear_form() -> tuple[str, None, str, str, None, str]:
        return "", None, "", "", None, on_text_change("")

    def on_download(state: Optional[Dict[str, Any]]) -> tuple[Optional[str], str]:
        image = _state_image(state)
        if image is None:
            return None, "❌ 没有可下载的二维码"
        if exporter is None:
            return None, "❌ 导出服务未配置"
        try:
            path = exporter.export_png(image)
        except OSError as exc:
            logger.warning("QR export failed: %s", exc)
            return None, f"❌ 下载失败：{exc}"
        return str(path), "✅ 二维码已保存为 PNG"

    def on_copy(state: Optional[Dict[str, Any]]) -> str:
        image = _state_image(state)
        if image is None:
            return "❌ 没有可复制的二维码"
        if exporter is None:
            return "❌ 导出服务未配置"
        try:
            mode = exporter.copy_to_clipboard(image)
        except ClipboardUnavailable as exc:
            return f"❌ 复制失败：{exc}"
        if mode is CopyMode.DATA_URL:
            return "✅ 已复制 Data URL（可粘贴到浏览器地址栏）"
        return "✅ 二维码已复制到剪贴板"

    def on_save_history(
        state: Optional[Dict[str, Any]],
    ) -> tuple[List[GalleryItem], List[Choice], str]:
        if history is None:
            gallery, choices = _history_view()
            return gallery, choices, "❌ 历史记录服务未配置"
        if not state or not state.get("data_url") or not state.get("text"):
            gallery, choices = _history_view()
            return gallery, choices, "❌ 没有可保存的二维码"

        content_type = None
        try:
            content_type = ContentType(state.get("content_type"))
        except ValueError:
            pass
        record = history.create_record(
            text=state["text"],
            image_data=state["data_url"],
            size=_normalize_size(state.get("size")),
            content_type=content_type,
        )
        try:
            outcome = history.save(record)
        except StorageError as exc:
            gallery, choices = _history_view()
            return gallery, choices, f"⚠️ 保存历史失败（存储空间可能已满）：{exc}"

        gallery, choices = _history_view()
        if outcome is SaveOutcome.DUPLICATE:
            return gallery, choices, "ℹ️ 该二维码已在最近的历史记录中"
        return gallery, choices, "✅ 已保存到本地历史"

    def on_refresh_history() -> tuple[List[GalleryItem], List[Choice], str]:
        gallery, choices = _history_view()
        return gallery, choices, "" if choices else EMPTY_HISTORY_MESSAGE

    def on_load_history(
        record_id: Any,
        error_correction: str,
        foreground: str,
        background: str,
    ) -> tuple[str, int, Optional[Any], str, str, Optional[Dict[str, Any]], str]:
        record: Optional[HistoryRecord] = None
        if history is not None and record_id not in (None, ""):
            record = history.find_by_id(record_id)
        if record is None:
            return "", config.default_size, None, "❌ 历史记录中未找到该二维码", "", None, on_text_change("")

        size = _normalize_size(record.size)
        image, status, info, state = _render(
            record.text, size, error_correction, foreground, background
        )
        return record.text, size, image, status, info, state, on_text_change(record.text)

    def on_clear_history(confirmed: bool) -> tuple[List[GalleryItem], List[Choice], str]:
        if not confirmed:
            gallery, choices = _history_view()
            return gallery, choices, "⚠️ 请先勾选确认，再清空全部历史（此操作不可撤销）"
        if history is not None:
            history.clear()
        return [], [], "🗑️ 历史记录已清空"

    return {
        "on_text_change": on_text_change,
        "on_generate": on_generate,
        "on_clear_form": on_clear_form,
        "on_download": on_download,
        "on_copy": on_copy,
        "on_save_history": on_save_history,
        "on_refresh_history": on_refresh_history,
        "on_load_history": on_load_history,
        "on_clear_history": on_clear_history,
    }
