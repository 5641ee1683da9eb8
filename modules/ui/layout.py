"""Gradio layout composition for the QR generator."""

from __future__ import annotations

import functools
from typing import Any, Callable, Optional, Sequence

try:
    import gradio as gr
except ImportError:  # pragma: no cover
    gr = None  # type: ignore

from config.settings import AppConfig
from modules.pipelines.qr_render import ErrorCorrectionLevel, QRRenderService
from modules.services.export_service import ExportService
from modules.services.history_service import HistoryStore
from modules.services.storage_service import FileStorage
from modules.ui.callbacks import build_callbacks


def _level_choices() -> Sequence[tuple[str, str]]:
    labels = {
        ErrorCorrectionLevel.L: "L（约 7%，容量最大）",
        ErrorCorrectionLevel.M: "M（约 15%）",
        ErrorCorrectionLevel.Q: "Q（约 25%）",
        ErrorCorrectionLevel.H: "H（约 30%，最耐损）",
    }
    return [(label, level.value) for level, label in labels.items()]


def build_history_store(config: AppConfig) -> HistoryStore:
    """Create the history store backed by files under ``config.data_dir``."""
    storage = FileStorage(config.data_dir, quota_bytes=config.storage_quota_bytes)
    return HistoryStore(
        storage,
        key=config.history_key,
        max_items=config.max_history_items,
        duplicate_window_ms=config.duplicate_window_ms,
    )


def _with_choices(fn: Callable[..., tuple]) -> Callable[..., tuple]:
    """Wrap a history callback so its choice list updates the dropdown."""

    @functools.wraps(fn)
    def wrapper(*args: Any) -> tuple:
        gallery, choices, status = fn(*args)
        return gallery, gr.update(choices=choices, value=None), status

    return wrapper


def build_app(config: AppConfig, history: Optional[HistoryStore] = None) -> Any:
    """Compose and return the Gradio application."""
    if gr is None:
        raise RuntimeError("Gradio 未安装，请先执行依赖安装。")

    history_store = history or build_history_store(config)
    callbacks_map = build_callbacks(
        config,
        renderer=QRRenderService(config),
        history=history_store,
        exporter=ExportService(config.output_dir),
    )
    initial_gallery, initial_choices, initial_status = callbacks_map["on_refresh_history"]()

    with gr.Blocks(title="QR Studio") as demo:
        gr.Markdown("## 二维码生成器\n支持网址、邮箱、电话、WiFi 与纯文本，所有数据仅保存在本地。")
        last_result = gr.State(None)

        with gr.Row():
            with gr.Column():
                qr_text = gr.Textbox(
                    label="内容",
                    lines=5,
                    placeholder="输入网址、邮箱、电话号码、WIFI:... 或任意文本",
                )
                counter = gr.Markdown(callbacks_map["on_text_change"](""))
                qr_size = gr.Slider(
                    label="尺寸（像素）",
                    minimum=128,
                    maximum=1024,
                    step=32,
                    value=config.default_size,
                )
                error_correction = gr.Dropdown(
                    label="纠错级别",
                    choices=_level_choices(),
                    value=config.default_error_correction,
                )
                with gr.Row():
                    fg_color = gr.ColorPicker(label="前景色", value=config.default_foreground)
                    bg_color = gr.ColorPicker(label="背景色", value=config.default_background)
                with gr.Row():
                    generate_btn = gr.Button("生成二维码", variant="primary")
                    clear_btn = gr.Button("清空")

            with gr.Column():
                output_image = gr.Image(label="生成结果", type="pil", interactive=False)
                status = gr.Markdown("准备就绪。")
                info = gr.Markdown("")
                with gr.Row():
                    download_btn = gr.Button("下载 PNG")
                    copy_btn = gr.Button("复制图片")
                    save_btn = gr.Button("保存到历史")
                download_file = gr.File(label="下载文件", interactive=False)

        with gr.Accordion("本地历史", open=True):
            history_gallery = gr.Gallery(
                label="最近生成",
                value=initial_gallery,
                columns=6,
                height="auto",
            )
            with gr.Row():
                history_select = gr.Dropdown(label="选择历史记录", choices=initial_choices, value=None)
                load_btn = gr.Button("载入")
            with gr.Row():
                confirm_clear = gr.Checkbox(label="确认删除全部历史", value=False)
                clear_history_btn = gr.Button("清空历史", variant="stop")
            history_status = gr.Markdown(initial_status)

        render_inputs = [qr_text, qr_size, error_correction, fg_color, bg_color]
        render_outputs = [output_image, status, info, last_result]

        qr_text.change(fn=callbacks_map["on_text_change"], inputs=qr_text, outputs=counter)
        qr_text.submit(fn=callbacks_map["on_generate"], inputs=render_inputs, outputs=render_outputs)
        generate_btn.click(fn=callbacks_map["on_generate"], inputs=render_inputs, outputs=render_outputs)
        qr_size.release(fn=callbacks_map["on_generate"], inputs=render_inputs, outputs=render_outputs)

        clear_btn.click(
            fn=callbacks_map["on_clear_form"],
            inputs=None,
            outputs=[qr_text, output_image, status, info, last_result, counter],
        )
        download_btn.click(
            fn=callbacks_map["on_download"],
            inputs=last_result,
            outputs=[download_file, status],
        )
        copy_btn.click(fn=callbacks_map["on_copy"], inputs=last_result, outputs=status)
        save_btn.click(
            fn=_with_choices(callbacks_map["on_save_history"]),
            inputs=last_result,
            outputs=[history_gallery, history_select, history_status],
        )
        load_btn.click(
            fn=callbacks_map["on_load_history"],
            inputs=[history_select, error_correction, fg_color, bg_color],
            outputs=[qr_text, qr_size, output_image, status, info, last_result, counter],
        )
        clear_history_btn.click(
            fn=_with_choices(callbacks_map["on_clear_history"]),
            inputs=confirm_clear,
            outputs=[history_gallery, history_select, history_status],
        )
        demo.load(
            fn=_with_choices(callbacks_map["on_refresh_history"]),
            inputs=None,
            outputs=[history_gallery, history_select, history_status],
        )

    return demo
