"""Command-line front end: render, export and manage the QR history."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from config.settings import load_config
from modules.errors import RenderError, StorageError, ValidationError
from modules.pipelines.qr_render import QRRenderService
from modules.services.export_service import ExportService
from modules.services.history_service import SaveOutcome
from modules.ui.layout import build_history_store
from modules.utils.logging import setup_logging


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate QR codes and manage local history.")
    parser.add_argument("text", nargs="?", help="内容：网址、邮箱、电话、WIFI:... 或文本")
    parser.add_argument("--size", type=int, default=None)
    parser.add_argument("--level", choices=("L", "M", "Q", "H"), default=None)
    parser.add_argument("--fg", default=None, help="前景色，例如 #000000")
    parser.add_argument("--bg", default=None, help="背景色，例如 #ffffff")
    parser.add_argument("--output", type=Path, default=None, help="PNG 输出目录")
    parser.add_argument("--save", action="store_true", help="生成后保存到本地历史")
    parser.add_argument("--list", action="store_true", help="列出历史记录")
    parser.add_argument("--clear", action="store_true", help="清空历史记录")
    parser.add_argument("--env", default=None, help=".env 文件路径")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    config = load_config(args.env)
    setup_logging(config)
    history = build_history_store(config)

    if args.clear:
        history.clear()
        print("🗑️ 历史记录已清空")
        return 0

    if args.list:
        records = history.load()
        if not records:
            print("还没有保存的二维码。")
        for record in records:
            kind = record.content_type.value if record.content_type else "-"
            print(f"{record.id}\t{kind}\t{record.size}px\t{record.text}")
        return 0

    if not args.text:
        print("❌ 请提供要编码的内容", file=sys.stderr)
        return 2

    renderer = QRRenderService(config)
    try:
        request = renderer.build_request(
            args.text,
            size=args.size,
            foreground=args.fg,
            background=args.bg,
            error_correction=args.level,
        )
        result = renderer.render(request)
    except (ValidationError, RenderError) as exc:
        print(f"生成失败：{exc}", file=sys.stderr)
        return 1

    exporter = ExportService(args.output or config.output_dir)
    try:
        path = exporter.export_png(result.image)
    except OSError as exc:
        print(f"保存图像失败：{exc}", file=sys.stderr)
        return 1
    print("图像已保存:", path.resolve())

    if args.save:
        record = history.create_record(result.text, result.data_url, result.size, result.content_type)
        try:
            outcome = history.save(record)
        except StorageError as exc:
            print(f"⚠️ 保存历史失败：{exc}", file=sys.stderr)
            return 1
        if outcome is SaveOutcome.DUPLICATE:
            print("ℹ️ 该二维码已在最近的历史记录中")
        else:
            print("✅ 已保存到本地历史")
    return 0


if __name__ == "__main__":
    sys.exit(main())
