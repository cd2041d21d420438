"""Точка входа: командная строка и запуск окна приложения."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from iconmask.models.errors import BatchRenderError, IconMaskError
from iconmask.models.mask_config import MaskShape
from iconmask.services.mask_service import mask_icon
from iconmask.services.rasterizer_service import RASTERIZERS, create_rasterizer

LOGGER = logging.getLogger("iconmask")

# CLI option -> MaskConfig field
_MASK_OPTIONS = (
    ("background_color", str, "Fill color of the mask."),
    ("stroke_color", str, "Outline color of the mask."),
    ("stroke_width_offset", float, "Outline width relative to min(width, height); 0 disables the outline."),
    ("suffix", str, "Suffix for the new icon set and file names."),
    ("file", Path, "Image composited over the mask instead of a symbol."),
    ("symbol", str, "Symbol drawn over the mask."),
    ("symbol_color", str, "Symbol color."),
    ("font", str, "Font name or path for the symbol."),
    ("x_size_ratio", float, "Mask width relative to the image width."),
    ("y_size_ratio", float, "Mask height relative to the image height."),
    ("size_offset", float, "Symbol/overlay size relative to the image."),
    ("x_offset", float, "Symbol/overlay X offset relative to the image width."),
    ("y_offset", float, "Symbol/overlay Y offset relative to the image height."),
)


def _process_count(value: str) -> int:
    count = int(value)
    if count < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or a positive number, got {count}")
    return count


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iconmask",
        description="Generate a masked (e.g. 'Beta') copy of an .appiconset.",
    )
    parser.add_argument("appiconset", nargs="?", type=Path, help="Source .appiconset folder.")
    parser.add_argument("output", nargs="?", type=Path, help="Folder to create the new icon set in.")
    parser.add_argument("--gui", action="store_true", help="Open the desktop application.")

    mask = parser.add_argument_group("mask")
    mask.add_argument("--mask-config", type=Path, default=None, help="JSON object with mask parameters.")
    mask.add_argument("--shape", choices=[s.value for s in MaskShape], default=None)
    for name, kind, help_text in _MASK_OPTIONS:
        mask.add_argument(f"--{name.replace('_', '-')}", dest=name, type=kind, default=None, help=help_text)

    run = parser.add_argument_group("run")
    run.add_argument(
        "-j",
        "--parallel-processes",
        type=_process_count,
        default=None,
        help="Worker processes. Default: one per CPU core; 0 renders sequentially.",
    )
    run.add_argument("--backend", choices=list(RASTERIZERS), default="pillow")
    run.add_argument("--imagemagick-binary", default="convert", help="'convert' (IM6) or 'magick' (IM7).")
    run.add_argument("-v", "--verbose", action="store_true")
    run.add_argument("-q", "--quiet", action="store_true")
    return parser


def collect_mask_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Параметры из `--mask-config`, поверх них — явные опции командной строки."""
    overrides: Dict[str, Any] = {}
    if args.mask_config is not None:
        try:
            loaded = json.loads(args.mask_config.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise IconMaskError(f"Cannot read mask config {args.mask_config}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise IconMaskError(f"Mask config {args.mask_config} must contain a JSON object")
        overrides.update(loaded)
    if args.shape is not None:
        overrides["shape"] = args.shape
    for name, _kind, _help in _MASK_OPTIONS:
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    return overrides


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _progress_printer(quiet: bool):
    done = 0

    def report(current: Optional[int], total: int) -> None:
        nonlocal done
        if current is not None:
            done += 1
        if not quiet:
            print(f"\r[{done}/{total}]", end="" if done < total else "\n", file=sys.stderr, flush=True)

    return report


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    if args.gui:
        from iconmask.app import IconMaskApp

        app = IconMaskApp()
        app.mainloop()
        return 0

    if args.appiconset is None or args.output is None:
        parser.error("appiconset and output are required unless --gui is given")

    try:
        folder = mask_icon(
            args.appiconset,
            args.output,
            mask=collect_mask_overrides(args),
            parallel_processes=args.parallel_processes,
            progress=_progress_printer(args.quiet),
            rasterizer=create_rasterizer(args.backend, args.imagemagick_binary),
        )
    except BatchRenderError as exc:
        for failure in exc.failures:
            print(f"error: {failure.filename}: {failure.reason}", file=sys.stderr)
        return 1
    except IconMaskError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(folder)
    return 0


if __name__ == "__main__":
    sys.exit(main())
