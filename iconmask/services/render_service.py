"""Построение запроса на отрисовку из геометрии и конфигурации маски.

Модуль не трогает файловую систему и не вызывает растеризатор.
"""
from __future__ import annotations

from pathlib import Path, PurePath
from typing import List

from iconmask.models.mask_config import MaskConfig
from iconmask.models.render_model import (
    AnnotateText,
    CompositeOverlay,
    DrawPolygon,
    DrawRectangle,
    PixelGeometry,
    PolygonOutline,
    RenderOperation,
    RenderRequest,
    SetFill,
    SetStroke,
)


def derive_output_name(filename: str, suffix: str) -> str:
    """'icon.png' + 'Beta' -> 'icon-Beta.png'."""
    path = PurePath(filename)
    return f"{path.stem}-{suffix}{path.suffix}"


def build_render_request(source: Path, output_dir: Path, geometry: PixelGeometry, config: MaskConfig) -> RenderRequest:
    """Собирает упорядоченный список операций для одного изображения.

    Порядок: обводка, заливка, контур маски, затем оверлей или символ.
    """
    operations: List[RenderOperation] = []

    if config.has_stroke:
        operations.append(SetStroke(width=geometry.stroke_width, color=config.stroke_color))
    else:
        operations.append(SetStroke(width=None, color=None))
    operations.append(SetFill(color=config.background_color))

    outline = geometry.outline
    if isinstance(outline, PolygonOutline):
        operations.append(DrawPolygon(points=outline.points))
    else:
        operations.append(DrawRectangle(corner_a=outline.corner_a, corner_b=outline.corner_b))

    if geometry.overlay is not None and config.file is not None:
        overlay = geometry.overlay
        operations.append(CompositeOverlay(
            file=config.file,
            width=overlay.box_width,
            height=overlay.box_height,
            x=overlay.x,
            y=overlay.y,
        ))
    elif geometry.symbol is not None:
        symbol = geometry.symbol
        operations.append(AnnotateText(
            text=config.symbol,
            font=config.font,
            point_size=symbol.point_size,
            color=config.symbol_color,
            x=symbol.x,
            y=symbol.y,
        ))

    destination = Path(output_dir) / derive_output_name(source.name, config.suffix)
    return RenderRequest(source=Path(source), destination=destination, operations=tuple(operations))
