"""Значения, которые передаются от калькулятора геометрии к растеризатору.

`PixelGeometry` живёт ровно столько, сколько нужно для построения `RenderRequest`.
`RenderRequest` не зависит от конкретного растеризатора и должен быть
сериализуемым (pickle), так как передаётся в рабочие процессы.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

Point = Tuple[float, float]


@dataclass(frozen=True)
class PolygonOutline:
    points: Tuple[Point, ...]


@dataclass(frozen=True)
class RectangleOutline:
    """Прямоугольник по двум противоположным углам (порядок углов не нормализуется)."""
    corner_a: Point
    corner_b: Point


Outline = Union[PolygonOutline, RectangleOutline]


@dataclass(frozen=True)
class OverlayPlacement:
    """Размещение внешнего изображения относительно юго-западного угла.

    Fields:
        box_width: Максимальная ширина оверлея, px (пропорции сохраняются).
        box_height: Максимальная высота оверлея, px.
        x: Смещение от левого края, px.
        y: Смещение от нижнего края, px.
    """
    box_width: float
    box_height: float
    x: float
    y: float


@dataclass(frozen=True)
class SymbolPlacement:
    """Текстовый символ: кегль и точка базовой линии (от верхнего левого угла)."""
    point_size: float
    x: float
    y: float


@dataclass(frozen=True)
class PixelGeometry:
    width: float
    height: float
    mask_width: float
    mask_height: float
    stroke_width: float
    outline: Outline
    overlay: Optional[OverlayPlacement] = None
    symbol: Optional[SymbolPlacement] = None


# ---- Render operations ----
@dataclass(frozen=True)
class SetStroke:
    """`width=None` означает «без обводки», а не обводку нулевой толщины."""
    width: Optional[float]
    color: Optional[str]


@dataclass(frozen=True)
class SetFill:
    color: str


@dataclass(frozen=True)
class DrawPolygon:
    points: Tuple[Point, ...]


@dataclass(frozen=True)
class DrawRectangle:
    corner_a: Point
    corner_b: Point


@dataclass(frozen=True)
class CompositeOverlay:
    file: Path
    width: float
    height: float
    x: float
    y: float
    gravity: str = "southwest"


@dataclass(frozen=True)
class AnnotateText:
    text: str
    font: str
    point_size: float
    color: str
    x: float
    y: float


RenderOperation = Union[SetStroke, SetFill, DrawPolygon, DrawRectangle, CompositeOverlay, AnnotateText]


@dataclass(frozen=True)
class RenderRequest:
    source: Path
    destination: Path
    operations: Tuple[RenderOperation, ...]


@dataclass(frozen=True)
class RenderResult:
    """Результат одной задачи: новое имя файла либо текст ошибки."""
    index: int
    filename: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
