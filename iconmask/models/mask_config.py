"""Параметры маски: форма, цвета, пропорции и символ/оверлей.

Конфигурация собирается один раз за прогон из пользовательских переопределений
поверх `MaskConfig.DEFAULT`, проверяется при создании и дальше не меняется
(разделяется всеми рабочими процессами только на чтение).
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, ClassVar, Mapping, Optional

from iconmask.models.errors import ConfigurationError
from iconmask.models.render_model import Outline, PolygonOutline, RectangleOutline


class MaskShape(enum.Enum):
    """Форма маски в левом нижнем углу. Каждая форма сама строит свой контур."""
    TRIANGLE = "triangle"
    SQUARE = "square"

    @classmethod
    def parse(cls, value: "MaskShape | str") -> "MaskShape":
        if isinstance(value, MaskShape):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(f"Unknown mask shape: {value}") from None

    def outline(self, width: float, height: float, mask_width: float, mask_height: float) -> Outline:
        """Контур маски; намеренно выходит за левую и нижнюю границы холста,
        чтобы заливка доходила до угла независимо от округления."""
        if self is MaskShape.TRIANGLE:
            return PolygonOutline(points=(
                (-width, height - mask_height),
                (0.0, height - mask_height),
                (mask_width, height),
                (mask_width, height * 2.0),
                (-width, height * 2.0),
            ))
        return RectangleOutline(
            corner_a=(-width, height * 2.0),
            corner_b=(mask_height, width - mask_width),
        )


@dataclass(frozen=True)
class MaskConfig:
    """Неизменяемая конфигурация маски.

    Fields:
        background_color: Цвет заливки маски.
        stroke_color: Цвет обводки маски.
        stroke_width_offset: Толщина обводки относительно min(ширина, высота), 0..1.
            Ровно 0 означает «без обводки».
        suffix: Суффикс для имён файлов и каталога результата.
        file: Изображение-оверлей; если задано, символ не рисуется.
        symbol: Текст символа.
        symbol_color: Цвет символа.
        font: Имя или путь шрифта для символа.
        x_size_ratio: Ширина маски относительно ширины изображения.
        y_size_ratio: Высота маски относительно высоты изображения.
        size_offset: Размер символа/оверлея относительно изображения.
        x_offset: Смещение символа/оверлея по X (доля ширины).
        y_offset: Смещение символа/оверлея по Y (доля высоты).
        shape: Форма маски.
    """
    DEFAULT: ClassVar["MaskConfig"]

    background_color: str = "#FFFFFF"
    stroke_color: str = "#000000"
    stroke_width_offset: float = 0.1
    suffix: str = "Beta"
    file: Optional[Path] = None
    symbol: str = "b"
    symbol_color: str = "#7F0000"
    font: str = "Helvetica"
    x_size_ratio: float = 0.54
    y_size_ratio: float = 0.54
    size_offset: float = 0.0
    x_offset: float = 0.0
    y_offset: float = 0.0
    shape: MaskShape = MaskShape.TRIANGLE

    def __post_init__(self) -> None:
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "shape", MaskShape.parse(self.shape))
        if self.file is not None and not isinstance(self.file, Path):
            object.__setattr__(self, "file", Path(self.file))
        for name in ("stroke_width_offset", "x_size_ratio", "y_size_ratio", "size_offset", "x_offset", "y_offset"):
            value = getattr(self, name)
            try:
                object.__setattr__(self, name, float(value))
            except (TypeError, ValueError):
                raise ConfigurationError(f"{name} must be a number, got {value!r}") from None
        if not 0.0 <= self.stroke_width_offset <= 1.0:
            raise ConfigurationError(f"stroke_width_offset must be within [0, 1], got {self.stroke_width_offset}")
        if not self.suffix:
            raise ConfigurationError("suffix must not be empty")

    @classmethod
    def from_overrides(cls, overrides: Optional[Mapping[str, Any]] = None) -> "MaskConfig":
        """Накладывает переопределения на `DEFAULT`. Значения `None` игнорируются."""
        if not overrides:
            return cls.DEFAULT
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigurationError(f"Unknown mask parameter(s): {', '.join(unknown)}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(cls.DEFAULT, **changes)

    @property
    def has_stroke(self) -> bool:
        return self.stroke_width_offset != 0


MaskConfig.DEFAULT = MaskConfig()
