"""Расчёт пиксельной геометрии маски для одного изображения.

Чистая функция: одинаковые (ширина, высота, конфигурация) всегда дают одинаковый
`PixelGeometry`, без побочных эффектов.
"""
from __future__ import annotations

from iconmask.models.mask_config import MaskConfig
from iconmask.models.render_model import OverlayPlacement, PixelGeometry, SymbolPlacement


def compute_geometry(width: float, height: float, config: MaskConfig) -> PixelGeometry:
    """Вычисляет геометрию маски и символа/оверлея.

    Args:
        width: Фактическая ширина изображения, px (номинальный размер × масштаб).
        height: Фактическая высота изображения, px.
        config: Конфигурация маски.

    Returns:
        `PixelGeometry` c контуром формы, толщиной обводки и размещением символа или оверлея.
    """
    width = float(width)
    height = float(height)
    mask_width = width * config.x_size_ratio
    mask_height = height * config.y_size_ratio
    stroke_width = config.stroke_width_offset * min(width, height)

    overlay = None
    symbol = None
    if config.file is not None:
        overlay = OverlayPlacement(
            box_width=width * config.size_offset,
            box_height=height,
            x=width * config.x_offset,
            y=height * config.y_offset,
        )
    else:
        symbol = SymbolPlacement(
            point_size=height * config.size_offset * 2.0,
            x=width * config.x_offset,
            y=height - height * config.y_offset,
        )

    return PixelGeometry(
        width=width,
        height=height,
        mask_width=mask_width,
        mask_height=mask_height,
        stroke_width=stroke_width,
        outline=config.shape.outline(width, height, mask_width, mask_height),
        overlay=overlay,
        symbol=symbol,
    )
