"""Модель загруженного изображения иконки.

Принципы:
- SRP: только структура данных, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image


@dataclass(frozen=True)
class ImageData:
    """Неизменяемая модель изображения и его метаданные.

    Fields:
        path: Путь к исходному файлу.
        pil_image: Загруженное изображение PIL (RGBA).
        width: Ширина, px.
        height: Высота, px.
        format: Формат файла по данным PIL ("PNG", "JPEG", ...), если известен.
    """
    path: Path
    pil_image: Image.Image
    width: int
    height: int
    format: Optional[str]
