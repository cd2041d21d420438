"""Загрузка и сохранение изображений иконок.

Принципы:
- SRP: класс отвечает только за чтение/запись файлов изображений.
- LSP/ISP: возвращает `ImageData` с предсказуемыми полями; интерфейс узкий и конкретный.
"""
from __future__ import annotations

from pathlib import Path

from PIL import Image, UnidentifiedImageError

from iconmask.models.image_model import ImageData

# formats that cannot store an alpha channel
_OPAQUE_FORMATS = {"JPEG", "BMP"}


class ImageService:
    def load_image(self, file_path: str | Path) -> ImageData:
        """Загружает изображение с диска и возвращает его вместе с метаданными.

        Args:
            file_path: Путь до файла изображения.

        Returns:
            `ImageData` c `PIL.Image.Image` (в режиме RGBA), размерами и форматом файла.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            ValueError: если файл не распознан как изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")

        try:
            with Image.open(path) as opened:
                file_format = opened.format
                pil_image = opened.convert("RGBA")
        except UnidentifiedImageError as exc:
            raise ValueError(f"Not an image file: {path}") from exc

        width, height = pil_image.size
        return ImageData(path=path, pil_image=pil_image, width=width, height=height, format=file_format)

    def save_image(self, image: Image.Image, file_path: str | Path) -> Path:
        """Сохраняет изображение; формат определяется по расширению.

        Для форматов без альфа-канала изображение приводится к RGB.
        """
        path = Path(file_path)
        file_format = Image.registered_extensions().get(path.suffix.lower())
        if file_format in _OPAQUE_FORMATS and image.mode != "RGB":
            image = image.convert("RGB")
        image.save(path, format=file_format)
        return path
