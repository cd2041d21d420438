"""Модель манифеста набора иконок (`Contents.json` в каталоге `*.appiconset`).

Принципы:
- SRP: только структура данных и её (де)сериализация в словарь, без файлового I/O.
- Неизвестные ключи документа и изображений сохраняются как есть.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Tuple

from iconmask.models.errors import ManifestParseError

_SIZE_RE = re.compile(r"(\d+(?:\.\d)?)x(\d+(?:\.\d)?)")
_SCALE_RE = re.compile(r"(\d+(?:\.\d)?)x")


@dataclass(frozen=True)
class ImageDescriptor:
    """Один вариант иконки из манифеста.

    Fields:
        size: Номинальный размер, строка вида "60x60" или "83.5x83.5".
        scale: Масштаб, строка вида "2x".
        filename: Имя файла внутри набора.
        raw: Исходный объект целиком (idiom, platform, ...), порядок ключей сохраняется.
    """
    size: str
    scale: str
    filename: str
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, index: int, raw: Mapping[str, Any]) -> "ImageDescriptor":
        if not isinstance(raw, Mapping):
            raise ManifestParseError(f"Image #{index} in Contents.json is not an object: {raw!r}")
        filename = raw.get("filename")
        if not isinstance(filename, str) or not filename:
            raise ManifestParseError(f"Missing filename parameter in Contents.json for image #{index}: {dict(raw)!r}")
        return cls(
            size=str(raw.get("size", "")),
            scale=str(raw.get("scale", "")),
            filename=filename,
            raw=dict(raw),
        )

    def pixel_size(self) -> Tuple[float, float]:
        """Возвращает фактический размер в пикселях: номинальный размер × масштаб.

        Raises:
            ManifestParseError: если `size` или `scale` не соответствуют числовому шаблону.
        """
        size_match = _SIZE_RE.search(self.size)
        scale_match = _SCALE_RE.search(self.scale)
        if size_match is None or scale_match is None:
            raise ManifestParseError(
                f"Invalid size parameter in Contents.json: size={self.size!r} scale={self.scale!r} "
                f"(filename={self.filename!r})"
            )
        scale = float(scale_match.group(1))
        return float(size_match.group(1)) * scale, float(size_match.group(2)) * scale

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.raw)
        out["filename"] = self.filename
        return out


@dataclass
class IconSetManifest:
    """Упорядоченный список дескрипторов и прочие ключи документа.

    Количество дескрипторов не меняется: переписываются только имена файлов.
    """
    images: List[ImageDescriptor]
    document: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, document: Mapping[str, Any]) -> "IconSetManifest":
        if not isinstance(document, Mapping):
            raise ManifestParseError("Contents.json must contain a JSON object")
        raw_images = document.get("images")
        if not isinstance(raw_images, list):
            raise ManifestParseError("Contents.json has no 'images' list")
        images = [ImageDescriptor.from_dict(i, raw) for i, raw in enumerate(raw_images)]
        return cls(images=images, document=dict(document))

    def __len__(self) -> int:
        return len(self.images)

    def set_filename(self, index: int, filename: str) -> None:
        """Заменяет имя файла у дескриптора `index`, сохраняя остальные поля."""
        self.images[index] = replace(self.images[index], filename=filename)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.document)
        out["images"] = [image.to_dict() for image in self.images]
        return out
