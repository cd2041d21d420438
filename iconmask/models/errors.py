"""Иерархия исключений генератора маскированных иконок.

Фатальные ошибки (`PreconditionError`, `ManifestParseError`, `ConfigurationError`)
прерывают весь прогон. `RenderError` относится к одному изображению и
собирается в `BatchRenderError` после завершения всех запущенных задач.
"""
from __future__ import annotations

from typing import Sequence


class IconMaskError(Exception):
    """Базовое исключение пакета."""


class PreconditionError(IconMaskError):
    """Входные данные отсутствуют (например, нет Contents.json)."""


class ManifestParseError(IconMaskError):
    """Дескриптор манифеста не содержит корректных `size`/`scale`/`filename`."""


class ConfigurationError(IconMaskError):
    """Некорректная конфигурация маски (неизвестная форма, значения вне диапазона)."""


class RenderError(IconMaskError):
    """Сбой растеризатора для одного изображения.

    Fields:
        index: Позиция дескриптора в манифесте.
        filename: Исходное имя файла.
        reason: Описание причины (код возврата, stderr, текст исключения).
    """

    def __init__(self, index: int, filename: str, reason: str) -> None:
        super().__init__(f"#{index} {filename}: {reason}")
        self.index = index
        self.filename = filename
        self.reason = reason


class BatchRenderError(IconMaskError):
    """Хотя бы одно изображение не удалось отрисовать."""

    def __init__(self, failures: Sequence[RenderError]) -> None:
        self.failures = tuple(sorted(failures, key=lambda f: f.index))
        details = "; ".join(str(f) for f in self.failures)
        super().__init__(f"Failed to render {len(self.failures)} image(s): {details}")
