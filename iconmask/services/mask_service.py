"""Точка входа библиотеки: маскирует весь набор иконок и возвращает путь к новому набору."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from iconmask.models.mask_config import MaskConfig
from iconmask.services.batch_service import BatchService, ProgressCallback
from iconmask.services.output_service import OutputService
from iconmask.services.rasterizer_service import PillowRasterizer, Rasterizer

LOGGER = logging.getLogger(__name__)


def mask_icon(
    appiconset_path: str | Path,
    output_folder: str | Path,
    mask: MaskConfig | Mapping[str, Any] | None = None,
    parallel_processes: Optional[int] = None,
    progress: Optional[ProgressCallback] = None,
    rasterizer: Optional[Rasterizer] = None,
) -> Path:
    """Создаёт маскированную копию набора `*.appiconset`.

    Маска всегда рисуется в левом нижнем углу.

    Args:
        appiconset_path: Каталог исходного набора (с `Contents.json`).
        output_folder: Каталог, в котором создаётся `<имя>-<suffix><расширение>`.
        mask: `MaskConfig` или словарь переопределений поверх значений по умолчанию.
        parallel_processes: `None` — по числу ядер, `0` — без процессов, `N` — не более N процессов.
        progress: Необязательный колбэк `(current, total)`.
        rasterizer: Растеризатор; по умолчанию Pillow.

    Returns:
        Путь к созданному набору.
    """
    config = mask if isinstance(mask, MaskConfig) else MaskConfig.from_overrides(mask)
    output = OutputService()

    manifest = output.load_manifest(appiconset_path)
    folder = output.prepare_output_folder(appiconset_path, output_folder, config.suffix)

    batch = BatchService(rasterizer=rasterizer or PillowRasterizer())
    batch.run(
        manifest,
        config,
        source_dir=Path(appiconset_path),
        output_dir=folder,
        concurrency=parallel_processes,
        on_progress=progress,
    )

    output.write_manifest(folder, manifest)
    LOGGER.info("Masked icon set written to %s", folder)
    return folder
