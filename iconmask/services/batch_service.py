"""Пакетная отрисовка всех вариантов иконки с ограниченным параллелизмом.

Принципы:
- Геометрия и запросы строятся в оркестрирующем потоке; в рабочие процессы
  уходит только готовый `RenderRequest`.
- Результаты складываются в массив слотов по исходному индексу (запись один
  раз на индекс), поэтому порядок завершения задач не влияет на манифест.
- Колбэк прогресса вызывается только из оркестрирующего потока.
"""
from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from iconmask.models.errors import BatchRenderError, IconMaskError, RenderError
from iconmask.models.manifest_model import IconSetManifest
from iconmask.models.mask_config import MaskConfig
from iconmask.models.render_model import RenderRequest, RenderResult
from iconmask.services.geometry_service import compute_geometry
from iconmask.services.rasterizer_service import PillowRasterizer, Rasterizer
from iconmask.services.render_service import build_render_request

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[Optional[int], int], None]
ExecutorFactory = Callable[[Optional[int]], Executor]


def render_task(rasterizer: Rasterizer, index: int, request: RenderRequest) -> RenderResult:
    """Выполняется в рабочем процессе: одна задача, один результат с индексом.

    Исключения не пробрасываются через пул, а возвращаются текстом ошибки.
    """
    try:
        rasterizer.render(request)
    except Exception as exc:  # noqa: BLE001 - reported per image
        return RenderResult(index=index, error=f"{type(exc).__name__}: {exc}")
    return RenderResult(index=index, filename=request.destination.name)


def _process_pool(max_workers: Optional[int]) -> Executor:
    return ProcessPoolExecutor(max_workers=max_workers)


@dataclass
class BatchService:
    """Оркестратор: геометрия -> запрос -> пул -> слоты результатов -> манифест.

    Fields:
        rasterizer: Исполнитель запросов (по умолчанию Pillow).
        executor_factory: Фабрика пула по числу рабочих (`None` — по числу ядер).
    """
    rasterizer: Rasterizer = field(default_factory=PillowRasterizer)
    executor_factory: ExecutorFactory = _process_pool

    def run(
        self,
        manifest: IconSetManifest,
        config: MaskConfig,
        source_dir: Path,
        output_dir: Path,
        concurrency: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> IconSetManifest:
        """Отрисовывает все изображения манифеста и переписывает имена файлов.

        Args:
            manifest: Манифест исходного набора; изменяется на месте.
            config: Конфигурация маски.
            source_dir: Каталог исходного набора.
            output_dir: Каталог для результатов (должен существовать).
            concurrency: `None` — по числу ядер, `0` — последовательно, `N` — не более N задач.
            on_progress: `(current, total)`; сначала `(None, total)`, затем индекс каждой завершённой задачи.

        Returns:
            Тот же `manifest` с новыми именами файлов.

        Raises:
            ManifestParseError, ConfigurationError: фатальные ошибки, новые задачи не запускаются.
            BatchRenderError: одно или несколько изображений не отрисованы.
        """
        if concurrency is not None and concurrency < 0:
            raise ValueError(f"concurrency must be None or >= 0, got {concurrency}")

        total = len(manifest)
        slots: List[Optional[RenderResult]] = [None] * total
        LOGGER.info("Rendering %d image(s) from %s (concurrency=%s, backend=%s)",
                    total, source_dir, "auto" if concurrency is None else concurrency, self.rasterizer.name)
        self._notify(on_progress, None, total)

        if concurrency == 0:
            fatal = self._run_sequential(manifest, config, source_dir, output_dir, slots, on_progress)
        else:
            fatal = self._run_pooled(manifest, config, source_dir, output_dir, concurrency, slots, on_progress)
        if fatal is not None:
            raise fatal

        failures = []
        for index, result in enumerate(slots):
            if result is None:
                failures.append(RenderError(index, manifest.images[index].filename, "no result"))
            elif not result.ok:
                failures.append(RenderError(index, manifest.images[index].filename, result.error or "unknown error"))
            else:
                manifest.set_filename(index, result.filename)
        if failures:
            for failure in failures:
                LOGGER.warning("Render failed: %s", failure)
            raise BatchRenderError(failures)
        return manifest

    # ---- Execution strategies ----
    def _run_sequential(
        self,
        manifest: IconSetManifest,
        config: MaskConfig,
        source_dir: Path,
        output_dir: Path,
        slots: List[Optional[RenderResult]],
        on_progress: Optional[ProgressCallback],
    ) -> Optional[IconMaskError]:
        for index in range(len(manifest)):
            try:
                request = self._build_request(manifest, index, config, source_dir, output_dir)
            except IconMaskError as exc:
                return exc
            slots[index] = render_task(self.rasterizer, index, request)
            self._notify(on_progress, index, len(manifest))
        return None

    def _run_pooled(
        self,
        manifest: IconSetManifest,
        config: MaskConfig,
        source_dir: Path,
        output_dir: Path,
        concurrency: Optional[int],
        slots: List[Optional[RenderResult]],
        on_progress: Optional[ProgressCallback],
    ) -> Optional[IconMaskError]:
        fatal: Optional[IconMaskError] = None
        pending: Dict[Future, int] = {}
        executor = self.executor_factory(concurrency)
        try:
            for index in range(len(manifest)):
                try:
                    request = self._build_request(manifest, index, config, source_dir, output_dir)
                except IconMaskError as exc:
                    fatal = exc
                    break
                pending[executor.submit(render_task, self.rasterizer, index, request)] = index

            if fatal is not None:
                # drop queued work; already running tasks still drain below
                for future in pending:
                    future.cancel()

            for future in as_completed(pending):
                index = pending[future]
                if future.cancelled():
                    continue
                try:
                    slots[index] = future.result()
                except Exception as exc:  # noqa: BLE001 - e.g. a crashed worker process
                    slots[index] = RenderResult(index=index, error=f"{type(exc).__name__}: {exc}")
                self._notify(on_progress, index, len(manifest))
        finally:
            executor.shutdown(wait=True)
        return fatal

    # ---- Helpers ----
    def _build_request(
        self,
        manifest: IconSetManifest,
        index: int,
        config: MaskConfig,
        source_dir: Path,
        output_dir: Path,
    ) -> RenderRequest:
        descriptor = manifest.images[index]
        width, height = descriptor.pixel_size()
        geometry = compute_geometry(width, height, config)
        request = build_render_request(Path(source_dir) / descriptor.filename, Path(output_dir), geometry, config)
        LOGGER.debug("#%d %s: %gx%g px, mask %gx%g, stroke %g", index, descriptor.filename,
                     geometry.width, geometry.height, geometry.mask_width, geometry.mask_height,
                     geometry.stroke_width)
        return request

    @staticmethod
    def _notify(on_progress: Optional[ProgressCallback], current: Optional[int], total: int) -> None:
        if on_progress is None:
            return
        try:
            on_progress(current, total)
        except Exception:  # noqa: BLE001 - progress is best-effort
            LOGGER.warning("Progress callback failed", exc_info=True)
