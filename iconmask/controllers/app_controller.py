"""Контроллер приложения: оркестрация UI и сервисов.

SOLID:
- SRP: класс управляет связями между UI и сервисами (без геометрии и отрисовки).
- DIP: зависит от сервисов как от абстрактных ролей; конкретные реализации инкапсулированы.
Clean Code:
- Обработчики компактны; тяжёлая логика вынесена в сервисы.
- Пакетная отрисовка идёт в фоновом потоке, в Tk возвращаемся через `after`.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from tkinter import filedialog, TclError
from typing import Optional

import customtkinter as ctk

from iconmask.models.errors import BatchRenderError, IconMaskError
from iconmask.models.manifest_model import IconSetManifest, ImageDescriptor
from iconmask.models.mask_config import MaskConfig
from iconmask.services.geometry_service import compute_geometry
from iconmask.services.image_service import ImageService
from iconmask.services.mask_service import mask_icon
from iconmask.services.output_service import OutputService
from iconmask.services.rasterizer_service import PillowRasterizer, create_rasterizer
from iconmask.services.render_service import build_render_request
from iconmask.ui.bottom_bar import BottomBar
from iconmask.ui.image_viewer import ImageViewer
from iconmask.ui.sidebar import Sidebar

LOGGER = logging.getLogger(__name__)


@dataclass
class AppController:
    """Связывает элементы UI с прикладной логикой.

    Ответственности:
    - Инициализация и бинд событий (UI -> контроллер).
    - Загрузка манифеста и исходной иконки через `OutputService`/`ImageService`.
    - Живое превью маски на наибольшем изображении набора.
    - Запуск пакетной отрисовки и отображение прогресса.
    """
    viewer: ImageViewer
    sidebar: Sidebar
    bottom: BottomBar
    window: ctk.CTk

    _image_service: ImageService = field(default_factory=ImageService)
    _output_service: OutputService = field(default_factory=OutputService)
    _iconset_path: Optional[Path] = None
    _output_folder: Optional[Path] = None
    _preview_descriptor: Optional[ImageDescriptor] = None
    _worker: Optional[threading.Thread] = None
    _done: int = 0

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами.

        Компоненты UI ничего не знают друг о друге, общаются через контроллер.
        """
        self.sidebar.on_open_iconset = self._handle_open_iconset
        self.sidebar.on_choose_output = self._handle_choose_output
        self.sidebar.on_choose_overlay = self._handle_choose_overlay
        self.sidebar.on_params_change = self._refresh_preview
        self.sidebar.on_run = self._handle_run

        self.bottom.on_compare_mode_change = self.viewer.set_compare_mode
        self.bottom.on_wipe_change = self.viewer.set_wipe_percent

    # ---- Handlers ----
    def _handle_open_iconset(self) -> None:
        try:
            folder = filedialog.askdirectory(title="Выберите каталог .appiconset", mustexist=True)
        except TclError:
            # Silent fail if dialog cannot open
            return
        if not folder:
            return

        path = Path(folder)
        try:
            manifest = self._output_service.load_manifest(path)
        except IconMaskError as exc:
            self.bottom.set_status(str(exc), error=True)
            return

        self._iconset_path = path
        if self._output_folder is None:
            self._output_folder = path.parent
            self.sidebar.set_output_folder(path.parent)
        self._preview_descriptor = self._largest_descriptor(manifest)
        largest = self._preview_descriptor.filename if self._preview_descriptor else "—"
        self.sidebar.set_iconset_info(path, len(manifest), largest)
        self.bottom.reset_progress()
        self.bottom.set_status(f"Загружен набор: {path.name}")

        if self._preview_descriptor is None:
            self.viewer.set_image(None)
            return
        try:
            source = self._image_service.load_image(path / self._preview_descriptor.filename)
        except (OSError, ValueError) as exc:
            self.bottom.set_status(str(exc), error=True)
            self.viewer.set_image(None)
            return
        self.viewer.set_image(source.pil_image)
        self._refresh_preview()

    def _handle_choose_output(self) -> None:
        try:
            folder = filedialog.askdirectory(title="Папка для нового набора")
        except TclError:
            return
        if folder:
            self._output_folder = Path(folder)
            self.sidebar.set_output_folder(self._output_folder)

    def _handle_choose_overlay(self) -> None:
        try:
            file_path = filedialog.askopenfilename(
                title="Изображение для маски",
                filetypes=(("Images", "*.png *.jpg *.jpeg *.webp *.gif"), ("All files", "*.*")),
            )
        except TclError:
            return
        if file_path:
            self.sidebar.set_overlay_file(Path(file_path))
            self._refresh_preview()

    def _handle_run(self) -> None:
        if self._iconset_path is None or self._output_folder is None:
            self.bottom.set_status("Сначала выберите набор иконок", error=True)
            return
        if self._worker is not None and self._worker.is_alive():
            return
        try:
            config = MaskConfig.from_overrides(self.sidebar.get_mask_overrides())
            processes = self.sidebar.get_parallel_processes()
            rasterizer = create_rasterizer(self.sidebar.get_backend())
        except (IconMaskError, ValueError) as exc:
            self.bottom.set_status(str(exc), error=True)
            return

        self._done = 0
        self.sidebar.set_running(True)
        self._worker = threading.Thread(
            target=self._run_batch,
            args=(self._iconset_path, self._output_folder, config, processes, rasterizer),
            daemon=True,
        )
        self._worker.start()

    # ---- Background work ----
    def _run_batch(self, iconset: Path, output: Path, config: MaskConfig, processes: Optional[int], rasterizer) -> None:
        try:
            folder = mask_icon(
                iconset,
                output,
                mask=config,
                parallel_processes=processes,
                progress=self._post_progress,
                rasterizer=rasterizer,
            )
        except BatchRenderError as exc:
            names = ", ".join(f.filename for f in exc.failures)
            self.window.after(0, self._on_finished, None, f"Не удалось отрисовать: {names}")
        except IconMaskError as exc:
            self.window.after(0, self._on_finished, None, str(exc))
        except Exception as exc:  # noqa: BLE001 - the sidebar must leave the running state
            LOGGER.exception("Batch failed")
            self.window.after(0, self._on_finished, None, str(exc))
        else:
            self.window.after(0, self._on_finished, folder, None)

    def _post_progress(self, current: Optional[int], total: int) -> None:
        # called on the batch thread; Tk widgets are touched only from the main loop
        self.window.after(0, self._apply_progress, current, total)

    def _apply_progress(self, current: Optional[int], total: int) -> None:
        if current is not None:
            self._done += 1
        self.bottom.set_progress(current, total, self._done)

    def _on_finished(self, folder: Optional[Path], error: Optional[str]) -> None:
        self.sidebar.set_running(False)
        if error is not None:
            self.bottom.set_status(error, error=True)
        else:
            self.bottom.set_status(f"Готово: {folder}")

    # ---- Helpers ----
    def _refresh_preview(self) -> None:
        """Перерисовывает превью маски для наибольшего изображения набора."""
        if self._iconset_path is None or self._preview_descriptor is None:
            return
        try:
            config = MaskConfig.from_overrides(self.sidebar.get_mask_overrides())
            width, height = self._preview_descriptor.pixel_size()
            geometry = compute_geometry(width, height, config)
            request = build_render_request(
                self._iconset_path / self._preview_descriptor.filename,
                self._iconset_path,
                geometry,
                config,
            )
            preview = PillowRasterizer().draw(request)
        except IconMaskError as exc:
            self.bottom.set_status(str(exc), error=True)
            return
        except (OSError, ValueError) as exc:
            self.bottom.set_status(f"Превью недоступно: {exc}", error=True)
            return
        self.viewer.set_processed_image(preview)

    @staticmethod
    def _largest_descriptor(manifest: IconSetManifest) -> Optional[ImageDescriptor]:
        best: Optional[ImageDescriptor] = None
        best_area = -1.0
        for descriptor in manifest.images:
            try:
                width, height = descriptor.pixel_size()
            except IconMaskError:
                continue
            if width * height > best_area:
                best, best_area = descriptor, width * height
        return best
