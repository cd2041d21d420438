"""Боковая панель: выбор набора иконок, папки вывода и параметров маски.

Принципы:
- SRP: управляет только UI параметров, не содержит алгоритмов.
- ISP: выдаёт параметры через компактные методы `get_*`, события через `on_*`.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import customtkinter as ctk

from iconmask.models.mask_config import MaskConfig, MaskShape
from iconmask.services.rasterizer_service import RASTERIZERS

# key -> (label, from, to, default)
_RATIO_SLIDERS: Tuple[Tuple[str, str, float, float], ...] = (
    ("x_size_ratio", "Ширина маски (доля):", 0.0, 1.0),
    ("y_size_ratio", "Высота маски (доля):", 0.0, 1.0),
    ("stroke_width_offset", "Толщина обводки (доля):", 0.0, 0.5),
    ("size_offset", "Размер символа (доля):", 0.0, 1.0),
    ("x_offset", "Смещение X (доля):", 0.0, 1.0),
    ("y_offset", "Смещение Y (доля):", 0.0, 1.0),
)


class Sidebar(ctk.CTkFrame):
    """Панель инструментов с блоками: набор, маска, запуск."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=300, **kwargs)

        self.grid_columnconfigure(0, weight=1)

        # Callbacks
        self.on_open_iconset: Optional[Callable[[], None]] = None
        self.on_choose_output: Optional[Callable[[], None]] = None
        self.on_choose_overlay: Optional[Callable[[], None]] = None
        self.on_params_change: Optional[Callable[[], None]] = None
        self.on_run: Optional[Callable[[], None]] = None

        defaults = MaskConfig.DEFAULT
        self._overlay_file: Optional[Path] = None

        # Icon set section
        self._title = ctk.CTkLabel(self, text="Набор иконок", font=ctk.CTkFont(size=16, weight="bold"))
        self._title.grid(row=0, column=0, padx=8, pady=(8, 4), sticky="w")

        self._open_btn = ctk.CTkButton(self, text="Открыть .appiconset…", command=lambda: self._emit(self.on_open_iconset))
        self._open_btn.grid(row=1, column=0, padx=8, pady=(0, 4), sticky="ew")

        self._iconset_val = ctk.StringVar(value="—")
        self._info_val = ctk.StringVar(value="—")
        self._iconset_label = ctk.CTkLabel(self, textvariable=self._iconset_val, wraplength=270, anchor="w", justify="left")
        self._info_label = ctk.CTkLabel(self, textvariable=self._info_val, anchor="w", justify="left")
        self._iconset_label.grid(row=2, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._info_label.grid(row=3, column=0, padx=8, pady=(0, 6), sticky="ew")

        self._output_btn = ctk.CTkButton(self, text="Папка вывода…", command=lambda: self._emit(self.on_choose_output))
        self._output_btn.grid(row=4, column=0, padx=8, pady=(0, 4), sticky="ew")
        self._output_val = ctk.StringVar(value="—")
        self._output_label = ctk.CTkLabel(self, textvariable=self._output_val, wraplength=270, anchor="w", justify="left")
        self._output_label.grid(row=5, column=0, padx=8, pady=(0, 10), sticky="ew")

        # Mask section
        self._mask_title = ctk.CTkLabel(self, text="Маска", font=ctk.CTkFont(size=16, weight="bold"))
        self._mask_title.grid(row=6, column=0, padx=8, pady=(8, 4), sticky="w")

        mask_tab = ctk.CTkScrollableFrame(self)
        mask_tab.grid(row=7, column=0, padx=8, pady=(0, 8), sticky="nsew")
        mask_tab.grid_columnconfigure(0, weight=1)
        # позволим параметрам занимать доступную высоту
        self.grid_rowconfigure(7, weight=1)

        row = 0
        ctk.CTkLabel(mask_tab, text="Форма:").grid(row=row, column=0, padx=6, pady=(6, 2), sticky="w")
        self._shape_menu = ctk.CTkOptionMenu(
            mask_tab, values=[s.value for s in MaskShape], command=lambda _v: self._emit(self.on_params_change)
        )
        self._shape_menu.set(defaults.shape.value)
        self._shape_menu.grid(row=row + 1, column=0, padx=6, pady=(0, 6), sticky="w")
        row += 2

        self._entries: Dict[str, ctk.StringVar] = {}
        for key, label in (
            ("suffix", "Суффикс:"),
            ("background_color", "Цвет фона:"),
            ("stroke_color", "Цвет обводки:"),
        ):
            row = self._add_entry(mask_tab, row, key, label, str(getattr(defaults, key)))

        self._sliders: Dict[str, Tuple[ctk.CTkSlider, ctk.StringVar]] = {}
        for key, label, lo, hi in _RATIO_SLIDERS:
            row = self._add_slider(mask_tab, row, key, label, lo, hi, float(getattr(defaults, key)))

        # Символ или внешний файл
        self._tabs = ctk.CTkTabview(mask_tab, height=190, command=lambda: self._emit(self.on_params_change))
        self._tabs.grid(row=row, column=0, padx=6, pady=(4, 8), sticky="ew")
        self._tabs.add("Символ")
        self._tabs.add("Файл")
        row += 1

        symbol_tab = self._tabs.tab("Символ")
        symbol_tab.grid_columnconfigure(0, weight=1)
        srow = 0
        for key, label in (("symbol", "Символ:"), ("symbol_color", "Цвет символа:"), ("font", "Шрифт:")):
            srow = self._add_entry(symbol_tab, srow, key, label, str(getattr(defaults, key)))

        file_tab = self._tabs.tab("Файл")
        file_tab.grid_columnconfigure(0, weight=1)
        self._overlay_btn = ctk.CTkButton(file_tab, text="Выбрать изображение…", command=lambda: self._emit(self.on_choose_overlay))
        self._overlay_btn.grid(row=0, column=0, padx=6, pady=(6, 2), sticky="ew")
        self._overlay_val = ctk.StringVar(value="—")
        ctk.CTkLabel(file_tab, textvariable=self._overlay_val, wraplength=240, anchor="w", justify="left").grid(
            row=1, column=0, padx=6, pady=(0, 6), sticky="ew"
        )

        # Run section
        run_frame = ctk.CTkFrame(self, fg_color="transparent")
        run_frame.grid(row=8, column=0, padx=8, pady=(0, 8), sticky="ew")
        run_frame.grid_columnconfigure(1, weight=1)
        ctk.CTkLabel(run_frame, text="Процессов:").grid(row=0, column=0, padx=(0, 6), pady=2, sticky="w")
        self._processes_val = ctk.StringVar(value="")
        self._processes_entry = ctk.CTkEntry(run_frame, textvariable=self._processes_val, width=60, placeholder_text="авто")
        self._processes_entry.grid(row=0, column=1, pady=2, sticky="w")
        ctk.CTkLabel(run_frame, text="Растеризатор:").grid(row=1, column=0, padx=(0, 6), pady=2, sticky="w")
        self._backend_menu = ctk.CTkOptionMenu(run_frame, values=list(RASTERIZERS))
        self._backend_menu.set("pillow")
        self._backend_menu.grid(row=1, column=1, pady=2, sticky="w")

        self._run_btn = ctk.CTkButton(self, text="Создать набор", command=lambda: self._emit(self.on_run))
        self._run_btn.grid(row=9, column=0, padx=8, pady=(0, 10), sticky="ew")

    # ---- Public API ----
    def set_iconset_info(self, path: Path, image_count: int, largest: str) -> None:
        self._iconset_val.set(str(path))
        self._info_val.set(f"Изображений: {image_count}\nНаибольшее: {largest}")

    def set_output_folder(self, path: Path) -> None:
        self._output_val.set(str(path))

    def set_overlay_file(self, path: Optional[Path]) -> None:
        self._overlay_file = path
        self._overlay_val.set(str(path) if path else "—")
        if path is not None:
            self._tabs.set("Файл")

    def set_running(self, running: bool) -> None:
        state = "disabled" if running else "normal"
        self._run_btn.configure(state=state)
        self._open_btn.configure(state=state)

    def get_mask_overrides(self) -> Dict[str, Any]:
        """Собирает переопределения для `MaskConfig.from_overrides`.

        Оверлей учитывается только на вкладке «Файл».
        """
        overrides: Dict[str, Any] = {"shape": self._shape_menu.get()}
        for key, var in self._entries.items():
            overrides[key] = var.get().strip()
        for key, (slider, _var) in self._sliders.items():
            overrides[key] = round(float(slider.get()), 3)
        if self._tabs.get() == "Файл" and self._overlay_file is not None:
            overrides["file"] = self._overlay_file
        return overrides

    def get_parallel_processes(self) -> Optional[int]:
        """Пустое поле — по числу ядер; 0 — без процессов.

        Raises:
            ValueError: если значение не целое неотрицательное число.
        """
        raw = self._processes_val.get().strip()
        if not raw:
            return None
        value = int(raw)
        if value < 0:
            raise ValueError("number of processes must be >= 0")
        return value

    def get_backend(self) -> str:
        return self._backend_menu.get()

    # ---- Builders ----
    def _add_entry(self, parent: ctk.CTkFrame, row: int, key: str, label: str, initial: str) -> int:
        var = ctk.StringVar(value=initial)
        ctk.CTkLabel(parent, text=label).grid(row=row, column=0, padx=6, pady=(4, 0), sticky="w")
        entry = ctk.CTkEntry(parent, textvariable=var)
        entry.grid(row=row + 1, column=0, padx=6, pady=(0, 4), sticky="ew")
        entry.bind("<FocusOut>", self._on_params_commit)
        entry.bind("<Return>", self._on_params_commit)
        self._entries[key] = var
        return row + 2

    def _add_slider(self, parent: ctk.CTkFrame, row: int, key: str, label: str, lo: float, hi: float, initial: float) -> int:
        var = ctk.StringVar(value=f"{initial:.2f}")
        slider = ctk.CTkSlider(
            parent, from_=lo, to=hi, number_of_steps=int(round((hi - lo) * 100)),
            command=lambda value, v=var: self._on_slider_change(v, value),
        )
        slider.set(initial)
        ctk.CTkLabel(parent, text=label).grid(row=row, column=0, padx=6, pady=(4, 0), sticky="w")
        slider.grid(row=row + 1, column=0, padx=6, pady=(0, 0), sticky="ew")
        ctk.CTkLabel(parent, textvariable=var, width=48, anchor="w").grid(row=row + 2, column=0, padx=6, pady=(0, 4), sticky="w")
        self._sliders[key] = (slider, var)
        return row + 3

    # ---- Events ----
    def _on_slider_change(self, var: ctk.StringVar, value: float) -> None:
        var.set(f"{value:.2f}")
        self._emit(self.on_params_change)

    def _on_params_commit(self, _event: object) -> None:
        self._emit(self.on_params_change)

    @staticmethod
    def _emit(callback: Optional[Callable[[], None]]) -> None:
        if callback:
            callback()
