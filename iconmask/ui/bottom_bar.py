from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk


class BottomBar(ctk.CTkFrame):
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, height=64, **kwargs)

        # callbacks
        self.on_compare_mode_change: Optional[Callable[[str], None]] = None
        self.on_wipe_change: Optional[Callable[[int], None]] = None

        # layout
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(1, weight=1)  # status stretches

        # Progress
        self._progress = ctk.CTkProgressBar(self, width=220)
        self._progress.set(0)
        self._progress.grid(row=0, column=0, padx=(10, 6), pady=8, sticky="w")

        self._status = ctk.StringVar(value="Откройте набор иконок (.appiconset)")
        self._status_label = ctk.CTkLabel(self, textvariable=self._status, anchor="w")
        self._status_label.grid(row=0, column=1, padx=6, pady=8, sticky="ew")

        # Compare
        self._compare_menu = ctk.CTkOptionMenu(
            self, values=["Нет", "Шторка", "2-up"], command=self._on_compare_mode
        )
        self._compare_menu.set("Нет")
        self._compare_menu.grid(row=0, column=2, padx=6, pady=8, sticky="e")

        # Wipe slider (hidden by default)
        self._wipe_value = ctk.StringVar(value="50%")
        self._wipe_slider = ctk.CTkSlider(self, from_=0, to=100, number_of_steps=100, command=self._on_wipe_slider)
        self._wipe_slider.set(50)
        self._wipe_value_label = ctk.CTkLabel(self, textvariable=self._wipe_value, width=40, anchor="w")
        self._toggle_wipe_controls(visible=False)

    # public API (sync from controller)
    def set_progress(self, current: Optional[int], total: int, done: int) -> None:
        """`current=None` означает начало прогона."""
        if total <= 0:
            self._progress.set(0)
            return
        self._progress.set(done / total)
        if current is None:
            self._status.set(f"Отрисовка: 0 / {total}")
        else:
            self._status.set(f"Отрисовка: {done} / {total} (последнее: #{current})")

    def set_status(self, text: str, error: bool = False) -> None:
        self._status.set(text)
        self._status_label.configure(text_color="#C0392B" if error else ("gray10", "gray90"))

    def reset_progress(self) -> None:
        self._progress.set(0)

    # events
    def _on_compare_mode(self, value: str) -> None:
        self._toggle_wipe_controls(visible=(value == "Шторка"))
        if self.on_compare_mode_change:
            self.on_compare_mode_change(value)

    def _on_wipe_slider(self, value: float) -> None:
        percent = int(round(value))
        self._wipe_value.set(f"{percent}%")
        if self.on_wipe_change:
            self.on_wipe_change(percent)

    # helpers
    def _toggle_wipe_controls(self, visible: bool) -> None:
        if visible:
            self._wipe_slider.grid(row=0, column=3, padx=6, pady=8, sticky="ew")
            self._wipe_value_label.grid(row=0, column=4, padx=(0, 6), pady=8, sticky="w")
        else:
            self._wipe_slider.grid_remove()
            self._wipe_value_label.grid_remove()
