"""Виджет предпросмотра: исходная иконка и её маскированный вариант.

Принципы:
- SRP: отвечает только за представление изображений и режимы сравнения.
- Чистый код: чёткое разделение публичного API и внутренних обработчиков событий.
"""
from __future__ import annotations

from typing import Optional

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk

_GAP = 16


class ImageViewer(ctk.CTkFrame):
    """Канва с режимами «только результат», «шторка» и side-by-side."""
    def __init__(self, master: ctk.CTk | tk.Misc, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self._canvas = tk.Canvas(self, highlightthickness=0, bg=self._get_canvas_bg())
        self._canvas.grid(row=0, column=0, sticky="nsew")

        self._original_image: Optional[Image.Image] = None
        self._masked_image: Optional[Image.Image] = None
        self._tk_image_before: Optional[ImageTk.PhotoImage] = None
        self._tk_image_after: Optional[ImageTk.PhotoImage] = None

        # compare modes: "off" | "wipe" | "side_by_side"
        self._compare_mode: str = "off"
        self._wipe_ratio: float = 0.5
        self._hold_before_active: bool = False

        self._canvas.bind("<Configure>", lambda _e: self._render_image())
        self._canvas.bind("<ButtonPress-1>", lambda _e: self._canvas.focus_set())
        # Hold space to preview "before"
        self._canvas.bind("<KeyPress-space>", self._on_space_down)
        self._canvas.bind("<KeyRelease-space>", self._on_space_up)

    # ---- Public API ----
    def set_image(self, image: Optional[Image.Image]) -> None:
        """Устанавливает исходную иконку и сбрасывает превью маски."""
        self._original_image = image
        self._masked_image = None
        self._render_image()

    def set_processed_image(self, image: Optional[Image.Image]) -> None:
        """Устанавливает маскированный вариант (может быть None) и перерисовывает виджет."""
        self._masked_image = image
        self._render_image()

    def set_compare_mode(self, mode: str) -> None:
        """Устанавливает режим сравнения: 'Нет' | 'Шторка' | '2-up'."""
        mapping = {"Нет": "off", "Шторка": "wipe", "2-up": "side_by_side"}
        self._compare_mode = mapping.get(mode, "off")
        self._render_image()

    def set_wipe_percent(self, percent: int) -> None:
        """Устанавливает положение «шторки» (0–100%) и перерисовывает при активном режиме."""
        self._wipe_ratio = max(0.0, min(1.0, percent / 100.0))
        if self._compare_mode == "wipe":
            self._render_image()

    # ---- Internals ----
    def _render_image(self) -> None:
        self._canvas.delete("all")
        if self._original_image is None:
            return

        canvas_w = max(1, int(self._canvas.winfo_width()))
        canvas_h = max(1, int(self._canvas.winfo_height()))
        side_by_side = self._compare_mode == "side_by_side" and self._masked_image is not None

        # fit the whole content (one or two images) into the canvas
        img_w, img_h = self._original_image.size
        content_units_w = img_w * 2 if side_by_side else img_w
        avail_w = canvas_w - (_GAP if side_by_side else 0)
        scale = max(0.1, min(8.0, min(avail_w / max(1, content_units_w), canvas_h / max(1, img_h))))
        scaled_w = max(1, int(img_w * scale))
        scaled_h = max(1, int(img_h * scale))

        show_after = self._masked_image is not None and not self._hold_before_active
        resized_before = self._original_image.resize((scaled_w, scaled_h), Image.Resampling.LANCZOS)
        resized_after = None
        if self._masked_image is not None:
            resized_after = self._masked_image.resize((scaled_w, scaled_h), Image.Resampling.LANCZOS)

        content_w = scaled_w * 2 + _GAP if side_by_side else scaled_w
        ox = max(0, (canvas_w - content_w) // 2)
        oy = max(0, (canvas_h - scaled_h) // 2)

        if self._compare_mode == "wipe" and resized_after is not None:
            split = int(round(scaled_w * self._wipe_ratio))
            left_crop = resized_before.crop((0, 0, split, scaled_h))
            right_crop = (resized_after if show_after else resized_before).crop((split, 0, scaled_w, scaled_h))

            self._tk_image_before = ImageTk.PhotoImage(left_crop)
            self._canvas.create_image(ox, oy, image=self._tk_image_before, anchor="nw")
            self._tk_image_after = ImageTk.PhotoImage(right_crop)
            self._canvas.create_image(ox + split, oy, image=self._tk_image_after, anchor="nw")
        elif side_by_side and resized_after is not None:
            self._tk_image_before = ImageTk.PhotoImage(resized_before)
            self._canvas.create_image(ox, oy, image=self._tk_image_before, anchor="nw")
            self._tk_image_after = ImageTk.PhotoImage(resized_after if show_after else resized_before)
            self._canvas.create_image(ox + scaled_w + _GAP, oy, image=self._tk_image_after, anchor="nw")
        else:
            draw_img = resized_after if (show_after and resized_after is not None) else resized_before
            self._tk_image_before = ImageTk.PhotoImage(draw_img)
            self._canvas.create_image(ox, oy, image=self._tk_image_before, anchor="nw")

    def _get_canvas_bg(self) -> str:
        # CTk does not expose canvas theme, so pick neutral
        return "#1f1f1f" if ctk.get_appearance_mode().lower() == "dark" else "#f2f2f2"

    def _on_space_down(self, _event: tk.Event) -> None:
        if self._compare_mode in ("off", "wipe") and not self._hold_before_active:
            self._hold_before_active = True
            self._render_image()

    def _on_space_up(self, _event: tk.Event) -> None:
        if self._compare_mode in ("off", "wipe") and self._hold_before_active:
            self._hold_before_active = False
            self._render_image()
