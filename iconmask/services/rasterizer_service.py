"""Растеризаторы: исполняют `RenderRequest` и создают ровно один выходной файл.

- `PillowRasterizer` рисует средствами Pillow в текущем процессе.
- `ImageMagickRasterizer` переводит запрос в один вызов `convert`/`magick`.

Объекты растеризаторов неизменяемы и сериализуемы: они передаются в рабочие процессы.
"""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import ClassVar, Dict, List, Optional, Protocol, Tuple, Type

from PIL import Image, ImageDraw, ImageFont, ImageOps

from iconmask.models.errors import ConfigurationError
from iconmask.models.render_model import (
    AnnotateText,
    CompositeOverlay,
    DrawPolygon,
    DrawRectangle,
    Point,
    RenderRequest,
    SetFill,
    SetStroke,
)
from iconmask.services.image_service import ImageService

LOGGER = logging.getLogger(__name__)


class Rasterizer(Protocol):
    name: ClassVar[str]

    def render(self, request: RenderRequest) -> None:
        """Отрисовывает запрос в `request.destination`; при сбое бросает исключение."""
        ...


def _num(value: float) -> str:
    return format(value, "g")


def _ensure_output(request: RenderRequest) -> None:
    if not request.destination.is_file():
        raise FileNotFoundError(f"Rasterizer produced no output file: {request.destination}")


# ---------- Pillow ----------
@dataclass(frozen=True)
class PillowRasterizer:
    """Рисует маску и символ/оверлей при помощи Pillow."""
    name: ClassVar[str] = "pillow"

    def render(self, request: RenderRequest) -> None:
        image = self.draw(request)
        ImageService().save_image(image, request.destination)
        _ensure_output(request)

    def draw(self, request: RenderRequest) -> Image.Image:
        """Возвращает результат отрисовки в памяти (используется и для превью)."""
        image = ImageService().load_image(request.source).pil_image
        canvas = ImageDraw.Draw(image)
        stroke = SetStroke(width=None, color=None)
        fill: Optional[str] = None

        for op in request.operations:
            if isinstance(op, SetStroke):
                stroke = op
            elif isinstance(op, SetFill):
                fill = op.color
            elif isinstance(op, DrawPolygon):
                outline, width = self._outline(stroke)
                canvas.polygon(list(op.points), fill=fill, outline=outline, width=width)
            elif isinstance(op, DrawRectangle):
                outline, width = self._outline(stroke)
                canvas.rectangle(_normalize_box(op.corner_a, op.corner_b), fill=fill, outline=outline, width=width)
            elif isinstance(op, CompositeOverlay):
                image = self._composite(image, op)
                canvas = ImageDraw.Draw(image)
            elif isinstance(op, AnnotateText):
                self._annotate(canvas, op)
            else:
                raise TypeError(f"Unsupported render operation: {op!r}")
        return image

    @staticmethod
    def _outline(stroke: SetStroke) -> Tuple[Optional[str], int]:
        if stroke.width is None or stroke.color is None:
            return None, 0
        # Pillow cannot draw sub-pixel outlines
        return stroke.color, max(1, int(round(stroke.width)))

    @staticmethod
    def _composite(image: Image.Image, op: CompositeOverlay) -> Image.Image:
        overlay = ImageService().load_image(op.file).pil_image
        box_h = max(1, int(round(op.height)))
        if op.width > 0:
            box_w = max(1, int(round(op.width)))
        else:
            # zero width: fit by height only
            box_w = max(1, int(round(overlay.width * box_h / max(1, overlay.height))))
        overlay = ImageOps.contain(overlay, (box_w, box_h), method=Image.Resampling.LANCZOS)
        # south-west gravity: offsets are from the bottom-left corner
        x = int(round(op.x))
        y = image.height - int(round(op.y)) - overlay.height
        # source-over, as ImageMagick -composite does
        layer = Image.new("RGBA", image.size, (0, 0, 0, 0))
        layer.paste(overlay, (x, y))
        return Image.alpha_composite(image, layer)

    @staticmethod
    def _annotate(canvas: ImageDraw.ImageDraw, op: AnnotateText) -> None:
        if op.point_size <= 0 or not op.text:
            return
        try:
            font = ImageFont.truetype(op.font, op.point_size)
        except OSError:
            LOGGER.debug("Font %r not found, using Pillow default font", op.font)
            font = ImageFont.load_default(size=op.point_size)
        # (x, y) is the left end of the baseline
        canvas.text((op.x, op.y), op.text, fill=op.color, font=font, anchor="ls")


def _normalize_box(a: Point, b: Point) -> List[float]:
    return [min(a[0], b[0]), min(a[1], b[1]), max(a[0], b[0]), max(a[1], b[1])]


# ---------- ImageMagick ----------
def imagemagick_command(request: RenderRequest, binary: str = "convert") -> List[str]:
    """Переводит запрос в argv для ImageMagick, сохраняя порядок операций."""
    argv: List[str] = [binary, str(request.source)]
    for op in request.operations:
        if isinstance(op, SetStroke):
            argv += [
                "-strokewidth", _num(op.width or 0),
                "-stroke", op.color if op.width is not None and op.color else "none",
            ]
        elif isinstance(op, SetFill):
            argv += ["-fill", op.color]
        elif isinstance(op, DrawPolygon):
            points = " ".join(f"{_num(x)},{_num(y)}" for x, y in op.points)
            argv += ["-draw", f"polyline {points}"]
        elif isinstance(op, DrawRectangle):
            (ax, ay), (bx, by) = op.corner_a, op.corner_b
            argv += ["-draw", f"rectangle {_num(ax)},{_num(ay)} {_num(bx)},{_num(by)}"]
        elif isinstance(op, CompositeOverlay):
            argv += [
                "(",
                "-background", "none",
                "-density", "1536",
                "-resize", f"{_num(op.width)}x{_num(op.height)}",
                str(op.file),
                "-geometry", f"+{_num(op.x)}+{_num(op.y)}",
                ")",
                "-gravity", op.gravity,
                "-composite",
            ]
        elif isinstance(op, AnnotateText):
            argv += [
                "-strokewidth", "0",
                "-stroke", "none",
                "-fill", op.color,
                "-font", op.font,
                "-pointsize", _num(op.point_size),
                "-annotate", f"+{_num(op.x)}+{_num(op.y)}", op.text,
            ]
        else:
            raise TypeError(f"Unsupported render operation: {op!r}")
    argv.append(str(request.destination))
    return argv


@dataclass(frozen=True)
class ImageMagickRasterizer:
    """Один процесс ImageMagick на изображение.

    Fields:
        binary: "convert" (ImageMagick 6) или "magick" (ImageMagick 7).
    """
    name: ClassVar[str] = "imagemagick"
    binary: str = "convert"

    def render(self, request: RenderRequest) -> None:
        argv = imagemagick_command(request, self.binary)
        LOGGER.debug("Running %s", " ".join(argv))
        completed = subprocess.run(argv, capture_output=True, text=True, check=False)
        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            raise RuntimeError(f"{self.binary} exited with status {completed.returncode}: {stderr}")
        _ensure_output(request)


RASTERIZERS: Dict[str, Type] = {
    PillowRasterizer.name: PillowRasterizer,
    ImageMagickRasterizer.name: ImageMagickRasterizer,
}


def create_rasterizer(name: str = "pillow", imagemagick_binary: str = "convert") -> Rasterizer:
    if name == ImageMagickRasterizer.name:
        return ImageMagickRasterizer(binary=imagemagick_binary)
    if name == PillowRasterizer.name:
        return PillowRasterizer()
    raise ConfigurationError(f"Unknown rasterizer backend: {name} (expected one of {', '.join(RASTERIZERS)})")
