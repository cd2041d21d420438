from __future__ import annotations

import shutil
import tempfile
import unittest
from pathlib import Path

from iconmask.models.errors import BatchRenderError
from iconmask.models.manifest_model import IconSetManifest
from iconmask.models.mask_config import MaskConfig
from iconmask.models.render_model import (
    AnnotateText,
    CompositeOverlay,
    DrawPolygon,
    DrawRectangle,
    SetFill,
    SetStroke,
)
from iconmask.services.batch_service import BatchService
from iconmask.services.geometry_service import compute_geometry
from iconmask.services.rasterizer_service import ImageMagickRasterizer, imagemagick_command
from iconmask.services.render_service import build_render_request, derive_output_name


def _request(overrides: dict | None = None, width: float = 120.0, height: float = 120.0):
    config = MaskConfig.from_overrides(overrides)
    geometry = compute_geometry(width, height, config)
    return build_render_request(Path("src/AppIcon.appiconset/icon.png"), Path("out"), geometry, config)


class DeriveOutputNameTests(unittest.TestCase):
    def test_suffix_inserted_before_extension(self) -> None:
        self.assertEqual(derive_output_name("icon.png", "Beta"), "icon-Beta.png")
        self.assertEqual(derive_output_name("icon-20@2x.png", "QA"), "icon-20@2x-QA.png")
        self.assertEqual(derive_output_name("icon", "Beta"), "icon-Beta")


class BuildRenderRequestTests(unittest.TestCase):
    def test_operation_order_with_symbol(self) -> None:
        request = _request({"size_offset": 0.2})
        kinds = [type(op) for op in request.operations]
        self.assertEqual(kinds, [SetStroke, SetFill, DrawPolygon, AnnotateText])
        self.assertEqual(request.destination, Path("out/icon-Beta.png"))
        self.assertEqual(request.source, Path("src/AppIcon.appiconset/icon.png"))

    def test_operation_order_with_overlay_and_square(self) -> None:
        request = _request({"shape": "square", "file": "badge.png"})
        kinds = [type(op) for op in request.operations]
        self.assertEqual(kinds, [SetStroke, SetFill, DrawRectangle, CompositeOverlay])
        overlay = request.operations[-1]
        self.assertEqual(overlay.gravity, "southwest")
        self.assertEqual(overlay.file, Path("badge.png"))

    def test_zero_offset_means_no_stroke(self) -> None:
        stroke = _request({"stroke_width_offset": 0}).operations[0]
        self.assertEqual(stroke, SetStroke(width=None, color=None))

    def test_stroke_is_passed_through(self) -> None:
        stroke = _request({"stroke_width_offset": 0.25, "stroke_color": "#112233"}).operations[0]
        self.assertEqual(stroke, SetStroke(width=30.0, color="#112233"))

    def test_symbol_parameters(self) -> None:
        text = _request({"size_offset": 0.25, "symbol": "β", "font": "Arial", "symbol_color": "red"}).operations[-1]
        self.assertEqual((text.text, text.font, text.color), ("β", "Arial", "red"))
        self.assertEqual(text.point_size, 60.0)


class ImageMagickCommandTests(unittest.TestCase):
    def test_no_stroke_becomes_none(self) -> None:
        argv = imagemagick_command(_request({"stroke_width_offset": 0}))
        index = argv.index("-stroke")
        self.assertEqual(argv[index + 1], "none")

    def test_triangle_command_layout(self) -> None:
        argv = imagemagick_command(_request(), binary="magick")
        self.assertEqual(argv[0], "magick")
        self.assertEqual(argv[1], str(Path("src/AppIcon.appiconset/icon.png")))
        self.assertEqual(argv[-1], str(Path("out/icon-Beta.png")))
        self.assertEqual(argv[2:8], ["-strokewidth", "12", "-stroke", "#000000", "-fill", "#FFFFFF"])
        self.assertEqual(argv[8], "-draw")
        self.assertTrue(argv[9].startswith("polyline -120,55.2 0,55.2 64.8,120 64.8,240 -120,240"))
        self.assertIn("-annotate", argv)
        self.assertLess(argv.index("-draw"), argv.index("-annotate"))

    def test_overlay_command_uses_southwest_gravity(self) -> None:
        argv = imagemagick_command(_request({"file": "badge.png", "size_offset": 0.5, "x_offset": 0.1, "y_offset": 0.1}))
        self.assertIn("(", argv)
        self.assertEqual(argv[argv.index("-resize") + 1], "60x120")
        self.assertEqual(argv[argv.index("-geometry") + 1], "+12+12")
        self.assertEqual(argv[argv.index("-gravity") + 1], "southwest")
        self.assertEqual(argv[argv.index("-gravity") + 2], "-composite")


@unittest.skipUnless(shutil.which("true") and shutil.which("false"), "needs POSIX true/false")
class ImageMagickFailureTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.out = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _request(self):
        config = MaskConfig.DEFAULT
        return build_render_request(Path("src/icon.png"), self.out, compute_geometry(40, 40, config), config)

    def test_non_zero_exit_raises(self) -> None:
        with self.assertRaises(RuntimeError) as ctx:
            ImageMagickRasterizer(binary="false").render(self._request())
        self.assertIn("exited with status 1", str(ctx.exception))

    def test_missing_output_file_raises(self) -> None:
        with self.assertRaises(FileNotFoundError) as ctx:
            ImageMagickRasterizer(binary="true").render(self._request())
        self.assertIn("produced no output file", str(ctx.exception))

    def test_non_zero_exit_is_reported_per_image_by_batch(self) -> None:
        manifest = IconSetManifest.from_dict({"images": [
            {"size": "20x20", "scale": "2x", "filename": "a.png"},
            {"size": "20x20", "scale": "3x", "filename": "b.png"},
        ]})
        service = BatchService(rasterizer=ImageMagickRasterizer(binary="false"))
        with self.assertRaises(BatchRenderError) as ctx:
            service.run(manifest, MaskConfig.DEFAULT, Path("src"), self.out, concurrency=0)
        failures = ctx.exception.failures
        self.assertEqual([f.filename for f in failures], ["a.png", "b.png"])
        self.assertTrue(all("exited with status 1" in f.reason for f in failures))


if __name__ == "__main__":
    unittest.main()
