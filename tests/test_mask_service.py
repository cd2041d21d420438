from __future__ import annotations

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from iconmask.main import main
from iconmask.models.errors import BatchRenderError, ManifestParseError, PreconditionError
from iconmask.models.mask_config import MaskConfig
from iconmask.services.geometry_service import compute_geometry
from iconmask.services.mask_service import mask_icon
from iconmask.services.output_service import OutputService
from iconmask.services.rasterizer_service import PillowRasterizer
from iconmask.services.render_service import build_render_request

SOURCE_COLOR = (30, 90, 200, 255)


def _make_iconset(root: Path, entries: list[dict], name: str = "AppIcon.appiconset") -> Path:
    iconset = root / name
    iconset.mkdir(parents=True)
    for entry in entries:
        width, height = (float(v) for v in entry["size"].split("x"))
        scale = float(entry["scale"].rstrip("x"))
        size = (int(width * scale), int(height * scale))
        Image.new("RGBA", size, SOURCE_COLOR).save(iconset / entry["filename"])
    document = {"images": entries, "info": {"author": "xcode", "version": 1}}
    (iconset / "Contents.json").write_text(json.dumps(document, indent=2), encoding="utf-8")
    return iconset


class PillowRasterizerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.source = self.root / "icon.png"
        Image.new("RGBA", (120, 120), SOURCE_COLOR).save(self.source)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _draw(self, overrides: dict) -> Image.Image:
        config = MaskConfig.from_overrides(overrides)
        request = build_render_request(self.source, self.root, compute_geometry(120, 120, config), config)
        return PillowRasterizer().draw(request)

    def test_triangle_fills_bottom_left_corner_only(self) -> None:
        image = self._draw({"stroke_width_offset": 0})
        self.assertEqual(image.getpixel((2, 117)), (255, 255, 255, 255))
        self.assertEqual(image.getpixel((110, 10)), SOURCE_COLOR)
        self.assertEqual(image.getpixel((100, 117)), SOURCE_COLOR)

    def test_stroke_is_drawn_along_the_diagonal(self) -> None:
        image = self._draw({"stroke_width_offset": 0.1})
        self.assertEqual(image.getpixel((30, 87)), (0, 0, 0, 255))
        self.assertEqual(image.getpixel((2, 117)), (255, 255, 255, 255))

    def test_square_covers_bottom_left_block(self) -> None:
        image = self._draw({"shape": "square", "stroke_width_offset": 0, "background_color": "#00FF00"})
        self.assertEqual(image.getpixel((10, 110)), (0, 255, 0, 255))
        self.assertEqual(image.getpixel((110, 110)), SOURCE_COLOR)
        self.assertEqual(image.getpixel((10, 10)), SOURCE_COLOR)

    def test_symbol_is_drawn_with_fallback_font(self) -> None:
        image = self._draw({
            "stroke_width_offset": 0,
            "size_offset": 0.3,
            "x_offset": 0.05,
            "y_offset": 0.05,
            "font": "no-such-font-installed",
            "symbol": "B",
            "symbol_color": "#7F0000",
        })
        self.assertIn((127, 0, 0, 255), set(image.getdata()))

    def test_overlay_is_placed_from_bottom_left(self) -> None:
        badge = self.root / "badge.png"
        Image.new("RGBA", (30, 30), (255, 0, 0, 255)).save(badge)
        image = self._draw({
            "stroke_width_offset": 0,
            "file": badge,
            "size_offset": 0.25,
            "x_offset": 0.1,
            "y_offset": 0.1,
        })
        # 30x30 badge at x=12, bottom edge 12px above the canvas bottom
        self.assertEqual(image.getpixel((20, 90)), (255, 0, 0, 255))
        self.assertEqual(image.getpixel((20, 115)), (255, 255, 255, 255))

    def test_translucent_overlay_keeps_icon_opaque(self) -> None:
        badge = self.root / "badge.png"
        Image.new("RGBA", (30, 30), (255, 0, 0, 128)).save(badge)
        image = self._draw({
            "stroke_width_offset": 0,
            "file": badge,
            "size_offset": 0.25,
            "x_offset": 0.5,
            "y_offset": 0.5,
        })
        # badge covers x 60..89, y 30..59
        red, _green, _blue, alpha = image.getpixel((70, 45))
        self.assertEqual(alpha, 255)
        self.assertGreater(red, SOURCE_COLOR[0] + 50)
        self.assertEqual(image.getpixel((100, 10)), SOURCE_COLOR)

    def test_render_writes_destination(self) -> None:
        config = MaskConfig.DEFAULT
        out_dir = self.root / "out"
        out_dir.mkdir()
        request = build_render_request(self.source, out_dir, compute_geometry(120, 120, config), config)
        PillowRasterizer().render(request)
        self.assertTrue((out_dir / "icon-Beta.png").is_file())
        with Image.open(out_dir / "icon-Beta.png") as written:
            self.assertEqual(written.size, (120, 120))


class MaskIconTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_single_descriptor_end_to_end(self) -> None:
        iconset = _make_iconset(self.root, [{"size": "60x60", "scale": "2x", "filename": "icon.png"}])
        folder = mask_icon(iconset, self.root / "out", parallel_processes=0)

        self.assertEqual(folder, self.root / "out" / "AppIcon-Beta.appiconset")
        written = json.loads((folder / "Contents.json").read_text(encoding="utf-8"))
        self.assertEqual(written["images"], [{"size": "60x60", "scale": "2x", "filename": "icon-Beta.png"}])
        self.assertEqual(written["info"], {"author": "xcode", "version": 1})
        with Image.open(folder / "icon-Beta.png") as rendered:
            self.assertEqual(rendered.size, (120, 120))

    def test_process_pool_matches_sequential_output(self) -> None:
        entries = [
            {"size": "20x20", "scale": "2x", "filename": "icon-20@2x.png", "idiom": "iphone"},
            {"size": "20x20", "scale": "3x", "filename": "icon-20@3x.png", "idiom": "iphone"},
            {"size": "29x29", "scale": "1x", "filename": "icon-29.png", "idiom": "ipad"},
            {"size": "83.5x83.5", "scale": "2x", "filename": "icon-83.5@2x.png", "idiom": "ipad"},
        ]
        iconset = _make_iconset(self.root, entries)
        sequential = mask_icon(iconset, self.root / "seq", parallel_processes=0)
        pooled = mask_icon(iconset, self.root / "pool", parallel_processes=2)

        seq_bytes = (sequential / "Contents.json").read_bytes()
        self.assertEqual(seq_bytes, (pooled / "Contents.json").read_bytes())
        names = [image["filename"] for image in json.loads(seq_bytes)["images"]]
        self.assertEqual(names, ["icon-20@2x-Beta.png", "icon-20@3x-Beta.png", "icon-29-Beta.png", "icon-83.5@2x-Beta.png"])
        for name in names:
            self.assertTrue((pooled / name).is_file())

    def test_output_folder_may_already_exist(self) -> None:
        iconset = _make_iconset(self.root, [{"size": "20x20", "scale": "1x", "filename": "a.png"}])
        (self.root / "out" / "AppIcon-QA.appiconset").mkdir(parents=True)
        folder = mask_icon(iconset, self.root / "out", mask={"suffix": "QA"}, parallel_processes=0)
        self.assertTrue((folder / "a-QA.png").is_file())

    def test_missing_manifest_is_precondition_error(self) -> None:
        (self.root / "Empty.appiconset").mkdir()
        with self.assertRaises(PreconditionError):
            mask_icon(self.root / "Empty.appiconset", self.root / "out", parallel_processes=0)
        self.assertFalse((self.root / "out").exists())

    def test_malformed_manifest_writes_no_manifest(self) -> None:
        iconset = _make_iconset(self.root, [{"size": "20x20", "scale": "1x", "filename": "a.png"}])
        document = json.loads((iconset / "Contents.json").read_text(encoding="utf-8"))
        document["images"].append({"size": "huge", "scale": "1x", "filename": "b.png"})
        (iconset / "Contents.json").write_text(json.dumps(document), encoding="utf-8")

        with self.assertRaises(ManifestParseError):
            mask_icon(iconset, self.root / "out", parallel_processes=0)
        self.assertFalse((self.root / "out" / "AppIcon-Beta.appiconset" / "Contents.json").exists())

    def test_failed_image_writes_no_manifest(self) -> None:
        iconset = _make_iconset(self.root, [
            {"size": "20x20", "scale": "1x", "filename": "a.png"},
            {"size": "20x20", "scale": "2x", "filename": "b.png"},
        ])
        (iconset / "b.png").write_bytes(b"not an image")

        with self.assertRaises(BatchRenderError) as ctx:
            mask_icon(iconset, self.root / "out", parallel_processes=0)
        self.assertEqual([f.filename for f in ctx.exception.failures], ["b.png"])
        folder = self.root / "out" / "AppIcon-Beta.appiconset"
        self.assertTrue((folder / "a-Beta.png").is_file())
        self.assertFalse((folder / "Contents.json").exists())


class OutputServiceTests(unittest.TestCase):
    def test_output_folder_name(self) -> None:
        folder = OutputService().output_folder_for("/x/AppIcon.appiconset", "/out", "Beta")
        self.assertEqual(folder, Path("/out/AppIcon-Beta.appiconset"))

    def test_write_manifest_is_pretty_and_leaves_no_temp_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            iconset = _make_iconset(root, [{"size": "20x20", "scale": "1x", "filename": "a.png"}])
            service = OutputService()
            manifest = service.load_manifest(iconset)
            target = service.write_manifest(root, manifest)
            text = target.read_text(encoding="utf-8")
            self.assertTrue(text.startswith('{\n  "images": ['))
            self.assertEqual(sorted(p.name for p in root.iterdir()), ["AppIcon.appiconset", "Contents.json"])


class CommandLineTests(unittest.TestCase):
    def test_cli_generates_icon_set(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            iconset = _make_iconset(root, [{"size": "60x60", "scale": "2x", "filename": "icon.png"}])
            config_file = root / "mask.json"
            config_file.write_text(json.dumps({"suffix": "Alpha", "shape": "square"}), encoding="utf-8")

            stdout = io.StringIO()
            with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(io.StringIO()):
                code = main([str(iconset), str(root / "out"), "--mask-config", str(config_file),
                             "--suffix", "Gamma", "-j", "0", "-q"])
            self.assertEqual(code, 0)
            self.assertEqual(stdout.getvalue().strip(), str(root / "out" / "AppIcon-Gamma.appiconset"))
            self.assertTrue((root / "out" / "AppIcon-Gamma.appiconset" / "icon-Gamma.png").is_file())

    def test_cli_reports_unknown_config_key(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            iconset = _make_iconset(root, [{"size": "20x20", "scale": "1x", "filename": "a.png"}])
            config_file = root / "mask.json"
            config_file.write_text(json.dumps({"radius": 3}), encoding="utf-8")
            stderr = io.StringIO()
            with contextlib.redirect_stderr(stderr):
                code = main([str(iconset), str(root / "out"), "--mask-config", str(config_file), "-q"])
            self.assertEqual(code, 1)
            self.assertIn("radius", stderr.getvalue())

    def test_cli_rejects_negative_process_count(self) -> None:
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as ctx:
            main(["A.appiconset", "out", "-j", "-1"])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("must be 0 or a positive number", stderr.getvalue())


if __name__ == "__main__":
    unittest.main()
