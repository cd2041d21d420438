"""Чтение исходного манифеста и запись результата в каталог нового набора."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from iconmask.models.errors import ManifestParseError, PreconditionError
from iconmask.models.manifest_model import IconSetManifest

LOGGER = logging.getLogger(__name__)

MANIFEST_NAME = "Contents.json"


class OutputService:
    def output_folder_for(self, appiconset_path: str | Path, output_folder: str | Path, suffix: str) -> Path:
        """'<output>/AppIcon-Beta.appiconset' для 'AppIcon.appiconset' и суффикса 'Beta'."""
        source = Path(appiconset_path)
        return Path(output_folder) / f"{source.stem}-{suffix}{source.suffix}"

    def prepare_output_folder(self, appiconset_path: str | Path, output_folder: str | Path, suffix: str) -> Path:
        """Создаёт каталог результата; существующий каталог не считается ошибкой."""
        folder = self.output_folder_for(appiconset_path, output_folder, suffix)
        folder.mkdir(parents=True, exist_ok=True)
        return folder

    def load_manifest(self, appiconset_path: str | Path) -> IconSetManifest:
        """Читает `<appiconset_path>/Contents.json`.

        Raises:
            PreconditionError: если файла нет.
            ManifestParseError: если это не JSON или в нём нет списка `images`.
        """
        contents_path = Path(appiconset_path) / MANIFEST_NAME
        if not contents_path.is_file():
            raise PreconditionError(f"{MANIFEST_NAME} file not found in {appiconset_path}")
        try:
            document = json.loads(contents_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ManifestParseError(f"Invalid JSON in {contents_path}: {exc}") from exc
        return IconSetManifest.from_dict(document)

    def write_manifest(self, folder: str | Path, manifest: IconSetManifest) -> Path:
        """Атомарно записывает манифест: временный файл рядом, затем `os.replace`."""
        target = Path(folder) / MANIFEST_NAME
        payload = json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False) + "\n"
        fd, tmp_name = tempfile.mkstemp(prefix=".Contents.", suffix=".json.tmp", dir=str(target.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        LOGGER.info("Wrote %s (%d image(s))", target, len(manifest))
        return target
