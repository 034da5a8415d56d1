"""Manifest store -- the list of files the last successful run generated.

One manifest per source file, stored beside it with the extension swapped
(``gen.csx`` -> ``gen.log``). Format: one absolute path per line, UTF-8, no
header and no trailing newline.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from trier.config import get_config
from trier.lib.output.writer import atomic_write_bytes

logger = logging.getLogger("engine.manifest")

MANIFEST_ENCODING = "utf-8"


class ManifestStore:
    """Reads and atomically replaces per-source manifests."""

    def __init__(self, extension: str | None = None) -> None:
        ext = extension if extension is not None else get_config().manifest_extension
        if not ext.startswith("."):
            ext = f".{ext}"
        self.extension = ext

    def manifest_path(self, source_path: str | os.PathLike[str]) -> Path:
        return Path(source_path).with_suffix(self.extension)

    def load(self, source_path: str | os.PathLike[str]) -> list[str]:
        """Return the previous run's paths, or [] if there is no readable manifest.

        A manifest that cannot be read is treated as absent, so nothing gets
        deleted on its account.
        """
        path = self.manifest_path(source_path)
        try:
            with open(path, encoding=MANIFEST_ENCODING, newline="") as fh:
                text = fh.read()
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read manifest %s, treating as empty: %s", path, e)
            return []
        if not text:
            return []
        return text.split("\n")

    def save(self, source_path: str | os.PathLike[str], paths: list[str]) -> Path:
        """Replace the manifest for *source_path* with *paths*.

        Raises:
            OSError: If the manifest cannot be written. The old manifest is
                left untouched.
        """
        path = self.manifest_path(source_path)
        atomic_write_bytes(path, "\n".join(paths).encode(MANIFEST_ENCODING))
        logger.debug("Saved manifest %s (%d paths)", path, len(paths))
        return path
