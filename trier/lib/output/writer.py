"""Atomic file writes for generated artifacts and manifests."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from trier.lib.output.models import Artifact

logger = logging.getLogger("lib.output.writer")


def atomic_write_bytes(path: Path, data: bytes) -> Path:
    """Write *data* to *path* via a temp file in the same directory, then rename.

    A reader never observes a half-written file. On failure the temp file is
    removed and the error propagates.

    Returns:
        The target path.

    Raises:
        OSError: If the directory cannot be created or the write/rename fails.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_fd = tempfile.NamedTemporaryFile(
        mode="wb",
        dir=path.parent,
        prefix=".trier_",
        suffix=".tmp",
        delete=False,
    )
    tmp_path = Path(tmp_fd.name)
    try:
        tmp_fd.write(data)
        tmp_fd.close()
        tmp_path.replace(path)
    except BaseException:
        tmp_fd.close()
        tmp_path.unlink(missing_ok=True)
        raise
    return path


def write_artifact(artifact: Artifact) -> Path:
    """Write one artifact to disk, skipping the write if content is unchanged."""
    path = Path(artifact.path)
    try:
        if path.is_file() and path.read_bytes() == artifact.content:
            logger.debug("Unchanged, not rewriting: %s", path)
            return path
    except OSError:
        pass  # unreadable existing file is simply overwritten

    atomic_write_bytes(path, artifact.content)
    logger.debug("Wrote %d bytes to %s", len(artifact.content), path)
    return path


def write_artifacts(artifacts: list[Artifact]) -> list[Path]:
    """Write every artifact in order, GenerateOnly included.

    Raises:
        OSError: On the first artifact that cannot be written.
    """
    return [write_artifact(a) for a in artifacts]
