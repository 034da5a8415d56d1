"""Output multiplexer -- buffered, named output streams for one evaluation.

Scripts write generated text through the multiplexer. Nothing touches the file
system until evaluation finishes and the reconciler writes the collected
artifacts.
"""

from __future__ import annotations

import io
import os
from pathlib import Path
from typing import Iterator

from trier.lib.output.models import Artifact, BuildAction, Diagnostic


def resolve_output_path(path: str | os.PathLike[str], base_dir: str | os.PathLike[str]) -> str:
    """Resolve *path* against *base_dir* unless it is already absolute.

    Returns:
        An absolute, normalized path string.
    """
    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = Path(base_dir) / candidate
    return os.path.normpath(os.path.abspath(candidate))


def path_key(path: str) -> str:
    """Identity key for comparing resolved paths (case-folded where the OS does)."""
    return os.path.normcase(path)


def default_build_action(path: str, source_extension: str) -> BuildAction:
    """Compile for host source files, None for everything else."""
    if source_extension and Path(path).suffix.lower() == source_extension.lower():
        return BuildAction.COMPILE
    return BuildAction.NONE


class OutputStream:
    """A text buffer destined for one output file."""

    def __init__(self, path: str, build_action: BuildAction) -> None:
        self.path = path
        self._buffer = io.StringIO()
        self._build_action = build_action
        self.touched = False

    @property
    def build_action(self) -> BuildAction:
        return self._build_action

    @build_action.setter
    def build_action(self, value: BuildAction | str) -> None:
        self._build_action = BuildAction.parse(value)
        self.touched = True

    def write(self, text: object) -> int:
        self.touched = True
        return self._buffer.write(str(text))

    def write_line(self, text: object = "") -> int:
        return self.write(f"{text}\n")

    def writelines(self, lines: list[str]) -> None:
        for line in lines:
            self.write(line)

    def getvalue(self) -> str:
        return self._buffer.getvalue()

    def __enter__(self) -> OutputStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def __repr__(self) -> str:
        return f"OutputStream({self.path!r}, build_action={self._build_action.value})"


class OutputMultiplexer:
    """Default output stream plus an indexer of named output streams.

    Example script usage::

        output.write_line("// default output")
        output["Models/User.cs"].write("class User {}")
        output["schema.xml"].build_action = "EmbeddedResource"
    """

    def __init__(
        self,
        source_path: str | os.PathLike[str],
        *,
        source_extension: str = ".cs",
        encoding: str = "utf-8",
        diagnostics: list[Diagnostic] | None = None,
    ) -> None:
        self.source_path = resolve_output_path(source_path, Path.cwd())
        self.base_dir = os.path.dirname(self.source_path)
        if source_extension and not source_extension.startswith("."):
            source_extension = f".{source_extension}"
        self.source_extension = source_extension
        self.encoding = encoding
        self.diagnostics: list[Diagnostic] = diagnostics if diagnostics is not None else []

        default_path = str(Path(self.source_path).with_suffix(source_extension))
        self._default = OutputStream(
            default_path, default_build_action(default_path, source_extension)
        )
        self._streams: dict[str, OutputStream] = {}
        self._conflicts: set[str] = set()

    @property
    def default(self) -> OutputStream:
        return self._default

    def write(self, text: object) -> int:
        return self._default.write(text)

    def write_line(self, text: object = "") -> int:
        return self._default.write_line(text)

    def __getitem__(self, path: str | os.PathLike[str]) -> OutputStream:
        resolved = resolve_output_path(path, self.base_dir)
        key = path_key(resolved)

        # naming the default output's path addresses the default stream itself
        if key == path_key(self._default.path):
            self._default.touched = True
            return self._default

        if key == path_key(self.source_path) and key not in self._conflicts:
            self._conflicts.add(key)
            self.diagnostics.append(
                Diagnostic(f"Output path would overwrite the generator script: {resolved}")
            )

        stream = self._streams.get(key)
        if stream is None:
            stream = OutputStream(resolved, default_build_action(resolved, self.source_extension))
            self._streams[key] = stream
        return stream

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        return path_key(resolve_output_path(path, self.base_dir)) in self._streams

    def __iter__(self) -> Iterator[OutputStream]:
        return iter(self._streams.values())

    def __len__(self) -> int:
        return len(self._streams)

    def collect(self) -> list[Artifact]:
        """Freeze every stream into an Artifact, default output first.

        The default stream is only included when the script used it.
        """
        streams: list[OutputStream] = []
        if self._default.touched:
            streams.append(self._default)
        streams.extend(self._streams.values())
        return [
            Artifact(
                path=s.path,
                content=s.getvalue().encode(self.encoding),
                build_action=s.build_action,
            )
            for s in streams
        ]
