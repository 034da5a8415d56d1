"""Per-evaluation ambient context handed to the script interpreter."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from trier.lib.output.models import Diagnostic
from trier.lib.output.multiplexer import OutputMultiplexer


@dataclass
class ScriptContext:
    """Everything a script may see: its own path, the project and the outputs.

    A fresh context is built for every evaluation; nothing is shared between
    runs.
    """

    source_path: str
    project: Any
    output: OutputMultiplexer
    diagnostics: list[Diagnostic] = field(default_factory=list)
    loaded_files: list[str] = field(default_factory=list)

    @property
    def source_dir(self) -> str:
        return os.path.dirname(self.source_path)

    def error(self, message: str, line: int = 0, column: int = 0) -> None:
        """Stage a diagnostic; the run will not register any output."""
        self.diagnostics.append(Diagnostic(message=str(message), line=line, column=column))
