"""Data models for generated output artifacts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class BuildAction(str, Enum):
    """How a generated artifact is registered with the host project."""

    GENERATE_ONLY = "GenerateOnly"
    NONE = "None"
    COMPILE = "Compile"
    CONTENT = "Content"
    EMBEDDED_RESOURCE = "EmbeddedResource"

    @classmethod
    def parse(cls, value: BuildAction | str) -> BuildAction:
        """Coerce a member or a case-insensitive name/value into a BuildAction.

        Accepts "Compile", "compile", "EMBEDDED_RESOURCE" and so on.

        Raises:
            ValueError: If the value names no build action.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = value.strip().replace("_", "").lower()
            for member in cls:
                if wanted in (member.value.lower(), member.name.replace("_", "").lower()):
                    return member
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Invalid build action {value!r}. Must be one of: {valid}")

    @property
    def registers_item(self) -> bool:
        return self is not BuildAction.GENERATE_ONLY


@dataclass(frozen=True)
class Artifact:
    """One named output produced by a script evaluation."""

    path: str
    content: bytes
    build_action: BuildAction = BuildAction.NONE


@dataclass(frozen=True)
class Diagnostic:
    """An error surfaced to the host; severity is always "error" in this core."""

    message: str
    line: int = 0
    column: int = 0
    severity: str = "error"


@dataclass
class EvaluationResult:
    """Artifacts and diagnostics produced by one evaluation call."""

    artifacts: list[Artifact] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.diagnostics

    def paths(self) -> list[str]:
        """Artifact paths in evaluation order."""
        return [a.path for a in self.artifacts]
