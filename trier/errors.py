"""Exception hierarchy for the generation engine."""

from __future__ import annotations


class TrierError(Exception):
    """Base class for all Trier errors."""


class InterpreterUnavailableError(TrierError):
    """The script interpreter could not be loaded or started."""


class ProjectModelError(TrierError):
    """The host project model rejected an operation."""


class ReconcileError(TrierError):
    """A reconciliation step failed after evaluation succeeded.

    Attributes:
        stage: The reconciliation stage that failed ("syncing", "deleting",
            "committing").
        path: The artifact or manifest path being processed, if any.
    """

    def __init__(self, message: str, stage: str, path: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.path = path


class ScriptError(TrierError):
    """A script-authored error with a known location in the script."""

    def __init__(self, message: str, line: int = 0, column: int = 0) -> None:
        super().__init__(message)
        self.line = line
        self.column = column
