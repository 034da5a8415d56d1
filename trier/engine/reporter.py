"""Error reporting -- forwards diagnostics to the host's diagnostic surface.

Reporters are pure sinks: ``report`` never raises, whatever the host does with
the diagnostic, and calls arrive in discovery order.
"""

from __future__ import annotations

import logging
import traceback
from collections import deque
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Callable

from trier.lib.output.models import Diagnostic

logger = logging.getLogger("engine.reporter")

MAX_RING_BUFFER = 1000


@dataclass
class ReportedDiagnostic:
    """A diagnostic as delivered to the host."""

    timestamp: datetime
    severity: str
    message: str
    line: int
    column: int


class ErrorReporter:
    """Base reporter. Subclasses override ``emit``; ``report`` guards it."""

    def report(self, severity: str, message: str, line: int = 0, column: int = 0) -> None:
        try:
            self.emit(severity, message, int(line), int(column))
        except Exception:
            # sink failures are logged, never raised
            logger.warning("Diagnostic sink failed for: %s", message, exc_info=True)

    def report_diagnostic(self, diagnostic: Diagnostic) -> None:
        self.report(diagnostic.severity, diagnostic.message, diagnostic.line, diagnostic.column)

    def emit(self, severity: str, message: str, line: int, column: int) -> None:
        raise NotImplementedError


class LoggingReporter(ErrorReporter):
    """Writes diagnostics to the ``engine.reporter`` logger."""

    def emit(self, severity: str, message: str, line: int, column: int) -> None:
        logger.error("[%s] (%d,%d) %s", severity.upper(), line, column, message)


class CollectingReporter(ErrorReporter):
    """Keeps reported diagnostics in a bounded in-memory buffer."""

    def __init__(self, maxlen: int = MAX_RING_BUFFER) -> None:
        self._buffer: deque[ReportedDiagnostic] = deque(maxlen=maxlen)

    def emit(self, severity: str, message: str, line: int, column: int) -> None:
        self._buffer.append(
            ReportedDiagnostic(
                timestamp=datetime.now(timezone.utc),
                severity=severity,
                message=message,
                line=line,
                column=column,
            )
        )

    @property
    def entries(self) -> list[ReportedDiagnostic]:
        return list(self._buffer)

    def errors(self) -> list[ReportedDiagnostic]:
        return [e for e in self._buffer if e.severity == "error"]

    def clear(self) -> None:
        self._buffer.clear()


class CallbackReporter(ErrorReporter):
    """Forwards each diagnostic to a host callable ``(severity, message, line, column)``."""

    def __init__(self, callback: Callable[[str, str, int, int], object]) -> None:
        self._callback = callback

    def emit(self, severity: str, message: str, line: int, column: int) -> None:
        self._callback(severity, message, line, column)


def exception_diagnostic(exc: BaseException) -> Diagnostic:
    """Convert an uncaught exception into a line 0 / column 0 diagnostic."""
    text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()
    return Diagnostic(message=text or f"{type(exc).__name__}: {exc}", line=0, column=0)


def report_exception(reporter: ErrorReporter, exc: BaseException) -> Diagnostic:
    """Report *exc* as a single diagnostic and return it."""
    diagnostic = exception_diagnostic(exc)
    reporter.report_diagnostic(diagnostic)
    return diagnostic
