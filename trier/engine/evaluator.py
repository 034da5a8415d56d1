"""Script evaluation adapter -- runs one script and collects its outputs."""

from __future__ import annotations

import logging
import os
import traceback
from pathlib import Path
from typing import Any

from trier.config import get_config
from trier.engine.context import ScriptContext
from trier.engine.interpreter import PythonInterpreter, ScriptInterpreter
from trier.errors import InterpreterUnavailableError, ScriptError
from trier.lib.output.models import Diagnostic, EvaluationResult
from trier.lib.output.multiplexer import OutputMultiplexer, resolve_output_path

logger = logging.getLogger("engine.evaluator")


def evaluate(
    source_path: str | os.PathLike[str],
    source_text: str,
    project: Any,
    *,
    interpreter: ScriptInterpreter | None = None,
    source_extension: str | None = None,
    encoding: str | None = None,
) -> EvaluationResult:
    """Evaluate a generator script against a project.

    Builds a fresh ``ScriptContext`` (source path, project, new output
    multiplexer) and hands it to the interpreter. Script errors and staged
    diagnostics end up in ``EvaluationResult.diagnostics``; they are never
    raised.

    Args:
        source_path: Path of the script file; outputs resolve relative to it.
        source_text: Script text to evaluate.
        project: Host project handle exposed to the script.
        interpreter: Interpreter to use (default: ``PythonInterpreter``).
        source_extension: Host source extension; defaults to the project's,
            then to configuration.
        encoding: Encoding for artifact content (default from configuration).

    Returns:
        EvaluationResult with artifacts in creation order.

    Raises:
        InterpreterUnavailableError: If the interpreter itself cannot run.
    """
    cfg = get_config()
    full_path = resolve_output_path(source_path, Path.cwd())
    extension = (
        source_extension
        or getattr(project, "source_extension", None)
        or cfg.source_extension
    )

    diagnostics: list[Diagnostic] = []
    output = OutputMultiplexer(
        full_path,
        source_extension=extension,
        encoding=encoding or cfg.encoding,
        diagnostics=diagnostics,
    )
    context = ScriptContext(
        source_path=full_path, project=project, output=output, diagnostics=diagnostics
    )

    try:
        (interpreter or PythonInterpreter()).interpret(source_text, context)
    except InterpreterUnavailableError:
        raise
    except (Exception, SystemExit) as e:
        diagnostics.append(_script_diagnostic(e, full_path, context.loaded_files))

    result = EvaluationResult(artifacts=output.collect(), diagnostics=list(diagnostics))
    logger.info(
        "[EVAL] %s: %d artifacts, %d diagnostics",
        full_path,
        len(result.artifacts),
        len(result.diagnostics),
    )
    return result


def _script_diagnostic(
    exc: BaseException, source_path: str, loaded_files: list[str] | None = None
) -> Diagnostic:
    """Turn an exception raised by a script into a located diagnostic."""
    if isinstance(exc, ScriptError):
        return Diagnostic(message=str(exc), line=exc.line, column=exc.column)

    if isinstance(exc, SyntaxError):
        message = exc.msg or "invalid syntax"
        if exc.filename and not _same_file(exc.filename, source_path):
            message = f"{message} (in {exc.filename})"
        return Diagnostic(message=message, line=exc.lineno or 0, column=exc.offset or 0)

    # deepest frame that belongs to the script or one of its #load files
    scripts = [source_path, *(loaded_files or [])]
    message = f"{type(exc).__name__}: {exc}"
    line = 0
    where = source_path
    for frame in traceback.extract_tb(exc.__traceback__):
        if any(_same_file(frame.filename, s) for s in scripts):
            line = frame.lineno or 0
            where = frame.filename
    if not _same_file(where, source_path):
        message = f"{message} (in {where})"
    return Diagnostic(message=message, line=line, column=0)


def _same_file(a: str, b: str) -> bool:
    return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))
