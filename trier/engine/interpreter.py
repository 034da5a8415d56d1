"""Script interpreter boundary.

The engine only needs ``interpret(script_text, context)``. The built-in
``PythonInterpreter`` runs the script as Python source with the context bound
as globals; other interpreters can be plugged in by import path.
"""

from __future__ import annotations

import importlib
import logging
import os
import re
from typing import Any, Protocol

from trier.engine.context import ScriptContext
from trier.errors import InterpreterUnavailableError, ScriptError

logger = logging.getLogger("engine.interpreter")

# #load "relative/or/absolute/path.py"
_LOAD_DIRECTIVE = re.compile(r'^\s*#load\s+"(?P<path>[^"]+)"\s*$')


class ScriptInterpreter(Protocol):
    def interpret(self, script_text: str, context: ScriptContext) -> None:
        """Run *script_text*; raise on any script error."""


class PythonInterpreter:
    """Executes generator scripts written in Python.

    The script sees these globals: ``context``, ``output``, ``project`` and
    ``source_path``. ``#load "file"`` lines pull another script into the same
    namespace before the current one runs; each file is loaded at most once.
    """

    def interpret(self, script_text: str, context: ScriptContext) -> None:
        namespace: dict[str, Any] = {
            "__name__": "__trier_script__",
            "__file__": context.source_path,
            "context": context,
            "output": context.output,
            "project": context.project,
            "source_path": context.source_path,
        }
        self._run(script_text, context.source_path, namespace, context, loaded=set())

    def _run(
        self,
        script_text: str,
        filename: str,
        namespace: dict[str, Any],
        context: ScriptContext,
        loaded: set[str],
    ) -> None:
        loaded.add(os.path.normcase(os.path.abspath(filename)))

        for lineno, line in enumerate(script_text.splitlines(), start=1):
            match = _LOAD_DIRECTIVE.match(line)
            if not match:
                continue
            target = match.group("path")
            if not os.path.isabs(target):
                target = os.path.join(os.path.dirname(filename), target)
            target = os.path.normpath(os.path.abspath(target))
            if os.path.normcase(target) in loaded:
                continue
            try:
                with open(target, encoding="utf-8") as fh:
                    loaded_text = fh.read()
            except OSError as e:
                raise ScriptError(
                    f"Cannot #load {match.group('path')!r}: {e.strerror or e}",
                    line=lineno,
                    column=line.index("#") + 1,
                ) from e
            logger.debug("Loading %s from %s", target, filename)
            context.loaded_files.append(target)
            self._run(loaded_text, target, namespace, context, loaded)

        code = compile(script_text, filename, "exec")
        exec(code, namespace)


def parse_import_path(value: str) -> tuple[str, str]:
    """Split "package.module:attr" into (module, attr)."""
    if ":" not in value:
        raise ValueError("Interpreter path must be in the form 'package.module:attr'")
    module, attr = (part.strip() for part in value.split(":", 1))
    if not module or not attr:
        raise ValueError(f"Invalid interpreter path: {value!r}")
    return module, attr


def load_interpreter(path: str) -> ScriptInterpreter:
    """Load an interpreter from "package.module:attr".

    A class is instantiated with no arguments; any other object is used as is.

    Raises:
        InterpreterUnavailableError: If the path cannot be imported or does not
            provide an ``interpret`` method.
    """
    try:
        module_name, attr = parse_import_path(path)
        obj: Any = importlib.import_module(module_name)
        for part in attr.split("."):
            obj = getattr(obj, part)
        if isinstance(obj, type):
            obj = obj()
    except Exception as e:
        raise InterpreterUnavailableError(f"Cannot load interpreter {path!r}: {e}") from e

    if not callable(getattr(obj, "interpret", None)):
        raise InterpreterUnavailableError(
            f"Interpreter {path!r} has no interpret() method (type={type(obj)!r})"
        )
    return obj


def get_interpreter(path: str | None = None) -> ScriptInterpreter:
    """Interpreter named by *path*, or the built-in Python interpreter."""
    if path:
        return load_interpreter(path)
    return PythonInterpreter()
