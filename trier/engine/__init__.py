"""Trier generation engine -- evaluation, manifests, reconciliation, reporting."""

from trier.engine.context import ScriptContext
from trier.engine.evaluator import evaluate
from trier.engine.generator import GenerationOutcome, Generator
from trier.engine.interpreter import PythonInterpreter, ScriptInterpreter, load_interpreter
from trier.engine.manifest import ManifestStore
from trier.engine.reconciler import ReconcileResult, ReconcileState, Reconciler
from trier.engine.reporter import (
    CallbackReporter,
    CollectingReporter,
    ErrorReporter,
    LoggingReporter,
    report_exception,
)

__all__ = [
    "ScriptContext",
    "evaluate",
    "GenerationOutcome",
    "Generator",
    "PythonInterpreter",
    "ScriptInterpreter",
    "load_interpreter",
    "ManifestStore",
    "ReconcileResult",
    "ReconcileState",
    "Reconciler",
    "CallbackReporter",
    "CollectingReporter",
    "ErrorReporter",
    "LoggingReporter",
    "report_exception",
]
