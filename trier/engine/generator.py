"""Generator -- evaluate a script, then reconcile its outputs with the project.

This is the top-level entry point a host calls once per changed source file.
It never raises: any unexpected exception becomes one line 0 diagnostic and
the run counts as aborted.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from trier.config import TrierConfig, get_config
from trier.engine.evaluator import evaluate
from trier.engine.interpreter import ScriptInterpreter, get_interpreter
from trier.engine.manifest import ManifestStore
from trier.engine.reconciler import ReconcileResult, ReconcileState, Reconciler
from trier.engine.reporter import ErrorReporter, LoggingReporter, report_exception
from trier.lib.output.models import Diagnostic, EvaluationResult
from trier.lib.output.multiplexer import resolve_output_path
from trier.lib.project.model import ProjectModel

logger = logging.getLogger("engine.generator")


@dataclass
class GenerationOutcome:
    """Result of one evaluate-and-reconcile run."""

    source_path: str
    evaluation: EvaluationResult | None = None
    reconcile: ReconcileResult = field(default_factory=ReconcileResult)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.reconcile.ok


class Generator:
    """Runs generation for source files against a project model.

    Runs for the same source file must not overlap; runs for different files
    may, provided the project model tolerates concurrent mutation.
    """

    def __init__(
        self,
        reporter: ErrorReporter | None = None,
        manifest_store: ManifestStore | None = None,
        interpreter: ScriptInterpreter | None = None,
        config: TrierConfig | None = None,
    ) -> None:
        self.config = config or get_config()
        self.reporter = reporter or LoggingReporter()
        self.manifest_store = manifest_store or ManifestStore(self.config.manifest_extension)
        self._interpreter = interpreter
        self.reconciler = Reconciler(self.manifest_store, self.reporter)

    def run(
        self,
        source_path: str | os.PathLike[str],
        project: ProjectModel,
        source_text: str | None = None,
    ) -> GenerationOutcome:
        """Generate outputs for *source_path* and sync them into *project*.

        Args:
            source_path: The generator script.
            project: Host project receiving the generated items.
            source_text: Script text; read from *source_path* when omitted.

        Returns:
            GenerationOutcome; ``ok`` is True only when reconciliation finished.
        """
        full_path = resolve_output_path(source_path, Path.cwd())
        outcome = GenerationOutcome(source_path=full_path)
        logger.info("[GENERATE] %s (project=%s)", full_path, project.name)

        try:
            if source_text is None:
                source_text = Path(full_path).read_text(encoding=self.config.encoding)

            interpreter = self._interpreter or get_interpreter(self.config.interpreter)
            outcome.evaluation = evaluate(
                full_path,
                source_text,
                project,
                interpreter=interpreter,
                encoding=self.config.encoding,
            )
            outcome.diagnostics = list(outcome.evaluation.diagnostics)
            outcome.reconcile = self.reconciler.reconcile(project, full_path, outcome.evaluation)
        except Exception as e:
            logger.exception("[GENERATE] %s failed", full_path)
            outcome.diagnostics.append(report_exception(self.reporter, e))
            outcome.reconcile = ReconcileResult(state=ReconcileState.ABORTED)
            return outcome

        for diagnostic in outcome.reconcile.diagnostics:
            if diagnostic not in outcome.diagnostics:
                outcome.diagnostics.append(diagnostic)
        return outcome
