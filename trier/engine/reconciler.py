"""Reconciler -- brings the project's generated items in line with one run.

One attempt moves through::

    START -> ABORTED           (diagnostics, or an output over the script/manifest)
    START -> SYNCING -> DELETING -> COMMITTING -> DONE
    SYNCING | DELETING | COMMITTING -> FAILED

Nothing is resumable: to retry, evaluate and reconcile again. A failure leaves
the manifest as it was, so the next run starts from the last good state.
Project-model changes already applied are not rolled back.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from trier.engine.manifest import ManifestStore
from trier.engine.reporter import ErrorReporter, LoggingReporter
from trier.errors import ReconcileError
from trier.lib.output.models import Artifact, Diagnostic, EvaluationResult
from trier.lib.output.multiplexer import path_key
from trier.lib.output.writer import write_artifact
from trier.lib.project.model import ProjectModel

logger = logging.getLogger("engine.reconciler")


class ReconcileState(str, Enum):
    START = "start"
    ABORTED = "aborted"
    SYNCING = "syncing"
    DELETING = "deleting"
    COMMITTING = "committing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ReconcileResult:
    """What one reconciliation attempt did."""

    state: ReconcileState = ReconcileState.START
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)  # stale files with no item
    skipped: list[str] = field(default_factory=list)
    error: ReconcileError | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is ReconcileState.DONE

    @property
    def mutation_count(self) -> int:
        return len(self.added) + len(self.updated) + len(self.removed)


class Reconciler:
    """Diffs a run's artifacts against the manifest and applies the delta."""

    def __init__(
        self,
        manifest_store: ManifestStore | None = None,
        reporter: ErrorReporter | None = None,
    ) -> None:
        self.manifest_store = manifest_store or ManifestStore()
        self.reporter = reporter or LoggingReporter()

    def reconcile(
        self,
        project: ProjectModel,
        source_path: str | os.PathLike[str],
        result: EvaluationResult,
    ) -> ReconcileResult:
        """Apply *result* to *project* and record it in the manifest.

        Returns:
            ReconcileResult whose ``state`` is DONE, ABORTED or FAILED.
        """
        outcome = ReconcileResult()

        diagnostics = list(result.diagnostics) or self._check_reserved(source_path, result)
        if diagnostics:
            for diagnostic in diagnostics:
                self.reporter.report_diagnostic(diagnostic)
            outcome.diagnostics = diagnostics
            outcome.state = ReconcileState.ABORTED
            logger.info("[RECONCILE] %s aborted: %d diagnostics", source_path, len(diagnostics))
            return outcome

        try:
            previous = self.manifest_store.load(source_path)

            outcome.state = ReconcileState.SYNCING
            self._write(result.artifacts)
            self._sync(project, result.artifacts, outcome)

            outcome.state = ReconcileState.DELETING
            self._delete_stale(project, previous, result, outcome)

            outcome.state = ReconcileState.COMMITTING
            self._commit(source_path, result)
        except ReconcileError as e:
            outcome.error = e
            logger.error("[RECONCILE] %s failed while %s: %s", source_path, e.stage, e)
            outcome.state = ReconcileState.FAILED
            diagnostic = Diagnostic(message=str(e), line=0, column=0)
            outcome.diagnostics = [diagnostic]
            self.reporter.report_diagnostic(diagnostic)
            return outcome

        outcome.state = ReconcileState.DONE
        logger.info(
            "[RECONCILE] %s done: %d added, %d updated, %d removed, %d unchanged",
            source_path,
            len(outcome.added),
            len(outcome.updated),
            len(outcome.removed),
            len(outcome.unchanged),
        )
        return outcome

    # -- steps -----------------------------------------------------------------

    def _check_reserved(
        self, source_path: str | os.PathLike[str], result: EvaluationResult
    ) -> list[Diagnostic]:
        """Diagnostics for outputs that would overwrite the script or its manifest."""
        manifest = self.manifest_store.manifest_path(source_path)
        reserved = {
            path_key(os.path.abspath(source_path)): "the generator script",
            path_key(os.path.abspath(manifest)): "the manifest",
        }
        diagnostics = []
        for path in result.paths():
            what = reserved.get(path_key(path))
            if what is not None:
                diagnostics.append(Diagnostic(f"Output path would overwrite {what}: {path}"))
        return diagnostics

    def _write(self, artifacts: list[Artifact]) -> None:
        for artifact in artifacts:
            try:
                write_artifact(artifact)
            except OSError as e:
                raise ReconcileError(
                    f"Failed to write {artifact.path}: {e}", "syncing", artifact.path
                ) from e

    def _sync(
        self, project: ProjectModel, artifacts: list[Artifact], outcome: ReconcileResult
    ) -> None:
        for artifact in artifacts:
            try:
                item = project.find_item(artifact.path)
                if not artifact.build_action.registers_item:
                    # GenerateOnly output that an earlier run registered
                    if item is not None:
                        project.delete_item(item, keep_file=True)
                        outcome.removed.append(artifact.path)
                    continue
                if item is None:
                    item = project.add_item_from_file(artifact.path)
                    project.set_item_build_action(item, artifact.build_action)
                    outcome.added.append(artifact.path)
                elif item.build_action != artifact.build_action:
                    project.set_item_build_action(item, artifact.build_action)
                    outcome.updated.append(artifact.path)
                else:
                    outcome.unchanged.append(artifact.path)
            except Exception as e:
                raise ReconcileError(
                    f"Project rejected {artifact.path}: {e}", "syncing", artifact.path
                ) from e

    def _delete_stale(
        self,
        project: ProjectModel,
        previous: list[str],
        result: EvaluationResult,
        outcome: ReconcileResult,
    ) -> None:
        current = {path_key(p) for p in result.paths()}
        seen: set[str] = set()

        for old_path in previous:
            key = path_key(old_path)
            if not old_path or key in current or key in seen:
                continue
            seen.add(key)

            try:
                item = project.find_item_in_solution(old_path)
                if item is None:
                    self._prune_file(old_path, outcome)
                elif item.project != project.name:
                    logger.warning(
                        "Not removing %s: it belongs to project '%s', not '%s'",
                        old_path,
                        item.project,
                        project.name,
                    )
                    outcome.skipped.append(old_path)
                else:
                    project.delete_item(item)
                    outcome.removed.append(old_path)
            except Exception as e:
                raise ReconcileError(
                    f"Failed to remove stale output {old_path}: {e}", "deleting", old_path
                ) from e

    def _prune_file(self, path: str, outcome: ReconcileResult) -> None:
        """Remove a stale file that was never (or is no longer) a project item."""
        stale = Path(path)
        if stale.is_file():
            stale.unlink()
            outcome.pruned.append(path)
            logger.debug("Pruned stale file %s", path)
        else:
            outcome.skipped.append(path)

    def _commit(self, source_path: str | os.PathLike[str], result: EvaluationResult) -> None:
        try:
            self.manifest_store.save(source_path, result.paths())
        except OSError as e:
            raise ReconcileError(
                f"Failed to save manifest for {source_path}: {e}",
                "committing",
                str(self.manifest_store.manifest_path(source_path)),
            ) from e
