"""Output model -- artifacts, build actions and the output multiplexer."""

from trier.lib.output.models import Artifact, BuildAction, Diagnostic, EvaluationResult
from trier.lib.output.multiplexer import (
    OutputMultiplexer,
    OutputStream,
    default_build_action,
    resolve_output_path,
)
from trier.lib.output.writer import atomic_write_bytes, write_artifact, write_artifacts

__all__ = [
    "Artifact",
    "BuildAction",
    "Diagnostic",
    "EvaluationResult",
    "OutputMultiplexer",
    "OutputStream",
    "default_build_action",
    "resolve_output_path",
    "atomic_write_bytes",
    "write_artifact",
    "write_artifacts",
]
