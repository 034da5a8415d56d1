"""Trier configuration -- manifest/source extensions, encoding, interpreter, logging."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class TrierConfig:
    """Top-level configuration for a Trier generation run."""

    log_level: str = field(
        default_factory=lambda: os.environ.get("TRIER_LOG_LEVEL", "INFO")
    )
    manifest_extension: str = field(
        default_factory=lambda: os.environ.get("TRIER_MANIFEST_EXT", ".log")
    )
    source_extension: str = field(
        default_factory=lambda: os.environ.get("TRIER_SOURCE_EXT", ".cs")
    )
    encoding: str = field(
        default_factory=lambda: os.environ.get("TRIER_ENCODING", "utf-8")
    )
    interpreter: str = field(
        default_factory=lambda: os.environ.get("TRIER_INTERPRETER", "")
    )


# Singleton for convenience
_config: TrierConfig | None = None


def get_config() -> TrierConfig:
    """Get or create the global Trier configuration."""
    global _config
    if _config is None:
        _config = TrierConfig()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
