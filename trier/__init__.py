"""Trier -- script-driven code generation with manifest-based reconciliation."""

__version__ = "0.1.0"
