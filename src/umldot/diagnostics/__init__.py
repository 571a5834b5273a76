"""Run-scoped diagnostics for umldot.

Malformed tags and per-diagram output failures are reported here instead of
aborting the run.
"""

from .collector import (
    Diagnostic,
    DiagnosticCollector,
    DiagnosticContext,
    DiagnosticSeverity,
)

__all__ = [
    "Diagnostic",
    "DiagnosticCollector",
    "DiagnosticContext",
    "DiagnosticSeverity",
]
