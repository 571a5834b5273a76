"""Run-scoped diagnostics for umldot.

Collects malformed-tag reports, per-diagram output failures and view
configuration problems during one run, and can flush them as a JSON summary.
"""

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class DiagnosticSeverity(str, Enum):
    """Diagnostic severity levels."""
    ERROR = "error"       # A diagram could not be produced
    WARNING = "warning"   # Input skipped, output still produced
    INFO = "info"         # Notable events


@dataclass
class DiagnosticContext:
    """Where a diagnostic was raised."""
    component: str                        # e.g. "ClassGraph", "TagView"
    diagram: Optional[str] = None         # Diagram being built
    class_name: Optional[str] = None      # Declaration being processed
    tag: Optional[str] = None             # Offending tag text


@dataclass
class Diagnostic:
    """A single diagnostic raised during a run."""
    diagnostic_id: str
    timestamp: str
    severity: DiagnosticSeverity
    message: str
    context: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "diagnostic_id": self.diagnostic_id,
            "timestamp": self.timestamp,
            "severity": self.severity.value,
            "message": self.message,
            "context": self.context,
        }

    def __str__(self) -> str:
        where = self.context.get("class_name") or self.context.get("diagram") or self.context.get("component")
        return f"[{self.severity.value.upper()}] {where}: {self.message}"


@dataclass
class DiagnosticCollector:
    """Collects diagnostics for one umldot run."""
    command: str = "render"
    run_id: str = field(default_factory=lambda: f"run-{uuid.uuid4().hex[:8]}")
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def report(
        self,
        severity: DiagnosticSeverity,
        message: str,
        context: DiagnosticContext,
    ) -> Diagnostic:
        """Record a diagnostic and log it at the matching level."""
        diagnostic = Diagnostic(
            diagnostic_id=uuid.uuid4().hex[:8],
            timestamp=datetime.now(UTC).isoformat(),
            severity=severity,
            message=message,
            context=asdict(context),
        )
        self.diagnostics.append(diagnostic)

        if severity == DiagnosticSeverity.ERROR:
            logger.error(str(diagnostic))
        elif severity == DiagnosticSeverity.WARNING:
            logger.warning(str(diagnostic))
        else:
            logger.info(str(diagnostic))
        return diagnostic

    def warn(self, message: str, component: str, **context: Any) -> Diagnostic:
        return self.report(DiagnosticSeverity.WARNING, message, DiagnosticContext(component=component, **context))

    def error(self, message: str, component: str, **context: Any) -> Diagnostic:
        return self.report(DiagnosticSeverity.ERROR, message, DiagnosticContext(component=component, **context))

    def info(self, message: str, component: str, **context: Any) -> Diagnostic:
        return self.report(DiagnosticSeverity.INFO, message, DiagnosticContext(component=component, **context))

    def has_errors(self) -> bool:
        return any(d.severity == DiagnosticSeverity.ERROR for d in self.diagnostics)

    def counts(self) -> Dict[str, int]:
        """Diagnostic counts by severity."""
        counts = {severity.value: 0 for severity in DiagnosticSeverity}
        for diagnostic in self.diagnostics:
            counts[diagnostic.severity.value] += 1
        return counts

    def summary(self) -> Dict[str, Any]:
        completed = datetime.now(UTC)
        return {
            "schema_version": "1.0.0",
            "run_id": self.run_id,
            "command": self.command,
            "started_at": self.started_at.isoformat(),
            "completed_at": completed.isoformat(),
            "duration_seconds": (completed - self.started_at).total_seconds(),
            "total": len(self.diagnostics),
            "by_severity": self.counts(),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }

    def flush(self, directory: Path) -> Optional[Path]:
        """Write the run summary to ``<directory>/_diagnostics/<run_id>.json``.

        Returns:
            Path to the summary file, or None if nothing was collected
        """
        if not self.diagnostics:
            logger.debug(f"No diagnostics to flush for run {self.run_id}")
            return None

        out_dir = Path(directory) / "_diagnostics"
        out_dir.mkdir(parents=True, exist_ok=True)
        out_file = out_dir / f"{self.run_id}.json"
        with open(out_file, "w", encoding="utf-8") as f:
            json.dump(self.summary(), f, indent=2, ensure_ascii=False)

        logger.info(f"Flushed {len(self.diagnostics)} diagnostics to: {out_file}")
        return out_file
