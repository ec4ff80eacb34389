# jdocgen/diagnostics.py
"""
Non-fatal diagnostics for the resolution pipeline.

Resolution-time problems (an unresolvable type name, a malformed generic
spelling, a parameter/argument count mismatch) never abort the run and are
never raised across component boundaries.  Each component receives a
:class:`DiagnosticCollector` and reports into it; callers get a best-effort
result plus the collected diagnostics as a side channel.

Every reported diagnostic is also logged on the reporting module's logger
at the level matching its severity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from jdocgen.errors import SourceLocation

_log = logging.getLogger(__name__)


class DiagnosticSeverity(Enum):
    """Severity levels, most severe first."""

    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"
    DEBUG = "debug"

    @property
    def log_level(self) -> int:
        return _LOG_LEVELS[self]


_LOG_LEVELS = {
    DiagnosticSeverity.ERROR: logging.ERROR,
    DiagnosticSeverity.WARNING: logging.WARNING,
    DiagnosticSeverity.INFORMATION: logging.INFO,
    DiagnosticSeverity.DEBUG: logging.DEBUG,
}

_SEVERITY_ORDER = {
    DiagnosticSeverity.ERROR: 0,
    DiagnosticSeverity.WARNING: 1,
    DiagnosticSeverity.INFORMATION: 2,
    DiagnosticSeverity.DEBUG: 3,
}


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """
    A single non-fatal finding.

    Attributes:
        error_id: Stable identifier for the kind of finding
            (e.g. ``"unresolved-type"``)
        message: Human-readable description
        severity: How serious the finding is
        location: Source position, when one is known
        extra: Additional structured data as ``(key, value)`` pairs
    """

    error_id: str
    message: str
    severity: DiagnosticSeverity = DiagnosticSeverity.WARNING
    location: Optional[SourceLocation] = None
    extra: Tuple[Tuple[str, Any], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {
            "errorId": self.error_id,
            "message": self.message,
            "severity": self.severity.value,
        }
        if self.location:
            result["location"] = {
                "file": self.location.file,
                "line": self.location.line,
                "column": self.location.column,
            }
        if self.extra:
            result["extra"] = dict(self.extra)
        return result

    def __str__(self) -> str:
        loc_str = str(self.location) if self.location else "<unknown>"
        return f"{loc_str}: {self.severity.value}: [{self.error_id}] {self.message}"


class DiagnosticCollector:
    """
    Collects diagnostics reported during collection and resolution.

    Diagnostics less severe than ``min_severity`` are logged but not kept.
    """

    def __init__(
        self,
        *,
        min_severity: DiagnosticSeverity = DiagnosticSeverity.INFORMATION,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._diagnostics: List[Diagnostic] = []
        self._seen: Set[Diagnostic] = set()
        self._min_severity = min_severity
        self._log = logger or _log

    def report(
        self,
        error_id: str,
        message: str,
        severity: DiagnosticSeverity = DiagnosticSeverity.WARNING,
        location: Optional[SourceLocation] = None,
        **extra: Any,
    ) -> Diagnostic:
        """Record a diagnostic and log it.  Exact repeats are dropped."""
        diag = Diagnostic(
            error_id=error_id,
            message=message,
            severity=severity,
            location=location,
            extra=tuple(sorted(extra.items())),
        )
        if diag in self._seen:
            return diag
        self._seen.add(diag)
        self._log.log(severity.log_level, "%s", diag)
        if _SEVERITY_ORDER[severity] <= _SEVERITY_ORDER[self._min_severity]:
            self._diagnostics.append(diag)
        return diag

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        """Adopt diagnostics already reported elsewhere (no re-logging)."""
        for diag in diagnostics:
            if _SEVERITY_ORDER[diag.severity] <= _SEVERITY_ORDER[self._min_severity]:
                self._diagnostics.append(diag)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self._diagnostics if d.severity == DiagnosticSeverity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self._diagnostics if d.severity == DiagnosticSeverity.WARNING]

    def has_errors(self) -> bool:
        return any(d.severity == DiagnosticSeverity.ERROR for d in self._diagnostics)

    def with_id(self, error_id: str) -> List[Diagnostic]:
        """Diagnostics carrying the given ``error_id``."""
        return [d for d in self._diagnostics if d.error_id == error_id]

    def __len__(self) -> int:
        return len(self._diagnostics)

    def clear(self) -> None:
        self._diagnostics.clear()
        self._seen.clear()
