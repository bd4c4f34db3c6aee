"""Diagnostic and metrics types for TEI conversion.

Conversion never stops for imperfect markup: unknown elements, missing section
roots and inconsistent nested identifiers are recorded as diagnostics in an
ordered sink that callers can inspect after ``parse`` returns.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, List, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()    # Input was converted with some content dropped or renamed
    ERROR = auto()
    CRITICAL = auto()


class DiagnosticCode:
    """Stable identifiers for the recoverable conditions reported during conversion."""

    UNKNOWN_ELEMENT = "unknown-element"
    MISSING_SECTION_ROOT = "missing-section-root"
    MISSING_METADATA_ROOT = "missing-metadata-root"
    MISSING_NESTED_ID = "missing-nested-id"
    DUPLICATE_NESTED_ID = "duplicate-nested-id"
    MAX_DEPTH_EXCEEDED = "max-depth-exceeded"


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    code: str
    message: str
    component: str
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")
        if not self.code:
            raise ValueError("Diagnostic code cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to a JSON-compatible dictionary."""
        return {
            "severity": self.severity.name,
            "code": self.code,
            "message": self.message,
            "component": self.component,
            "details": dict(self.details),
            "timestamp": self.timestamp,
            "correlation_id": self.correlation_id,
        }


class DiagnosticSink:
    """Ordered collector of diagnostics emitted while converting one document."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._entries: List[DiagnosticEntry] = []

    def report(
        self,
        severity: DiagnosticSeverity,
        code: str,
        message: str,
        component: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> DiagnosticEntry:
        """Record a diagnostic and return it."""
        entry = DiagnosticEntry(
            severity=severity,
            code=code,
            message=message,
            component=component,
            details=dict(details or {}),
            correlation_id=self.correlation_id,
        )
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> List[DiagnosticEntry]:
        return list(self._entries)

    def by_code(self, code: str) -> List[DiagnosticEntry]:
        """Get diagnostics with the given code, in emission order."""
        return [entry for entry in self._entries if entry.code == code]

    def by_severity(self, severity: DiagnosticSeverity) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [entry for entry in self._entries if entry.severity == severity]

    def has_errors(self) -> bool:
        """Check if any error diagnostics were recorded."""
        return any(
            entry.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for entry in self._entries
        )

    def __iter__(self) -> Iterator[DiagnosticEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class ConversionMetrics:
    """Counters collected while converting one document."""

    processing_time_ms: float = 0.0
    elements_visited: int = 0
    nodes_created: int = 0
    marks_applied: int = 0
    unknown_elements: int = 0
    nested_documents: int = 0

    @property
    def elements_per_second(self) -> float:
        """Calculate elements visited per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.elements_visited * 1000.0) / self.processing_time_ms

    @property
    def unknown_rate(self) -> float:
        """Share of visited elements that matched no rule."""
        if self.elements_visited == 0:
            return 0.0
        return self.unknown_elements / self.elements_visited

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processing_time_ms": self.processing_time_ms,
            "elements_visited": self.elements_visited,
            "nodes_created": self.nodes_created,
            "marks_applied": self.marks_applied,
            "unknown_elements": self.unknown_elements,
            "nested_documents": self.nested_documents,
        }
