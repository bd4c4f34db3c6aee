"""Tests for diagnostic entries, the diagnostic sink and conversion metrics."""

import pytest

from tei_rich_text.shared.result import (
    ConversionMetrics,
    DiagnosticCode,
    DiagnosticEntry,
    DiagnosticSeverity,
    DiagnosticSink,
)


class TestDiagnosticEntry:
    """Test cases for DiagnosticEntry."""

    def test_creation(self):
        entry = DiagnosticEntry(
            severity=DiagnosticSeverity.WARNING,
            code=DiagnosticCode.UNKNOWN_ELEMENT,
            message="Unknown TEI element tei:seg",
            component="tree_walker",
            details={"tag": "tei:seg"},
        )
        assert entry.severity is DiagnosticSeverity.WARNING
        assert entry.details["tag"] == "tei:seg"
        assert entry.timestamp > 0
        assert entry.correlation_id is None

    @pytest.mark.parametrize("field_name", ["message", "component", "code"])
    def test_empty_fields_rejected(self, field_name):
        values = {"message": "m", "component": "c", "code": "x"}
        values[field_name] = ""
        with pytest.raises(ValueError, match="cannot be empty"):
            DiagnosticEntry(severity=DiagnosticSeverity.INFO, **values)

    def test_to_dict(self):
        entry = DiagnosticEntry(
            DiagnosticSeverity.ERROR, "some-code", "Broken", "parser", {"line": 3},
            timestamp=1700000000.0, correlation_id="req-9",
        )
        assert entry.to_dict() == {
            "severity": "ERROR",
            "code": "some-code",
            "message": "Broken",
            "component": "parser",
            "details": {"line": 3},
            "timestamp": 1700000000.0,
            "correlation_id": "req-9",
        }


class TestDiagnosticSink:
    """Test cases for DiagnosticSink."""

    def test_report_keeps_order(self):
        sink = DiagnosticSink(correlation_id="doc-7")
        first = sink.report(DiagnosticSeverity.WARNING, DiagnosticCode.UNKNOWN_ELEMENT,
                            "first", "tree_walker")
        sink.report(DiagnosticSeverity.INFO, DiagnosticCode.MISSING_NESTED_ID,
                    "second", "tree_walker")
        assert [entry.message for entry in sink] == ["first", "second"]
        assert len(sink) == 2
        assert first.correlation_id == "doc-7"

    def test_entries_is_a_copy(self):
        sink = DiagnosticSink()
        sink.report(DiagnosticSeverity.INFO, "code", "message", "component")
        sink.entries.clear()
        assert len(sink) == 1

    def test_filters(self):
        sink = DiagnosticSink()
        sink.report(DiagnosticSeverity.WARNING, DiagnosticCode.UNKNOWN_ELEMENT, "a", "walker")
        sink.report(DiagnosticSeverity.WARNING, DiagnosticCode.MAX_DEPTH_EXCEEDED, "b", "walker")
        sink.report(DiagnosticSeverity.WARNING, DiagnosticCode.UNKNOWN_ELEMENT, "c", "walker")
        assert [e.message for e in sink.by_code(DiagnosticCode.UNKNOWN_ELEMENT)] == ["a", "c"]
        assert len(sink.by_severity(DiagnosticSeverity.WARNING)) == 3
        assert sink.by_severity(DiagnosticSeverity.ERROR) == []

    def test_has_errors(self):
        sink = DiagnosticSink()
        sink.report(DiagnosticSeverity.WARNING, "code", "message", "component")
        assert not sink.has_errors()
        sink.report(DiagnosticSeverity.CRITICAL, "code", "message", "component")
        assert sink.has_errors()

    def test_details_are_copied(self):
        details = {"tag": "tei:x"}
        sink = DiagnosticSink()
        entry = sink.report(DiagnosticSeverity.INFO, "code", "message", "component", details)
        details["tag"] = "changed"
        assert entry.details == {"tag": "tei:x"}


class TestConversionMetrics:
    """Test cases for ConversionMetrics."""

    def test_defaults(self):
        metrics = ConversionMetrics()
        assert metrics.elements_visited == 0
        assert metrics.elements_per_second == 0.0
        assert metrics.unknown_rate == 0.0

    def test_derived_rates(self):
        metrics = ConversionMetrics(processing_time_ms=500.0, elements_visited=10,
                                    unknown_elements=2)
        assert metrics.elements_per_second == 20.0
        assert metrics.unknown_rate == 0.2

    def test_to_dict(self):
        metrics = ConversionMetrics(nodes_created=4, marks_applied=1, nested_documents=1)
        data = metrics.to_dict()
        assert data["nodes_created"] == 4
        assert data["marks_applied"] == 1
        assert data["nested_documents"] == 1
        assert set(data) == {
            "processing_time_ms", "elements_visited", "nodes_created",
            "marks_applied", "unknown_elements", "nested_documents",
        }
