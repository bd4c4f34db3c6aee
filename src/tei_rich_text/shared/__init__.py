"""Shared utilities for TEI conversion.

This module provides the configuration objects, diagnostic types and logging
helpers used across all processing layers.
"""

from .config import (
    AttributeConfig,
    ConfigError,
    ConfigValidationError,
    ElementConfig,
    ElementRole,
    ParserConfig,
    ParseSpec,
    SectionConfig,
    SectionKind,
    TEIConfig,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    ConversionMetrics,
    DiagnosticCode,
    DiagnosticEntry,
    DiagnosticSeverity,
    DiagnosticSink,
)

__all__ = [
    "AttributeConfig",
    "ConfigError",
    "ConfigValidationError",
    "ElementConfig",
    "ElementRole",
    "ParserConfig",
    "ParseSpec",
    "SectionConfig",
    "SectionKind",
    "TEIConfig",
    "CorrelationLogger",
    "get_logger",
    "ConversionMetrics",
    "DiagnosticCode",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "DiagnosticSink",
]
