"""TEI to rich document conversion.

Converts TEI (Text Encoding Initiative) XML into a structured document tree of
typed nodes, marks and attributes, driven by a declarative rule configuration.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_file()
- Level 2: Reusable parser - TEIParser class with ParserConfig options
"""

__version__ = "0.1.0"
__author__ = "TEI Rich Text Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Reusable parser
from .api import MalformedDocumentError, TEIParser, parse, parse_file

# Configuration classes
from .shared.config import (
    ConfigError,
    ConfigValidationError,
    ParserConfig,
    TEIConfig,
)
from .shared.result import DiagnosticCode, DiagnosticEntry, DiagnosticSeverity

# Result objects and data structures
from .tree.nodes import (
    AssembledDocument,
    Mark,
    MetadataNode,
    NestedDocument,
    StructuralNode,
    TextDocumentCollection,
    TextNode,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple conversion functions
    "parse",
    "parse_file",

    # Level 2: Reusable parser class
    "TEIParser",

    # Configuration
    "ParserConfig",
    "TEIConfig",

    # Errors and diagnostics
    "ConfigError",
    "ConfigValidationError",
    "MalformedDocumentError",
    "DiagnosticCode",
    "DiagnosticEntry",
    "DiagnosticSeverity",

    # Result objects and data structures
    "AssembledDocument",
    "Mark",
    "MetadataNode",
    "NestedDocument",
    "StructuralNode",
    "TextDocumentCollection",
    "TextNode",
]
