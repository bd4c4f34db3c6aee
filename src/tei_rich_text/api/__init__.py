"""Public conversion API.

Provides the reusable ``TEIParser`` class and the one-off ``parse`` and
``parse_file`` functions.
"""

from .parser import MalformedDocumentError, TEIParser, parse, parse_file

__all__ = [
    "MalformedDocumentError",
    "TEIParser",
    "parse",
    "parse_file",
]
