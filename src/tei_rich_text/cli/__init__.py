"""Command-line interface module for TEI conversion.

This module provides the ``tei-rich-text`` tool for converting TEI files and
inspecting compiled rule tables.
"""

from .main import main

__all__ = ["main"]
