"""Document tree construction for TEI conversion.

Key Components:
    NodeResolver: Decides what a single TEI element becomes
    TreeWalker: Converts a section subtree into a TextDocumentCollection
    prune: Removes empty text leaves from converted documents
    walk_metadata: Converts the TEI header into a MetadataNode tree
    TextNode, StructuralNode, Mark: Document tree values
"""

from .metadata import walk_metadata
from .nodes import (
    AssembledDocument,
    DocumentNode,
    Mark,
    MetadataNode,
    NestedDocument,
    StructuralNode,
    TextDocumentCollection,
    TextNode,
)
from .pruner import prune, prune_collection
from .resolver import NodeResolver, Resolution
from .walker import ContextKind, TraversalContext, TreeWalker

__all__ = [
    "AssembledDocument",
    "ContextKind",
    "DocumentNode",
    "Mark",
    "MetadataNode",
    "NestedDocument",
    "NodeResolver",
    "Resolution",
    "StructuralNode",
    "TextDocumentCollection",
    "TextNode",
    "TraversalContext",
    "TreeWalker",
    "prune",
    "prune_collection",
    "walk_metadata",
]
