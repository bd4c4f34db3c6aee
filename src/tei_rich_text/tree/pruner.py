"""Removal of empty text leaves from converted documents.

Marked text nodes are created as soon as a mark element is seen, before any
text reaches them, so elements such as empty highlights leave text nodes
without text behind. Pruning drops those leaves and keeps every structural
node, including structural nodes left with no content.
"""

from typing import Optional

from tei_rich_text.tree.nodes import (
    DocumentNode,
    Mark,
    NestedDocument,
    StructuralNode,
    TextDocumentCollection,
    TextNode,
)


def prune(node: Optional[DocumentNode]) -> Optional[DocumentNode]:
    """Return a copy of ``node`` without empty text descendants.

    The input is left untouched and pruning an already pruned tree returns an
    equal tree.
    """
    if node is None:
        return None
    if isinstance(node, TextNode):
        return TextNode(
            text=node.text,
            marks=[Mark(mark.type, dict(mark.attrs)) for mark in node.marks],
        )
    return StructuralNode(
        type=node.type,
        content=[
            prune(child)
            for child in node.content
            if not (isinstance(child, TextNode) and child.is_empty)
        ],
        attrs=dict(node.attrs),
        text=node.text,
    )


def prune_collection(collection: TextDocumentCollection) -> TextDocumentCollection:
    """Prune the main document and each nested document independently."""
    nested = None
    if collection.nested is not None:
        nested = {}
        for node_type, by_id in collection.nested.items():
            nested[node_type] = {}
            for node_id, document in by_id.items():
                nested[node_type][node_id] = NestedDocument(
                    id=document.id, type=document.type, doc=prune(document.doc)
                )
    return TextDocumentCollection(
        main=prune(collection.main),
        nested=nested,
        type=collection.type,
    )
