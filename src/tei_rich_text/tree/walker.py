"""Tree walking: converts a TEI section subtree into a text document collection.

The walk threads an explicit ``TraversalContext`` through the recursion. The
context says where converted content goes:

* ``ROOT``: the collector that receives the section root's node.
* ``STRUCTURAL``: a structural node whose content list grows.
* ``MARK``: a marked text node collecting one run of text. Nested mark
  elements add their marks to it and all descendant text is appended to it.

Nested-root elements are never placed in their parent's content. Each one
opens a fresh ``doc`` node registered in the collection's nested index and its
children are converted into that document.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Dict, Optional, Union

from lxml import etree

from tei_rich_text.shared.config import ParserConfig
from tei_rich_text.shared.logging import get_logger
from tei_rich_text.shared.result import (
    ConversionMetrics,
    DiagnosticCode,
    DiagnosticSeverity,
    DiagnosticSink,
)
from tei_rich_text.tree.metadata import qualified_name
from tei_rich_text.tree.nodes import (
    DOC_TYPE,
    NestedDocument,
    StructuralNode,
    TextDocumentCollection,
    TextNode,
    empty_document,
)
from tei_rich_text.tree.resolver import NodeResolver, Resolution

_INDENTATION = re.compile(r"\s*\n\s*")

COMPONENT = "tree_walker"


class ContextKind(Enum):
    """Where content produced inside the current element is placed."""

    ROOT = auto()
    STRUCTURAL = auto()
    MARK = auto()


@dataclass(frozen=True)
class TraversalContext:
    """Current parent during the walk, with the depth of the element being visited."""

    kind: ContextKind
    node: Union[StructuralNode, TextNode]
    depth: int = 0

    @classmethod
    def root(cls, container: StructuralNode) -> "TraversalContext":
        return cls(ContextKind.ROOT, container, 0)

    def descend(self, resolution: Optional[Resolution] = None) -> "TraversalContext":
        """Context for the children of an element resolved to ``resolution``.

        Without a resolution the current parent is kept.
        """
        if resolution is None:
            return replace(self, depth=self.depth + 1)
        if resolution.is_mark:
            return TraversalContext(ContextKind.MARK, resolution.node, self.depth + 1)
        return TraversalContext(ContextKind.STRUCTURAL, resolution.node, self.depth + 1)


def _element_label(element: etree._Element, namespaces: Dict[str, str]) -> str:
    return qualified_name(element.tag, namespaces, element.nsmap)


def _attribute_map(element: etree._Element, namespaces: Dict[str, str]) -> Dict[str, str]:
    return {
        qualified_name(key, namespaces, element.nsmap): value
        for key, value in element.attrib.items()
    }


class TreeWalker:
    """Recursive converter from TEI elements to document nodes.

    One walker handles one document: diagnostics and metrics are collected on
    the instance while the resolver and its compiled rules are shared.
    """

    def __init__(
        self,
        resolver: NodeResolver,
        config: Optional[ParserConfig] = None,
        diagnostics: Optional[DiagnosticSink] = None,
        metrics: Optional[ConversionMetrics] = None,
    ) -> None:
        self.resolver = resolver
        self.config = config or ParserConfig()
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticSink(
            self.config.correlation_id
        )
        self.metrics = metrics or ConversionMetrics()
        self.logger = get_logger(__name__, self.config.correlation_id, COMPONENT)

    def build(self, root: etree._Element) -> TextDocumentCollection:
        """Convert a section root element into a text document collection.

        The collection's main document is the node produced for ``root``
        itself. When ``root`` produces no node the main document is empty.
        """
        collection = TextDocumentCollection(nested={})
        container = StructuralNode(type=DOC_TYPE)
        self.walk(root, collection, TraversalContext.root(container))

        main = container.content[0] if container.content else None
        if isinstance(main, StructuralNode):
            collection.main = main
        elif main is not None:
            # Section root resolved to marked text; keep it inside a document
            collection.main = StructuralNode(type=DOC_TYPE, content=[main])
        else:
            collection.main = empty_document()
        return collection

    def walk(
        self,
        element: etree._Element,
        collection: TextDocumentCollection,
        context: TraversalContext,
    ) -> None:
        """Convert ``element`` and its subtree into ``context``."""
        if context.depth >= self.config.max_depth:
            tag = _element_label(element, self.config.namespaces)
            self.diagnostics.report(
                DiagnosticSeverity.WARNING,
                DiagnosticCode.MAX_DEPTH_EXCEEDED,
                f"Element {tag} exceeds maximum depth {self.config.max_depth}",
                COMPONENT,
                details={"tag": tag, "depth": context.depth},
            )
            return

        self.metrics.elements_visited += 1
        resolution = self.resolver.resolve(element)
        if resolution is None:
            self._report_unknown(element)
            return

        self.metrics.nodes_created += 1
        if resolution.is_mark:
            self.metrics.marks_applied += len(resolution.node.marks)

        if resolution.is_nested_root:
            child_context = self._open_nested(resolution.node, collection, context)
        elif context.kind is ContextKind.MARK:
            self._merge_into_run(context.node, resolution)
            child_context = context.descend()
        else:
            context.node.append(resolution.node)
            child_context = context.descend(resolution)

        self._walk_children(element, collection, child_context, resolution.text_extracted)

    def _walk_children(
        self,
        element: etree._Element,
        collection: TextDocumentCollection,
        context: TraversalContext,
        text_extracted: bool,
    ) -> None:
        if not text_extracted:
            self._add_text(context, element.text)
        for child in element:
            if isinstance(child.tag, str):
                self.walk(child, collection, context)
            if not text_extracted:
                self._add_text(context, child.tail)

    def _add_text(self, context: TraversalContext, text: Optional[str]) -> None:
        """Place a literal text segment in the current context."""
        if not text:
            return
        if self.config.drop_indentation_text and _INDENTATION.fullmatch(text):
            return
        if context.kind is ContextKind.MARK:
            context.node.append_text(text)
        elif context.kind is ContextKind.STRUCTURAL:
            context.node.append(TextNode(text=text))

    def _merge_into_run(self, run: TextNode, resolution: Resolution) -> None:
        """Fold an element nested inside marked text into the running text node."""
        node = resolution.node
        if isinstance(node, TextNode):
            run.append_text(node.text)
            run.marks.extend(node.marks)
            return
        self.logger.debug(
            "Structural element inside marked text merged into text run",
            extra={"node_type": node.type},
        )
        run.append_text(node.text)
        for child in node.content:
            if isinstance(child, TextNode):
                run.append_text(child.text)

    def _open_nested(
        self,
        node: StructuralNode,
        collection: TextDocumentCollection,
        context: TraversalContext,
    ) -> TraversalContext:
        """Register a nested document for ``node`` and return the context for its children."""
        nested_index = collection.nested
        if nested_index is None:
            nested_index = collection.nested = {}
        by_id = nested_index.setdefault(node.type, {})

        node_id = node.attrs.get(self.config.nested_id_attribute)
        if not node_id:
            counter = len(by_id) + 1
            while f"{node.type}-{counter}" in by_id:
                counter += 1
            node_id = f"{node.type}-{counter}"
            self.diagnostics.report(
                DiagnosticSeverity.WARNING,
                DiagnosticCode.MISSING_NESTED_ID,
                f"Nested {node.type} has no {self.config.nested_id_attribute}; registered as {node_id}",
                COMPONENT,
                details={"type": node.type, "id": node_id},
            )
        elif node_id in by_id:
            self.diagnostics.report(
                DiagnosticSeverity.WARNING,
                DiagnosticCode.DUPLICATE_NESTED_ID,
                f"Nested {node.type} '{node_id}' defined more than once; keeping the last",
                COMPONENT,
                details={"type": node.type, "id": node_id},
            )

        doc = StructuralNode(type=DOC_TYPE, content=node.content)
        by_id[node_id] = NestedDocument(id=node_id, type=node.type, doc=doc)
        self.metrics.nested_documents += 1
        return TraversalContext(ContextKind.STRUCTURAL, doc, context.depth + 1)

    def _report_unknown(self, element: etree._Element) -> None:
        tag = _element_label(element, self.config.namespaces)
        attributes = _attribute_map(element, self.config.namespaces)
        self.metrics.unknown_elements += 1
        self.diagnostics.report(
            DiagnosticSeverity.WARNING,
            DiagnosticCode.UNKNOWN_ELEMENT,
            f"Unknown TEI element {tag}",
            COMPONENT,
            details={"tag": tag, "attributes": attributes},
        )
        self.logger.warning(
            f"Unknown TEI element {tag}",
            extra={"tag": tag, "attributes": attributes},
        )
