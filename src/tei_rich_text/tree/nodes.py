"""Document tree produced from TEI markup.

Text leaves and structural nodes are separate types: a ``TextNode`` carries a
run of text and the marks applied to it, a ``StructuralNode`` carries ordered
content and attributes. Both serialise to the same dictionary shape
(``type``, ``content``, ``text``, ``marks``, ``attrs``) consumed by editor
integrations and serialisers.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

from tei_rich_text.shared.result import ConversionMetrics, DiagnosticEntry

TEXT_TYPE = "text"
DOC_TYPE = "doc"


@dataclass
class Mark:
    """Annotation applied to a run of text."""

    type: str
    attrs: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.type:
            raise ValueError("Mark type cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "attrs": dict(self.attrs)}


@dataclass
class TextNode:
    """Text leaf with the marks applied to it.

    While a document is being built, a text node whose marks come from markup
    but whose text has not been seen yet has ``text`` of ``None``.
    """

    text: Optional[str] = None
    marks: List[Mark] = field(default_factory=list)

    @property
    def type(self) -> str:
        return TEXT_TYPE

    @property
    def content(self) -> List["DocumentNode"]:
        return []

    @property
    def is_empty(self) -> bool:
        return not self.text

    def append_text(self, text: Optional[str]) -> None:
        """Extend the running text."""
        if text:
            self.text = (self.text or "") + text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": TEXT_TYPE,
            "content": [],
            "text": self.text,
            "marks": [mark.to_dict() for mark in self.marks],
            "attrs": {},
        }


@dataclass(eq=False)
class StructuralNode:
    """Node representing document structure rather than inline styling.

    ``text`` is only set when a block or nested rule extracts text through a
    text pattern. ``is_nested_root`` marks nodes that are extracted into a
    separate nested document; it is never serialised.
    """

    type: str
    content: List["DocumentNode"] = field(default_factory=list)
    attrs: Dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None
    is_nested_root: bool = False

    def __post_init__(self) -> None:
        if not self.type:
            raise ValueError("Node type cannot be empty")
        if self.type == TEXT_TYPE:
            raise ValueError("Structural nodes cannot use the text type")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructuralNode):
            return NotImplemented
        return (
            self.type == other.type
            and self.content == other.content
            and self.attrs == other.attrs
            and self.text == other.text
        )

    @property
    def marks(self) -> List[Mark]:
        return []

    def append(self, child: "DocumentNode") -> None:
        if not isinstance(child, (TextNode, StructuralNode)):
            raise TypeError("Child must be a TextNode or StructuralNode instance")
        self.content.append(child)

    def iter_nodes(self) -> Iterator["DocumentNode"]:
        """Iterate over this node and all descendants in document order."""
        yield self
        for child in self.content:
            if isinstance(child, StructuralNode):
                yield from child.iter_nodes()
            else:
                yield child

    @property
    def plain_text(self) -> str:
        """Concatenated text of all descendants."""
        parts = [self.text] if self.text else []
        for child in self.content:
            if isinstance(child, StructuralNode):
                parts.append(child.plain_text)
            elif child.text:
                parts.append(child.text)
        return "".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "content": [child.to_dict() for child in self.content],
            "text": self.text,
            "marks": [],
            "attrs": dict(self.attrs),
        }


DocumentNode = Union[TextNode, StructuralNode]


def empty_document() -> StructuralNode:
    return StructuralNode(type=DOC_TYPE)


@dataclass
class NestedDocument:
    """Self-contained document extracted from the main flow, e.g. a footnote."""

    id: str
    type: str
    doc: StructuralNode = field(default_factory=empty_document)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type, "doc": self.doc.to_dict()}


NestedIndex = Dict[str, Dict[str, NestedDocument]]


@dataclass
class TextDocumentCollection:
    """Main document of a text section plus its nested documents by type and id."""

    main: StructuralNode = field(default_factory=empty_document)
    nested: Optional[NestedIndex] = None
    type: str = "text"

    def get_nested(self, node_type: str, node_id: str) -> Optional[NestedDocument]:
        if not self.nested:
            return None
        return self.nested.get(node_type, {}).get(node_id)

    def iter_nested(self) -> Iterator[NestedDocument]:
        for by_id in (self.nested or {}).values():
            yield from by_id.values()

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type, "main": self.main.to_dict()}
        if self.nested is not None:
            result["nested"] = {
                node_type: {node_id: doc.to_dict() for node_id, doc in by_id.items()}
                for node_type, by_id in self.nested.items()
            }
        return result


@dataclass
class MetadataNode:
    """Generic labelled tree built from the TEI header."""

    tag: str
    text: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["MetadataNode"] = field(default_factory=list)
    type: Optional[str] = None

    def find(self, tag: str) -> Optional["MetadataNode"]:
        """Find the first descendant with a matching tag."""
        for child in self.children:
            if child.tag == tag:
                return child
            found = child.find(tag)
            if found is not None:
                return found
        return None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "tag": self.tag,
            "text": self.text,
            "attributes": dict(self.attributes),
            "children": [child.to_dict() for child in self.children],
        }
        if self.type is not None:
            result["type"] = self.type
        return result


SectionValue = Union[TextDocumentCollection, MetadataNode]


class AssembledDocument(Mapping):
    """Converted document: a read-only mapping of section name to section value.

    Diagnostics and metrics gathered during conversion travel alongside the
    sections without being part of the mapping.
    """

    def __init__(
        self,
        sections: Optional[Dict[str, SectionValue]] = None,
        diagnostics: Optional[List[DiagnosticEntry]] = None,
        metrics: Optional[ConversionMetrics] = None,
    ) -> None:
        self._sections: Dict[str, SectionValue] = dict(sections or {})
        self.diagnostics: List[DiagnosticEntry] = list(diagnostics or [])
        self.metrics = metrics or ConversionMetrics()

    def __getitem__(self, name: str) -> SectionValue:
        return self._sections[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sections)

    def __len__(self) -> int:
        return len(self._sections)

    def __repr__(self) -> str:
        return f"AssembledDocument(sections={list(self._sections)!r}, diagnostics={len(self.diagnostics)})"

    def to_dict(self) -> Dict[str, Any]:
        return {name: value.to_dict() for name, value in self._sections.items()}
