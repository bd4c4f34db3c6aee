"""Conversion of the TEI header into a generic labelled tree.

No rules are involved: every element becomes a ``MetadataNode`` with its
prefixed tag, its own trimmed leading text and its attributes.
"""

from typing import Dict, Mapping, Optional

from lxml import etree

from tei_rich_text.shared.config import DEFAULT_NAMESPACES
from tei_rich_text.tree.nodes import MetadataNode


def qualified_name(
    name: str,
    namespaces: Mapping[str, str],
    nsmap: Optional[Mapping[Optional[str], str]] = None,
) -> str:
    """Render an lxml ``{uri}local`` name as ``prefix:local``.

    Configured prefixes take precedence over the document's own. Names without
    a namespace, or in the default namespace of the document with no
    configured prefix, are returned as the bare local name.
    """
    qname = etree.QName(name)
    if qname.namespace is None:
        return qname.localname
    for prefix, uri in namespaces.items():
        if uri == qname.namespace:
            return f"{prefix}:{qname.localname}"
    for prefix, uri in (nsmap or {}).items():
        if uri == qname.namespace and prefix:
            return f"{prefix}:{qname.localname}"
    return qname.localname


def walk_metadata(
    element: etree._Element,
    namespaces: Optional[Mapping[str, str]] = None,
) -> MetadataNode:
    """Convert ``element`` and its descendants into a metadata tree."""
    namespaces = namespaces or DEFAULT_NAMESPACES
    # First direct text node, which may follow a comment or a child element
    text_nodes = element.xpath("text()")
    text = (text_nodes[0] if text_nodes else "").strip()
    attributes: Dict[str, str] = {
        qualified_name(key, namespaces, element.nsmap): value
        for key, value in element.attrib.items()
    }
    return MetadataNode(
        tag=qualified_name(element.tag, namespaces, element.nsmap),
        text=text or None,
        attributes=attributes,
        children=[
            walk_metadata(child, namespaces)
            for child in element
            if isinstance(child.tag, str)
        ],
    )
