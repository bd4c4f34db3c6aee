"""Node resolution: decides what a single TEI element becomes.

Node rules are scanned in compiled order. Mark rules accumulate: every mark
rule matching the element adds a mark to one shared text node, and scanning
continues. The first non-mark rule matching an element that has not already
collected a mark produces a structural node and ends the scan. Later rules are
never consulted for that element, so an earlier rule with the same pattern
shadows a later one.
"""

from dataclasses import dataclass
from typing import Optional

from lxml import etree

from tei_rich_text.query import XPathEvaluator, self_axis
from tei_rich_text.rules import CompiledRules, NodeRule
from tei_rich_text.shared.config import ElementRole
from tei_rich_text.tree.nodes import DocumentNode, Mark, StructuralNode, TextNode


@dataclass
class Resolution:
    """Result of resolving one element.

    ``text_extracted`` is set when a text pattern supplied the node's text, in
    which case the element's literal text must not be copied a second time.
    """

    node: DocumentNode
    text_extracted: bool = False

    @property
    def is_mark(self) -> bool:
        return isinstance(self.node, TextNode)

    @property
    def is_nested_root(self) -> bool:
        return isinstance(self.node, StructuralNode) and self.node.is_nested_root


def has_child_elements(element: etree._Element) -> bool:
    """Check for element children, ignoring comments and processing instructions."""
    return any(isinstance(child.tag, str) for child in element)


class NodeResolver:
    """Maps TEI elements to document nodes using compiled rules."""

    def __init__(self, rules: CompiledRules, evaluator: XPathEvaluator) -> None:
        self.rules = rules
        self.evaluator = evaluator

    def resolve(self, element: etree._Element) -> Optional[Resolution]:
        """Resolve an element into a structural node, a marked text node, or nothing."""
        mark_node: Optional[TextNode] = None
        text_extracted = False

        for rule in self.rules.node_rules:
            if self.evaluator.first_match(element, self_axis(rule.pattern)) is None:
                continue

            if rule.is_mark:
                if mark_node is None:
                    mark_node = TextNode()
                mark = Mark(type=rule.name)
                mark_node.marks.append(mark)
                if rule.text_pattern and not has_child_elements(element):
                    mark_node.text = self.evaluator.string_value(element, rule.text_pattern)
                    text_extracted = True
                for attribute_rule in self.rules.attribute_rules_for(rule.attrs):
                    if self.evaluator.boolean_value(element, attribute_rule.pattern):
                        mark.attrs[attribute_rule.name] = self.evaluator.string_value(
                            element, attribute_rule.value_pattern
                        )
            elif mark_node is None:
                return self._structural(element, rule)

        if mark_node is None:
            return None
        return Resolution(mark_node, text_extracted=text_extracted)

    def _structural(self, element: etree._Element, rule: NodeRule) -> Resolution:
        node = StructuralNode(
            type=rule.name,
            is_nested_root=rule.role is ElementRole.NESTED,
        )
        if rule.text_pattern:
            text = self.evaluator.string_value(element, rule.text_pattern)
            if rule.role is ElementRole.INLINE:
                node.append(TextNode(text=text))
            else:
                node.text = text
        for attribute_rule in self.rules.attribute_rules_for(rule.attrs):
            if self.evaluator.matches(element, attribute_rule.pattern):
                node.attrs[attribute_rule.name] = self.evaluator.string_value(
                    element, attribute_rule.value_pattern
                )
        return Resolution(node, text_extracted=rule.text_pattern is not None)
