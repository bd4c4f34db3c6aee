"""Rule compilation for TEI conversion.

Expands the declarative configuration into flat, ordered rule tables. An
element or attribute declared with a list of patterns becomes one compiled rule
per pattern, all sharing the same semantic name, role and attributes.

Order is preserved exactly and nothing is merged or deduplicated: when two
rules carry the same pattern the earlier one wins and the later one is never
reached.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

from tei_rich_text.shared.config import (
    AttributeConfig,
    ElementConfig,
    ElementRole,
    SectionConfig,
    TEIConfig,
)


@dataclass(frozen=True)
class NodeRule:
    """One element pattern with the semantics of its element rule."""

    pattern: str
    name: str
    role: ElementRole = ElementRole.BLOCK
    attrs: Tuple[str, ...] = ()
    text_pattern: Optional[str] = None

    @property
    def is_mark(self) -> bool:
        return self.role is ElementRole.MARK

    @property
    def is_nested(self) -> bool:
        return self.role is ElementRole.NESTED

    def to_dict(self) -> dict:
        return {
            "pattern": self.pattern,
            "name": self.name,
            "type": self.role.value,
            "attrs": list(self.attrs),
            "text": self.text_pattern,
        }


@dataclass(frozen=True)
class AttributeRule:
    """One attribute pattern with the expression producing its value."""

    pattern: str
    name: str
    value_pattern: str

    def to_dict(self) -> dict:
        return {"pattern": self.pattern, "name": self.name, "value": self.value_pattern}


@dataclass(frozen=True)
class CompiledRules:
    """Flat rule tables in match-priority order."""

    node_rules: Tuple[NodeRule, ...] = ()
    attribute_rules: Tuple[AttributeRule, ...] = ()
    sections: Tuple[SectionConfig, ...] = field(default_factory=tuple)

    def attribute_rules_for(self, names: Iterable[str]) -> Iterator[AttributeRule]:
        """Yield attribute rules whose name is in ``names``, in compiled order."""
        wanted = set(names)
        if not wanted:
            return
        for rule in self.attribute_rules:
            if rule.name in wanted:
                yield rule

    def patterns(self) -> List[str]:
        """Every pattern referenced by the compiled rules, for eager validation."""
        found: List[str] = []
        for node_rule in self.node_rules:
            found.append(node_rule.pattern)
            if node_rule.text_pattern:
                found.append(node_rule.text_pattern)
        for attribute_rule in self.attribute_rules:
            found.append(attribute_rule.pattern)
            found.append(attribute_rule.value_pattern)
        for section in self.sections:
            if section.root_pattern:
                found.append(section.root_pattern)
        return found


def compile_element(element: ElementConfig) -> List[NodeRule]:
    """Expand one element rule into a node rule per pattern."""
    if element.parse is None:
        return []
    return [
        NodeRule(
            pattern=pattern,
            name=element.name,
            role=element.role,
            attrs=element.attrs,
            text_pattern=element.parse.text,
        )
        for pattern in element.parse.patterns
    ]


def compile_attribute(attribute: AttributeConfig) -> List[AttributeRule]:
    """Expand every parse alternative, and every pattern within it, into attribute rules.

    An alternative without a value expression uses its own pattern as the value.
    """
    rules: List[AttributeRule] = []
    for alternative in attribute.parse:
        for pattern in alternative.patterns:
            rules.append(
                AttributeRule(
                    pattern=pattern,
                    name=attribute.name,
                    value_pattern=alternative.value or pattern,
                )
            )
    return rules


def compile_rules(config: TEIConfig) -> CompiledRules:
    """Compile a rule configuration into ordered node and attribute rule tables.

    Example:
        >>> config = TEIConfig.from_dict({"elements": [
        ...     {"name": "heading", "parse": {"rule": ["tei:head", "tei:title"]}}]})
        >>> [rule.pattern for rule in compile_rules(config).node_rules]
        ['tei:head', 'tei:title']
    """
    node_rules: List[NodeRule] = []
    for element in config.elements:
        node_rules.extend(compile_element(element))

    attribute_rules: List[AttributeRule] = []
    for attribute in config.attributes:
        attribute_rules.extend(compile_attribute(attribute))

    return CompiledRules(
        node_rules=tuple(node_rules),
        attribute_rules=tuple(attribute_rules),
        sections=tuple(config.sections),
    )
