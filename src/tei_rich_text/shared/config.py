"""Configuration classes for TEI conversion.

Two layers of configuration live here:

* The declarative rule configuration (``TEIConfig``) describing which TEI
  elements and attributes map onto which document nodes, marks and
  attributes, and which sections the document is split into.
* Runtime options (``ParserConfig``) controlling namespaces, whitespace
  handling, nesting limits and XML parser safety.

Both are immutable once built and validate themselves on construction.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

TEI_NAMESPACE = "http://www.tei-c.org/ns/1.0"
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

DEFAULT_NAMESPACES: Dict[str, str] = {
    "tei": TEI_NAMESPACE,
    "xml": XML_NAMESPACE,
}


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


class ElementRole(Enum):
    """How a matched element contributes to the document tree."""

    BLOCK = "block"      # Structural node, text pattern fills the node's own text
    INLINE = "inline"    # Structural node, text pattern becomes a text child
    MARK = "mark"        # Annotation on the surrounding text run
    NESTED = "nested"    # Extracted into a separately indexed document


class SectionKind(Enum):
    """Conversion strategy for a top-level section."""

    TEXT = "text"
    METADATA = "metadata"


def _coerce_enum(enum_cls: Any, value: Any, field_name: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        choices = [member.value for member in enum_cls]
        raise ConfigValidationError(
            f"{field_name} must be one of {choices}, got {value!r}",
            field_name=field_name,
            suggestions=[f"Use one of: {', '.join(choices)}"],
        ) from e


def _require_name(name: Any, field_name: str) -> None:
    if not isinstance(name, str) or not name:
        raise ConfigValidationError(
            f"{field_name} must be a non-empty string", field_name=field_name
        )


@dataclass(frozen=True)
class ParseSpec:
    """Match specification: one pattern or an ordered list of patterns.

    ``text`` is an optional text-extraction expression (elements only) and
    ``value`` the value expression of an attribute alternative.
    """

    rule: Union[str, Tuple[str, ...]]
    text: Optional[str] = None
    value: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate patterns."""
        if isinstance(self.rule, list):
            object.__setattr__(self, "rule", tuple(self.rule))
        if not isinstance(self.rule, (str, tuple)):
            raise ConfigValidationError(
                "parse.rule must be a pattern or a list of patterns",
                field_name="parse.rule",
            )
        for pattern in self.patterns:
            if not isinstance(pattern, str) or not pattern.strip():
                raise ConfigValidationError(
                    "parse.rule patterns must be non-empty strings",
                    field_name="parse.rule",
                )
        if not self.patterns:
            raise ConfigValidationError(
                "parse.rule must contain at least one pattern",
                field_name="parse.rule",
            )
        if self.text is not None and not self.text.strip():
            raise ConfigValidationError(
                "parse.text must be a non-empty expression", field_name="parse.text"
            )

    @property
    def patterns(self) -> Tuple[str, ...]:
        """The rule as an ordered tuple of patterns."""
        if isinstance(self.rule, str):
            return (self.rule,)
        return tuple(self.rule)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParseSpec":
        if not isinstance(data, Mapping) or "rule" not in data:
            raise ConfigValidationError(
                "parse must be an object with a 'rule' entry", field_name="parse"
            )
        rule = data["rule"]
        return cls(
            rule=tuple(rule) if isinstance(rule, (list, tuple)) else rule,
            text=data.get("text") or None,
            value=data.get("value") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "rule": self.rule if isinstance(self.rule, str) else list(self.rule)
        }
        if self.text is not None:
            result["text"] = self.text
        if self.value is not None:
            result["value"] = self.value
        return result


@dataclass(frozen=True)
class ElementConfig:
    """Declarative rule for one semantic element."""

    name: str
    parse: Optional[ParseSpec] = None
    role: ElementRole = ElementRole.BLOCK
    attrs: Tuple[str, ...] = ()
    serialise: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        _require_name(self.name, "elements.name")
        object.__setattr__(
            self, "role", _coerce_enum(ElementRole, self.role, "elements.type")
        )
        object.__setattr__(self, "attrs", tuple(self.attrs))
        if self.name == "text" and self.role is not ElementRole.MARK:
            raise ConfigValidationError(
                "elements.name 'text' is reserved for text nodes",
                field_name="elements.name",
                suggestions=["Rename the element or declare it with type 'mark'"],
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ElementConfig":
        parse = data.get("parse")
        return cls(
            name=data.get("name", ""),
            parse=ParseSpec.from_dict(parse) if parse else None,
            role=data.get("type") or ElementRole.BLOCK,
            attrs=tuple(data.get("attrs") or ()),
            serialise=data.get("serialise"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name, "type": self.role.value}
        if self.attrs:
            result["attrs"] = list(self.attrs)
        if self.parse is not None:
            result["parse"] = self.parse.to_dict()
        if self.serialise is not None:
            result["serialise"] = dict(self.serialise)
        return result


@dataclass(frozen=True)
class AttributeConfig:
    """Declarative rule for one semantic attribute with its parse alternatives."""

    name: str
    parse: Tuple[ParseSpec, ...] = ()
    default: Optional[str] = None
    serialise: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        _require_name(self.name, "attributes.name")
        if isinstance(self.parse, ParseSpec):
            object.__setattr__(self, "parse", (self.parse,))
        else:
            object.__setattr__(self, "parse", tuple(self.parse))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AttributeConfig":
        raw = data.get("parse")
        if raw is None:
            alternatives: Tuple[ParseSpec, ...] = ()
        elif isinstance(raw, (list, tuple)):
            alternatives = tuple(ParseSpec.from_dict(item) for item in raw)
        else:
            alternatives = (ParseSpec.from_dict(raw),)
        return cls(
            name=data.get("name", ""),
            parse=alternatives,
            default=data.get("default"),
            serialise=data.get("serialise"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name}
        if len(self.parse) == 1:
            result["parse"] = self.parse[0].to_dict()
        elif self.parse:
            result["parse"] = [spec.to_dict() for spec in self.parse]
        if self.default is not None:
            result["default"] = self.default
        if self.serialise is not None:
            result["serialise"] = dict(self.serialise)
        return result


@dataclass(frozen=True)
class SectionConfig:
    """Top-level named region of the source document."""

    name: str
    kind: SectionKind = SectionKind.TEXT
    parse: Optional[ParseSpec] = None
    serialise: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        _require_name(self.name, "sections.name")
        object.__setattr__(
            self, "kind", _coerce_enum(SectionKind, self.kind, "sections.type")
        )
        if self.kind is SectionKind.TEXT and self.parse is None:
            raise ConfigValidationError(
                f"Text section '{self.name}' requires a parse rule",
                field_name="sections.parse",
                suggestions=["Add parse.rule locating the section root, e.g. 'tei:text/tei:body'"],
            )

    @property
    def root_pattern(self) -> Optional[str]:
        """Pattern locating the section root, relative to the document element."""
        if self.parse is None:
            return None
        return self.parse.patterns[0]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SectionConfig":
        parse = data.get("parse")
        return cls(
            name=data.get("name", ""),
            kind=data.get("type") or SectionKind.TEXT,
            parse=ParseSpec.from_dict(parse) if parse else None,
            serialise=data.get("serialise"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name, "type": self.kind.value}
        if self.parse is not None:
            result["parse"] = self.parse.to_dict()
        if self.serialise is not None:
            result["serialise"] = dict(self.serialise)
        return result


@dataclass(frozen=True)
class TEIConfig:
    """Complete rule configuration: sections, element rules and attribute rules.

    Declaration order is significant: rules are tried in the order given and
    the first structural match wins.

    Example:
        >>> config = TEIConfig.from_dict({
        ...     "sections": [{"name": "main", "type": "text",
        ...                   "parse": {"rule": "tei:text/tei:body"}}],
        ...     "elements": [{"name": "doc", "parse": {"rule": "tei:body"}},
        ...                  {"name": "paragraph", "parse": {"rule": "tei:p"}}],
        ...     "attributes": [],
        ... })
        >>> [element.name for element in config.elements]
        ['doc', 'paragraph']
    """

    sections: Tuple[SectionConfig, ...] = ()
    elements: Tuple[ElementConfig, ...] = ()
    attributes: Tuple[AttributeConfig, ...] = ()

    def __post_init__(self) -> None:
        """Validate cross-rule consistency."""
        object.__setattr__(self, "sections", tuple(self.sections))
        object.__setattr__(self, "elements", tuple(self.elements))
        object.__setattr__(self, "attributes", tuple(self.attributes))

        seen = set()
        for section in self.sections:
            if section.name in seen:
                raise ConfigValidationError(
                    f"Duplicate section name '{section.name}'",
                    field_name="sections.name",
                    suggestions=["Give every section a unique name"],
                )
            seen.add(section.name)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TEIConfig":
        """Create configuration from its JSON-compatible dictionary form."""
        if not isinstance(data, Mapping):
            raise ConfigValidationError("Configuration must be an object")
        return cls(
            sections=tuple(SectionConfig.from_dict(item) for item in data.get("sections") or ()),
            elements=tuple(ElementConfig.from_dict(item) for item in data.get("elements") or ()),
            attributes=tuple(
                AttributeConfig.from_dict(item) for item in data.get("attributes") or ()
            ),
        )

    @classmethod
    def from_json(cls, json_str: str) -> "TEIConfig":
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Configuration is not valid JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TEIConfig":
        """Load configuration from a JSON file."""
        config_path = Path(path)
        try:
            content = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read configuration {config_path}: {e}") from e
        return cls.from_json(content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sections": [section.to_dict() for section in self.sections],
            "elements": [element.to_dict() for element in self.elements],
            "attributes": [attribute.to_dict() for attribute in self.attributes],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass(frozen=True)
class ParserConfig:
    """Runtime options for the conversion engine.

    Attributes:
        namespaces: Prefixes available to every pattern
        nested_id_attribute: Semantic attribute whose value keys nested documents
        metadata_root: Header location relative to the document element
        drop_indentation_text: Ignore whitespace-only text containing a line break
        max_depth: Deepest element nesting converted before a subtree is dropped
        allow_external_entities: Let the XML parser resolve entities and use the network
        correlation_id: Correlation ID attached to logs and diagnostics
    """

    namespaces: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_NAMESPACES))
    nested_id_attribute: str = "xmlid"
    metadata_root: str = "tei:teiHeader"
    drop_indentation_text: bool = True
    max_depth: int = 200
    allow_external_entities: bool = False
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate runtime options."""
        if not self.namespaces:
            raise ConfigValidationError(
                "namespaces must declare at least one prefix", field_name="namespaces"
            )
        for prefix, uri in self.namespaces.items():
            if not prefix or not uri:
                raise ConfigValidationError(
                    "namespace prefixes and URIs must be non-empty",
                    field_name="namespaces",
                )
        if not self.nested_id_attribute:
            raise ConfigValidationError(
                "nested_id_attribute must be non-empty", field_name="nested_id_attribute"
            )
        if not self.metadata_root:
            raise ConfigValidationError(
                "metadata_root must be non-empty", field_name="metadata_root"
            )
        if self.max_depth <= 0:
            raise ConfigValidationError("max_depth must be > 0", field_name="max_depth")

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> ParserConfig().override(max_depth=50).max_depth
            50
        """
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespaces": dict(self.namespaces),
            "nested_id_attribute": self.nested_id_attribute,
            "metadata_root": self.metadata_root,
            "drop_indentation_text": self.drop_indentation_text,
            "max_depth": self.max_depth,
            "allow_external_entities": self.allow_external_entities,
            "correlation_id": self.correlation_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParserConfig":
        """Create options from a dictionary, rejecting unknown keys."""
        known = {name for name in cls.__dataclass_fields__}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown parser options: {', '.join(unknown)}",
                suggestions=[f"Valid options: {', '.join(sorted(known))}"],
            )
        return cls(**dict(data))

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Parser options are not valid JSON: {e}") from e
        return cls.from_dict(data)
