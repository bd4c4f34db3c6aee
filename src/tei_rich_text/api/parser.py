"""Document assembly API for TEI conversion.

``TEIParser`` compiles a rule configuration once and converts any number of
TEI documents with it. Each configured section is converted independently:
text sections through the rule-driven tree walker and pruner, metadata
sections through the header walker.

Only malformed XML is fatal. Unknown elements, missing section roots and
nested documents without identifiers are reported as diagnostics on the
returned document.
"""

import re
import time
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from lxml import etree

from tei_rich_text.query import QueryError, XPathEvaluator
from tei_rich_text.rules import CompiledRules, compile_rules
from tei_rich_text.shared.config import (
    ConfigValidationError,
    ParserConfig,
    SectionConfig,
    SectionKind,
    TEIConfig,
)
from tei_rich_text.shared.logging import get_logger
from tei_rich_text.shared.result import (
    ConversionMetrics,
    DiagnosticCode,
    DiagnosticSeverity,
    DiagnosticSink,
)
from tei_rich_text.tree import (
    AssembledDocument,
    MetadataNode,
    NodeResolver,
    TextDocumentCollection,
    TreeWalker,
    prune_collection,
    walk_metadata,
)
from tei_rich_text.tree.nodes import empty_document

InputType = Union[str, bytes]
ConfigType = Union[TEIConfig, Mapping[str, Any]]

MS_PER_SECOND = 1000
COMPONENT = "document_assembler"

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


class MalformedDocumentError(Exception):
    """Raised when the input cannot be parsed as XML."""

    def __init__(self, message: str, line: Optional[int] = None,
                 column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column


def _coerce_config(config: ConfigType) -> TEIConfig:
    if isinstance(config, TEIConfig):
        return config
    return TEIConfig.from_dict(config)


class TEIParser:
    """Converts TEI documents into rich document trees using a rule configuration.

    The compiled rules and query cache are read-only after construction, so a
    single parser can convert many documents in sequence.

    Examples:
        >>> parser = TEIParser(config)
        >>> document = parser.parse(tei_xml)
        >>> document["main"].main.type
        'doc'
        >>> [d.code for d in document.diagnostics]
        []
    """

    def __init__(
        self,
        config: ConfigType,
        options: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Compile rules and validate every pattern they use.

        Args:
            config: Rule configuration, as a TEIConfig or its dictionary form
            options: Runtime options (defaults to ParserConfig())
            correlation_id: Optional correlation ID overriding options.correlation_id

        Raises:
            ConfigValidationError: A pattern in the configuration does not compile
        """
        self.config = _coerce_config(config)
        options = options or ParserConfig()
        if correlation_id is not None:
            options = options.override(correlation_id=correlation_id)
        self.options = options
        self.correlation_id = options.correlation_id

        self.logger = get_logger(__name__, self.correlation_id, "tei_parser")
        self.rules: CompiledRules = compile_rules(self.config)
        self.evaluator = XPathEvaluator(self.options.namespaces)
        self._validate_patterns()
        self.resolver = NodeResolver(self.rules, self.evaluator)

        self._parse_count = 0
        self._total_processing_time = 0.0

        self.logger.info(
            "TEIParser initialized",
            extra={
                "node_rules": len(self.rules.node_rules),
                "attribute_rules": len(self.rules.attribute_rules),
                "section_count": len(self.rules.sections),
            },
        )

    def _validate_patterns(self) -> None:
        for pattern in self.rules.patterns() + [self.options.metadata_root]:
            try:
                self.evaluator.compile(pattern)
            except QueryError as e:
                raise ConfigValidationError(
                    str(e),
                    field_name="parse.rule",
                    suggestions=["Check the XPath syntax and namespace prefixes"],
                ) from e

    def parse(self, xml: InputType) -> AssembledDocument:
        """Convert a TEI document given as a string or bytes.

        Raises:
            MalformedDocumentError: The input is not well-formed XML
        """
        root = self._parse_xml(xml)
        return self.convert(root)

    def parse_file(self, path: Union[str, Path]) -> AssembledDocument:
        """Convert a TEI document stored in a file."""
        return self.parse(Path(path).read_bytes())

    def convert(self, root: etree._Element) -> AssembledDocument:
        """Convert an already parsed document element."""
        start_time = time.time()
        diagnostics = DiagnosticSink(self.correlation_id)
        metrics = ConversionMetrics()
        sections: Dict[str, Union[TextDocumentCollection, MetadataNode]] = {}

        for section in self.rules.sections:
            if section.kind is SectionKind.TEXT:
                value: Union[TextDocumentCollection, MetadataNode] = self._convert_text(
                    root, section, diagnostics, metrics
                )
            else:
                value = self._convert_metadata(root, section, diagnostics)
            value.type = section.kind.value
            sections[section.name] = value

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        metrics.processing_time_ms = processing_time
        self._parse_count += 1
        self._total_processing_time += processing_time

        self.logger.info(
            "TEI document converted",
            extra={
                "processing_time_ms": processing_time,
                "elements_visited": metrics.elements_visited,
                "diagnostic_count": len(diagnostics),
            },
        )
        return AssembledDocument(sections, diagnostics.entries, metrics)

    def _parse_xml(self, xml: InputType) -> etree._Element:
        allow_entities = self.options.allow_external_entities
        xml_parser = etree.XMLParser(
            resolve_entities=allow_entities,
            no_network=not allow_entities,
            # Repeated xml:id values are reported as diagnostics, not parse errors
            collect_ids=False,
        )
        if isinstance(xml, str):
            # lxml refuses str input carrying an encoding declaration
            xml = _XML_DECLARATION.sub("", xml, count=1)
        try:
            return etree.fromstring(xml, xml_parser)
        except etree.XMLSyntaxError as e:
            line, column = e.position if e.position else (None, None)
            self.logger.error(
                "Malformed XML input",
                extra={"line": line, "column": column},
                exc_info=False,
            )
            raise MalformedDocumentError(
                f"Malformed XML: {e}", line=line, column=column
            ) from e

    def _convert_text(
        self,
        root: etree._Element,
        section: SectionConfig,
        diagnostics: DiagnosticSink,
        metrics: ConversionMetrics,
    ) -> TextDocumentCollection:
        logger = self.logger.bind(section=section.name)
        section_root = self.evaluator.first_match(root, section.root_pattern)
        if not isinstance(section_root, etree._Element):
            diagnostics.report(
                DiagnosticSeverity.WARNING,
                DiagnosticCode.MISSING_SECTION_ROOT,
                f"Section '{section.name}' root not found; using an empty document",
                COMPONENT,
                details={"section": section.name, "rule": section.root_pattern},
            )
            logger.warning("Section root not found", extra={"rule": section.root_pattern})
            return TextDocumentCollection(main=empty_document(), nested=None)

        walker = TreeWalker(self.resolver, self.options, diagnostics, metrics)
        collection = walker.build(section_root)
        logger.debug(
            "Section converted",
            extra={"nested_documents": sum(1 for _ in collection.iter_nested())},
        )
        return prune_collection(collection)

    def _convert_metadata(
        self,
        root: etree._Element,
        section: SectionConfig,
        diagnostics: DiagnosticSink,
    ) -> MetadataNode:
        pattern = section.root_pattern or self.options.metadata_root
        header = self.evaluator.first_match(root, pattern)
        if not isinstance(header, etree._Element):
            diagnostics.report(
                DiagnosticSeverity.WARNING,
                DiagnosticCode.MISSING_METADATA_ROOT,
                f"Section '{section.name}' header not found",
                COMPONENT,
                details={"section": section.name, "rule": pattern},
            )
            return MetadataNode(tag=pattern.split("/")[-1])
        return walk_metadata(header, self.options.namespaces)

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._total_processing_time = 0.0


def parse(
    xml: InputType,
    config: ConfigType,
    options: Optional[ParserConfig] = None,
) -> AssembledDocument:
    """Convert a TEI document with a one-off parser.

    Examples:
        >>> document = parse('<TEI xmlns="http://www.tei-c.org/ns/1.0">...</TEI>', config)
        >>> sorted(document)
        ['main', 'metadata']
    """
    return TEIParser(config, options).parse(xml)


def parse_file(
    path: Union[str, Path],
    config: ConfigType,
    options: Optional[ParserConfig] = None,
) -> AssembledDocument:
    """Convert a TEI document stored in a file with a one-off parser."""
    return TEIParser(config, options).parse_file(path)
