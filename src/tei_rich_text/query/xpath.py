"""XPath query facade used by rule matching.

Every rule pattern is an XPath expression evaluated against a single lxml
element with the configured namespace prefixes bound. Expressions are compiled
once and cached on the evaluator, so one evaluator can serve any number of
documents.
"""

from typing import Any, Dict, Iterator, Mapping, Optional

from lxml import etree

from tei_rich_text.shared.config import DEFAULT_NAMESPACES

SELF_AXIS = "self::"


class QueryError(ValueError):
    """Raised when a pattern cannot be compiled or evaluated."""

    def __init__(self, message: str, pattern: str) -> None:
        super().__init__(message)
        self.pattern = pattern


def self_axis(pattern: str) -> str:
    """Prefix a pattern with the self axis so it tests the context element itself."""
    stripped = pattern.strip()
    if stripped.startswith(SELF_AXIS):
        return stripped
    return SELF_AXIS + stripped


class XPathEvaluator:
    """Evaluates patterns against lxml elements with bound namespace prefixes.

    Examples:
        >>> evaluator = XPathEvaluator()
        >>> element = etree.fromstring('<p xmlns="http://www.tei-c.org/ns/1.0" n="1"/>')
        >>> evaluator.matches(element, "self::tei:p")
        True
        >>> evaluator.string_value(element, "@n")
        '1'
    """

    def __init__(self, namespaces: Optional[Mapping[str, str]] = None) -> None:
        # The xml prefix is predeclared by XPath and must not be rebound
        self.namespaces: Dict[str, str] = {
            prefix: uri
            for prefix, uri in (namespaces or DEFAULT_NAMESPACES).items()
            if prefix != "xml"
        }
        self._compiled: Dict[str, etree.XPath] = {}

    def compile(self, expression: str) -> etree.XPath:
        """Compile an expression, reusing a cached compilation when available."""
        compiled = self._compiled.get(expression)
        if compiled is None:
            try:
                compiled = etree.XPath(expression, namespaces=self.namespaces)
            except etree.XPathSyntaxError as e:
                raise QueryError(f"Invalid pattern {expression!r}: {e}", expression) from e
            self._compiled[expression] = compiled
        return compiled

    def evaluate(self, node: etree._Element, expression: str) -> Any:
        """Evaluate an expression and return lxml's raw result."""
        try:
            return self.compile(expression)(node)
        except etree.XPathEvalError as e:
            raise QueryError(f"Could not evaluate {expression!r}: {e}", expression) from e

    def matches(self, node: etree._Element, expression: str) -> bool:
        """Test whether an expression yields a result for ``node``.

        Numbers and strings always count as a result, booleans count by value
        and node-sets count when non-empty.
        """
        result = self.evaluate(node, expression)
        if isinstance(result, bool):
            return result
        if isinstance(result, (float, int, str)):
            return True
        if isinstance(result, list):
            return len(result) > 0
        return result is not None

    def first_match(self, node: etree._Element, expression: str) -> Optional[Any]:
        """Return the first node selected by the expression, if any."""
        result = self.evaluate(node, expression)
        if isinstance(result, list):
            return result[0] if result else None
        return None

    def string_value(self, node: etree._Element, expression: str) -> str:
        return str(self.evaluate(node, f"string({expression})"))

    def boolean_value(self, node: etree._Element, expression: str) -> bool:
        return bool(self.evaluate(node, f"boolean({expression})"))

    def number_value(self, node: etree._Element, expression: str) -> float:
        return float(self.evaluate(node, f"number({expression})"))

    def iterate(self, node: etree._Element, expression: str) -> Iterator[Any]:
        """Yield the selected nodes in document order."""
        result = self.evaluate(node, expression)
        if isinstance(result, list):
            yield from result

    @property
    def cache_size(self) -> int:
        return len(self._compiled)
