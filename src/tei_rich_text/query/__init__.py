"""Path-query layer for TEI conversion.

Wraps lxml's XPath engine behind the small set of query shapes rule matching
needs: existence, first match, string, boolean and number values, and node
iteration.
"""

from .xpath import QueryError, XPathEvaluator, self_axis

__all__ = [
    "QueryError",
    "XPathEvaluator",
    "self_axis",
]
