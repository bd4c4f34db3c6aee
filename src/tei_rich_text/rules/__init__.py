"""Rule compilation for TEI conversion.

Key Components:
    NodeRule: One element pattern with its semantic name, role and attributes
    AttributeRule: One attribute pattern with its value expression
    CompiledRules: Ordered rule tables produced from a TEIConfig
    compile_rules: Expands a TEIConfig into CompiledRules
"""

from .compiler import (
    AttributeRule,
    CompiledRules,
    NodeRule,
    compile_rules,
)

__all__ = [
    "AttributeRule",
    "CompiledRules",
    "NodeRule",
    "compile_rules",
]
