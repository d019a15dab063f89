"""
JavaScript syntax checks for the expressions and patterns found in templates.

``read_expression`` only decides where an expression ends. The text between
those bounds is parsed with the tree-sitter JavaScript grammar; a tree holding
an ERROR or MISSING node means the expression is malformed.
"""

from __future__ import annotations

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

from .errors import TemplateSyntaxError

JS_LANGUAGE = Language(tree_sitter_javascript.language())

# Expressions are parsed inside parentheses and patterns as arrow parameters.
# The closing text starts on a new line so a trailing line comment cannot
# swallow it.
_EXPRESSION_WRAP = ("(", "\n)", "parenthesized_expression")
_PATTERN_WRAP = ("(", "\n) => 0", "arrow_function")


class ExpressionChecker:
    def __init__(self) -> None:
        self._parser = Parser(JS_LANGUAGE)

    def check_expression(self, source: str, start: int, end: int) -> None:
        self._check(source, start, end, _EXPRESSION_WRAP)

    def check_pattern(self, source: str, start: int, end: int) -> None:
        self._check(source, start, end, _PATTERN_WRAP)

    def _check(self, source: str, start: int, end: int, wrap: tuple[str, str, str]) -> None:
        prefix, suffix, expected = wrap
        text = source[start:end]
        data = (prefix + text + suffix).encode("utf-8")
        root = self._parser.parse(data).root_node

        error_byte = first_error_byte(root)
        if error_byte is None and _single_statement(root) != expected:
            error_byte = len(prefix)
        if error_byte is None:
            return

        local = len(data[:error_byte].decode("utf-8", errors="ignore")) - len(prefix)
        local = min(max(local, 0), len(text))
        raise TemplateSyntaxError("Unexpected token", source, start + local)


def first_error_byte(root: Node) -> int | None:
    """Byte offset of the first ERROR or MISSING node, depth first."""
    if not root.has_error:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node.start_byte
        stack.extend(child for child in reversed(node.children) if child.has_error or child.is_missing)
    return root.start_byte


def _single_statement(root: Node) -> str | None:
    statements = [child for child in root.named_children if child.type != "comment"]
    if len(statements) != 1 or statements[0].type != "expression_statement":
        return None
    parts = [child for child in statements[0].named_children if child.type != "comment"]
    return parts[0].type if len(parts) == 1 else None
