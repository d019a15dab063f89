from __future__ import annotations

from .errors import MarkupParseError, TemplateSyntaxError
from .template_nodes import (
    DIRECTIVE_TYPES,
    ELEMENT_TYPES,
    GUARDED_BLOCK_TYPES,
    INTERPOLATION_TYPES,
    Expression,
    TemplateNode,
)
from .template_parser import TemplateParser
from .types import CodeFragment


def extract_expressions(
    fragment: CodeFragment,
    parser: TemplateParser,
    file_name: str | None = None,
) -> list[CodeFragment]:
    """
    Return every expression inside a markup fragment, in document order.

    Offsets reported by the parser are relative to ``fragment.fragment``; they
    are moved to document coordinates using the fragment's own start.
    """
    try:
        root = parser.parse(fragment.fragment)
    except TemplateSyntaxError as exc:
        raise MarkupParseError(exc, fragment.start_line, fragment.start_char, file_name) from exc

    expressions: list[Expression] = []
    for child in root.children:
        expressions.extend(node_expressions(child))
    return [_to_document(fragment, expression) for expression in expressions]


def node_expressions(node: TemplateNode) -> list[Expression]:
    kind = node.type
    if kind in INTERPOLATION_TYPES:
        return [node.expression] if node.expression else []
    if kind in ELEMENT_TYPES:
        return _all_expressions(node.attributes) + _all_expressions(node.children)
    if kind == "Attribute":
        return _all_expressions(node.value) if isinstance(node.value, list) else []
    if kind in DIRECTIVE_TYPES:
        return [node.expression] if node.expression else []
    if kind in GUARDED_BLOCK_TYPES:
        out = [node.expression] if node.expression else []
        out.extend(_all_expressions(node.children))
        if node.else_block is not None:
            out.extend(_all_expressions(node.else_block.children))
        return out
    if kind == "AwaitBlock":
        out = [node.expression] if node.expression else []
        for branch in (node.pending_block, node.then_block, node.catch_block):
            if branch is not None:
                out.extend(_all_expressions(branch.children))
        return out
    return []


def _all_expressions(nodes: list[TemplateNode]) -> list[Expression]:
    out: list[Expression] = []
    for node in nodes:
        out.extend(node_expressions(node))
    return out


def _to_document(fragment: CodeFragment, expression: Expression) -> CodeFragment:
    return CodeFragment(
        fragment=fragment.fragment[expression.start : expression.end],
        start_line=fragment.start_line + expression.line - 1,
        start_char=fragment.start_char + expression.start,
        end_char=fragment.start_char + expression.end,
    )
