"""
Boundary scanning for JavaScript expressions embedded in templates.

The scanner does not build a syntax tree. It walks tokens far enough to know
where an expression ends: brackets must balance, string, template and
regular-expression literals and comments must be terminated. Scanning stops at
a terminator character or a stop word found outside any bracket.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import TemplateSyntaxError

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")", "]", "}"}

# A "/" after one of these starts a regular expression, not a division.
KEYWORDS_BEFORE_EXPRESSION = {
    "await",
    "case",
    "delete",
    "do",
    "else",
    "in",
    "instanceof",
    "new",
    "of",
    "return",
    "throw",
    "typeof",
    "void",
    "yield",
}


@dataclass(frozen=True)
class ExpressionScan:
    start: int
    end: int
    stop: int
    stop_word: str | None = None

    @property
    def empty(self) -> bool:
        return self.start == self.end


def read_expression(
    source: str,
    index: int,
    terminators: str = "}",
    stop_words: frozenset[str] | set[str] = frozenset(),
    allow_empty: bool = False,
) -> ExpressionScan:
    length = len(source)
    i = index
    stack: list[tuple[str, int]] = []
    start: int | None = None
    end = index
    after_value = False

    while i < length:
        ch = source[i]
        if ch.isspace():
            i += 1
            continue
        if source.startswith("//", i):
            newline = source.find("\n", i)
            i = length if newline == -1 else newline
            continue
        if source.startswith("/*", i):
            close = source.find("*/", i + 2)
            if close == -1:
                raise TemplateSyntaxError("Unterminated comment", source, i)
            i = close + 2
            continue
        if not stack and ch in terminators:
            break

        if is_identifier_char(ch):
            word_end = _word_end(source, i)
            word = source[i:word_end]
            if not stack and start is not None and word in stop_words and source[i - 1].isspace():
                return ExpressionScan(start=start, end=end, stop=i, stop_word=word)
            if start is None:
                start = i
            after_value = word not in KEYWORDS_BEFORE_EXPRESSION
            i = end = word_end
            continue

        if start is None:
            start = i
        if ch in "'\"":
            i = _skip_string(source, i)
            after_value = True
        elif ch == "`":
            i, closed = _skip_template_chunk(source, i + 1)
            if not closed:
                stack.append(("${", i))
            after_value = closed
        elif ch == "/" and not after_value:
            i = _skip_regex(source, i)
            after_value = True
        elif ch in OPENERS:
            stack.append((ch, i))
            i += 1
            after_value = False
        elif ch in CLOSERS:
            if not stack:
                raise TemplateSyntaxError("Unexpected token", source, i)
            opener, _ = stack.pop()
            if opener == "${" and ch == "}":
                i, closed = _skip_template_chunk(source, i + 1)
                if not closed:
                    stack.append(("${", i))
                after_value = closed
            elif opener == "${" or OPENERS[opener] != ch:
                raise TemplateSyntaxError("Unexpected token", source, i)
            else:
                i += 1
                after_value = True
        elif ch in "+-" and after_value and source.startswith(ch * 2, i):
            # Postfix increment or decrement; the operand is still a value.
            i += 2
        else:
            i += 1
            after_value = False
        end = i

    if i >= length:
        raise TemplateSyntaxError("Unexpected end of input", source, length)
    if start is None:
        if not allow_empty:
            raise TemplateSyntaxError("Unexpected token", source, i)
        return ExpressionScan(start=i, end=i, stop=i)
    return ExpressionScan(start=start, end=end, stop=i)


def is_identifier_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$" or ord(ch) > 127


def is_identifier(text: str) -> bool:
    return bool(text) and not text[0].isdigit() and all(is_identifier_char(ch) for ch in text)


def _word_end(source: str, index: int) -> int:
    i = index
    while i < len(source) and is_identifier_char(source[i]):
        i += 1
    return i


def _skip_string(source: str, index: int) -> int:
    quote = source[index]
    i = index + 1
    while i < len(source):
        ch = source[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n":
            break
        i += 1
    raise TemplateSyntaxError("Unterminated string constant", source, index)


def _skip_template_chunk(source: str, index: int) -> tuple[int, bool]:
    """Scan template text from ``index``; returns (position, closed-by-backtick)."""
    i = index
    while i < len(source):
        ch = source[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "`":
            return i + 1, True
        if ch == "$" and source.startswith("${", i):
            return i + 2, False
        i += 1
    raise TemplateSyntaxError("Unterminated template literal", source, index)


def _skip_regex(source: str, index: int) -> int:
    i = index + 1
    in_class = False
    while i < len(source):
        ch = source[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "\n":
            break
        if ch == "[":
            in_class = True
        elif ch == "]":
            in_class = False
        elif ch == "/" and not in_class:
            return _word_end(source, i + 1)
        i += 1
    raise TemplateSyntaxError("Unterminated regular expression", source, index)
