"""
Strict parser for component templates.

Produces a ``TemplateNode`` tree (root type ``Fragment``) for markup mixed with
``{...}`` tags and control blocks. Every embedded expression is delimited with
``read_expression``, checked with the JavaScript grammar and recorded with
offsets local to the parsed text.
Malformed input raises ``TemplateSyntaxError``; nothing is recovered.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from typing import NoReturn, Protocol

from .errors import TemplateSyntaxError
from .expressions import ExpressionScan, is_identifier, read_expression
from .js_syntax import ExpressionChecker
from .template_nodes import BRANCH_TYPES, DIRECTIVE_PREFIXES, ELEMENT_TYPES, Expression, TemplateNode

VOID_ELEMENTS = {
    "area",
    "base",
    "br",
    "col",
    "command",
    "embed",
    "hr",
    "img",
    "input",
    "keygen",
    "link",
    "meta",
    "param",
    "source",
    "track",
    "wbr",
}
RAW_TEXT_ELEMENTS = {"script", "style"}

# An open element is closed implicitly when one of these elements starts.
_P_CLOSERS = (
    "address article aside blockquote div dl fieldset footer form h1 h2 h3 h4 h5 h6 "
    "header hgroup hr main menu nav ol p pre section table ul"
)
DISALLOWED_CONTENTS = {
    "li": {"li"},
    "dt": {"dt", "dd"},
    "dd": {"dt", "dd"},
    "p": set(_P_CLOSERS.split()),
    "rt": {"rt", "rp"},
    "rp": {"rt", "rp"},
    "optgroup": {"optgroup"},
    "option": {"option", "optgroup"},
    "thead": {"tbody", "tfoot"},
    "tbody": {"tbody", "tfoot"},
    "tfoot": {"tbody"},
    "tr": {"tr", "tbody"},
    "td": {"td", "th", "tr"},
    "th": {"td", "th", "tr"},
}

SPECIAL_ELEMENTS = {
    "svelte:head": "Head",
    "svelte:options": "Options",
    "svelte:window": "Window",
    "svelte:body": "Body",
    "svelte:document": "Document",
    "svelte:fragment": "SlotTemplate",
    "svelte:self": "InlineComponent",
    "svelte:component": "InlineComponent",
    "svelte:element": "Element",
}
BLOCK_CLOSERS = {
    "if": "IfBlock",
    "each": "EachBlock",
    "key": "KeyBlock",
    "await": "AwaitBlock",
}

_TAG_NAME = re.compile(r"[A-Za-z][\w.:-]*")
_TAG_NAME_END = re.compile(r"[\s/>]")
_ATTRIBUTE_NAME_END = re.compile(r"[\s=/>\"']")
_WORD = re.compile(r"[a-z]+")


class TemplateParser(Protocol):
    """Strict template parser used to find embedded expressions."""

    def parse(self, text: str) -> TemplateNode:
        ...


class SvelteTemplateParser:
    def parse(self, text: str) -> TemplateNode:
        return _Parser(text).run()


def parse_template(text: str) -> TemplateNode:
    return SvelteTemplateParser().parse(text)


def closing_tag_omitted(current: str | None, following: str | None = None) -> bool:
    disallowed = DISALLOWED_CONTENTS.get(current or "")
    if disallowed is None:
        return False
    return following is None or following in disallowed


class _Parser:
    def __init__(self, source: str) -> None:
        self.source = source
        self.index = 0
        self.root = TemplateNode(type="Fragment", start=0, end=len(source))
        self.stack: list[TemplateNode] = [self.root]
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", source)]
        self._checker = ExpressionChecker()

    def run(self) -> TemplateNode:
        while self.index < len(self.source):
            if self.source.startswith("<", self.index):
                self._tag()
            elif self.source.startswith("{", self.index):
                self._mustache()
            else:
                self._text()

        self._close_omittable(len(self.source))
        if len(self.stack) > 1:
            node = self.current
            if node.type in ELEMENT_TYPES:
                self._error(f"<{node.name}> was left open", node.start)
            self._error("Block was left open", node.start)
        return self.root

    @property
    def current(self) -> TemplateNode:
        return self.stack[-1]

    # -- helpers -------------------------------------------------------------

    def _error(self, message: str, position: int | None = None) -> NoReturn:
        raise TemplateSyntaxError(message, self.source, self.index if position is None else position)

    def _eat(self, text: str) -> bool:
        if self.source.startswith(text, self.index):
            self.index += len(text)
            return True
        return False

    def _expect(self, text: str) -> None:
        if not self._eat(text):
            if self.index >= len(self.source):
                self._error("Unexpected end of input")
            self._error(f"Expected {text}")

    def _skip_whitespace(self) -> None:
        while self.index < len(self.source) and self.source[self.index].isspace():
            self.index += 1

    def _require_whitespace(self) -> None:
        if self.index >= len(self.source) or not self.source[self.index].isspace():
            self._error("Expected whitespace")
        self._skip_whitespace()

    def _read_word(self) -> str:
        match = _WORD.match(self.source, self.index)
        if not match:
            return ""
        self.index = match.end()
        return match.group()

    def _expression(self, scan: ExpressionScan) -> Expression:
        self._checker.check_expression(self.source, scan.start, scan.end)
        line = bisect_right(self._line_starts, scan.start)
        return Expression(
            start=scan.start,
            end=scan.end,
            line=line,
            column=scan.start - self._line_starts[line - 1],
        )

    def _read_expression(self, **kwargs) -> Expression:
        scan = read_expression(self.source, self.index, **kwargs)
        self.index = scan.stop
        return self._expression(scan)

    def _read_pattern(self, terminators: str) -> str | None:
        scan = read_expression(self.source, self.index, terminators=terminators, allow_empty=True)
        self.index = scan.stop
        if scan.empty:
            return None
        self._checker.check_pattern(self.source, scan.start, scan.end)
        return self.source[scan.start : scan.end]

    def _append(self, node: TemplateNode) -> None:
        self.current.children.append(node)

    def _close_omittable(self, position: int) -> None:
        while (
            len(self.stack) > 1
            and self.current.type == "Element"
            and closing_tag_omitted(self.current.name)
        ):
            self.current.end = position
            self.stack.pop()

    # -- text and comments ---------------------------------------------------

    def _text(self) -> None:
        start = self.index
        while self.index < len(self.source) and self.source[self.index] not in "<{":
            self.index += 1
        self._append(TemplateNode(type="Text", start=start, end=self.index, data=self.source[start : self.index]))

    def _comment(self, start: int) -> None:
        close = self.source.find("-->", self.index)
        if close == -1:
            self._error("comment was left open, expected -->", start)
        data = self.source[self.index : close]
        self.index = close + 3
        self._append(TemplateNode(type="Comment", start=start, end=self.index, data=data))

    # -- elements ------------------------------------------------------------

    def _tag(self) -> None:
        start = self.index
        self.index += 1
        if self._eat("!--"):
            self._comment(start)
            return

        is_closing = self._eat("/")
        name = self._read_tag_name()

        if is_closing:
            self._skip_whitespace()
            self._expect(">")
            self._close_element(name, start)
            return

        parent = self.current
        if parent.type == "Element" and closing_tag_omitted(parent.name, name):
            parent.end = start
            self.stack.pop()

        node = TemplateNode(type=self._element_type(name, start), start=start, name=name)
        seen: set[str] = set()
        while True:
            self._skip_whitespace()
            if self.index >= len(self.source):
                self._error("Unexpected end of input")
            if self.source.startswith("/>", self.index) or self.source.startswith(">", self.index):
                break
            attribute = self._attribute()
            if attribute.type == "Attribute" and attribute.name is not None:
                if attribute.name in seen:
                    self._error("Attributes need to be unique", attribute.start)
                seen.add(attribute.name)
            node.attributes.append(attribute)

        self_closing = self._eat("/>")
        if not self_closing:
            self._expect(">")
        self._append(node)

        if self_closing or (node.type == "Element" and name.lower() in VOID_ELEMENTS):
            node.end = self.index
        elif node.type == "Element" and name in RAW_TEXT_ELEMENTS:
            self._raw_text(node)
        else:
            self.stack.append(node)

    def _element_type(self, name: str, start: int) -> str:
        if name in SPECIAL_ELEMENTS:
            return SPECIAL_ELEMENTS[name]
        if name.startswith("svelte:"):
            self._error(f"<{name}> is not a valid svelte:* element", start)
        if name == "slot":
            return "Slot"
        if name == "title" and any(node.type == "Head" for node in self.stack):
            return "Title"
        if name[0].isupper() or "." in name:
            return "InlineComponent"
        return "Element"

    def _read_tag_name(self) -> str:
        end = _TAG_NAME_END.search(self.source, self.index)
        stop = end.start() if end else len(self.source)
        name = self.source[self.index : stop]
        if not _TAG_NAME.fullmatch(name):
            self._error("Expected valid tag name")
        self.index = stop
        return name

    def _raw_text(self, node: TemplateNode) -> None:
        closing = re.compile(rf"</{node.name}\s*>")
        match = closing.search(self.source, self.index)
        if not match:
            self._error(f"<{node.name}> was left open", node.start)
        node.children.append(
            TemplateNode(
                type="Text",
                start=self.index,
                end=match.start(),
                data=self.source[self.index : match.start()],
            )
        )
        self.index = node.end = match.end()

    def _close_element(self, name: str, start: int) -> None:
        if name.lower() in VOID_ELEMENTS:
            self._error(f"</{name}> is a void element and cannot have children, or a closing tag", start)
        parent = self.current
        while parent.type not in ELEMENT_TYPES or parent.name != name:
            if parent.type != "Element":
                self._error(f"</{name}> attempted to close an element that was not open", start)
            parent.end = start
            self.stack.pop()
            parent = self.current
        parent.end = self.index
        self.stack.pop()

    # -- attributes ----------------------------------------------------------

    def _attribute(self) -> TemplateNode:
        start = self.index
        if self._eat("{"):
            self._skip_whitespace()
            if self._eat("..."):
                expression = self._read_expression()
                self._expect("}")
                return TemplateNode(type="Spread", start=start, end=self.index, expression=expression)
            scan = read_expression(self.source, self.index)
            name = self.source[scan.start : scan.end]
            if not is_identifier(name):
                self._error("Expected identifier", scan.start)
            self.index = scan.stop
            self._expect("}")
            shorthand = TemplateNode(
                type="AttributeShorthand",
                start=scan.start,
                end=scan.end,
                expression=self._expression(scan),
            )
            return TemplateNode(type="Attribute", start=start, end=self.index, name=name, value=[shorthand])

        match = _ATTRIBUTE_NAME_END.search(self.source, self.index)
        stop = match.start() if match else len(self.source)
        name = self.source[self.index : stop]
        if not name:
            self._error("Expected valid attribute name")
        self.index = end = stop

        value: list[TemplateNode] | bool = True
        self._skip_whitespace()
        if self._eat("="):
            self._skip_whitespace()
            value = self._attribute_value()
            end = self.index
        else:
            self.index = end

        head, _, modifiers = name.partition("|")
        prefix, colon, directive_name = head.partition(":")
        directive_type = DIRECTIVE_PREFIXES.get(prefix) if colon else None
        if directive_type is None:
            return TemplateNode(type="Attribute", start=start, end=end, name=name, value=value)

        node = TemplateNode(
            type=directive_type,
            start=start,
            end=end,
            name=directive_name,
            modifiers=modifiers.split("|") if modifiers else [],
        )
        if directive_type == "StyleDirective":
            node.value = value
        elif isinstance(value, list):
            if len(value) != 1 or value[0].type != "MustacheTag":
                self._error(
                    "Directive value must be a JavaScript expression enclosed in curly braces",
                    value[0].start if value else start,
                )
            node.expression = value[0].expression
        return node

    def _attribute_value(self) -> list[TemplateNode]:
        quote = self.source[self.index] if self.source[self.index : self.index + 1] in {"'", '"'} else None
        if quote:
            self.index += 1
        chunks: list[TemplateNode] = []
        text_start = self.index
        while True:
            if self.index >= len(self.source):
                self._error("Unexpected end of input")
            ch = self.source[self.index]
            if quote is not None and ch == quote:
                break
            if quote is None and (ch.isspace() or ch == ">" or self.source.startswith("/>", self.index)):
                break
            if ch == "{":
                self._text_chunk(chunks, text_start)
                chunks.append(self._attribute_mustache())
                text_start = self.index
            else:
                self.index += 1
        self._text_chunk(chunks, text_start)
        if quote is not None:
            self.index += 1
        elif not chunks:
            self._error("Expected attribute value")
        return chunks

    def _text_chunk(self, chunks: list[TemplateNode], start: int) -> None:
        if self.index > start:
            chunks.append(TemplateNode(type="Text", start=start, end=self.index, data=self.source[start : self.index]))

    def _attribute_mustache(self) -> TemplateNode:
        start = self.index
        self.index += 1
        self._skip_whitespace()
        if self.source[self.index : self.index + 1] in {"#", ":", "/", "@"}:
            self._error("Expected expression")
        expression = self._read_expression()
        self._expect("}")
        return TemplateNode(type="MustacheTag", start=start, end=self.index, expression=expression)

    # -- tags and blocks -----------------------------------------------------

    def _mustache(self) -> None:
        start = self.index
        self.index += 1
        self._skip_whitespace()
        if self._eat("#"):
            self._open_block(start)
        elif self._eat(":"):
            self._continue_block(start)
        elif self._eat("/"):
            self._close_block(start)
        elif self._eat("@"):
            self._special_tag(start)
        else:
            expression = self._read_expression()
            self._expect("}")
            self._append(TemplateNode(type="MustacheTag", start=start, end=self.index, expression=expression))

    def _open_block(self, start: int) -> None:
        keyword = self._read_word()
        if keyword not in BLOCK_CLOSERS:
            self._error("Expected if, each, await or key")
        self._require_whitespace()

        if keyword == "each":
            node = self._each_block(start)
        elif keyword == "await":
            node = self._await_block(start)
        else:
            expression = self._read_expression()
            self._expect("}")
            node = TemplateNode(type=BLOCK_CLOSERS[keyword], start=start, expression=expression)

        self._append(node)
        self.stack.append(node)
        if node.type == "AwaitBlock":
            for branch in (node.pending_block, node.then_block, node.catch_block):
                if branch is not None and not branch.skip:
                    self.stack.append(branch)
                    break

    def _each_block(self, start: int) -> TemplateNode:
        expression = self._read_expression(stop_words={"as"})
        if not self._eat("as"):
            self._error("Expected as")
        self._require_whitespace()
        context = self._read_pattern(",(}")
        if context is None:
            self._error("Expected name")
        node = TemplateNode(type="EachBlock", start=start, expression=expression, context=context)
        self._skip_whitespace()
        if self._eat(","):
            self._skip_whitespace()
            index = self._read_pattern("(}")
            if index is None or not is_identifier(index):
                self._error("Expected name")
            node.index = index
            self._skip_whitespace()
        if self._eat("("):
            node.key = self._read_expression(terminators=")")
            self._expect(")")
            self._skip_whitespace()
        self._expect("}")
        return node

    def _await_block(self, start: int) -> TemplateNode:
        expression = self._read_expression(stop_words={"then", "catch"})
        pending = TemplateNode(type="PendingBlock", start=-1, skip=True)
        then = TemplateNode(type="ThenBlock", start=-1, skip=True)
        catch = TemplateNode(type="CatchBlock", start=-1, skip=True)
        node = TemplateNode(
            type="AwaitBlock",
            start=start,
            expression=expression,
            pending_block=pending,
            then_block=then,
            catch_block=catch,
        )

        # `{#await promise then value}` and `{#await promise catch error}` open
        # straight into the matching branch.
        position = self.index
        if self._eat("then"):
            active = then
            node.then_pattern = self._read_pattern("}")
        elif self._eat("catch"):
            active = catch
            node.catch_pattern = self._read_pattern("}")
        else:
            active = pending
        active.skip = False
        active.start = position
        self._expect("}")
        return node

    def _continue_block(self, start: int) -> None:
        keyword = self._read_word()
        self._close_omittable(start)
        block = self.current

        if keyword == "else":
            self._skip_whitespace()
            if self._eat("if"):
                self._require_whitespace()
                if block.type != "IfBlock" or block.else_block is not None:
                    self._error("Cannot have an {:else if ...} block outside an {#if ...} block", start)
                expression = self._read_expression()
                self._expect("}")
                else_block = TemplateNode(type="ElseBlock", start=start)
                nested = TemplateNode(type="IfBlock", start=start, expression=expression, elseif=True)
                else_block.children.append(nested)
                block.else_block = else_block
                self.stack.extend([else_block, nested])
                return
            if block.type not in {"IfBlock", "EachBlock"} or block.else_block is not None:
                self._error("Cannot have an {:else} block outside an {#if ...} or {#each ...} block", start)
            self._expect("}")
            block.else_block = TemplateNode(type="ElseBlock", start=start)
            self.stack.append(block.else_block)
            return

        if keyword not in {"then", "catch"}:
            self._error("Expected :else, :then or :catch", start)
        allowed = {"PendingBlock"} if keyword == "then" else {"PendingBlock", "ThenBlock"}
        if block.type not in allowed:
            self._error(f"Cannot have an {{:{keyword}}} block outside an {{#await ...}} block", start)
        block.end = start
        self.stack.pop()
        await_block = self.current
        pattern = self._read_pattern("}")
        self._expect("}")
        if keyword == "then":
            branch = await_block.then_block
            await_block.then_pattern = pattern
        else:
            branch = await_block.catch_block
            await_block.catch_pattern = pattern
        if branch is None:
            self._error(f"Cannot have an {{:{keyword}}} block outside an {{#await ...}} block", start)
        branch.skip = False
        branch.start = start
        self.stack.append(branch)

    def _close_block(self, start: int) -> None:
        keyword = self._read_word()
        expected = BLOCK_CLOSERS.get(keyword)
        if expected is None:
            self._error("Expected if, each, await or key")
        self._skip_whitespace()
        self._expect("}")

        self._close_omittable(start)
        block = self.current
        while block.type in BRANCH_TYPES or (
            expected == "IfBlock" and block.type == "IfBlock" and block.elseif
        ):
            block.end = start
            self.stack.pop()
            block = self.current
        if block.type != expected:
            self._error(f"Expected to close {_describe(block)} before {{/{keyword}}}", start)
        block.end = self.index
        self.stack.pop()

    def _special_tag(self, start: int) -> None:
        keyword = self._read_word()
        if keyword == "html":
            self._require_whitespace()
            expression = self._read_expression()
            node_type = "RawMustacheTag"
        elif keyword == "debug":
            scan = read_expression(self.source, self.index, allow_empty=True)
            self.index = scan.stop
            expression = None if scan.empty else self._expression(scan)
            node_type = "DebugTag"
        elif keyword == "const":
            self._require_whitespace()
            expression = self._read_expression()
            node_type = "ConstTag"
        else:
            self._error("Expected html, debug or const")
        self._expect("}")
        self._append(TemplateNode(type=node_type, start=start, end=self.index, expression=expression))


def _describe(node: TemplateNode) -> str:
    if node.type in ELEMENT_TYPES:
        return f"<{node.name}>"
    if node.type == "Fragment":
        return "nothing"
    return "{#" + {v: k for k, v in BLOCK_CLOSERS.items()}.get(node.type, "block") + "}"
