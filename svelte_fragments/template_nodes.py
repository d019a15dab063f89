from __future__ import annotations

from dataclasses import dataclass, field

ELEMENT_TYPES = {
    "Element",
    "InlineComponent",
    "Slot",
    "SlotTemplate",
    "Head",
    "Title",
    "Window",
    "Body",
    "Document",
    "Options",
}
INTERPOLATION_TYPES = {"MustacheTag", "RawMustacheTag"}
DIRECTIVE_TYPES = {
    "Binding",
    "EventHandler",
    "Class",
    "Action",
    "Transition",
    "Animation",
    "Let",
}
GUARDED_BLOCK_TYPES = {"IfBlock", "EachBlock", "KeyBlock"}
BRANCH_TYPES = {"ElseBlock", "PendingBlock", "ThenBlock", "CatchBlock"}

DIRECTIVE_PREFIXES = {
    "bind": "Binding",
    "on": "EventHandler",
    "class": "Class",
    "use": "Action",
    "transition": "Transition",
    "in": "Transition",
    "out": "Transition",
    "animate": "Animation",
    "let": "Let",
    "style": "StyleDirective",
}


@dataclass(frozen=True)
class Expression:
    """Expression bounds, local to the text handed to the parser."""

    start: int
    end: int
    line: int
    column: int


@dataclass
class TemplateNode:
    type: str
    start: int
    end: int = -1
    name: str | None = None
    data: str | None = None
    expression: Expression | None = None
    attributes: list[TemplateNode] = field(default_factory=list)
    children: list[TemplateNode] = field(default_factory=list)
    # Attribute / StyleDirective: True for a bare attribute, otherwise Text and
    # MustacheTag chunks in source order.
    value: list[TemplateNode] | bool = True
    modifiers: list[str] = field(default_factory=list)
    # IfBlock / EachBlock
    else_block: TemplateNode | None = None
    elseif: bool = False
    # EachBlock
    context: str | None = None
    index: str | None = None
    key: Expression | None = None
    # AwaitBlock
    pending_block: TemplateNode | None = None
    then_block: TemplateNode | None = None
    catch_block: TemplateNode | None = None
    then_pattern: str | None = None
    catch_pattern: str | None = None
    # Branches of an await block that were not written in the source.
    skip: bool = False

    def walk(self):
        """Yield this node and every node below it, depth first."""
        yield self
        for attribute in self.attributes:
            yield from attribute.walk()
        if isinstance(self.value, list):
            for chunk in self.value:
                yield from chunk.walk()
        for child in self.children:
            yield from child.walk()
        for branch in (self.else_block, self.pending_block, self.then_block, self.catch_block):
            if branch is not None:
                yield from branch.walk()
