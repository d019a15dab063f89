from __future__ import annotations

import pytest

from svelte_fragments.template_nodes import TemplateNode
from svelte_fragments.types import CodeFragment, FragmentReport, LocatedTags

README_DOCUMENT = (
    '<script lang="ts">\n'
    "  export let a: string;\n"
    "</script>\n"
    "\n"
    '<style lang="less">\n'
    "  p {\n"
    "    color: black;\n"
    "  }\n"
    "</style>\n"
    "\n"
    "<p>{'Foo'}</p>\n"
    "\n"
    "{#if ifCondition}\n"
    "  <Component prop={bar}>{baz}</Component>\n"
    "{/if}"
)


class StubLocator:
    def __init__(self, script_texts: list[str] | None = None, style_text: str | None = None) -> None:
        self.located = LocatedTags(script_texts=script_texts or [], style_text=style_text)
        self.calls: list[str] = []

    def locate(self, document: str) -> LocatedTags:
        self.calls.append(document)
        return self.located


class RecordingParser:
    """Returns an empty template and remembers what it was asked to parse."""

    def __init__(self) -> None:
        self.texts: list[str] = []

    def parse(self, text: str) -> TemplateNode:
        self.texts.append(text)
        return TemplateNode(type="Fragment", start=0, end=len(text))


@pytest.fixture
def readme_document() -> str:
    return README_DOCUMENT


@pytest.fixture
def recording_parser() -> RecordingParser:
    return RecordingParser()


def all_fragments(report: FragmentReport) -> list[CodeFragment]:
    fragments = list(report.scripts) + list(report.html_fragments)
    if report.style is not None:
        fragments.append(report.style)
    return sorted(fragments, key=lambda f: f.start_char)


def as_tuples(fragments: list[CodeFragment]) -> list[tuple[str, int, int, int]]:
    return [(f.fragment, f.start_line, f.start_char, f.end_char) for f in fragments]
