from __future__ import annotations

from .types import CodeFragment, FragmentReport, RegionLayout


def assemble_report(document: str, layout: RegionLayout, file_name: str | None = None) -> FragmentReport:
    scripts: list[CodeFragment] = []
    style: CodeFragment | None = None
    for region in layout.tagged:
        fragment = make_fragment(document, region.start, region.end)
        if region.kind == "script":
            scripts.append(fragment)
        else:
            style = fragment

    html_fragments = [
        make_fragment(document, region.start, region.end)
        for region in layout.markup
        if document[region.start : region.end].strip()
    ]

    script: CodeFragment | list[CodeFragment] | None = None
    if len(scripts) == 1:
        script = scripts[0]
    elif scripts:
        script = scripts

    return FragmentReport(
        file_name=file_name,
        script=script,
        style=style,
        html_fragments=html_fragments,
    )


def make_fragment(document: str, start: int, end: int) -> CodeFragment:
    return CodeFragment(
        fragment=document[start:end],
        start_line=line_number(document, start),
        start_char=start,
        end_char=end,
    )


def line_number(document: str, offset: int) -> int:
    return document.count("\n", 0, offset) + 1
