from __future__ import annotations

import json

import pytest
from conftest import StubLocator, all_fragments, as_tuples

from svelte_fragments.config import DividerConfig
from svelte_fragments.divider import divide
from svelte_fragments.errors import AmbiguousRegionError, MarkupParseError
from svelte_fragments.types import CodeFragment


def test_readme_sample(readme_document):
    report = divide(readme_document, "src/App.svelte")

    assert report.file_name == "src/App.svelte"
    assert report.script == CodeFragment(
        fragment='<script lang="ts">\n  export let a: string;\n</script>',
        start_line=1,
        start_char=0,
        end_char=52,
    )
    assert report.style == CodeFragment(
        fragment='<style lang="less">\n  p {\n    color: black;\n  }\n</style>',
        start_line=5,
        start_char=54,
        end_char=110,
    )
    assert as_tuples(report.html_fragments) == [
        (readme_document[110:], 9, 110, 193),
    ]
    assert as_tuples(report.script_in_html_fragments) == [
        ("'Foo'", 11, 116, 121),
        ("ifCondition", 13, 133, 144),
        ("bar", 14, 165, 168),
        ("baz", 14, 171, 174),
    ]


def test_single_paragraph_scenario():
    report = divide("<p>{'Foo'}</p>")
    assert report.as_dict() == {
        "htmlFragments": [{"fragment": "<p>{'Foo'}</p>", "startLine": 1, "startChar": 0, "endChar": 14}],
        "scriptInHTMLFragments": [{"fragment": "'Foo'", "startLine": 1, "startChar": 4, "endChar": 9}],
    }


def test_script_only_document():
    document = "<script>export let a;</script>"
    report = divide(document)
    assert report.as_dict() == {
        "script": {"fragment": document, "startLine": 1, "startChar": 0, "endChar": len(document)},
    }


def test_script_with_surrounding_blank_lines():
    report = divide("\n<script>\n  export let a;\n</script>\n")
    assert as_tuples([report.script]) == [("<script>\n  export let a;\n</script>", 2, 1, 35)]
    assert report.html_fragments == []
    assert "htmlFragments" not in report.as_dict()


def test_two_scripts_are_reported_in_document_order():
    document = (
        '<script context="module">\n'
        "  export const prerender = true;\n"
        "</script>\n"
        '<script lang="ts">\n'
        "  export let foo: string;\n"
        "</script>\n"
        "<p>{foo}</p>"
    )
    report = divide(document)

    assert isinstance(report.script, list)
    assert as_tuples(report.script) == [
        (document[:68], 1, 0, 68),
        (document[69:123], 4, 69, 123),
    ]
    assert as_tuples(report.html_fragments) == [("\n<p>{foo}</p>", 6, 123, 136)]
    assert as_tuples(report.script_in_html_fragments) == [("foo", 7, 128, 131)]
    assert len(report.as_dict()["script"]) == 2


def test_html_style_html_script_html():
    document = (
        "<p>{'Foo'}</p>\n"
        "<style>\n  p {\n    color: black;\n  }\n</style>\n"
        "<p>{'Bar'}</p>\n"
        "<script>\n  export let prop;\n</script>\n"
        "<p>{'Baz'}</p>"
    )
    report = divide(document)

    assert as_tuples(report.html_fragments) == [
        ("<p>{'Foo'}</p>\n", 1, 0, 15),
        ("\n<p>{'Bar'}</p>\n", 6, 59, 75),
        ("\n<p>{'Baz'}</p>", 10, 112, 127),
    ]
    assert (report.style.start_line, report.style.start_char, report.style.end_char) == (2, 15, 59)
    assert (report.script.start_line, report.script.start_char, report.script.end_char) == (8, 75, 112)
    assert as_tuples(report.script_in_html_fragments) == [
        ("'Foo'", 1, 4, 9),
        ("'Bar'", 7, 64, 69),
        ("'Baz'", 11, 117, 122),
    ]


def test_file_in_one_line():
    document = "<p>{'Foo'}</p><script>export let a;</script><p>{'Bar'}</p><style>p{color: black;}</style><p>{'Baz'}</p>"
    report = divide(document)

    assert as_tuples(report.html_fragments) == [
        ("<p>{'Foo'}</p>", 1, 0, 14),
        ("<p>{'Bar'}</p>", 1, 44, 58),
        ("<p>{'Baz'}</p>", 1, 89, 103),
    ]
    assert as_tuples([report.script, report.style]) == [
        ("<script>export let a;</script>", 1, 14, 44),
        ("<style>p{color: black;}</style>", 1, 58, 89),
    ]
    assert [f.start_char for f in report.script_in_html_fragments] == [4, 48, 93]


def test_bad_formatting():
    document = (
        "<p>{'Foo'}</p><style>\n  p {\n    color: black;\n  }\n</style><p>{'Bar'}</p><script>\n"
        "  export let prop;\n</script>"
    )
    report = divide(document)

    assert as_tuples(report.html_fragments) == [
        ("<p>{'Foo'}</p>", 1, 0, 14),
        ("<p>{'Bar'}</p>", 5, 58, 72),
    ]
    assert (report.style.start_line, report.style.start_char, report.style.end_char) == (1, 14, 58)
    assert (report.script.start_line, report.script.start_char, report.script.end_char) == (5, 72, 109)
    assert as_tuples(report.script_in_html_fragments) == [("'Foo'", 1, 4, 9), ("'Bar'", 5, 62, 67)]


def test_whitespace_only_markup_is_dropped():
    document = "<p>{'Foo'}</p>\n<script>\n  export let a;\n</script>\n  "
    report = divide(document)

    assert as_tuples(report.html_fragments) == [("<p>{'Foo'}</p>\n", 1, 0, 15)]
    assert (report.script.start_line, report.script.start_char, report.script.end_char) == (2, 15, 49)


def test_style_and_script_with_blank_markup():
    document = "\n<style>\n  p {\n    color: black;\n  }\n</style>\n\n<script>\n  export let prop;\n</script>\n"
    report = divide(document)

    assert set(report.as_dict()) == {"script", "style"}
    assert (report.style.start_line, report.style.start_char, report.style.end_char) == (2, 1, 45)
    assert (report.script.start_line, report.script.start_char, report.script.end_char) == (8, 47, 84)


def test_space_in_markup_is_preserved():
    document = "<script>\n  export let prop;\n</script>\n\n<p>\n  {'Foo'}\n  {'Bar'}\n</p>\n"
    report = divide(document)

    assert as_tuples(report.html_fragments) == [("\n\n<p>\n  {'Foo'}\n  {'Bar'}\n</p>\n", 3, 37, 68)]
    assert as_tuples(report.script_in_html_fragments) == [("'Foo'", 6, 46, 51), ("'Bar'", 7, 56, 61)]


def test_file_name_is_passed_through():
    assert divide("", "FileName").as_dict() == {"fileName": "FileName"}


def test_empty_document():
    assert divide("").as_dict() == {}


@pytest.mark.parametrize("document", [" \n \t\n ", "\n", "\t\t"])
def test_whitespace_only_document(document):
    assert divide(document).as_dict() == {}


def test_report_is_json_serializable(readme_document):
    payload = json.loads(json.dumps(divide(readme_document, "App.svelte").as_dict()))
    assert payload["fileName"] == "App.svelte"
    assert payload["script"]["startChar"] == 0


@pytest.mark.parametrize(
    "document",
    [
        "<p>{'Foo'}</p>\n<style>p {}</style>\n  \n<script>let a;</script>\n\n<div>{a}</div>\n",
        "\n\n<script>let a;</script>\n\n",
        '<script context="module">export const x = 1;</script>\n<script>let y;</script>\n{#if x}{y}{/if}',
    ],
)
def test_fragments_tile_the_document(document):
    report = divide(document)
    cursor = 0
    for fragment in all_fragments(report):
        assert document[fragment.start_char : fragment.end_char] == fragment.fragment
        assert fragment.start_char >= cursor
        assert document[cursor : fragment.start_char].strip() == ""
        assert fragment.start_line == document.count("\n", 0, fragment.start_char) + 1
        cursor = fragment.end_char
    assert document[cursor:].strip() == ""


def test_expressions_are_sorted_and_nested_in_markup(readme_document):
    report = divide(readme_document)
    starts = [f.start_char for f in report.script_in_html_fragments]
    assert starts == sorted(starts)
    for expression in report.script_in_html_fragments:
        assert readme_document[expression.start_char : expression.end_char] == expression.fragment
        assert any(
            html.start_char <= expression.start_char and expression.end_char <= html.end_char
            for html in report.html_fragments
        )


def test_template_literal_with_script_text_fails_fast():
    document = "<p>{`<script></script>`}</p>\n\n<style>p {color: black;}</style>\n\n<script>\n  export let p;\n</script>"
    with pytest.raises(MarkupParseError) as excinfo:
        divide(document)
    assert "Unterminated template literal (1:5)\n1: <p>{`" in str(excinfo.value)
    assert excinfo.value.diagnostic == "Unterminated template literal (1:5)"


def test_duplicate_script_text_is_ambiguous():
    document = "<script>export let a;</script>\n<p>{'<script>export let a;</script>'}</p>"
    with pytest.raises(AmbiguousRegionError) as excinfo:
        divide(document, "Dup.svelte")
    assert excinfo.value.kind == "script"
    assert excinfo.value.occurrences == 2
    assert "Dup.svelte" in str(excinfo.value)


def test_style_text_repeated_inside_script_is_ambiguous():
    document = "<script>const css = '<style>p{}</style>';</script>\n<style>p{}</style>"
    with pytest.raises(AmbiguousRegionError) as excinfo:
        divide(document)
    assert excinfo.value.kind == "style"


def test_markup_parse_error_reports_document_position():
    document = "<script>let a;</script>\n\n<p>{'unterminated}</p>"
    with pytest.raises(MarkupParseError) as excinfo:
        divide(document, "Broken.svelte")
    error = excinfo.value
    assert str(error).startswith("Broken.svelte: Unterminated string constant")
    assert error.file_name == "Broken.svelte"
    assert error.line == 3
    assert error.char == document.index("'unterminated")


def test_expression_extraction_can_be_disabled(recording_parser):
    report = divide("<p>{a}</p>", config=DividerConfig(extract_expressions=False), parser=recording_parser)
    assert report.script_in_html_fragments == []
    assert recording_parser.texts == []
    assert len(report.html_fragments) == 1


def test_injected_services_are_used(recording_parser):
    document = "<p>a</p>\n<script>let a;</script>\n<p>b</p>"
    locator = StubLocator(script_texts=["<script>let a;</script>"])
    report = divide(document, locator=locator, parser=recording_parser)

    assert locator.calls == [document]
    assert recording_parser.texts == ["<p>a</p>\n", "\n<p>b</p>"]
    assert report.script.start_char == 9


def test_source_extent_is_used_when_rendering_differs():
    document = "<script context='module'>export const x = 1;</script>\n<p>{x}</p>"
    report = divide(document)
    assert report.script.fragment == "<script context='module'>export const x = 1;</script>"
    assert as_tuples(report.script_in_html_fragments) == [("x", 2, 58, 59)]


@pytest.mark.parametrize(
    "document",
    [
        "<p>{a b}</p>",
        "<p>{1 +}</p>",
        "<p>{a ,, b}</p>",
        "<button on:click={x y}>go</button>",
    ],
)
def test_malformed_expression_is_rejected(document):
    with pytest.raises(MarkupParseError) as excinfo:
        divide(document)
    assert excinfo.value.diagnostic.startswith("Unexpected token")


def test_modern_expression_syntax_is_accepted():
    report = divide("<p>{user?.name ?? 'guest'}</p>")
    assert as_tuples(report.script_in_html_fragments) == [("user?.name ?? 'guest'", 1, 4, 25)]


def test_postfix_update_before_division():
    report = divide("<p>{a++ / 2}</p>")
    assert as_tuples(report.script_in_html_fragments) == [("a++ / 2", 1, 4, 11)]


def test_head_script_stays_in_markup():
    document = '<svelte:head>\n  <script src="x.js"></script>\n</svelte:head>\n<script>let a;</script>\n<p>{a}</p>'
    script_start = document.index("<script>let a;")
    report = divide(document)

    assert report.script.fragment == "<script>let a;</script>"
    assert report.script.start_char == script_start
    assert report.html_fragments[0].fragment == document[:script_start]
    assert report.html_fragments[0].start_char == 0
    assert [f.fragment for f in report.script_in_html_fragments] == ["a"]


def test_head_style_is_not_the_component_style():
    report = divide("<svelte:head><style>body { margin: 0; }</style></svelte:head>\n<p>x</p>")
    assert report.style is None
    assert len(report.html_fragments) == 1
