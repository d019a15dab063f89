from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .config import load_config
from .divider import divide
from .errors import FragmentError
from .types import CodeFragment, FragmentReport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="svelte-fragments",
        description="Split a Svelte component into script, style and markup fragments with exact positions.",
    )
    parser.add_argument("path", help="Path to the component file.")
    parser.add_argument("--name", help="Display name reported as fileName (default: the path).")
    parser.add_argument("--config", help="Path to JSON/YAML divider configuration.")
    parser.add_argument(
        "--no-expressions",
        dest="extract_expressions",
        action="store_false",
        default=None,
        help="Skip locating expressions inside the markup.",
    )
    parser.add_argument(
        "--markup-parser",
        dest="markup_features",
        help="BeautifulSoup tree builder used to find script/style blocks (default: html.parser).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON output.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log progress to stderr.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config)
    except Exception as exc:
        _emit_error(f"Failed to load divider config: {exc}", args.path, as_json=args.json)
        return 2
    if args.extract_expressions is not None:
        config = replace(config, extract_expressions=args.extract_expressions)
    if args.markup_features:
        config = replace(config, markup_features=args.markup_features)

    try:
        document = Path(args.path).read_text(encoding="utf-8")
    except OSError as exc:
        _emit_error(f"Failed to read file: {exc}", args.path, as_json=args.json)
        return 2

    try:
        report = divide(document, args.name or args.path, config=config)
    except FragmentError as exc:
        _emit_error(str(exc), args.path, as_json=args.json)
        return 2

    if args.json:
        print(json.dumps(report.as_dict(), ensure_ascii=False, indent=2))
    else:
        print(render_human_report(report))
    return 0


def render_human_report(report: FragmentReport) -> str:
    lines = [f"File: {report.file_name}"]
    for idx, script in enumerate(report.scripts, start=1):
        lines.append(f"[script {idx}] {_describe(script)}")
    if report.style is not None:
        lines.append(f"[style] {_describe(report.style)}")
    for idx, fragment in enumerate(report.html_fragments, start=1):
        lines.append(f"[markup {idx}] {_describe(fragment)}")
    if report.script_in_html_fragments:
        lines.append(f"Expressions: {len(report.script_in_html_fragments)}")
        for fragment in report.script_in_html_fragments:
            lines.append(f"  line {fragment.start_line} [{fragment.start_char}:{fragment.end_char}] {fragment.fragment}")
    return "\n".join(lines)


def _describe(fragment: CodeFragment) -> str:
    line_count = fragment.fragment.count("\n") + 1
    return f"line {fragment.start_line} chars {fragment.start_char}-{fragment.end_char} ({line_count} line(s))"


def _emit_error(message: str, path: str, as_json: bool) -> None:
    if as_json:
        print(json.dumps({"error": message, "file": path}, ensure_ascii=False))
    else:
        print(f"Error: {message}", file=sys.stderr)


if __name__ == "__main__":
    raise SystemExit(main())
