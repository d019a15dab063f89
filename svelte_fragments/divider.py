from __future__ import annotations

import logging

from .assembler import assemble_report
from .config import DividerConfig, default_config
from .extractor import extract_expressions
from .regions import resolve_regions
from .tag_locator import SoupTagLocator, TagLocator
from .template_parser import SvelteTemplateParser, TemplateParser
from .types import FragmentReport

logger = logging.getLogger(__name__)


def divide(
    document: str,
    file_name: str | None = None,
    *,
    config: DividerConfig | None = None,
    locator: TagLocator | None = None,
    parser: TemplateParser | None = None,
) -> FragmentReport:
    """
    Split a component file into script, style and markup fragments and list
    the expressions embedded in the markup.

    Raises ``AmbiguousRegionError`` when a script or style block cannot be
    located unambiguously and ``MarkupParseError`` when a markup fragment is
    not a valid template.
    """
    config = config or default_config()
    locator = locator or SoupTagLocator(config.markup_features)

    located = locator.locate(document)
    layout = resolve_regions(document, located, file_name)
    report = assemble_report(document, layout, file_name)

    if config.extract_expressions and report.html_fragments:
        parser = parser or SvelteTemplateParser()
        for fragment in report.html_fragments:
            report.script_in_html_fragments.extend(extract_expressions(fragment, parser, file_name))

    logger.debug(
        "Divided %s: %d script, %d markup fragment(s), %d expression(s)",
        file_name or "<document>",
        len(report.scripts),
        len(report.html_fragments),
        len(report.script_in_html_fragments),
    )
    return report
