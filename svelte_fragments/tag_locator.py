from __future__ import annotations

import logging
import re
from typing import Protocol

from bs4 import BeautifulSoup
from bs4.element import Tag

from .types import LocatedTags

logger = logging.getLogger(__name__)

HEAD_ELEMENT = "svelte:head"


class TagLocator(Protocol):
    """Lenient markup parser used to find the script and style blocks."""

    def locate(self, document: str) -> LocatedTags:
        ...


class SoupTagLocator:
    def __init__(self, features: str = "html.parser") -> None:
        self.features = features

    def locate(self, document: str) -> LocatedTags:
        if not document.strip():
            return LocatedTags()

        soup = BeautifulSoup(document, self.features)
        script_texts = [_element_text(document, tag) for tag in _component_tags(soup, "script")]
        styles = _component_tags(soup, "style")
        style_text = _element_text(document, styles[0]) if styles else None
        logger.debug(
            "Located %d script block(s) and %s style block",
            len(script_texts),
            "one" if style_text is not None else "no",
        )
        return LocatedTags(script_texts=script_texts, style_text=style_text)


def locate_tags(document: str, features: str = "html.parser") -> LocatedTags:
    return SoupTagLocator(features).locate(document)


def _component_tags(soup: BeautifulSoup, name: str) -> list[Tag]:
    # Blocks inside <svelte:head> belong to the page head, not the component.
    return [
        tag
        for tag in soup.find_all(name)
        if isinstance(tag, Tag) and tag.find_parent(HEAD_ELEMENT) is None
    ]


def _element_text(document: str, tag: Tag) -> str:
    rendered = str(tag)
    if rendered in document:
        return rendered

    # The tree builder re-serialized the element (attribute quoting, tag-name
    # case, ...); fall back to the element's own extent in the source.
    start = _source_offset(document, tag)
    if start is None:
        return rendered
    closing = re.compile(rf"</{re.escape(tag.name)}\s*>", re.IGNORECASE)
    match = closing.search(document, start)
    end = match.end() if match else len(document)
    logger.debug("Using source extent for <%s> at offset %d", tag.name, start)
    return document[start:end]


def _source_offset(document: str, tag: Tag) -> int | None:
    line = getattr(tag, "sourceline", None)
    column = getattr(tag, "sourcepos", None)
    if line is None or column is None:
        return None
    offset = 0
    for _ in range(line - 1):
        offset = document.find("\n", offset)
        if offset == -1:
            return None
        offset += 1
    return offset + column
