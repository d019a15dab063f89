from __future__ import annotations

import logging

from .errors import AmbiguousRegionError
from .types import LocatedTags, MarkupRegion, RegionLayout, TaggedRegion

logger = logging.getLogger(__name__)


def resolve_regions(document: str, located: LocatedTags, file_name: str | None = None) -> RegionLayout:
    """
    Find the exact offsets of every located tag in ``document``.

    Tag text has to occur exactly once; anything else means the boundary
    cannot be told apart from a literal copy of the same text, so the whole
    division is refused rather than guessed.
    """
    tagged: list[TaggedRegion] = []
    for index, text in enumerate(located.script_texts):
        tagged.append(_locate_once(document, text, "script", index, file_name))
    if located.style_text is not None:
        tagged.append(_locate_once(document, located.style_text, "style", 0, file_name))

    tagged.sort(key=lambda region: region.start)
    for previous, current in zip(tagged, tagged[1:]):
        if current.start < previous.end:
            raise AmbiguousRegionError(current.kind, 1, file_name)

    markup = _markup_gaps(len(document), tagged)
    logger.debug("Resolved %d tagged and %d markup region(s)", len(tagged), len(markup))
    return RegionLayout(tagged=tagged, markup=markup)


def _locate_once(document: str, text: str, kind: str, index: int, file_name: str | None) -> TaggedRegion:
    occurrences = document.count(text) if text else 0
    if occurrences != 1:
        raise AmbiguousRegionError(kind, occurrences, file_name)
    start = document.index(text)
    return TaggedRegion(kind=kind, index=index, start=start, end=start + len(text))


def _markup_gaps(length: int, tagged: list[TaggedRegion]) -> list[MarkupRegion]:
    gaps: list[MarkupRegion] = []
    cursor = 0
    for region in tagged:
        if region.start > cursor:
            gaps.append(MarkupRegion(start=cursor, end=region.start))
        cursor = region.end
    if length > cursor:
        gaps.append(MarkupRegion(start=cursor, end=length))
    return gaps
