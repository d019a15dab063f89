from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class CodeFragment:
    fragment: str
    start_line: int
    start_char: int
    end_char: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "fragment": self.fragment,
            "startLine": self.start_line,
            "startChar": self.start_char,
            "endChar": self.end_char,
        }


ScriptField = Union[CodeFragment, list[CodeFragment]]


@dataclass
class FragmentReport:
    file_name: str | None = None
    script: ScriptField | None = None
    style: CodeFragment | None = None
    html_fragments: list[CodeFragment] = field(default_factory=list)
    script_in_html_fragments: list[CodeFragment] = field(default_factory=list)

    @property
    def scripts(self) -> list[CodeFragment]:
        """Script blocks as a list, whether one or several were found."""
        if self.script is None:
            return []
        if isinstance(self.script, CodeFragment):
            return [self.script]
        return list(self.script)

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.file_name is not None:
            out["fileName"] = self.file_name
        if isinstance(self.script, CodeFragment):
            out["script"] = self.script.as_dict()
        elif self.script:
            out["script"] = [s.as_dict() for s in self.script]
        if self.style is not None:
            out["style"] = self.style.as_dict()
        if self.html_fragments:
            out["htmlFragments"] = [f.as_dict() for f in self.html_fragments]
        if self.script_in_html_fragments:
            out["scriptInHTMLFragments"] = [f.as_dict() for f in self.script_in_html_fragments]
        return out


@dataclass
class LocatedTags:
    script_texts: list[str] = field(default_factory=list)
    style_text: str | None = None


@dataclass(frozen=True)
class TaggedRegion:
    kind: str
    index: int
    start: int
    end: int


@dataclass(frozen=True)
class MarkupRegion:
    start: int
    end: int


@dataclass
class RegionLayout:
    tagged: list[TaggedRegion]
    markup: list[MarkupRegion]
