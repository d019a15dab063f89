from __future__ import annotations


class FragmentError(Exception):
    """Base class for documents that cannot be divided."""


class AmbiguousRegionError(FragmentError):
    """A script or style block whose text does not occur exactly once in the document."""

    def __init__(self, kind: str, occurrences: int, file_name: str | None = None) -> None:
        self.kind = kind
        self.occurrences = occurrences
        self.file_name = file_name
        if occurrences == 0:
            detail = "could not be found in the document"
        else:
            detail = f"occurs {occurrences} times in the document"
        where = f" in {file_name}" if file_name else ""
        super().__init__(f"Cannot unambiguously locate the {kind} block{where}: its text {detail}")


class TemplateSyntaxError(FragmentError):
    """Raised by the template parser; positions are local to the parsed text."""

    def __init__(self, message: str, source: str, position: int) -> None:
        self.message = message
        self.position = position
        self.line = source.count("\n", 0, position) + 1
        line_start = source.rfind("\n", 0, position) + 1
        self.column = position - line_start
        line_end = source.find("\n", position)
        if line_end == -1:
            line_end = len(source)
        prefix = f"{self.line}: "
        self.frame = f"{prefix}{source[line_start:line_end]}\n{' ' * (len(prefix) + self.column)}^"
        super().__init__(f"{message} ({self.line}:{self.column})\n{self.frame}")


class MarkupParseError(FragmentError):
    """A markup fragment the template parser rejected, positioned in the whole document."""

    def __init__(
        self,
        cause: TemplateSyntaxError,
        start_line: int,
        start_char: int,
        file_name: str | None = None,
    ) -> None:
        self.diagnostic = str(cause).split("\n", 1)[0]
        self.file_name = file_name
        self.line = start_line + cause.line - 1
        self.char = start_char + cause.position
        message = str(cause)
        if file_name:
            message = f"{file_name}: {message}"
        super().__init__(message)
