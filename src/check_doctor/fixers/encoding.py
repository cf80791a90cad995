"""Fixer that makes source units portable ASCII."""

from __future__ import annotations

import unicodedata
from collections.abc import Callable
from typing import override

from check_doctor.findings import Finding
from check_doctor.fixers.base import Applied, BaseFixer, Failed, FixResult, Skipped
from check_doctor.project import ProjectState
from check_doctor.sources import ParsedSource


def escape_char(char: str) -> str:
    """Return the R escape sequence for a character."""
    code = ord(char)
    if code <= 0xFFFF:
        return f"\\u{code:04x}"
    return f"\\U{{{code:x}}}"


def escape(text: str) -> str:
    """Escape every non-ASCII character of a string literal."""
    return "".join(c if c.isascii() else escape_char(c) for c in text)


def transliterate(text: str) -> str:
    """Replace non-ASCII characters with their closest ASCII spelling.

    Characters without an ASCII decomposition become ``<U+XXXX>``.
    """
    result = []
    for char in text:
        if char.isascii():
            result.append(char)
            continue
        decomposed = unicodedata.normalize("NFKD", char)
        ascii_part = "".join(c for c in decomposed if c.isascii())
        result.append(ascii_part or f"<U+{ord(char):04X}>")
    return "".join(result)


class AsciiEscapeFixer(BaseFixer):
    """Escape non-ASCII characters in string literals and transliterate comments.

    Strings and comments are located with the R parser, so a ``#`` inside a
    string that spans lines is never mistaken for a comment. Non-ASCII
    characters anywhere else (identifiers, raw strings) cannot be rewritten
    without changing the program and fail the fix.
    """

    description = "Escape non-ASCII characters in strings and transliterate comments"

    @override
    def _fix(self, finding: Finding, state: ProjectState) -> FixResult:
        unit = finding.location.unit
        text = state.read(unit)
        if text.isascii():
            return Skipped(reason=f"{unit} is already ASCII")

        source = ParsedSource(text)
        regions: list[tuple[int, int, Callable[[str], str]]] = []
        for literal in source.strings():
            if literal.raw and not text[literal.start : literal.end].isascii():
                return Failed(
                    cause=f"{unit}:{literal.row + 1} has non-ASCII characters in a raw string"
                )
            regions.append((literal.start, literal.end, escape))
        regions.extend((c.start, c.end, transliterate) for c in source.comments())
        regions.sort(key=lambda region: region[0])

        pieces = []
        cursor = 0
        for start, end, rewrite in [*regions, (len(text), len(text), str)]:
            outside = text[cursor:start]
            if not outside.isascii():
                offset = cursor + next(i for i, c in enumerate(outside) if not c.isascii())
                lineno = text.count("\n", 0, offset) + 1
                return Failed(
                    cause=f"{unit}:{lineno} has non-ASCII characters outside string literals"
                )
            pieces.append(outside)
            pieces.append(rewrite(text[start:end]))
            cursor = end
        if source.has_error:
            return Failed(cause=f"{unit} does not parse as R source")

        state.write(unit, "".join(pieces))
        return Applied(description=f"made {unit} ASCII")
