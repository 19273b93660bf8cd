"""Token kinds, source positions, and token classification helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum


class TokenKind(Enum):
    # Declaration order is the semantic token legend order
    COMMENT = "comment"
    STRING = "string"
    NUMBER = "number"
    CONSTANT = "constant"
    INVALID = "invalid"


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based document offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Source range from start to end position (end exclusive)."""

    start: Position
    end: Position

    def union(self, other: Span) -> Span:
        start = self.start if self.start.offset <= other.start.offset else other.start
        end = self.end if self.end.offset >= other.end.offset else other.end
        return Span(start, end)


@dataclass(frozen=True, slots=True)
class Token:
    """A whitespace-delimited piece of a line with its source span."""

    text: str
    span: Span
    kind: TokenKind | None = None

    def with_kind(self, kind: TokenKind) -> Token:
        return replace(self, kind=kind)


@dataclass(frozen=True, slots=True)
class TextLine:
    """One physical line of a document.

    ``span`` covers the line content, ``span_with_break`` also covers the
    line terminator (identical to ``span`` on the last line).
    """

    number: int
    text: str
    span: Span
    span_with_break: Span


@dataclass(frozen=True, slots=True)
class TokenizedLine:
    """A consumed line together with its classified tokens."""

    line: TextLine
    tokens: tuple[Token, ...]


# Fortran list-directed input also accepts a D exponent
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eEdD][+-]?\d+)?")
_INTEGER_RE = re.compile(r"[+-]?\d+")
_LETTERS_RE = re.compile(r"[A-Za-z]+")

COMMENT_MARKERS = "#!%"


def is_number(text: str) -> bool:
    """Return True if text reads as a finite real number."""
    return _NUMBER_RE.fullmatch(text) is not None


def is_integer(text: str) -> bool:
    """Return True if text reads as an integer."""
    return _INTEGER_RE.fullmatch(text) is not None


def is_positive_integer(text: str) -> bool:
    return is_integer(text) and int(text) > 0


def to_float(text: str) -> float:
    """Convert a token accepted by is_number to a float."""
    return float(text.replace("d", "e").replace("D", "e"))


def is_letters(text: str) -> bool:
    """Return True if text consists of ASCII letters only."""
    return _LETTERS_RE.fullmatch(text) is not None


def is_comment_marker(text: str) -> bool:
    """Return True if text starts with one of the comment characters # ! %."""
    return bool(text) and text[0] in COMMENT_MARKERS
