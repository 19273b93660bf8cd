"""KPOINTS parser: classifies each line by its position in the file.

The first three lines are the same in every file; the k-point count on
line 2 and the first letter of line 3 select the layout of the rest:

    row  explicit   regular    generalized  line-mode  automatic
    1    comment    comment    comment      comment    comment
    2    n > 0      0          0            n > 0      0
    3    coords     mode       coords       "line"     "auto"
    4    k-point    subdivs    vector       coords     length
    5    ...        [shift]    vector       k-point
    6    ...                   vector       ...
    7    ...                   shift        ...
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, auto
from functools import partial
from typing import assert_never

from vaspsupport.classifiers import (
    Classifier,
    classify_comment,
    classify_const_line,
    classify_count_list,
    classify_kpoint_count,
    classify_positive_number,
    classify_vector,
    first_kind_is,
)
from vaspsupport.cursor import LineCursor
from vaspsupport.lexer import TextDocument
from vaspsupport.tokens import TextLine, Token, TokenKind


class KpointsBlock(Enum):
    COMMENT = auto()
    NUM_KPOINTS = auto()
    MODE = auto()
    KPOINTS = auto()
    LINE_COORDINATES = auto()
    LINE_KPOINTS = auto()
    SUBDIVISIONS = auto()
    SHIFT = auto()
    GENERATING_VECTORS = auto()
    LENGTH = auto()


class KpointsMode(Enum):
    EXPLICIT = auto()
    REGULAR_GRID = auto()
    GENERALIZED_GRID = auto()
    LINE = auto()
    AUTOMATIC = auto()


@dataclass(frozen=True, slots=True)
class KpointsLine:
    """A consumed KPOINTS line tagged with its structural role."""

    block: KpointsBlock
    tokens: tuple[Token, ...]
    line: TextLine


def kpoints_classifier(block: KpointsBlock) -> Classifier:
    """Return the token classifier for lines of the given block."""
    match block:
        case KpointsBlock.COMMENT:
            return classify_comment
        case KpointsBlock.NUM_KPOINTS:
            return classify_kpoint_count
        case KpointsBlock.MODE | KpointsBlock.LINE_COORDINATES:
            return classify_const_line
        case KpointsBlock.KPOINTS:
            # 3 coordinates and a weight
            return partial(classify_vector, width=4)
        case (
            KpointsBlock.LINE_KPOINTS
            | KpointsBlock.SHIFT
            | KpointsBlock.GENERATING_VECTORS
        ):
            return classify_vector
        case KpointsBlock.SUBDIVISIONS:
            return partial(classify_count_list, amount=3)
        case KpointsBlock.LENGTH:
            return classify_positive_number
        case _:
            assert_never(block)


def select_mode(count: int | None, mode_text: str) -> KpointsMode | None:
    """Pick the file layout from the k-point count and the mode line.

    Returns None when the count is missing or negative.
    """
    if count is None or count < 0:
        return None
    letter = mode_text[:1].lower()
    if count == 0:
        if letter == "a":
            return KpointsMode.AUTOMATIC
        if letter in ("g", "m"):
            return KpointsMode.REGULAR_GRID
        return KpointsMode.GENERALIZED_GRID
    if letter == "l":
        return KpointsMode.LINE
    return KpointsMode.EXPLICIT


def kpoint_count(tokens: Sequence[Token]) -> int | None:
    """The k-point count of a NUM_KPOINTS line, or None if unusable."""
    if tokens and tokens[0].kind is TokenKind.NUMBER:
        return int(tokens[0].text)
    return None


def kpoints_mode(lines: Sequence[KpointsLine]) -> KpointsMode | None:
    """Recover the layout selected for an already parsed document."""
    count = None
    for kpoints_line in lines:
        if kpoints_line.block is KpointsBlock.NUM_KPOINTS:
            count = kpoint_count(kpoints_line.tokens)
        elif kpoints_line.block is KpointsBlock.MODE:
            text = kpoints_line.tokens[0].text if kpoints_line.tokens else ""
            return select_mode(count, text)
    return None


class KpointsParser:
    """Walk a document and tag each consumed line with its KpointsBlock."""

    def __init__(self, document: TextDocument) -> None:
        self._cursor = LineCursor(document)
        self._lines: list[KpointsLine] = []

    def parse(self) -> list[KpointsLine]:
        self._take(KpointsBlock.COMMENT)
        count_line = self._take(KpointsBlock.NUM_KPOINTS)
        mode_line = self._take(KpointsBlock.MODE)
        if count_line is None or mode_line is None:
            return self._lines

        count = kpoint_count(count_line.tokens)
        mode_text = mode_line.tokens[0].text if mode_line.tokens else ""
        mode = select_mode(count, mode_text)
        if mode is None:
            return self._lines

        match mode:
            case KpointsMode.EXPLICIT:
                self._take(KpointsBlock.KPOINTS, count or 0)
            case KpointsMode.REGULAR_GRID:
                self._take(KpointsBlock.SUBDIVISIONS)
                self._take_optional(KpointsBlock.SHIFT, TokenKind.NUMBER)
            case KpointsMode.GENERALIZED_GRID:
                self._take(KpointsBlock.GENERATING_VECTORS, 3)
                self._take(KpointsBlock.SHIFT)
            case KpointsMode.LINE:
                self._take(KpointsBlock.LINE_COORDINATES)
                self._take_open_ended(KpointsBlock.LINE_KPOINTS)
            case KpointsMode.AUTOMATIC:
                self._take(KpointsBlock.LENGTH)
            case _:
                assert_never(mode)
        return self._lines

    # ------------------------------------------------------------------
    # Line consumption
    # ------------------------------------------------------------------

    def _take(self, block: KpointsBlock, repeat: int = 1) -> KpointsLine | None:
        last = None
        for _ in range(repeat):
            tokenized = self._cursor.advance(kpoints_classifier(block))
            if tokenized is None:
                break
            last = self._record(block, tokenized.line, tokenized.tokens)
        return last

    def _take_optional(self, block: KpointsBlock, first_kind: TokenKind) -> KpointsLine | None:
        tokenized = self._cursor.advance_if(kpoints_classifier(block), first_kind_is(first_kind))
        if tokenized is None:
            return None
        return self._record(block, tokenized.line, tokenized.tokens)

    def _take_open_ended(self, block: KpointsBlock) -> None:
        """Consume lines until end of document; blank separators are not recorded."""
        while not self._cursor.at_end:
            tokenized = self._cursor.advance(kpoints_classifier(block))
            if tokenized is not None and tokenized.tokens:
                self._record(block, tokenized.line, tokenized.tokens)

    def _record(self, block: KpointsBlock, line: TextLine, tokens: tuple[Token, ...]) -> KpointsLine:
        kpoints_line = KpointsLine(block, tokens, line)
        self._lines.append(kpoints_line)
        return kpoints_line


def parse_kpoints(source: str | TextDocument) -> list[KpointsLine]:
    """Convenience function: classify the lines of KPOINTS source text."""
    document = source if isinstance(source, TextDocument) else TextDocument(source)
    return KpointsParser(document).parse()
