"""Token classifiers: assign a TokenKind to each token of a line.

Every classifier is a pure function from a line's raw tokens to a new list
of classified tokens. None of them raise: a token of the wrong shape is
marked INVALID and the diagnostics decide how to report it.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from vaspsupport.tokens import (
    Token,
    TokenKind,
    is_comment_marker,
    is_integer,
    is_letters,
    is_number,
    is_positive_integer,
    to_float,
)

Classifier = Callable[[Sequence[Token]], list[Token]]

SELECTIVE_FLAGS = ("T", "F")


def count_leading(tokens: Sequence[Token], test: Callable[[str], bool]) -> int:
    """Number of tokens from the start whose text passes test."""
    count = 0
    for token in tokens:
        if not test(token.text):
            break
        count += 1
    return count


def classify_comment(tokens: Sequence[Token]) -> list[Token]:
    return [t.with_kind(TokenKind.COMMENT) for t in tokens]


def classify_vector(tokens: Sequence[Token], width: int = 3) -> list[Token]:
    """First width tokens are numbers (or invalid), the rest is comment."""
    result = []
    for idx, token in enumerate(tokens):
        if idx >= width:
            result.append(token.with_kind(TokenKind.COMMENT))
        elif is_number(token.text):
            result.append(token.with_kind(TokenKind.NUMBER))
        else:
            result.append(token.with_kind(TokenKind.INVALID))
    return result


def classify_count_list(tokens: Sequence[Token], amount: int | None = None) -> list[Token]:
    """Classify a list of positive integer counts.

    With a fixed amount, tokens are judged by position: the first amount
    tokens are numbers or invalid, the rest is comment. Without one, the
    leading run of positive integers is kept and everything from the first
    other token on is comment.
    """
    if amount is None:
        amount = count_leading(tokens, is_positive_integer)
    result = []
    for idx, token in enumerate(tokens):
        if idx >= amount:
            result.append(token.with_kind(TokenKind.COMMENT))
        elif is_positive_integer(token.text):
            result.append(token.with_kind(TokenKind.NUMBER))
        else:
            result.append(token.with_kind(TokenKind.INVALID))
    return result


def classify_const_line(tokens: Sequence[Token], letter: str | None = None) -> list[Token]:
    """Classify a keyword line.

    If letter is given the first token must start with it (case-insensitive),
    otherwise the whole line is invalid. Tokens are constants up to the first
    comment marker, which starts the comment.
    """
    if not tokens:
        return []
    if letter is not None and tokens[0].text[0].lower() != letter.lower():
        return [t.with_kind(TokenKind.INVALID) for t in tokens]
    result = []
    in_comment = False
    for token in tokens:
        in_comment = in_comment or is_comment_marker(token.text)
        result.append(token.with_kind(TokenKind.COMMENT if in_comment else TokenKind.CONSTANT))
    return result


def classify_species_names(tokens: Sequence[Token]) -> list[Token]:
    return [
        t.with_kind(TokenKind.STRING if is_letters(t.text) else TokenKind.INVALID) for t in tokens
    ]


def classify_flagged_vector(tokens: Sequence[Token]) -> list[Token]:
    """Position with selective dynamics: 3 numbers, 3 T/F flags, then comment."""
    result = classify_vector(tokens[:3])
    for token in tokens[3:6]:
        kind = TokenKind.CONSTANT if token.text in SELECTIVE_FLAGS else TokenKind.INVALID
        result.append(token.with_kind(kind))
    result.extend(t.with_kind(TokenKind.COMMENT) for t in tokens[6:])
    return result


def classify_scaling(tokens: Sequence[Token]) -> list[Token]:
    """Scaling line: either one universal factor or three positive factors.

    A single factor may be negative (it then gives the cell volume). Two
    leading numbers are never valid, so both are marked invalid.
    """
    numbers = count_leading(tokens, is_number)
    if numbers >= 3:
        result = [
            t.with_kind(TokenKind.NUMBER if to_float(t.text) > 0 else TokenKind.INVALID)
            for t in tokens[:3]
        ]
        result.extend(t.with_kind(TokenKind.COMMENT) for t in tokens[3:])
        return result
    if numbers == 2:
        result = [t.with_kind(TokenKind.INVALID) for t in tokens[:2]]
        result.extend(t.with_kind(TokenKind.COMMENT) for t in tokens[2:])
        return result
    return classify_vector(tokens, width=1)


def classify_integer_field(tokens: Sequence[Token]) -> list[Token]:
    """One integer followed by comment."""
    result = []
    for idx, token in enumerate(tokens):
        if idx > 0:
            result.append(token.with_kind(TokenKind.COMMENT))
        elif is_integer(token.text):
            result.append(token.with_kind(TokenKind.NUMBER))
        else:
            result.append(token.with_kind(TokenKind.INVALID))
    return result


def classify_kpoint_count(tokens: Sequence[Token]) -> list[Token]:
    """Number of k-points: a non-negative integer followed by comment."""
    result = classify_integer_field(tokens)
    if result and result[0].kind is TokenKind.NUMBER and int(result[0].text) < 0:
        result[0] = result[0].with_kind(TokenKind.INVALID)
    return result


def classify_positive_number(tokens: Sequence[Token]) -> list[Token]:
    """One strictly positive number followed by comment."""
    result = classify_vector(tokens, width=1)
    if result and result[0].kind is TokenKind.NUMBER and to_float(result[0].text) <= 0:
        result[0] = result[0].with_kind(TokenKind.INVALID)
    return result


def first_kind_is(kind: TokenKind) -> Callable[[Sequence[Token]], bool]:
    """Acceptance test for optional blocks: the line's first token has kind."""

    def _test(tokens: Sequence[Token]) -> bool:
        return len(tokens) > 0 and tokens[0].kind is kind

    return _test
