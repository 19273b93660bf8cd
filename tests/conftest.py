"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from vaspsupport.kpoints import KpointsBlock, KpointsLine, kpoints_classifier, parse_kpoints
from vaspsupport.lexer import split_lines, tokenize_line
from vaspsupport.poscar import PoscarBlock, PoscarLine, parse_poscar, poscar_classifier
from vaspsupport.tokens import Token, TokenKind

CUBIC_BN = "\n".join(
    [
        "Cubic BN",
        "3.57",
        "0.0 0.5 0.5",
        "0.5 0.0 0.5",
        "0.5 0.5 0.0",
        "B N",
        "1 1",
        "Direct",
        "0.00 0.00 0.00",
        "0.25 0.25 0.25",
    ]
)


@pytest.fixture
def tokens_of():
    """Return a helper that tokenizes the first line of some text."""

    def _tokens(text: str) -> list[Token]:
        return tokenize_line(split_lines(text)[0])

    return _tokens


@pytest.fixture
def poscar_line():
    """Return a helper that classifies one line of text as a POSCAR block."""

    def _line(block: PoscarBlock, text: str) -> PoscarLine:
        line = split_lines(text)[0]
        tokens = poscar_classifier(block)(tokenize_line(line))
        return PoscarLine(block, tuple(tokens), line)

    return _line


@pytest.fixture
def kpoints_line():
    """Return a helper that classifies one line of text as a KPOINTS block."""

    def _line(block: KpointsBlock, text: str) -> KpointsLine:
        line = split_lines(text)[0]
        tokens = kpoints_classifier(block)(tokenize_line(line))
        return KpointsLine(block, tuple(tokens), line)

    return _line


@pytest.fixture
def poscar_blocks():
    """Return a helper that parses POSCAR text and returns the block sequence."""

    def _blocks(source: str) -> list[PoscarBlock]:
        return [line.block for line in parse_poscar(source)]

    return _blocks


@pytest.fixture
def kpoints_blocks():
    """Return a helper that parses KPOINTS text and returns the block sequence."""

    def _blocks(source: str) -> list[KpointsBlock]:
        return [line.block for line in parse_kpoints(source)]

    return _blocks


@pytest.fixture
def cubic_bn() -> str:
    """A minimal valid POSCAR (no trailing newline)."""
    return CUBIC_BN


@pytest.fixture
def kinds():
    """Return a helper that lists the kinds of some tokens."""

    def _kinds(tokens) -> list[TokenKind | None]:
        return [t.kind for t in tokens]

    return _kinds
