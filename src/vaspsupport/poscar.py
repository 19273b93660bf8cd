"""POSCAR parser: classifies each line by its position in the file.

A POSCAR file has no section keywords. The role of a line follows from
its position, from the number of atoms read on an earlier line, and from
two optional blocks detected by looking at the next line:

    comment
    scaling
    lattice x3
    [species names]
    atoms per species
    [selective dynamics]
    position mode
    positions x N               (with T/F flags after selective dynamics)
    [lattice velocities start
     initialization state
     lattice velocities x3
     lattice vectors x3]
    velocity mode
    velocities x N

Lines after the velocities (the MD extra block) are not visited.
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
    classify_flagged_vector,
    classify_integer_field,
    classify_scaling,
    classify_species_names,
    classify_vector,
    first_kind_is,
)
from vaspsupport.cursor import LineCursor
from vaspsupport.lexer import TextDocument
from vaspsupport.tokens import TextLine, Token, TokenKind


class PoscarBlock(Enum):
    COMMENT = auto()
    SCALING = auto()
    LATTICE = auto()
    SPECIES_NAMES = auto()
    NUM_ATOMS = auto()
    SEL_DYNAMICS = auto()
    POSITION_MODE = auto()
    POSITIONS = auto()
    POSITIONS_SEL_DYN = auto()
    LATT_VELOCITIES_START = auto()
    LATT_VELOCITIES_STATE = auto()
    LATT_VELOCITIES_VELS = auto()
    LATT_VELOCITIES_LATT = auto()
    VELOCITY_MODE = auto()
    VELOCITIES = auto()


@dataclass(frozen=True, slots=True)
class PoscarLine:
    """A consumed POSCAR line tagged with its structural role."""

    block: PoscarBlock
    tokens: tuple[Token, ...]
    line: TextLine


def poscar_classifier(block: PoscarBlock) -> Classifier:
    """Return the token classifier for lines of the given block."""
    match block:
        case PoscarBlock.COMMENT:
            return classify_comment
        case PoscarBlock.SCALING:
            return classify_scaling
        case (
            PoscarBlock.LATTICE
            | PoscarBlock.POSITIONS
            | PoscarBlock.LATT_VELOCITIES_VELS
            | PoscarBlock.LATT_VELOCITIES_LATT
            | PoscarBlock.VELOCITIES
        ):
            return classify_vector
        case PoscarBlock.SPECIES_NAMES:
            return classify_species_names
        case PoscarBlock.NUM_ATOMS:
            return classify_count_list
        case PoscarBlock.SEL_DYNAMICS:
            return partial(classify_const_line, letter="s")
        case PoscarBlock.POSITION_MODE | PoscarBlock.VELOCITY_MODE:
            return classify_const_line
        case PoscarBlock.POSITIONS_SEL_DYN:
            return classify_flagged_vector
        case PoscarBlock.LATT_VELOCITIES_START:
            return partial(classify_const_line, letter="l")
        case PoscarBlock.LATT_VELOCITIES_STATE:
            return classify_integer_field
        case _:
            assert_never(block)


def classify_poscar_tokens(block: PoscarBlock, tokens: Sequence[Token]) -> list[Token]:
    return poscar_classifier(block)(tokens)


def count_atoms(tokens: Sequence[Token]) -> int:
    """Sum of the leading run of NUMBER tokens."""
    total = 0
    for token in tokens:
        if token.kind is not TokenKind.NUMBER:
            break
        total += int(token.text)
    return total


class PoscarParser:
    """Walk a document and tag each consumed line with its PoscarBlock."""

    def __init__(self, document: TextDocument) -> None:
        self._cursor = LineCursor(document)
        self._lines: list[PoscarLine] = []

    def parse(self) -> list[PoscarLine]:
        self._take(PoscarBlock.COMMENT)
        self._take(PoscarBlock.SCALING)
        self._take(PoscarBlock.LATTICE, 3)
        self._take_optional(PoscarBlock.SPECIES_NAMES, TokenKind.STRING)
        num_atoms_line = self._take(PoscarBlock.NUM_ATOMS)
        num_atoms = count_atoms(num_atoms_line.tokens) if num_atoms_line else 0

        if self._take_optional(PoscarBlock.SEL_DYNAMICS, TokenKind.CONSTANT):
            position_block = PoscarBlock.POSITIONS_SEL_DYN
        else:
            position_block = PoscarBlock.POSITIONS
        self._take(PoscarBlock.POSITION_MODE)
        self._take(position_block, num_atoms)

        if self._take_optional(PoscarBlock.LATT_VELOCITIES_START, TokenKind.CONSTANT):
            self._take(PoscarBlock.LATT_VELOCITIES_STATE)
            self._take(PoscarBlock.LATT_VELOCITIES_VELS, 3)
            self._take(PoscarBlock.LATT_VELOCITIES_LATT, 3)

        self._take(PoscarBlock.VELOCITY_MODE)
        self._take(PoscarBlock.VELOCITIES, num_atoms)
        return self._lines

    # ------------------------------------------------------------------
    # Line consumption
    # ------------------------------------------------------------------

    def _take(self, block: PoscarBlock, repeat: int = 1) -> PoscarLine | None:
        """Consume up to repeat lines as block; return the last one taken."""
        last = None
        for _ in range(repeat):
            tokenized = self._cursor.advance(poscar_classifier(block))
            if tokenized is None:
                break
            last = self._record(block, tokenized.line, tokenized.tokens)
        return last

    def _take_optional(self, block: PoscarBlock, first_kind: TokenKind) -> PoscarLine | None:
        tokenized = self._cursor.advance_if(poscar_classifier(block), first_kind_is(first_kind))
        if tokenized is None:
            return None
        return self._record(block, tokenized.line, tokenized.tokens)

    def _record(self, block: PoscarBlock, line: TextLine, tokens: tuple[Token, ...]) -> PoscarLine:
        poscar_line = PoscarLine(block, tokens, line)
        self._lines.append(poscar_line)
        return poscar_line


def parse_poscar(source: str | TextDocument) -> list[PoscarLine]:
    """Convenience function: classify the lines of POSCAR source text."""
    document = source if isinstance(source, TextDocument) else TextDocument(source)
    return PoscarParser(document).parse()
