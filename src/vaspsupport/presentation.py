"""Presentation data for editor front ends: semantic tokens and section titles."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import assert_never

from vaspsupport.kpoints import KpointsBlock, KpointsLine
from vaspsupport.poscar import PoscarBlock, PoscarLine
from vaspsupport.tokens import TokenKind


def semantic_token_type(kind: TokenKind) -> str:
    """LSP semantic token type used to paint a token kind."""
    match kind:
        case TokenKind.COMMENT:
            return "comment"
        case TokenKind.STRING:
            return "string"
        case TokenKind.NUMBER:
            return "number"
        case TokenKind.CONSTANT:
            return "keyword"
        case TokenKind.INVALID:
            return "invalid"
        case _:
            assert_never(kind)


SEMANTIC_TOKEN_LEGEND: tuple[str, ...] = tuple(semantic_token_type(k) for k in TokenKind)


def encode_semantic_tokens(lines: Sequence[PoscarLine | KpointsLine]) -> list[int]:
    """Encode classified tokens in the LSP relative format.

    Each token contributes (delta line, delta start, length, type index,
    modifiers), with 0-based lines and columns. Unclassified tokens are
    skipped.
    """
    kinds = list(TokenKind)
    data: list[int] = []
    prev_line = 0
    prev_start = 0
    for classified in lines:
        for token in classified.tokens:
            if token.kind is None:
                continue
            line = token.span.start.line - 1
            start = token.span.start.column - 1
            delta_line = line - prev_line
            delta_start = start - prev_start if delta_line == 0 else start
            length = token.span.end.column - token.span.start.column
            data.extend((delta_line, delta_start, length, kinds.index(token.kind), 0))
            prev_line = line
            prev_start = start
    return data


def poscar_section_title(block: PoscarBlock) -> str:
    match block:
        case PoscarBlock.COMMENT:
            return "Comment"
        case PoscarBlock.SCALING:
            return "Scaling factors"
        case PoscarBlock.LATTICE:
            return "Lattice"
        case PoscarBlock.SPECIES_NAMES:
            return "Species names"
        case PoscarBlock.NUM_ATOMS:
            return "Atoms per species"
        case PoscarBlock.SEL_DYNAMICS:
            return "Selective dynamics"
        case PoscarBlock.POSITION_MODE:
            return "Position mode"
        case PoscarBlock.POSITIONS | PoscarBlock.POSITIONS_SEL_DYN:
            return "Atom positions"
        case PoscarBlock.LATT_VELOCITIES_START:
            return "Lattice velocities and vectors"
        case PoscarBlock.LATT_VELOCITIES_STATE:
            return "Initialization state"
        case PoscarBlock.LATT_VELOCITIES_VELS:
            return "Lattice velocities"
        case PoscarBlock.LATT_VELOCITIES_LATT:
            return "Lattice vectors"
        case PoscarBlock.VELOCITY_MODE:
            return "Velocity mode"
        case PoscarBlock.VELOCITIES:
            return "Atom velocities"
        case _:
            assert_never(block)


def kpoints_section_title(block: KpointsBlock) -> str:
    match block:
        case KpointsBlock.COMMENT:
            return "Comment"
        case KpointsBlock.NUM_KPOINTS:
            return "Number of k-points"
        case KpointsBlock.MODE:
            return "Mode"
        case KpointsBlock.KPOINTS:
            return "K-points"
        case KpointsBlock.LINE_COORDINATES:
            return "Coordinate mode"
        case KpointsBlock.LINE_KPOINTS:
            return "Line end points"
        case KpointsBlock.SUBDIVISIONS:
            return "Subdivisions"
        case KpointsBlock.SHIFT:
            return "Shift"
        case KpointsBlock.GENERATING_VECTORS:
            return "Generating vectors"
        case KpointsBlock.LENGTH:
            return "Length"
        case _:
            assert_never(block)


@dataclass(frozen=True, slots=True)
class SectionMarker:
    """A section title anchored at a 1-based line number."""

    line: int
    title: str


# An empty line where an optional block may start is read as the block after
# it; these transitions get a marker naming the omitted block as well.
_OMITTED_BEFORE = {
    (PoscarBlock.LATTICE, PoscarBlock.NUM_ATOMS): PoscarBlock.SPECIES_NAMES,
    (PoscarBlock.NUM_ATOMS, PoscarBlock.POSITION_MODE): PoscarBlock.SEL_DYNAMICS,
}


def section_markers(lines: Sequence[PoscarLine | KpointsLine]) -> list[SectionMarker]:
    """One marker at the first line of each run of identical block kind.

    Titles come from the kind recorded for each line. An optional block
    skipped because a non-empty line started the next block gets no marker.
    When the line is empty instead, an extra "(omitted)" marker for the
    optional block precedes the regular one, so the empty line is not
    mistaken for the block that follows.
    """
    markers: list[SectionMarker] = []
    previous = None
    for classified in lines:
        if classified.block is previous:
            continue
        number = classified.line.number
        if isinstance(classified.block, PoscarBlock):
            omitted = _OMITTED_BEFORE.get((previous, classified.block))
            if omitted is not None and not classified.tokens:
                markers.append(SectionMarker(number, f"{poscar_section_title(omitted)} (omitted)"))
            title = poscar_section_title(classified.block)
        else:
            title = kpoints_section_title(classified.block)
        previous = classified.block
        markers.append(SectionMarker(number, title))
    return markers
