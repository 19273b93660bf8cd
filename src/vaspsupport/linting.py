"""Diagnostic rules for classified POSCAR and KPOINTS lines."""

from __future__ import annotations

from collections.abc import Sequence
from typing import assert_never

from vaspsupport.classifiers import SELECTIVE_FLAGS
from vaspsupport.errors import Diagnostic, Severity
from vaspsupport.kpoints import KpointsBlock, KpointsLine, KpointsMode, kpoints_mode
from vaspsupport.poscar import PoscarBlock, PoscarLine
from vaspsupport.tokens import (
    Span,
    TextLine,
    Token,
    TokenKind,
    is_comment_marker,
    is_integer,
    is_number,
    to_float,
)

# ----------------------------------------------------------------------
# Shared rules
# ----------------------------------------------------------------------


def _tokens_span(tokens: Sequence[Token]) -> Span:
    return tokens[0].span.union(tokens[-1].span)


def _end_of_line(line: TextLine) -> Span:
    return Span(line.span.end, line.span.end)


def _check_empty(line: TextLine, tokens: Sequence[Token], diagnostics: list[Diagnostic]) -> bool:
    """Report an empty line; return True if the line has no tokens."""
    if tokens:
        return False
    diagnostics.append(
        Diagnostic("Line must not be empty.", line.span_with_break, Severity.ERROR)
    )
    return True


def _count_until_comment(tokens: Sequence[Token], diagnostics: list[Diagnostic]) -> int:
    """Number of tokens before the first comment token.

    Trailing tokens that are not marked as a comment explicitly are easy to
    misread, so they get a warning.
    """
    count = 0
    for token in tokens:
        if token.kind is TokenKind.COMMENT:
            break
        count += 1
    if count < len(tokens) and not is_comment_marker(tokens[count].text):
        diagnostics.append(
            Diagnostic(
                "The remainder of this line is ignored by VASP. "
                "Consider placing a '#' or '!' in front to make the intention clearer.",
                _tokens_span(tokens[count:]),
                Severity.WARNING,
            )
        )
    return count


def _lint_vector(
    line: TextLine,
    tokens: Sequence[Token],
    width: int = 3,
    what: str = "Vector",
) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    if _check_empty(line, tokens, diagnostics):
        return diagnostics
    _count_until_comment(tokens, diagnostics)
    for token in tokens[:width]:
        if not is_number(token.text):
            diagnostics.append(
                Diagnostic(f"{what} component must be a number.", token.span, Severity.ERROR)
            )
    if len(tokens) < width:
        diagnostics.append(
            Diagnostic(
                f"{what} must consist of {width} numbers. Too few given.",
                _tokens_span(tokens),
                Severity.ERROR,
            )
        )
    return diagnostics


def _lint_keyword(line: TextLine, tokens: Sequence[Token], keyword: str) -> list[Diagnostic]:
    """Keyword line whose first letter matters and whose spelling should be canonical."""
    diagnostics: list[Diagnostic] = []
    if _check_empty(line, tokens, diagnostics):
        return diagnostics
    token = tokens[0]
    lower = keyword[0].lower()
    upper = lower.upper()
    if token.text[0].lower() != lower:
        diagnostics.append(
            Diagnostic(
                f"First non-space character on line must be '{lower}' or '{upper}'.",
                token.span,
                Severity.ERROR,
            )
        )
    elif not keyword.lower().startswith(token.text.lower()):
        diagnostics.append(
            Diagnostic(
                f"Consider specifying '{keyword}' to avoid potential mistakes.",
                token.span,
                Severity.WARNING,
            )
        )
    return diagnostics


def _spelling_hint(token: Token, canonical: str, skip: int = 0) -> list[Diagnostic]:
    """Hint if the token is not an abbreviation of canonical.

    The first skip characters are not compared (e.g. 'K' for 'cartesian').
    """
    if canonical.lower()[skip:].startswith(token.text.lower()[skip:]):
        return []
    return [
        Diagnostic(
            f"Consider specifying '{canonical}' to avoid potential mistakes.",
            token.span,
            Severity.HINT,
        )
    ]


def _lint_coordinate_mode(
    line: TextLine,
    tokens: Sequence[Token],
    empty_mode: str | None,
    other_mode: str,
) -> list[Diagnostic]:
    """Mode line where 'c'/'k' selects cartesian and anything else other_mode."""
    if not tokens:
        if empty_mode is None:
            return []
        return [
            Diagnostic(
                f"Consider specifying '{empty_mode}' instead of an empty line "
                "to avoid potential mistakes.",
                line.span_with_break,
                Severity.HINT,
            )
        ]
    token = tokens[0]
    if token.text[0].lower() in ("c", "k"):
        return _spelling_hint(token, "cartesian", skip=1)
    return _spelling_hint(token, other_mode)


# ----------------------------------------------------------------------
# POSCAR
# ----------------------------------------------------------------------


def _lint_scaling(line: TextLine, tokens: Sequence[Token]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    if _check_empty(line, tokens, diagnostics):
        return diagnostics
    num_vals = _count_until_comment(tokens, diagnostics)
    for token in tokens[:num_vals]:
        if not is_number(token.text):
            diagnostics.append(
                Diagnostic("Scaling factor must be a number.", token.span, Severity.ERROR)
            )
    if num_vals == 2:
        diagnostics.append(
            Diagnostic(
                "The number of scaling factors must be either 1 or 3.",
                _tokens_span(tokens[:2]),
                Severity.ERROR,
            )
        )
    elif num_vals == 3:
        for token in tokens[:3]:
            if is_number(token.text) and to_float(token.text) <= 0:
                diagnostics.append(
                    Diagnostic(
                        "Individual scaling factors must be positive.",
                        token.span,
                        Severity.ERROR,
                    )
                )
    return diagnostics


def _lint_species_names(line: TextLine, tokens: Sequence[Token]) -> list[Diagnostic]:
    diagnostics = [
        Diagnostic(f"Species name '{t.text}' is invalid.", t.span, Severity.ERROR)
        for t in tokens
        if t.kind is TokenKind.INVALID
    ]
    _check_empty(line, tokens, diagnostics)
    return diagnostics


def _lint_num_atoms(line: TextLine, tokens: Sequence[Token]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    if _check_empty(line, tokens, diagnostics):
        return diagnostics
    if _count_until_comment(tokens, diagnostics) == 0:
        diagnostics.append(
            Diagnostic(
                "Number of atoms needs to be a positive integer.",
                tokens[0].span,
                Severity.ERROR,
            )
        )
    return diagnostics


def _lint_positions_sel_dyn(line: TextLine, tokens: Sequence[Token]) -> list[Diagnostic]:
    diagnostics = _lint_vector(line, tokens, what="Position vector")
    for token in tokens[3:6]:
        if token.text not in SELECTIVE_FLAGS:
            diagnostics.append(
                Diagnostic(
                    "Selective dynamics flag must be either 'T' or 'F'.",
                    token.span,
                    Severity.ERROR,
                )
            )
    if len(tokens) <= 3:
        diagnostics.append(
            Diagnostic(
                "There must be 3 selective-dynamics flags. Too few given.",
                _end_of_line(line),
                Severity.ERROR,
            )
        )
    elif 3 < len(tokens) < 6:
        diagnostics.append(
            Diagnostic(
                "There must be 3 selective-dynamics flags. Too few given.",
                _tokens_span(tokens[3:]),
                Severity.ERROR,
            )
        )
    return diagnostics


def _lint_initialization_state(line: TextLine, tokens: Sequence[Token]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    if _check_empty(line, tokens, diagnostics):
        return diagnostics
    _count_until_comment(tokens, diagnostics)
    if not is_integer(tokens[0].text):
        diagnostics.append(
            Diagnostic(
                "Initialization state needs to be an integer.",
                tokens[0].span,
                Severity.ERROR,
            )
        )
    return diagnostics


def lint_poscar_line(poscar_line: PoscarLine) -> list[Diagnostic]:
    """Diagnostics for a single classified POSCAR line."""
    line = poscar_line.line
    tokens = poscar_line.tokens
    match poscar_line.block:
        case PoscarBlock.COMMENT:
            return []
        case PoscarBlock.SCALING:
            return _lint_scaling(line, tokens)
        case PoscarBlock.LATTICE:
            return _lint_vector(line, tokens, what="Lattice vector")
        case PoscarBlock.SPECIES_NAMES:
            return _lint_species_names(line, tokens)
        case PoscarBlock.NUM_ATOMS:
            return _lint_num_atoms(line, tokens)
        case PoscarBlock.SEL_DYNAMICS:
            return _lint_keyword(line, tokens, "selective dynamics")
        case PoscarBlock.POSITION_MODE:
            return _lint_coordinate_mode(line, tokens, "direct", "direct")
        case PoscarBlock.POSITIONS:
            return _lint_vector(line, tokens, what="Position vector")
        case PoscarBlock.POSITIONS_SEL_DYN:
            return _lint_positions_sel_dyn(line, tokens)
        case PoscarBlock.LATT_VELOCITIES_START:
            return _lint_keyword(line, tokens, "Lattice velocities and vectors")
        case PoscarBlock.LATT_VELOCITIES_STATE:
            return _lint_initialization_state(line, tokens)
        case PoscarBlock.LATT_VELOCITIES_VELS:
            return _lint_vector(line, tokens, what="Lattice velocity")
        case PoscarBlock.LATT_VELOCITIES_LATT:
            return _lint_vector(line, tokens, what="Lattice vector")
        case PoscarBlock.VELOCITY_MODE:
            return _lint_coordinate_mode(line, tokens, None, "direct")
        case PoscarBlock.VELOCITIES:
            return _lint_vector(line, tokens, what="Velocity vector")
        case _:
            assert_never(poscar_line.block)


def _find_line(lines: Sequence[PoscarLine], block: PoscarBlock) -> PoscarLine | None:
    for poscar_line in lines:
        if poscar_line.block is block:
            return poscar_line
    return None


def _lint_species_counts(lines: Sequence[PoscarLine]) -> list[Diagnostic]:
    """The atoms-per-species line needs one count for each species name."""
    species = _find_line(lines, PoscarBlock.SPECIES_NAMES)
    num_atoms = _find_line(lines, PoscarBlock.NUM_ATOMS)
    if species is None or num_atoms is None or not num_atoms.tokens:
        return []
    counts = 0
    for token in num_atoms.tokens:
        if token.kind is not TokenKind.NUMBER:
            break
        counts += 1
    if counts == len(species.tokens):
        return []
    return [
        Diagnostic(
            "Number of atoms must be specified for each atomic species.",
            num_atoms.line.span,
            Severity.ERROR,
        )
    ]


def lint_poscar(lines: Sequence[PoscarLine]) -> list[Diagnostic]:
    """Diagnostics for a parsed POSCAR document, in line order."""
    diagnostics: list[Diagnostic] = []
    for poscar_line in lines:
        diagnostics.extend(lint_poscar_line(poscar_line))
    diagnostics.extend(_lint_species_counts(lines))
    return diagnostics


# ----------------------------------------------------------------------
# KPOINTS
# ----------------------------------------------------------------------


def _lint_kpoint_count(line: TextLine, tokens: Sequence[Token]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    if _check_empty(line, tokens, diagnostics):
        return diagnostics
    _count_until_comment(tokens, diagnostics)
    if tokens[0].kind is TokenKind.INVALID:
        diagnostics.append(
            Diagnostic(
                "Number of k-points must be a non-negative integer.",
                tokens[0].span,
                Severity.ERROR,
            )
        )
    return diagnostics


def _lint_kpoints_mode(
    line: TextLine,
    tokens: Sequence[Token],
    mode: KpointsMode | None,
) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    if _check_empty(line, tokens, diagnostics) or mode is None:
        return diagnostics
    token = tokens[0]
    match mode:
        case KpointsMode.EXPLICIT | KpointsMode.GENERALIZED_GRID:
            return _lint_coordinate_mode(line, tokens, None, "reciprocal")
        case KpointsMode.REGULAR_GRID:
            if token.text[0].lower() == "g":
                return _spelling_hint(token, "Gamma")
            return _spelling_hint(token, "Monkhorst-Pack")
        case KpointsMode.LINE:
            return _spelling_hint(token, "Line-mode")
        case KpointsMode.AUTOMATIC:
            return _spelling_hint(token, "Automatic")
        case _:
            assert_never(mode)


def _lint_explicit_kpoint(line: TextLine, tokens: Sequence[Token]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    if _check_empty(line, tokens, diagnostics):
        return diagnostics
    _count_until_comment(tokens, diagnostics)
    for idx, token in enumerate(tokens[:4]):
        if not is_number(token.text):
            what = "K-point weight" if idx == 3 else "K-point coordinate"
            diagnostics.append(Diagnostic(f"{what} must be a number.", token.span, Severity.ERROR))
    if len(tokens) < 4:
        diagnostics.append(
            Diagnostic(
                "Each k-point must consist of 3 coordinates and a weight. Too few given.",
                _tokens_span(tokens),
                Severity.ERROR,
            )
        )
    return diagnostics


def _lint_subdivisions(line: TextLine, tokens: Sequence[Token]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    if _check_empty(line, tokens, diagnostics):
        return diagnostics
    _count_until_comment(tokens, diagnostics)
    for token in tokens[:3]:
        if token.kind is TokenKind.INVALID:
            diagnostics.append(
                Diagnostic("Subdivision must be a positive integer.", token.span, Severity.ERROR)
            )
    if len(tokens) < 3:
        diagnostics.append(
            Diagnostic(
                "There must be 3 subdivisions. Too few given.",
                _tokens_span(tokens),
                Severity.ERROR,
            )
        )
    return diagnostics


def _lint_length(line: TextLine, tokens: Sequence[Token]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    if _check_empty(line, tokens, diagnostics):
        return diagnostics
    _count_until_comment(tokens, diagnostics)
    if tokens[0].kind is TokenKind.INVALID:
        diagnostics.append(
            Diagnostic("Length must be a positive number.", tokens[0].span, Severity.ERROR)
        )
    return diagnostics


def lint_kpoints_line(kpoints_line: KpointsLine, mode: KpointsMode | None) -> list[Diagnostic]:
    """Diagnostics for a single classified KPOINTS line."""
    line = kpoints_line.line
    tokens = kpoints_line.tokens
    match kpoints_line.block:
        case KpointsBlock.COMMENT:
            return []
        case KpointsBlock.NUM_KPOINTS:
            return _lint_kpoint_count(line, tokens)
        case KpointsBlock.MODE:
            return _lint_kpoints_mode(line, tokens, mode)
        case KpointsBlock.KPOINTS:
            return _lint_explicit_kpoint(line, tokens)
        case KpointsBlock.LINE_COORDINATES:
            diagnostics: list[Diagnostic] = []
            if _check_empty(line, tokens, diagnostics):
                return diagnostics
            return _lint_coordinate_mode(line, tokens, None, "reciprocal")
        case KpointsBlock.LINE_KPOINTS:
            return _lint_vector(line, tokens, what="K-point")
        case KpointsBlock.SHIFT:
            return _lint_vector(line, tokens, what="Shift vector")
        case KpointsBlock.GENERATING_VECTORS:
            return _lint_vector(line, tokens, what="Generating vector")
        case KpointsBlock.SUBDIVISIONS:
            return _lint_subdivisions(line, tokens)
        case KpointsBlock.LENGTH:
            return _lint_length(line, tokens)
        case _:
            assert_never(kpoints_line.block)


def lint_kpoints(lines: Sequence[KpointsLine]) -> list[Diagnostic]:
    """Diagnostics for a parsed KPOINTS document, in line order."""
    mode = kpoints_mode(lines)
    diagnostics: list[Diagnostic] = []
    for kpoints_line in lines:
        diagnostics.extend(lint_kpoints_line(kpoints_line, mode))
    return diagnostics
