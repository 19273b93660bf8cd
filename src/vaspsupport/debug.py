"""--debug dump of classified lines to stderr."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import TextIO

from vaspsupport.kpoints import KpointsLine
from vaspsupport.poscar import PoscarLine
from vaspsupport.tokens import Token


def dump_lines(lines: Sequence[PoscarLine | KpointsLine], *, file: TextIO | None = None) -> None:
    """Print one row per classified line: number, block kind, tokens."""
    out = file if file is not None else sys.stderr
    width = max((len(line.block.name) for line in lines), default=0)
    for classified in lines:
        tokens = " ".join(_format_token(t) for t in classified.tokens)
        out.write(f"{classified.line.number:>4} {classified.block.name:<{width}} {tokens}\n")


def _format_token(token: Token) -> str:
    kind = token.kind.value if token.kind is not None else "?"
    return f"{token.text!r}:{kind}"
