"""Parsing and diagnostics for VASP input files (POSCAR, KPOINTS, INCAR)."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vaspsupport.errors import Diagnostic
    from vaspsupport.formats import FileFormat

__version__ = "0.1.0"


def check(source: str, file_format: FileFormat) -> list[Diagnostic]:
    """Parse source in the given format and return its diagnostics."""
    from vaspsupport.formats import FileFormat
    from vaspsupport.incar import lint_incar
    from vaspsupport.kpoints import parse_kpoints
    from vaspsupport.linting import lint_kpoints, lint_poscar
    from vaspsupport.poscar import parse_poscar

    if file_format is FileFormat.POSCAR:
        return lint_poscar(parse_poscar(source))
    if file_format is FileFormat.KPOINTS:
        return lint_kpoints(parse_kpoints(source))
    return lint_incar(source)
