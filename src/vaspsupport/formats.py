"""Supported file formats and detection from file names."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePath


class FileFormat(Enum):
    POSCAR = "poscar"
    KPOINTS = "kpoints"
    INCAR = "incar"


# VASP reads fixed file names; CONTCAR has the POSCAR layout
_NAME_PREFIXES = (
    ("POSCAR", FileFormat.POSCAR),
    ("CONTCAR", FileFormat.POSCAR),
    ("KPOINTS", FileFormat.KPOINTS),
    ("INCAR", FileFormat.INCAR),
)

_SUFFIXES = {
    ".poscar": FileFormat.POSCAR,
    ".vasp": FileFormat.POSCAR,
    ".kpoints": FileFormat.KPOINTS,
    ".incar": FileFormat.INCAR,
}


def detect_format(name: str) -> FileFormat | None:
    """Guess the format from a file name or URI, e.g. ``POSCAR_relaxed``."""
    path = PurePath(name.rsplit("/", 1)[-1])
    suffix_format = _SUFFIXES.get(path.suffix.lower())
    if suffix_format is not None:
        return suffix_format
    upper = path.name.upper()
    for prefix, file_format in _NAME_PREFIXES:
        if upper.startswith(prefix):
            return file_format
    return None


def format_from_language_id(language_id: str | None) -> FileFormat | None:
    if not language_id:
        return None
    try:
        return FileFormat(language_id.lower())
    except ValueError:
        return None
