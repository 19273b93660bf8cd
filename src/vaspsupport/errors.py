"""Diagnostic findings with formatted source context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from vaspsupport.lexer import split_lines
from vaspsupport.tokens import Span

DIAGNOSTIC_SOURCE = "VASP support"


class Severity(Enum):
    # Ordered from most to least severe
    ERROR = "error"
    WARNING = "warning"
    HINT = "hint"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A validation finding anchored to a source range."""

    message: str
    span: Span
    severity: Severity
    source: str = DIAGNOSTIC_SOURCE

    def format(self, source: str, filename: str = "POSCAR") -> str:
        lines = split_lines(source)
        line_idx = self.span.start.line - 1
        col = self.span.start.column

        if 0 <= line_idx < len(lines):
            source_line = lines[line_idx].text
        else:
            source_line = ""

        # Underline the full span when on one line, otherwise to end of line
        if self.span.end.line == self.span.start.line:
            underline_len = max(1, self.span.end.column - col)
        else:
            underline_len = max(1, len(source_line) - col + 1)

        pad = " " * (col - 1)
        carets = "^" * underline_len

        line_num = str(self.span.start.line)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"

        return (
            f"{self.severity.value}: {self.message}\n"
            f"{' ' * gutter_width}--> {filename}:{self.span.start.line}:{col}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}{carets}"
        )
