"""INCAR files: tag assignments, tag documentation and tag lookup.

Tag documentation is built elsewhere (e.g. from the VASP wiki) and handed
in as a read-only mapping; nothing here fetches or caches it.

`IncarTag.hover_markdown` and `lookup_tag` are library API for editor front
ends that ship such a mapping. The bundled language server has no tag
documentation and does not offer hovers.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, auto

from vaspsupport.errors import Diagnostic, Severity
from vaspsupport.lexer import split_lines
from vaspsupport.tokens import Position, Span, TextLine

_WORD_RE = re.compile(r"[A-Za-z0-9_]+")


class _Section(Enum):
    VALUE = auto()
    DEFAULT = auto()
    DEFAULT_TABLE = auto()
    DESCRIPTION = auto()
    MORE_DESCRIPTION = auto()


@dataclass
class IncarTag:
    """Documentation of one INCAR tag."""

    name: str
    value_str: str | None = None
    values: list[str] = field(default_factory=list)
    default_value: str | None = None
    description: str | None = None

    @classmethod
    def from_markdown(cls, markdown: str, name: str) -> IncarTag:
        """Read a tag page converted to markdown.

        The page starts with the allowed values (``NAME = a | b | c``),
        followed by the default (a single ``Default:`` line or a table) and
        the description.
        """
        tag = cls(name)
        default_re = re.compile(rf"^Default: *(\**{re.escape(name)}\** *=)? *(.*)")
        section = _Section.VALUE

        for raw in markdown.split("\n"):
            line = raw.strip()

            if section is _Section.VALUE:
                if line:
                    parts = line.split("=")
                    if len(parts) >= 2:
                        tag.value_str = parts[1].strip()
                        tag.values = [
                            s
                            for s in (p.strip() for p in tag.value_str.split("|"))
                            if s and not (s.startswith("[") or s.endswith("]") or " " in s)
                        ]
                    else:
                        tag.value_str = line
                    section = _Section.DEFAULT
            elif section is _Section.DEFAULT:
                if line:
                    match = default_re.match(line)
                    if match:
                        tag.default_value = match.group(2)
                        section = _Section.DESCRIPTION
                    elif line.startswith("|"):
                        tag.default_value = line
                        section = _Section.DEFAULT_TABLE
            elif section is _Section.DEFAULT_TABLE:
                if line.startswith("|"):
                    row = re.sub(r"^\| *Default: *", "| ", line)
                    tag.default_value = f"{tag.default_value}\n{row}"
                else:
                    section = _Section.DESCRIPTION
            elif section is _Section.DESCRIPTION:
                if line:
                    match = re.match(r"^Description: *(.*)", line)
                    tag.description = match.group(1).strip() if match else line
                    section = _Section.MORE_DESCRIPTION
            elif section is _Section.MORE_DESCRIPTION:
                tag.description = f"{tag.description}\n{line}"

        if tag.description is not None:
            tag.description = tag.description.rstrip("\n")
        return tag

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> IncarTag:
        """Rebuild a tag from its serialized form (e.g. a JSON cache entry)."""
        values = data.get("values") or []
        return cls(
            name=str(data.get("name", "")),
            value_str=_opt_str(data.get("value_str")),
            values=[str(v) for v in values] if isinstance(values, list) else [],
            default_value=_opt_str(data.get("default_value")),
            description=_opt_str(data.get("description")),
        )

    def hover_markdown(self) -> str:
        """Markdown shown when hovering the tag; links are wiki-relative."""
        text = f'# [{self.name}](/wiki/index.php/{self.name} "{self.name}")'
        for title, value in (
            ("Value", self.value_str),
            ("Default", self.default_value),
            ("Description", self.description),
        ):
            if value:
                text += f"\n\n---\n\n## {title}\n\n{value}"
        return text


def _opt_str(value: object) -> str | None:
    return None if value is None else str(value)


# ----------------------------------------------------------------------
# Tag assignments
# ----------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IncarEntry:
    """One ``TAG = value`` statement.

    A value continued with a trailing backslash is joined with single
    spaces. A quoted value may span several lines and keeps its line breaks.
    """

    tag: str
    value: str
    tag_span: Span
    span: Span


def _strip_comment(text: str) -> str:
    """Drop a '#' or '!' comment that is not inside double quotes."""
    in_quote = False
    for idx, ch in enumerate(text):
        if ch == '"':
            in_quote = not in_quote
        elif ch in "#!" and not in_quote:
            return text[:idx]
    return text


def _span(line: TextLine, start: int, end: int) -> Span:
    base = line.span.start
    return Span(
        Position(base.line, base.column + start, base.offset + start),
        Position(base.line, base.column + end, base.offset + end),
    )


def _statements(text: str) -> list[tuple[int, int]]:
    """(start, end) columns of the non-blank ';'-separated statements.

    Separators inside double quotes do not split; an unclosed quote runs to
    the end of the line.
    """
    content = _strip_comment(text)
    bounds = []
    start = 0
    in_quote = False
    for idx, ch in enumerate(content):
        if ch == '"':
            in_quote = not in_quote
        elif ch == ";" and not in_quote:
            bounds.append((start, idx))
            start = idx + 1
    bounds.append((start, len(content)))

    result = []
    for begin, end in bounds:
        piece = content[begin:end]
        stripped = piece.strip()
        if stripped:
            lead = len(piece) - len(piece.lstrip())
            result.append((begin + lead, begin + lead + len(stripped)))
    return result


class _IncarScanner:
    """Walk the lines of an INCAR file, joining continued and quoted values."""

    def __init__(self, source: str) -> None:
        self._lines = split_lines(source)
        self._idx = 0
        self.entries: list[IncarEntry] = []
        self.diagnostics: list[Diagnostic] = []

    def scan(self) -> None:
        while self._idx < len(self._lines):
            line = self._lines[self._idx]
            self._idx += 1
            for start, end in _statements(line.text):
                self._statement(line, start, end)

    def _statement(self, line: TextLine, start: int, end: int) -> None:
        statement = line.text[start:end]
        span = _span(line, start, end)
        tag_part, eq, value_part = statement.partition("=")
        tag = tag_part.strip()
        if not eq or not tag:
            self.diagnostics.append(
                Diagnostic("Expected an assignment 'TAG = value'.", span, Severity.ERROR)
            )
            return
        tag_start = start + (len(tag_part) - len(tag_part.lstrip()))
        tag_span = _span(line, tag_start, tag_start + len(tag))

        value = value_part.strip()
        if value.count('"') % 2 == 1:
            value = self._quoted_tail(value)
        elif value.endswith("\\"):
            value = self._continued_tail(value)
        if self._idx > line.number:
            # the value ran on past this line
            span = Span(span.start, self._lines[self._idx - 1].span.end)

        if not value:
            self.diagnostics.append(
                Diagnostic(f"Missing value for '{tag.upper()}'.", span, Severity.ERROR)
            )
            return
        self.entries.append(IncarEntry(tag.upper(), value, tag_span, span))

    def _quoted_tail(self, value: str) -> str:
        """Take raw lines up to and including the one that closes the quote."""
        parts = [value]
        while self._idx < len(self._lines):
            text = self._lines[self._idx].text
            self._idx += 1
            parts.append(text)
            if '"' in text:
                break
        return "\n".join(parts)

    def _continued_tail(self, value: str) -> str:
        """Join lines while each one ends with a backslash."""
        parts = [value[:-1].strip()]
        while self._idx < len(self._lines):
            text = _strip_comment(self._lines[self._idx].text).strip()
            self._idx += 1
            if not text.endswith("\\"):
                parts.append(text)
                break
            parts.append(text[:-1].strip())
        return " ".join(p for p in parts if p)


def scan_incar(source: str) -> tuple[list[IncarEntry], list[Diagnostic]]:
    """Read all tag assignments and report malformed statements."""
    scanner = _IncarScanner(source)
    scanner.scan()
    return scanner.entries, scanner.diagnostics


def parse_incar(source: str) -> list[IncarEntry]:
    return scan_incar(source)[0]


def lint_incar(source: str, tags: Mapping[str, IncarTag] | None = None) -> list[Diagnostic]:
    """Malformed statements, plus unknown tags when documentation is given."""
    entries, diagnostics = scan_incar(source)
    if tags:
        for entry in entries:
            if entry.tag not in tags:
                diagnostics.append(
                    Diagnostic(f"Unknown INCAR tag '{entry.tag}'.", entry.tag_span, Severity.HINT)
                )
    diagnostics.sort(key=lambda d: d.span.start.offset)
    return diagnostics


# ----------------------------------------------------------------------
# Hover lookup
# ----------------------------------------------------------------------


def tag_at(source: str, line: int, column: int) -> str | None:
    """Upper-cased word at a 1-based line and column, if any."""
    lines = split_lines(source)
    if not 1 <= line <= len(lines):
        return None
    text = lines[line - 1].text
    for match in _WORD_RE.finditer(text):
        if match.start() < column <= match.end() + 1:
            return match.group(0).upper()
    return None


def lookup_tag(tags: Mapping[str, IncarTag], source: str, line: int, column: int) -> IncarTag | None:
    word = tag_at(source, line, column)
    if word is None:
        return None
    return tags.get(word)
