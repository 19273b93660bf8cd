"""Line splitting and whitespace tokenization of VASP input files."""

from __future__ import annotations

from vaspsupport.tokens import Position, Span, TextLine, Token


class Lexer:
    """Split source text into physical lines with exact source spans."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._line = 1
        self._lines: list[TextLine] = []

    def split(self) -> list[TextLine]:
        """Split the full source and return the line list.

        A trailing line terminator yields a final empty line, and an empty
        source yields a single empty line, as in an editor buffer.
        """
        while True:
            start = self._pos
            while self._pos < len(self._source) and self._peek() not in "\r\n":
                self._pos += 1
            content_end = self._pos

            if self._peek() == "\r" and self._peek(1) == "\n":
                self._pos += 2
            elif self._peek() in ("\r", "\n"):
                self._pos += 1
            else:
                self._emit(start, content_end, content_end)
                return self._lines

            self._emit(start, content_end, self._pos)
            self._line += 1

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _position(self, line_start: int, offset: int) -> Position:
        return Position(self._line, offset - line_start + 1, offset)

    def _emit(self, start: int, content_end: int, end: int) -> None:
        span = Span(self._position(start, start), self._position(start, content_end))
        if end == content_end:
            with_break = span
        else:
            # The terminator ends at column 1 of the next line
            with_break = Span(span.start, Position(self._line + 1, 1, end))
        self._lines.append(TextLine(self._line, self._source[start:content_end], span, with_break))


def split_lines(source: str) -> list[TextLine]:
    """Convenience function: split source text into TextLine objects."""
    return Lexer(source).split()


def tokenize_line(line: TextLine) -> list[Token]:
    """Split one line into whitespace-delimited tokens.

    Token text is kept verbatim and columns match the original text, so
    tabs and runs of spaces do not shift later ranges.
    """
    tokens: list[Token] = []
    text = line.text
    base = line.span.start
    idx = 0
    while idx < len(text):
        if text[idx].isspace():
            idx += 1
            continue
        start = idx
        while idx < len(text) and not text[idx].isspace():
            idx += 1
        span = Span(
            Position(base.line, base.column + start, base.offset + start),
            Position(base.line, base.column + idx, base.offset + idx),
        )
        tokens.append(Token(text[start:idx], span))
    return tokens


class TextDocument:
    """Immutable snapshot of a text buffer addressed by 0-based line index."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.lines: tuple[TextLine, ...] = tuple(split_lines(source))

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def line_at(self, index: int) -> TextLine:
        return self.lines[index]
