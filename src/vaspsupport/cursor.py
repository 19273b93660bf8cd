"""Forward-only line cursor with a non-consuming peek."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from vaspsupport.classifiers import Classifier
from vaspsupport.lexer import TextDocument, tokenize_line
from vaspsupport.tokens import Token, TokenizedLine


class LineCursor:
    """Hands out the lines of a document one at a time.

    ``peek`` classifies the next line without moving; ``advance`` classifies
    and consumes it. Optional grammar branches use ``advance_if``, so a
    rejected line stays available to the next classifier and no line is
    ever handed out twice.
    """

    def __init__(self, document: TextDocument) -> None:
        self._document = document
        self._index = 0

    @property
    def at_end(self) -> bool:
        return self._index >= self._document.line_count

    @property
    def index(self) -> int:
        """0-based index of the next unconsumed line."""
        return self._index

    def peek(self, classifier: Classifier) -> TokenizedLine | None:
        if self.at_end:
            return None
        line = self._document.line_at(self._index)
        return TokenizedLine(line, tuple(classifier(tokenize_line(line))))

    def advance(self, classifier: Classifier) -> TokenizedLine | None:
        result = self.peek(classifier)
        if result is not None:
            self._index += 1
        return result

    def advance_if(
        self,
        classifier: Classifier,
        accept: Callable[[Sequence[Token]], bool],
    ) -> TokenizedLine | None:
        result = self.peek(classifier)
        if result is None or not accept(result.tokens):
            return None
        self._index += 1
        return result

