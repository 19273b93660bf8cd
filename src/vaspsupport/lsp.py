"""LSP server for VASP input files.

Publishes diagnostics for POSCAR, KPOINTS and INCAR documents. POSCAR and
KPOINTS documents also get semantic tokens and section code lenses.
"""

from __future__ import annotations

import logging

from lsprotocol.types import (
    TEXT_DOCUMENT_CODE_LENS,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL,
    CodeLens,
    CodeLensParams,
    Command,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    SemanticTokens,
    SemanticTokensLegend,
    SemanticTokensParams,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from vaspsupport import __version__, check
from vaspsupport.errors import Diagnostic as Finding
from vaspsupport.errors import Severity
from vaspsupport.formats import FileFormat, detect_format, format_from_language_id
from vaspsupport.kpoints import KpointsLine, parse_kpoints
from vaspsupport.poscar import PoscarLine, parse_poscar
from vaspsupport.presentation import (
    SEMANTIC_TOKEN_LEGEND,
    encode_semantic_tokens,
    section_markers,
)
from vaspsupport.tokens import Span

logger = logging.getLogger(__name__)

server = LanguageServer(
    "vasp-support-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full
)

_SEVERITIES = {
    Severity.ERROR: DiagnosticSeverity.Error,
    Severity.WARNING: DiagnosticSeverity.Warning,
    Severity.HINT: DiagnosticSeverity.Hint,
}


def _to_range(span: Span) -> Range:
    return Range(
        start=Position(line=span.start.line - 1, character=span.start.column - 1),
        end=Position(line=span.end.line - 1, character=span.end.column - 1),
    )


def _to_lsp(finding: Finding) -> Diagnostic:
    return Diagnostic(
        range=_to_range(finding.span),
        message=finding.message,
        severity=_SEVERITIES[finding.severity],
        source=finding.source,
    )


def _document_format(ls: LanguageServer, uri: str) -> FileFormat | None:
    doc = ls.workspace.get_text_document(uri)
    return format_from_language_id(doc.language_id) or detect_format(uri)


def _classified_lines(ls: LanguageServer, uri: str) -> list[PoscarLine] | list[KpointsLine]:
    """Classified lines of a POSCAR or KPOINTS document, else nothing."""
    file_format = _document_format(ls, uri)
    source = ls.workspace.get_text_document(uri).source
    if file_format is FileFormat.POSCAR:
        return parse_poscar(source)
    if file_format is FileFormat.KPOINTS:
        return parse_kpoints(source)
    return []


def _semantic_tokens(ls: LanguageServer, uri: str) -> SemanticTokens:
    return SemanticTokens(data=encode_semantic_tokens(_classified_lines(ls, uri)))


def _code_lenses(ls: LanguageServer, uri: str) -> list[CodeLens]:
    lenses = []
    for marker in section_markers(_classified_lines(ls, uri)):
        anchor = Position(line=marker.line - 1, character=0)
        lenses.append(
            CodeLens(
                range=Range(start=anchor, end=anchor),
                command=Command(title=marker.title, command=""),
            )
        )
    return lenses


def _validate(ls: LanguageServer, uri: str) -> None:
    """Check the document and publish its full set of diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    file_format = _document_format(ls, uri)
    if file_format is None:
        logger.debug("no known format for %s, skipping", uri)
        return

    diagnostics = [_to_lsp(d) for d in check(doc.source, file_format)]
    logger.debug("%s: %d diagnostics (%s)", uri, len(diagnostics), file_format.value)
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(
    TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL,
    SemanticTokensLegend(token_types=list(SEMANTIC_TOKEN_LEGEND), token_modifiers=[]),
)
def semantic_tokens_full(ls: LanguageServer, params: SemanticTokensParams) -> SemanticTokens:
    return _semantic_tokens(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_CODE_LENS)
def code_lens(ls: LanguageServer, params: CodeLensParams) -> list[CodeLens]:
    return _code_lenses(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
