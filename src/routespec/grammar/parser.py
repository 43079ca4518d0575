from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from routespec.errors import GrammarError
from routespec.grammar.lexer import Token, TokType, tokenize

SPEC_KEYWORD = "spec"


@dataclass(frozen=True)
class RoutePath:
    """Qualified reference `a::b::c`. Qualification depth is opaque here."""

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("RoutePath needs at least one segment")

    @property
    def base_name(self) -> str:
        return self.segments[-1]

    @property
    def prefix(self) -> tuple[str, ...]:
        return self.segments[:-1]

    def with_base_name(self, name: str) -> "RoutePath":
        return RoutePath(self.prefix + (name,))

    def __str__(self) -> str:
        return "::".join(self.segments)


@dataclass(frozen=True)
class Declaration:
    mutator: Optional[RoutePath]
    routes: tuple[RoutePath, ...]


class _Parser:
    def __init__(self, source: str) -> None:
        self.source = source
        self.tokens = tokenize(source)
        self.pos = 0

    def peek(self, ahead: int = 0) -> Token:
        idx = min(self.pos + ahead, len(self.tokens) - 1)
        return self.tokens[idx]

    def advance(self) -> Token:
        tok = self.peek()
        if tok.type is not TokType.EOF:
            self.pos += 1
        return tok

    def error(self, message: str, tok: Token | None = None) -> GrammarError:
        tok = tok or self.peek()
        found = "end of input" if tok.type is TokType.EOF else repr(tok.value)
        return GrammarError(f"{message}, found {found}", self.source, tok.line, tok.col, tok.offset)

    def expect(self, tt: TokType, message: str) -> Token:
        tok = self.peek()
        if tok.type is not tt:
            raise self.error(message, tok)
        return self.advance()

    def parse(self) -> Declaration:
        mutator = None
        if self._at_mutator_clause():
            self.advance()  # spec
            self.expect(TokType.COLON, "expected ':' after 'spec'")
            mutator = self.path()
            self.expect(TokType.SEMI, "expected ';' after spec mutator path")

        if self.peek().type is TokType.EOF:
            raise self.error("at least one route required")

        routes = [self.path()]
        while self.peek().type is TokType.COMMA:
            self.advance()
            # trailing separator
            if self.peek().type is TokType.EOF:
                break
            routes.append(self.path())

        self.expect(TokType.EOF, "expected ',' or end of input")
        return Declaration(mutator=mutator, routes=tuple(routes))

    def _at_mutator_clause(self) -> bool:
        # position-only: `spec` as the very first token always opens the mutator clause
        first = self.peek()
        return self.pos == 0 and first.type is TokType.IDENT and first.value == SPEC_KEYWORD

    def path(self) -> RoutePath:
        segments = [self.expect(TokType.IDENT, "expected route path").value]
        while self.peek().type is TokType.PATH_SEP:
            self.advance()
            segments.append(self.expect(TokType.IDENT, "expected identifier after '::'").value)
        return RoutePath(tuple(segments))


def parse_declaration(source: str) -> Declaration:
    """
    Parse `[spec: <path>;] <path> {, <path>} [,]` into a Declaration.

    The first error aborts parsing with a GrammarError pointing at the
    offending token; there is no recovery.
    """
    return _Parser(source).parse()


def parse_path(source: str) -> RoutePath:
    """Parse a single `a::b` reference (used for ad-hoc lookups)."""
    parser = _Parser(source)
    path = parser.path()
    parser.expect(TokType.EOF, "expected end of input after path")
    return path
