from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from routespec.errors import GrammarError


class TokType(Enum):
    IDENT = auto()
    PATH_SEP = auto()  # ::
    COLON = auto()     # :
    SEMI = auto()      # ;
    COMMA = auto()     # ,
    EOF = auto()


_PUNCT = {
    ":": TokType.COLON,
    ";": TokType.SEMI,
    ",": TokType.COMMA,
}


@dataclass(frozen=True)
class Token:
    type: TokType
    value: str
    line: int
    col: int
    offset: int


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def _is_ident_char(ch: str) -> bool:
    return ch == "_" or ch.isalnum()


def tokenize(text: str) -> list[Token]:
    """
    Split a route declaration into tokens.

    Whitespace (newlines included) only separates tokens. `#` starts a comment
    that runs to end of line. The stream always ends with a single EOF token
    carrying the position just past the input.
    """
    tokens: list[Token] = []
    i = 0
    line = 1
    col = 1
    n = len(text)

    while i < n:
        ch = text[i]

        if ch == "\n":
            i += 1
            line += 1
            col = 1
            continue

        if ch.isspace():
            i += 1
            col += 1
            continue

        if ch == "#":
            while i < n and text[i] != "\n":
                i += 1
            continue

        if ch == ":" and i + 1 < n and text[i + 1] == ":":
            tokens.append(Token(TokType.PATH_SEP, "::", line, col, i))
            i += 2
            col += 2
            continue

        if ch in _PUNCT:
            tokens.append(Token(_PUNCT[ch], ch, line, col, i))
            i += 1
            col += 1
            continue

        if _is_ident_start(ch):
            start = i
            while i < n and _is_ident_char(text[i]):
                i += 1
            value = text[start:i]
            tokens.append(Token(TokType.IDENT, value, line, col, start))
            col += i - start
            continue

        raise GrammarError(f"unexpected character {ch!r}", text, line, col, i)

    tokens.append(Token(TokType.EOF, "", line, col, n))
    return tokens
