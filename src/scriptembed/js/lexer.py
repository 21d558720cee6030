"""Lexer - splits quasi-quoted JavaScript into tokens."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from scriptembed.exceptions import QuoteSyntaxError


class Kind(str, Enum):
    WORD = "word"
    NUMBER = "number"
    STRING = "string"
    REGEX = "regex"
    PUNCT = "punct"
    SLOT = "slot"  # `(name)` antiquotation, replaced when quoting
    FRESH = "fresh"  # hygienic name, saturated at render time


@dataclass(frozen=True)
class Token:
    """A single JavaScript token plus the layout that preceded it."""

    kind: Kind
    text: str
    space_before: bool = False
    break_before: bool = False
    scope: int = 0  # quote serial, only meaningful for FRESH tokens

    def is_punct(self, *texts: str) -> bool:
        return self.kind is Kind.PUNCT and self.text in texts

    def is_word(self, *texts: str) -> bool:
        return self.kind is Kind.WORD and self.text in texts


KEYWORDS = frozenset(
    {
        "await",
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "import",
        "in",
        "instanceof",
        "let",
        "new",
        "null",
        "of",
        "return",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
        "with",
        "yield",
    }
)

# Keywords after which a "/" starts a regular expression, not a division
_REGEX_AFTER = frozenset(
    {
        "case",
        "delete",
        "do",
        "else",
        "in",
        "instanceof",
        "new",
        "of",
        "return",
        "throw",
        "typeof",
        "void",
        "yield",
        "await",
    }
)

PUNCTUATORS = sorted(
    [
        ">>>=",
        "...",
        "===",
        "!==",
        "**=",
        "<<=",
        ">>=",
        ">>>",
        "&&=",
        "||=",
        "??=",
        "=>",
        "==",
        "!=",
        "<=",
        ">=",
        "&&",
        "||",
        "??",
        "?.",
        "++",
        "--",
        "+=",
        "-=",
        "*=",
        "/=",
        "%=",
        "&=",
        "|=",
        "^=",
        "**",
        "<<",
        ">>",
        *"{}()[];,<>+-*/%&|^!~?:=.@#",
    ],
    key=len,
    reverse=True,
)

OPENERS = frozenset("([{")
CLOSERS = frozenset(")]}")

_WHITESPACE = re.compile(r"[ \t\r\f\v\N{NO-BREAK SPACE}\N{ZERO WIDTH NO-BREAK SPACE}]+")
_NEWLINE = re.compile(r"[\n\N{LINE SEPARATOR}\N{PARAGRAPH SEPARATOR}]")
_LINE_COMMENT = re.compile(r"//[^\n\N{LINE SEPARATOR}\N{PARAGRAPH SEPARATOR}]*")
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
SLOT_PATTERN = re.compile(r"`\(\s*([A-Za-z_$][\w$]*)\s*\)`")
_STRING = re.compile(
    r"\"(?:[^\"\\\n]|\\(?:\r\n|.))*\"|'(?:[^'\\\n]|\\(?:\r\n|.))*'", re.DOTALL
)
_NUMBER = re.compile(
    r"0[xX][0-9a-fA-F]+|0[bB][01]+|0[oO][0-7]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
)
_WORD = re.compile(r"[A-Za-z_$][\w$]*")
_REGEX = re.compile(r"/(?![*/])(?:[^/\\\[\n]|\\.|\[(?:[^\]\\\n]|\\.)*\])+/[A-Za-z]*")
_PUNCT = re.compile("|".join(re.escape(p) for p in PUNCTUATORS))


def tokenize(source: str) -> list[Token]:
    """Tokenize JavaScript source.

    Comments are dropped. Each token records whether whitespace or a line
    break preceded it, which the renderer needs for layout and automatic
    semicolon insertion.

    Raises:
        QuoteSyntaxError: On template literals, unterminated strings or
            comments, and characters that start no token.
    """
    tokens: list[Token] = []
    pos = 0
    space = False
    brk = False
    end = len(source)

    while pos < end:
        m = _WHITESPACE.match(source, pos)
        if m:
            space = True
            pos = m.end()
            continue

        if _NEWLINE.match(source, pos):
            space = brk = True
            pos += 1
            continue

        if source.startswith("//", pos):
            space = True
            pos = _LINE_COMMENT.match(source, pos).end()  # type: ignore[union-attr]
            continue

        if source.startswith("/*", pos):
            m = _BLOCK_COMMENT.match(source, pos)
            if m is None:
                raise _error("Unterminated comment", source, pos)
            if _NEWLINE.search(m.group()):
                brk = True
            space = True
            pos = m.end()
            continue

        kind, m = _match_token(source, pos, tokens)
        text = m.group(1) if kind is Kind.SLOT else m.group()
        tokens.append(Token(kind, text, space_before=space, break_before=brk))
        space = brk = False
        pos = m.end()

    return tokens


def _match_token(
    source: str, pos: int, tokens: list[Token]
) -> tuple[Kind, re.Match[str]]:
    ch = source[pos]

    if ch == "`":
        m = SLOT_PATTERN.match(source, pos)
        if m is None:
            raise _error(
                "Template literals are not supported; use `(name)` to antiquote",
                source,
                pos,
            )
        return Kind.SLOT, m

    if ch in "\"'":
        m = _STRING.match(source, pos)
        if m is None:
            raise _error("Unterminated string literal", source, pos)
        return Kind.STRING, m

    if ch.isdigit() or (ch == "." and source[pos + 1 : pos + 2].isdigit()):
        m = _NUMBER.match(source, pos)
        if m is not None:
            return Kind.NUMBER, m

    m = _WORD.match(source, pos)
    if m is not None:
        return Kind.WORD, m

    if ch == "/" and _regex_allowed(tokens):
        m = _REGEX.match(source, pos)
        if m is not None:
            return Kind.REGEX, m

    m = _PUNCT.match(source, pos)
    if m is not None:
        return Kind.PUNCT, m

    raise _error(f"Unexpected character {ch!r}", source, pos)


def _regex_allowed(tokens: list[Token]) -> bool:
    """A "/" opens a regex unless the previous token ends an operand."""
    if not tokens:
        return True
    prev = tokens[-1]
    if prev.kind is Kind.PUNCT:
        return prev.text not in CLOSERS
    if prev.kind is Kind.WORD:
        return prev.text in _REGEX_AFTER
    return False


def _error(message: str, source: str, pos: int) -> QuoteSyntaxError:
    line = source.count("\n", 0, pos) + 1
    column = pos - (source.rfind("\n", 0, pos) + 1) + 1
    return QuoteSyntaxError(message, line, column)
