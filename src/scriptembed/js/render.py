"""Renderer - turns script units back into JavaScript text.

Two layouts are supported:

* one-line: tokens are joined with only the spaces the grammar needs, and a
  ";" is inserted wherever a source line break would have triggered
  automatic semicolon insertion. The output never contains a line break,
  so it can sit inside markup or an attribute value.
* multi-line: source line breaks are kept and lines are re-indented by
  bracket depth.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from scriptembed.js.lexer import CLOSERS, KEYWORDS, OPENERS, Kind, Token

if TYPE_CHECKING:
    from scriptembed.js.quote import ScriptUnit

DEFAULT_FRESH_PREFIX = "jmId"

INDENT = "  "

# Headers whose closing ")" never ends a statement
_CONTROL = frozenset({"if", "for", "while", "with", "switch", "catch"})

# Keywords that can end a statement; every other keyword expects more input
_ENDING_KEYWORDS = frozenset(
    {
        "break",
        "continue",
        "debugger",
        "false",
        "null",
        "return",
        "super",
        "this",
        "true",
    }
)

_WORDLIKE = frozenset({Kind.WORD, Kind.NUMBER, Kind.FRESH, Kind.REGEX})

_UNSAFE_PREFIX = re.compile(r"[^\w$]")

# Inside a string literal: a line continuation, any other escape pair, or a
# raw separator character. Escape pairs are matched so "\\" is never split.
_STRING_BREAK = re.compile(
    r"\\(?:\r\n|[\n\r\N{LINE SEPARATOR}\N{PARAGRAPH SEPARATOR}])"
    r"|\\."
    r"|[\N{LINE SEPARATOR}\N{PARAGRAPH SEPARATOR}]"
)


def render_js(
    unit: ScriptUnit,
    one_line: bool = False,
    prefix: str | None = None,
    fresh_prefix: str = DEFAULT_FRESH_PREFIX,
) -> str:
    """Render a script unit to JavaScript text.

    Args:
        unit: JStat or JExpr to render.
        one_line: Use the single-line layout.
        prefix: Label mixed into every hygienic name, keeping names from
            different renders apart.
        fresh_prefix: Leading part of generated hygienic names.

    Returns:
        JavaScript source text.
    """
    names = _saturate(unit.tokens, prefix, fresh_prefix)
    out: list[str] = []
    prev: Token | None = None
    parens: list[bool] = []  # True for "(" opening a control header
    braces: list[bool] = []  # True for "{" opening a do body
    closed_control = False
    closed_do = False
    depth = 0

    for tok in unit.tokens:
        text = tok.text
        if tok.kind is Kind.FRESH:
            text = names[(tok.scope, tok.text)]
        elif tok.kind is Kind.STRING and one_line:
            text = _single_line_string(text)

        if tok.kind is Kind.PUNCT and tok.text in CLOSERS:
            depth = max(depth - 1, 0)

        if prev is not None:
            if one_line:
                if _needs_semicolon(prev, tok, closed_control, closed_do):
                    out.append(";")
                elif _needs_space(prev, tok):
                    out.append(" ")
            elif tok.break_before:
                out.append("\n" + INDENT * depth)
            elif tok.space_before or _needs_space(prev, tok):
                out.append(" ")
        out.append(text)

        closed_control = closed_do = False
        if tok.kind is Kind.PUNCT:
            if tok.text == "(":
                parens.append(prev is not None and prev.is_word(*_CONTROL))
            elif tok.text == ")" and parens:
                closed_control = parens.pop()
            elif tok.text == "{":
                braces.append(prev is not None and prev.is_word("do"))
            elif tok.text == "}" and braces:
                closed_do = braces.pop()
            if tok.text in OPENERS:
                depth += 1
        prev = tok

    return "".join(out)


def render_prefix_js(
    prefix: str,
    unit: ScriptUnit,
    one_line: bool = True,
    fresh_prefix: str = DEFAULT_FRESH_PREFIX,
) -> str:
    """Render ``unit`` with hygienic names labelled by ``prefix``."""
    return render_js(unit, one_line=one_line, prefix=prefix, fresh_prefix=fresh_prefix)


def _saturate(
    tokens: tuple[Token, ...], prefix: str | None, fresh_prefix: str
) -> dict[tuple[int, str], str]:
    """Number hygienic names in order of first appearance."""
    names: dict[tuple[int, str], str] = {}
    label = _UNSAFE_PREFIX.sub("_", prefix) if prefix else None
    for tok in tokens:
        key = (tok.scope, tok.text)
        if tok.kind is not Kind.FRESH or key in names:
            continue
        n = len(names)
        names[key] = f"{fresh_prefix}_{n}_{label}" if label else f"{fresh_prefix}_{n}"
    return names


def _needs_space(prev: Token, tok: Token) -> bool:
    if prev.kind in _WORDLIKE and tok.kind in _WORDLIKE:
        return True
    if prev.kind is Kind.PUNCT and tok.kind is Kind.PUNCT:
        # a - -b, a + ++b
        return prev.text[-1] in "+-" and tok.text[0] == prev.text[-1]
    if prev.kind is Kind.NUMBER and tok.text.startswith("."):
        return True
    return False


def _single_line_string(text: str) -> str:
    """Drop line continuations and escape raw separators in a string literal."""

    def replace(m: re.Match[str]) -> str:
        s = m.group()
        if s[0] != "\\":
            return f"\\u{ord(s):04x}"
        if len(s) > 2 or s[1] in "\n\r\N{LINE SEPARATOR}\N{PARAGRAPH SEPARATOR}":
            return ""
        return s

    return _STRING_BREAK.sub(replace, text)


def _needs_semicolon(
    prev: Token, tok: Token, closed_control: bool, closed_do: bool
) -> bool:
    """Would a line break between ``prev`` and ``tok`` end a statement?"""
    if not tok.break_before or not _starts_statement(tok):
        return False
    if prev.kind is Kind.PUNCT:
        if prev.text == ")":
            return not closed_control
        if prev.text == "}":
            if tok.is_word("while"):
                return not closed_do
            return not tok.is_word("else", "catch", "finally")
        return prev.text in ("]", "++", "--")
    if prev.kind is Kind.WORD and prev.text in KEYWORDS:
        return prev.text in _ENDING_KEYWORDS
    return True


def _starts_statement(tok: Token) -> bool:
    if tok.kind is Kind.WORD:
        return tok.text not in ("in", "instanceof", "of")
    if tok.kind is Kind.PUNCT:
        return tok.text in ("++", "--", "!", "~")
    return True
