"""Quasi-quotation of JavaScript source.

``jmacro`` and ``jmacro_e`` turn JavaScript text into script units. Inside
the text, `` `(name)` `` splices a Python value converted with
:func:`to_js_expr`:

    html = Markup("<p>This paragraph inserted using <em>JavaScript</em>!</p>")
    js = jmacro(
        'document.getElementById("messages").appendChild(`(html)`);',
        html=html,
    )

Names declared with ``var``/``let``/``const`` and function parameters are
hygienic: the renderer gives them fresh names, unique per render prefix.
Write ``var !name`` (or ``function (!name)``) to keep a name as written.
"""

from __future__ import annotations

import itertools
import math
from collections.abc import Iterable, Sequence
from typing import Any

from jinja2.utils import htmlsafe_json_dumps

from scriptembed.exceptions import (
    AntiquoteError,
    ConversionError,
    QuoteSyntaxError,
)
from scriptembed.js.lexer import CLOSERS, KEYWORDS, OPENERS, Kind, Token, tokenize
from scriptembed.js.render import render_js

_DECLARATORS = ("var", "let", "const")
_PAIRS = {")": "(", "]": "[", "}": "{"}

# Keywords after which "{" opens an object literal or a pattern, not a block
_OBJECT_AFTER = frozenset(
    {
        "await",
        "case",
        "const",
        "delete",
        "in",
        "let",
        "of",
        "return",
        "throw",
        "typeof",
        "var",
        "void",
        "yield",
    }
)

# One serial per quote; fresh names are keyed by (serial, name)
_scopes = itertools.count(1)


class ScriptUnit:
    """Immutable token sequence produced by the quasi-quoter."""

    __slots__ = ("tokens",)

    def __init__(self, tokens: Iterable[Token] = ()):
        self.tokens: tuple[Token, ...] = tuple(tokens)

    def render(self, prefix: str | None = None, one_line: bool = False) -> str:
        return render_js(self, one_line=one_line, prefix=prefix)

    def __bool__(self) -> bool:
        return bool(self.tokens)

    def _canonical(self) -> tuple[Token, ...]:
        """Tokens with quote serials renumbered by first appearance."""
        serials: dict[int, int] = {}
        out = []
        for tok in self.tokens:
            if tok.kind is Kind.FRESH:
                n = serials.setdefault(tok.scope, len(serials) + 1)
                tok = Token(tok.kind, tok.text, tok.space_before, tok.break_before, n)
            out.append(tok)
        return tuple(out)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._canonical() == other._canonical()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._canonical()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.render(one_line=True)!r})"


class JStat(ScriptUnit):
    """A block of JavaScript statements."""

    __slots__ = ()

    def __add__(self, other: JStat) -> JStat:
        if not isinstance(other, JStat):
            return NotImplemented
        if not self.tokens or not other.tokens:
            return JStat(self.tokens + other.tokens)
        joint: tuple[Token, ...] = ()
        if not self.tokens[-1].is_punct(";", "}"):
            joint = (Token(Kind.PUNCT, ";"),)
        first = _with_layout(other.tokens[0], break_before=True)
        return JStat(self.tokens + joint + (first,) + other.tokens[1:])


class JExpr(ScriptUnit):
    """A single JavaScript expression."""

    __slots__ = ()

    def to_stat(self) -> JStat:
        """Use the expression as a statement."""
        return JStat(self.tokens + (Token(Kind.PUNCT, ";"),))


def jmacro(source: str, /, **slots: Any) -> JStat:
    """Quote JavaScript statements, splicing `` `(name)` `` from ``slots``."""
    return JStat(_quote(source, slots))


def jmacro_e(source: str, /, **slots: Any) -> JExpr:
    """Quote a single JavaScript expression."""
    tokens = _quote(source, slots)
    if not tokens:
        raise QuoteSyntaxError("Empty expression")
    return JExpr(tokens)


def to_js_expr(value: Any) -> JExpr:
    """Convert a Python value to a JavaScript expression.

    Resolution order:
    1. Already a JExpr: returned as-is
    2. Objects with ``__js__()``: its result
    3. Markup (anything with ``__html__``): an expression rebuilding the DOM node
    4. bool/None/int/float/str: literals (strings are html-safe JSON)
    5. list/tuple -> array, dict -> object literal
    """
    if isinstance(value, JExpr):
        return value
    if isinstance(value, JStat):
        raise ConversionError("A statement block cannot be used as an expression")

    hook = getattr(value, "__js__", None)
    if hook is not None:
        result = hook()
        if not isinstance(result, JExpr):
            raise ConversionError(
                f"{type(value).__name__}.__js__() must return a JExpr, "
                f"got {type(result).__name__}"
            )
        return result

    # Markup is a str subclass, so this must come before the str case
    if hasattr(value, "__html__"):
        from scriptembed.embed import markup_to_js_expr

        return markup_to_js_expr(value)

    return JExpr(_literal_tokens(value))


def _literal_tokens(value: Any) -> list[Token]:
    if value is None:
        return [Token(Kind.WORD, "null")]
    if isinstance(value, bool):
        return [Token(Kind.WORD, "true" if value else "false")]
    if isinstance(value, (int, float)):
        return _number_tokens(value)
    if isinstance(value, str):
        return [Token(Kind.STRING, str(htmlsafe_json_dumps(value)))]
    if isinstance(value, (list, tuple)):
        tokens = [Token(Kind.PUNCT, "[")]
        for i, item in enumerate(value):
            if i > 0:
                tokens.append(Token(Kind.PUNCT, ","))
            tokens.extend(to_js_expr(item).tokens)
        tokens.append(Token(Kind.PUNCT, "]"))
        return tokens
    if isinstance(value, dict):
        tokens = [Token(Kind.PUNCT, "{")]
        for i, (key, item) in enumerate(value.items()):
            if i > 0:
                tokens.append(Token(Kind.PUNCT, ","))
            tokens.append(Token(Kind.STRING, str(htmlsafe_json_dumps(str(key)))))
            tokens.append(Token(Kind.PUNCT, ":"))
            tokens.extend(to_js_expr(item).tokens)
        tokens.append(Token(Kind.PUNCT, "}"))
        return tokens
    raise ConversionError(
        f"Cannot convert {type(value).__name__} to a JavaScript expression"
    )


def _number_tokens(value: int | float) -> list[Token]:
    if isinstance(value, float) and math.isnan(value):
        return [Token(Kind.WORD, "NaN")]
    if isinstance(value, float) and math.isinf(value):
        text = "Infinity"
        kind = Kind.WORD
    else:
        text = repr(abs(value))
        kind = Kind.NUMBER
    if value < 0:
        return [Token(Kind.PUNCT, "-"), Token(kind, text)]
    return [Token(kind, text)]


def _quote(source: str, slots: dict[str, Any]) -> list[Token]:
    tokens = tokenize(source)
    _check_balanced(tokens)
    # Hygiene first, so names inside spliced values are never captured
    tokens = _mark_fresh(tokens, next(_scopes))
    return _splice(tokens, slots)


def _check_balanced(tokens: Sequence[Token]) -> None:
    stack: list[str] = []
    for tok in tokens:
        if tok.kind is not Kind.PUNCT:
            continue
        if tok.text in OPENERS:
            stack.append(tok.text)
        elif tok.text in CLOSERS:
            if not stack or stack.pop() != _PAIRS[tok.text]:
                raise QuoteSyntaxError(f"Unbalanced {tok.text!r}")
    if stack:
        raise QuoteSyntaxError(f"Unclosed {stack[-1]!r}")


def _mark_fresh(tokens: list[Token], scope: int) -> list[Token]:
    names: set[str] = set()
    escapes: set[int] = set()

    for i, tok in enumerate(tokens):
        if tok.kind is not Kind.WORD or _is_member(tokens, i):
            continue
        if tok.text in _DECLARATORS:
            _collect_declared(tokens, i + 1, names, escapes)
        elif tok.text == "function":
            _collect_params(tokens, i + 1, names, escapes)

    in_object = _object_contexts(tokens)
    out: list[Token] = []
    carry: Token | None = None
    for i, tok in enumerate(tokens):
        if i in escapes:
            carry = tok
            continue
        if carry is not None:
            tok = _with_layout(
                tok,
                space_before=carry.space_before,
                break_before=carry.break_before,
            )
            carry = None
        if (
            tok.kind is not Kind.WORD
            or tok.text not in names
            or _is_member(tokens, i)
            or _is_key(tokens, i)
        ):
            out.append(tok)
            continue
        if in_object[i] and _is_property_slot(tokens, i, ("(",)):
            # Method name
            out.append(tok)
            continue
        fresh = Token(Kind.FRESH, tok.text, scope=scope)
        if in_object[i] and _is_property_slot(tokens, i, (",", "}", "=")):
            # Shorthand {x} keeps its key: {x: <fresh>}
            out.append(tok)
            out.append(Token(Kind.PUNCT, ":"))
            out.append(fresh)
            continue
        out.append(
            _with_layout(
                fresh, space_before=tok.space_before, break_before=tok.break_before
            )
        )
    return out


def _collect_declared(
    tokens: list[Token], j: int, names: set[str], escapes: set[int]
) -> None:
    """Collect the names bound by a var/let/const declaration at ``j``."""
    depth = 0
    expect_name = True
    while j < len(tokens):
        tok = tokens[j]
        if expect_name:
            if _is_escape(tokens, j):
                escapes.add(j)
                j += 2
            elif tok.kind is Kind.WORD and tok.text not in KEYWORDS:
                names.add(tok.text)
                j += 1
            else:
                # Destructuring patterns keep their names as written
                return
            expect_name = False
            continue

        if depth == 0 and tok.break_before and not _continues(tokens[j - 1]):
            return
        if tok.kind is Kind.PUNCT:
            if tok.text in OPENERS:
                depth += 1
            elif tok.text in CLOSERS:
                depth -= 1
                if depth < 0:
                    return
            elif depth == 0 and tok.text == ",":
                expect_name = True
            elif depth == 0 and tok.text == ";":
                return
        elif depth == 0 and tok.is_word("in", "of"):
            return
        j += 1


def _collect_params(
    tokens: list[Token], j: int, names: set[str], escapes: set[int]
) -> None:
    """Collect parameter names of a function starting after ``function``."""
    if _is_escape(tokens, j):
        escapes.add(j)
        j += 2
    elif j < len(tokens) and tokens[j].kind is Kind.WORD:
        # Declared function names stay global
        j += 1
    if j >= len(tokens) or not tokens[j].is_punct("("):
        return

    depth = 0
    expect_name = False
    while j < len(tokens):
        tok = tokens[j]
        if tok.kind is Kind.PUNCT and tok.text in OPENERS:
            depth += 1
            expect_name = depth == 1
        elif tok.kind is Kind.PUNCT and tok.text in CLOSERS:
            depth -= 1
            if depth == 0:
                return
            expect_name = False
        elif depth == 1 and tok.is_punct(","):
            expect_name = True
        elif depth == 1 and expect_name and tok.is_punct("..."):
            pass
        elif depth == 1 and expect_name and _is_escape(tokens, j):
            escapes.add(j)
            expect_name = False
            j += 2
            continue
        elif depth == 1 and expect_name and tok.kind is Kind.WORD:
            names.add(tok.text)
            expect_name = False
        else:
            expect_name = False
        j += 1


def _splice(tokens: list[Token], slots: dict[str, Any]) -> list[Token]:
    out: list[Token] = []
    for tok in tokens:
        if tok.kind is not Kind.SLOT:
            out.append(tok)
            continue
        if tok.text not in slots:
            raise AntiquoteError(tok.text)
        value = slots[tok.text]
        if isinstance(value, JStat):
            spliced = list(value.tokens)
        else:
            spliced = list(to_js_expr(value).tokens)
            if len(spliced) > 1 and not _is_wrapped(spliced):
                spliced = [Token(Kind.PUNCT, "("), *spliced, Token(Kind.PUNCT, ")")]
        if spliced:
            spliced[0] = _with_layout(
                spliced[0],
                space_before=tok.space_before,
                break_before=tok.break_before,
            )
        out.extend(spliced)
    return out


def _is_wrapped(tokens: Sequence[Token]) -> bool:
    """True when a leading "(" or "[" closes at the very last token."""
    if not tokens[0].is_punct("(", "["):
        return False
    depth = 0
    for i, tok in enumerate(tokens):
        if tok.kind is not Kind.PUNCT:
            continue
        if tok.text in OPENERS:
            depth += 1
        elif tok.text in CLOSERS:
            depth -= 1
            if depth == 0:
                return i == len(tokens) - 1
    return False


def _is_escape(tokens: list[Token], j: int) -> bool:
    return (
        j + 1 < len(tokens)
        and tokens[j].is_punct("!")
        and tokens[j + 1].kind is Kind.WORD
    )


def _is_member(tokens: list[Token], i: int) -> bool:
    return i > 0 and tokens[i - 1].is_punct(".", "?.")


def _is_key(tokens: list[Token], i: int) -> bool:
    return (
        i > 0
        and i + 1 < len(tokens)
        and tokens[i - 1].is_punct("{", ",")
        and tokens[i + 1].is_punct(":")
    )


def _object_contexts(tokens: list[Token]) -> list[bool]:
    """For each token, whether its innermost bracket is an object literal.

    Destructuring patterns count as object literals; block statements do not.
    """
    stack: list[bool] = []
    inside: list[bool] = []
    for i, tok in enumerate(tokens):
        inside.append(bool(stack) and stack[-1])
        if tok.kind is not Kind.PUNCT:
            continue
        if tok.text in OPENERS:
            stack.append(tok.text == "{" and _opens_object(tokens, i))
        elif tok.text in CLOSERS and stack:
            stack.pop()
    return inside


def _opens_object(tokens: list[Token], i: int) -> bool:
    if i == 0:
        return False
    prev = tokens[i - 1]
    if prev.kind is Kind.PUNCT:
        return prev.text not in (")", "]", "}", ";", "{", "=>")
    if prev.kind is Kind.WORD:
        return prev.text in _OBJECT_AFTER
    return False


def _is_property_slot(tokens: list[Token], i: int, followers: tuple[str, ...]) -> bool:
    return (
        i > 0
        and i + 1 < len(tokens)
        and tokens[i - 1].is_punct("{", ",")
        and tokens[i + 1].is_punct(*followers)
    )


def _continues(tok: Token) -> bool:
    """True when a line break after ``tok`` cannot end the declaration."""
    return tok.kind is Kind.PUNCT and tok.text not in (")", "]", "}", "++", "--")


def _with_layout(
    tok: Token, space_before: bool | None = None, break_before: bool | None = None
) -> Token:
    return Token(
        tok.kind,
        tok.text,
        space_before=tok.space_before if space_before is None else space_before,
        break_before=tok.break_before if break_before is None else break_before,
        scope=tok.scope,
    )
