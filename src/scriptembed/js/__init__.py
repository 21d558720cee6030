"""Minimal JavaScript quasi-quotation and rendering."""

from scriptembed.js.lexer import Kind, Token, tokenize
from scriptembed.js.quote import JExpr, JStat, ScriptUnit, jmacro, jmacro_e, to_js_expr
from scriptembed.js.render import render_js, render_prefix_js

__all__ = [
    "Kind",
    "Token",
    "tokenize",
    "ScriptUnit",
    "JStat",
    "JExpr",
    "jmacro",
    "jmacro_e",
    "to_js_expr",
    "render_js",
    "render_prefix_js",
]
