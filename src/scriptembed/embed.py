"""Embedders - generated script as markup children, attributes and DOM nodes.

A ScriptEmbedder pairs an integer supply with configuration. Every embedding
takes one fresh integer and renders the script unit in one-line mode with
that integer as prefix, so hygienic names never collide between blocks.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from markupsafe import Markup

from scriptembed.config import EmbedConfig
from scriptembed.exceptions import ConversionError, InvalidAttributeNameError
from scriptembed.js.quote import JExpr, JStat, ScriptUnit, jmacro_e
from scriptembed.js.render import render_prefix_js
from scriptembed.markup import Attr, element, is_valid_attr_name, render_html, to_name
from scriptembed.supply import IntegerSupply

log = logging.getLogger(__name__)

_SCRIPT_CLOSE = re.compile(r"</(script)", flags=re.IGNORECASE)

# The quoted html is a string literal; "node" is local to the function
_REBUILD_NODE = """
(function () {
  var !node = document.createElement('div');
  node.innerHTML = `(html)`;
  return node.childNodes[0];
})()
"""


class ScriptEmbedder:
    """Embeds script units into markup using an injected integer supply."""

    def __init__(self, supply: IntegerSupply, config: EmbedConfig | None = None):
        self.supply = supply
        self.config = config or EmbedConfig()

    def render(self, unit: ScriptUnit) -> tuple[int, str]:
        """Take a fresh integer and render ``unit`` on one line with it."""
        i = self.supply.next_integer()
        text = render_prefix_js(
            str(i), unit, one_line=True, fresh_prefix=self.config.fresh_prefix
        )
        return i, text

    def as_child(self, stat: JStat) -> Markup:
        """Embed statements as a <script> element."""
        i, text = self.render(stat)
        if self.config.escape_script_close:
            text = _SCRIPT_CLOSE.sub(r"<\\/\1", text)
        log.debug("Embedding script block %d as child (%d chars)", i, len(text))
        return element(
            "script",
            [Attr("type", self.config.script_type)],
            [text],
            raw=True,
        )

    def as_attr(self, attr: Attr) -> Attr:
        """Embed a script-valued attribute as a string-valued one.

        Raises:
            InvalidAttributeNameError: Before any integer is taken.
            ConversionError: If the value is not a script unit, also before
                any integer is taken.
        """
        name = to_name(attr.name)
        if not is_valid_attr_name(name):
            raise InvalidAttributeNameError(name)
        if not is_script(attr.value):
            raise ConversionError(
                f"Attribute {name} holds {type(attr.value).__name__}, "
                "not a script unit"
            )
        i, text = self.render(attr.value)
        log.debug("Embedding script block %d as attribute %s", i, name)
        return Attr(name, text)


def is_script(value: Any) -> bool:
    return isinstance(value, (JStat, JExpr))


def markup_to_js_expr(markup: Any) -> JExpr:
    """Build an expression that recreates ``markup`` as a live DOM node.

    The markup is rendered once, here; the expression carries the HTML as a
    string literal and parses it in the browser through innerHTML.

    The literal is html-safe JSON, so ``<``, ``>``, ``&`` and ``'`` appear as
    ``\\u003c``-style escapes. It decodes to exactly ``render_html(markup)``
    but its source text is not byte-identical to that HTML.
    """
    html = render_html(markup)
    return jmacro_e(_REBUILD_NODE, html=html)
