"""Jinja2 integration for embedding generated script in templates.

Every top-level render gets its own integer supply, stored in the render
context under ``integer_supply``; included templates share it. Pass your
own supply under that key to keep numbering across several renders.

Within templates:

    {{ handler }}                       {# a JStat becomes a <script> element #}
    <button {{ js_attr('onclick', click) }}>Go</button>
    <a{{ {'href': '#', 'onclick': click} | jsattrs }}>link</a>
    {% script %}
      var count = {{ items | length | tojs }};
      console.log(`(user)`);            {# antiquotes read template variables #}
    {% endscript %}
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from jinja2 import Environment, Template, nodes, pass_context
from jinja2.ext import Extension
from jinja2.runtime import Context, Undefined
from markupsafe import Markup

from scriptembed.config import EmbedConfig
from scriptembed.embed import ScriptEmbedder, is_script
from scriptembed.exceptions import SupplyUnavailableError
from scriptembed.js.lexer import SLOT_PATTERN
from scriptembed.js.quote import JStat, jmacro, jmacro_e, to_js_expr
from scriptembed.js.render import render_js
from scriptembed.markup import Attr, Fragment
from scriptembed.supply import Counter, IntegerSupply, LockedCounter

log = logging.getLogger(__name__)

SUPPLY_KEY = "integer_supply"


class ScriptTemplate(Template):
    """Template that starts every top-level render with a fresh supply."""

    def new_context(
        self,
        vars: dict[str, Any] | None = None,
        shared: bool = False,
        locals: Mapping[str, Any] | None = None,
    ) -> Context:
        if vars is None or SUPPLY_KEY not in vars:
            vars = dict(vars or {})
            vars[SUPPLY_KEY] = self.environment.make_supply()  # type: ignore[attr-defined]
        return super().new_context(vars, shared, locals)


def embedder_for(context: Context) -> ScriptEmbedder:
    """Build an embedder over the supply of a render context.

    Raises:
        SupplyUnavailableError: If the context carries no supply, i.e. the
            template was not created by a ScriptEnvironment and the caller
            passed none.
    """
    supply = context.get(SUPPLY_KEY)
    if not isinstance(supply, IntegerSupply):
        raise SupplyUnavailableError(
            f"No integer supply in render context (expected {SUPPLY_KEY!r}); "
            "render through a ScriptEnvironment or pass one explicitly"
        )
    config = getattr(context.environment, "embed_config", None)
    return ScriptEmbedder(supply, config)


@pass_context
def embed_finalize(context: Context, value: Any) -> Any:
    """Output hook: statement blocks become <script> children."""
    if isinstance(value, JStat):
        return embedder_for(context).as_child(value)
    return value


@pass_context
def js_attr(context: Context, name: Any, value: Any) -> Markup:
    """Render one attribute, embedding script values on a single line."""
    return Markup(_attr(context, name, value).__html__())


@pass_context
def jsattrs(
    context: Context, mapping: Mapping[Any, Any], autospace: bool = True
) -> Markup:
    """Like xmlattr, with script values embedded as attribute text.

    None and undefined values are skipped.
    """
    parts = []
    for name, value in mapping.items():
        if value is None or isinstance(value, Undefined):
            continue
        parts.append(_attr(context, name, value).__html__())
    rv = " ".join(parts)
    if autospace and rv:
        rv = " " + rv
    return Markup(rv)


def tojs(value: Any) -> str:
    """One-line JavaScript for a Python value."""
    return render_js(to_js_expr(value), one_line=True)


def _attr(context: Context, name: Any, value: Any) -> Attr:
    if is_script(value):
        return embedder_for(context).as_attr(Attr(name, value))
    return Attr(name, value)


class ScriptExtension(Extension):
    """{% script %}...{% endscript %} blocks.

    The body is rendered without autoescaping, quasi-quoted with the
    template context and the local variables in scope as antiquotation
    slots, and embedded as a <script> element with a fresh integer.
    """

    tags = {"script"}

    def parse(self, parser):
        lineno = next(parser.stream).lineno

        body = parser.parse_statements(("name:endscript",), drop_needle=True)

        # Slots written literally in the body also load from the enclosing
        # scope: loop variables, macro arguments and {% set %} values
        slot_names = sorted(
            {
                name
                for stmt in body
                for data in stmt.find_all(nodes.TemplateData)
                for name in SLOT_PATTERN.findall(data.data)
                if name.isidentifier()
            }
        )
        slots = nodes.Dict(
            [
                nodes.Pair(nodes.Const(name), nodes.Name(name, "load"))
                for name in slot_names
            ]
        )

        body = [
            nodes.ScopedEvalContextModifier(
                [nodes.Keyword("autoescape", nodes.Const(False))], body
            )
        ]

        return nodes.CallBlock(
            self.call_method("_embed_block", [nodes.ContextReference(), slots]),
            [],
            [],
            body,
        ).set_lineno(lineno)

    def _embed_block(
        self, context: Context, local_slots: dict[str, Any], caller
    ) -> Markup:
        source = str(caller())
        values = dict(context.get_all())
        values.update(
            (name, value)
            for name, value in local_slots.items()
            if not isinstance(value, Undefined)
        )
        stat = jmacro(source, **values)
        return embedder_for(context).as_child(stat)


class ScriptEnvironment(Environment):
    """Jinja2 environment that embeds generated script.

    Autoescaping is on unless disabled explicitly.
    """

    template_class = ScriptTemplate

    def __init__(self, config: EmbedConfig | None = None, **options: Any):
        options.setdefault("autoescape", True)
        extensions = list(options.pop("extensions", ()))
        if ScriptExtension not in extensions:
            extensions.append(ScriptExtension)
        super().__init__(finalize=embed_finalize, extensions=extensions, **options)

        self.embed_config = config or EmbedConfig()
        self._shared_supply: IntegerSupply | None = None
        if self.embed_config.supply_scope == "process":
            self._shared_supply = LockedCounter(self.embed_config.start)

        self.globals["jmacro"] = jmacro
        self.globals["jmacro_e"] = jmacro_e
        self.globals["js_attr"] = js_attr
        self.filters["jsattrs"] = jsattrs
        self.filters["tojs"] = tojs

    def make_supply(self) -> IntegerSupply:
        """Supply for a new top-level render."""
        if self._shared_supply is not None:
            return self._shared_supply
        log.debug("New integer supply starting at %d", self.embed_config.start)
        return Counter(self.embed_config.start)

    def fragment(self, source: str, **vars: Any) -> Fragment:
        """A pure markup value from template source."""
        return Fragment(self.from_string(source), vars)


def get_script_jinja_env(
    config: EmbedConfig | None = None, **options: Any
) -> ScriptEnvironment:
    """Create a Jinja2 Environment that embeds generated script.

    Returns:
        Configured ScriptEnvironment.
    """
    return ScriptEnvironment(config, **options)
