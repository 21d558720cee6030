"""scriptembed - embed generated JavaScript in Jinja2 templates.

Script units quasi-quoted with ``jmacro`` become <script> elements or
attribute values, each rendered on one line with a fresh integer prefix.
Markup converts to a script expression that rebuilds it as a DOM node.
"""

from scriptembed.config import EmbedConfig, find_config, load_config, save_config
from scriptembed.embed import ScriptEmbedder, markup_to_js_expr
from scriptembed.environment import (
    ScriptEnvironment,
    ScriptExtension,
    ScriptTemplate,
    get_script_jinja_env,
)
from scriptembed.js import (
    JExpr,
    JStat,
    jmacro,
    jmacro_e,
    render_js,
    render_prefix_js,
    to_js_expr,
)
from scriptembed.markup import Attr, Fragment, element, render_html
from scriptembed.supply import (
    Counter,
    IntegerSupply,
    LockedCounter,
    MappingSupply,
    StateSupply,
    next_integer_from,
)
from scriptembed.utils import setup_logging

__all__ = [
    # Supplies
    "IntegerSupply",
    "Counter",
    "LockedCounter",
    "StateSupply",
    "MappingSupply",
    "next_integer_from",
    # Script units
    "JStat",
    "JExpr",
    "jmacro",
    "jmacro_e",
    "to_js_expr",
    "render_js",
    "render_prefix_js",
    # Markup
    "Attr",
    "Fragment",
    "element",
    "render_html",
    # Embedding
    "ScriptEmbedder",
    "markup_to_js_expr",
    "ScriptEnvironment",
    "ScriptExtension",
    "ScriptTemplate",
    "get_script_jinja_env",
    # Config
    "EmbedConfig",
    "find_config",
    "load_config",
    "save_config",
    # Logging
    "setup_logging",
]
