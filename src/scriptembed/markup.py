"""Markup primitives on top of markupsafe.

Anything with an ``__html__`` method is a markup value. A zero-argument
callable returning one is a pure markup computation and is forced when
rendered.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union

from jinja2 import Template
from markupsafe import Markup, escape

from scriptembed.exceptions import InvalidAttributeNameError

# An attribute name, optionally qualified: "onclick" or ("xlink", "href")
Name = Union[str, Tuple[Optional[str], str]]

# Same rule as jinja's xmlattr filter, plus quotes and "<"
_INVALID_ATTR_CHAR = re.compile(r"[\s/>=\"'<]", flags=re.ASCII)


def to_name(name: Name) -> str:
    """Convert a plain or namespace-qualified name to its markup spelling."""
    if isinstance(name, tuple):
        namespace, local = name
        return f"{namespace}:{local}" if namespace else local
    return str(name)


def is_valid_attr_name(name: str) -> bool:
    return bool(name) and _INVALID_ATTR_CHAR.search(name) is None


@dataclass(frozen=True)
class Attr:
    """A name/value pair destined for an element's attribute list."""

    name: Any
    value: Any

    def __html__(self) -> str:
        name = to_name(self.name)
        if not is_valid_attr_name(name):
            raise InvalidAttributeNameError(name)
        return f'{name}="{escape(self.value)}"'

    def __str__(self) -> str:
        return self.__html__()


@dataclass
class Fragment:
    """A template bound to its variables: a pure markup value."""

    template: Template
    vars: Mapping[str, Any] = field(default_factory=dict)

    def __html__(self) -> str:
        return self.template.render(**self.vars)


def element(
    tag: str,
    attrs: Iterable[Attr] = (),
    children: Iterable[Any] = (),
    raw: bool = False,
) -> Markup:
    """Build an element.

    Children are escaped unless they are markup. With ``raw=True`` they
    are inserted verbatim, as required for raw text elements like script.
    """
    parts = [f"<{tag}"]
    for attr in attrs:
        parts.append(" " + attr.__html__())
    parts.append(">")
    for child in children:
        parts.append(str(child) if raw else str(escape(child)))
    parts.append(f"</{tag}>")
    return Markup("".join(parts))


def render_html(value: Any) -> str:
    """Evaluate a pure markup value and render it to an HTML string."""
    if callable(value) and not hasattr(value, "__html__"):
        value = value()
    return str(escape(value))
