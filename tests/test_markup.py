"""Tests for markup primitives."""

import pytest
from jinja2 import Environment
from markupsafe import Markup

from scriptembed.exceptions import InvalidAttributeNameError
from scriptembed.markup import (
    Attr,
    Fragment,
    element,
    is_valid_attr_name,
    render_html,
    to_name,
)


def test_to_name():
    assert to_name("onclick") == "onclick"
    assert to_name(("xlink", "href")) == "xlink:href"
    assert to_name((None, "href")) == "href"


@pytest.mark.parametrize("name", ["onclick", "data-id", "xlink:href", "aria-label"])
def test_valid_attr_names(name):
    assert is_valid_attr_name(name)


@pytest.mark.parametrize("name", ["", "on click", "a/b", "a>b", "a=b", 'a"b', "a'b"])
def test_invalid_attr_names(name):
    assert not is_valid_attr_name(name)


def test_attr_escapes_value():
    attr = Attr("title", 'say "hi" & <go>')
    assert attr.__html__() == 'title="say &#34;hi&#34; &amp; &lt;go&gt;"'


def test_attr_rejects_invalid_name():
    with pytest.raises(InvalidAttributeNameError):
        Attr("bad name", "x").__html__()


def test_element_escapes_text_children():
    html = element("p", [Attr("class", "x")], ["a<b", Markup("<em>c</em>")])
    assert html == '<p class="x">a&lt;b<em>c</em></p>'
    assert isinstance(html, Markup)


def test_raw_element_keeps_text():
    assert element("script", [], ["a<b && c"], raw=True) == "<script>a<b && c</script>"


def test_render_html_forces_thunks():
    assert render_html(lambda: Markup("<br>")) == "<br>"


def test_render_html_escapes_plain_text():
    assert render_html("a<b") == "a&lt;b"


def test_fragment_is_pure_markup():
    env = Environment(autoescape=True)
    frag = Fragment(env.from_string("<p>{{ name }}</p>"), {"name": "<Ann>"})
    assert render_html(frag) == "<p>&lt;Ann&gt;</p>"
    # Rendering twice gives the same markup
    assert render_html(frag) == render_html(frag)
