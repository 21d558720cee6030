"""Tests for script embedders."""

import json
import re

import pytest
from markupsafe import Markup

from scriptembed.config import EmbedConfig
from scriptembed.embed import ScriptEmbedder, is_script, markup_to_js_expr
from scriptembed.exceptions import ConversionError, InvalidAttributeNameError
from scriptembed.js import jmacro, jmacro_e
from scriptembed.markup import Attr
from scriptembed.supply import Counter


@pytest.fixture
def counter():
    return Counter(0)


@pytest.fixture
def embedder(counter):
    return ScriptEmbedder(counter)


def test_as_child_takes_one_integer(embedder, counter):
    stat = jmacro("x = 1;")

    html = embedder.as_child(stat)
    assert html == '<script type="text/javascript">x=1;</script>'
    assert isinstance(html, Markup)
    assert counter.value == 1

    assert embedder.as_child(stat) == html
    assert counter.value == 2


def test_each_block_gets_its_own_names(embedder):
    stat = jmacro("var total = 0;")
    first = embedder.as_child(stat)
    second = embedder.as_child(stat)
    assert "var jmId_0_0=0;" in first
    assert "var jmId_0_1=0;" in second


def test_render_returns_integer_and_text(counter):
    counter.value = 9
    i, text = ScriptEmbedder(counter).render(jmacro_e("f(1)"))
    assert (i, text) == (9, "f(1)")


def test_as_attr(embedder, counter):
    attr = embedder.as_attr(Attr("onclick", jmacro('go("home"); return false;')))
    assert attr.name == "onclick"
    assert attr.value == 'go("home");return false;'
    assert attr.__html__() == 'onclick="go(&#34;home&#34;);return false;"'
    assert counter.value == 1


def test_as_attr_qualified_name(embedder):
    attr = embedder.as_attr(Attr(("xlink", "href"), jmacro_e("void 0")))
    assert attr.__html__() == 'xlink:href="void 0"'


def test_invalid_attr_name_keeps_counter(embedder, counter):
    with pytest.raises(InvalidAttributeNameError) as exc:
        embedder.as_attr(Attr("on click", jmacro("go();")))
    assert exc.value.name == "on click"
    assert counter.value == 0


def test_script_close_is_escaped(embedder):
    html = embedder.as_child(jmacro("s = '</SCRIPT>';"))
    assert html == "<script type=\"text/javascript\">s='<\\/SCRIPT>';</script>"


def test_script_close_escape_can_be_disabled(counter):
    embedder = ScriptEmbedder(counter, EmbedConfig(escape_script_close=False))
    assert "'</script>'" in embedder.as_child(jmacro("s = '</script>';"))


def test_config_controls_output(counter):
    config = EmbedConfig(script_type="module", fresh_prefix="h")
    html = ScriptEmbedder(counter, config).as_child(jmacro("let v = 2;"))
    assert html == '<script type="module">let h_0_0=2;</script>'


def test_is_script():
    assert is_script(jmacro("a();"))
    assert is_script(jmacro_e("a"))
    assert not is_script("a();")


def innerhtml_literal(text):
    match = re.search(r"node\.innerHTML=(.*);return node\.childNodes\[0\];", text)
    assert match, text
    return json.loads(match.group(1))


def test_markup_to_js_expr_rebuilds_node():
    html = Markup("<p>Hi <em>there</em> & 'you'</p>")
    text = markup_to_js_expr(html).render(one_line=True)

    assert text.startswith(
        "(function(){var node=document.createElement('div');node.innerHTML="
    )
    assert text.endswith(";return node.childNodes[0];})()")
    assert "<" not in text
    assert innerhtml_literal(text) == str(html)


def test_markup_to_js_expr_forces_thunks():
    text = markup_to_js_expr(lambda: Markup("<br>")).render(one_line=True)
    assert innerhtml_literal(text) == "<br>"


def test_markup_spliced_into_script(embedder):
    stat = jmacro(
        "document.body.appendChild(`(msg)`);",
        msg=Markup("<p>Saved</p>"),
    )
    html = embedder.as_child(stat)
    assert html.startswith(
        '<script type="text/javascript">document.body.appendChild(((function(){'
    )
    assert html.endswith("})()));</script>")
    assert "<p>" not in html


def test_as_attr_rejects_plain_values(embedder, counter):
    with pytest.raises(ConversionError):
        embedder.as_attr(Attr("title", "plain"))
    assert counter.value == 0


def test_embedded_script_has_no_line_breaks(embedder):
    html = embedder.as_child(jmacro('s = "a\\\nb";\nf(s)'))
    assert html == '<script type="text/javascript">s="ab";f(s)</script>'
    assert "\n" not in html
