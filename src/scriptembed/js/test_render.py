"""Tests for quasi-quotation and rendering."""

import json

import pytest

from scriptembed.exceptions import AntiquoteError, ConversionError, QuoteSyntaxError
from scriptembed.js import JExpr, JStat, jmacro, jmacro_e, render_prefix_js, to_js_expr


def one_line(unit, prefix=None):
    return unit.render(prefix=prefix, one_line=True)


def test_compact_statement():
    assert one_line(jmacro("x = 1;")) == "x=1;"


def test_semicolon_inserted_at_line_break():
    assert one_line(jmacro("a = 1\nb = 2")) == "a=1;b=2"


def test_return_followed_by_line_break():
    """A line break after return ends the statement, as in JavaScript."""
    stat = jmacro("function f() {\n  return\n  x\n}")
    assert one_line(stat) == "function f(){return;x}"


def test_control_header_not_terminated():
    assert one_line(jmacro("if (a)\n  b()")) == "if(a)b()"


def test_else_joins_block():
    stat = jmacro("if (a) {\n  b()\n}\nelse {\n  c()\n}")
    assert one_line(stat) == "if(a){b()}else{c()}"


def test_expression_continues_over_line_break():
    assert one_line(jmacro("x = a\n  + b;")) == "x=a+b;"


def test_one_line_has_no_line_breaks():
    stat = jmacro(
        """
        var items = [1, 2, 3];
        for (var i = 0; i < items.length; i++) {
          console.log(items[i])
        }
        """
    )
    assert "\n" not in one_line(stat, prefix="4")


def test_operators_kept_apart():
    assert one_line(jmacro_e("a - -b")) == "a- -b"
    assert one_line(jmacro_e("a + ++b")) == "a+ ++b"


def test_multi_line_reindents():
    stat = jmacro("if (a) {\nb();\n}")
    assert stat.render() == "if (a) {\n  b();\n}"


def test_hygienic_var_uses_prefix():
    stat = jmacro("var count = 0; count += 1;")
    assert one_line(stat, prefix="3") == "var jmId_0_3=0;jmId_0_3+=1;"
    assert one_line(stat) == "var jmId_0=0;jmId_0+=1;"


def test_prefixes_keep_blocks_apart():
    stat = jmacro("var count = 0;")
    assert one_line(stat, prefix="0") != one_line(stat, prefix="1")


def test_bang_keeps_name():
    assert one_line(jmacro("var !count = 0;")) == "var count=0;"


def test_function_params_are_hygienic():
    stat = jmacro("function add(a, b) { return a + b; }")
    assert (
        one_line(stat, prefix="1")
        == "function add(jmId_0_1,jmId_1_1){return jmId_0_1+jmId_1_1;}"
    )


def test_member_and_key_names_untouched():
    assert one_line(jmacro("var node = el; obj.node = node;")) == (
        "var jmId_0=el;obj.node=jmId_0;"
    )
    assert one_line(jmacro("var x = {x: x};")) == "var jmId_0={x:jmId_0};"


def test_render_prefix_js_custom_fresh_prefix():
    stat = jmacro("let n = 1;")
    assert render_prefix_js("2", stat, fresh_prefix="tmp") == "let tmp_0_2=1;"


def test_splice_values():
    stat = jmacro("f(`(v)`);", v=[1, "a<b", None, True])
    assert one_line(stat) == 'f([1,"a\\u003cb",null,true]);'


def test_splice_wraps_compound_expressions():
    assert one_line(jmacro("x = `(n)`;", n=-2)) == "x=(-2);"
    assert one_line(jmacro_e("`(e)` * 2", e=jmacro_e("a + b"))) == "(a+b)*2"


def test_spliced_statements_keep_their_own_names():
    inner = jmacro("var t = 1;")
    outer = jmacro("var t = 2; `(inner)`", inner=inner)
    assert one_line(outer, prefix="5") == "var jmId_0_5=2;var jmId_1_5=1;"


def test_missing_antiquote():
    with pytest.raises(AntiquoteError):
        jmacro("f(`(missing)`);")


def test_unbalanced_source():
    with pytest.raises(QuoteSyntaxError):
        jmacro("f(")
    with pytest.raises(QuoteSyntaxError):
        jmacro("f(]")


def test_empty_expression():
    with pytest.raises(QuoteSyntaxError):
        jmacro_e("  // nothing")


def test_concatenate_statements():
    stat = jmacro("a()") + jmacro("b()")
    assert isinstance(stat, JStat)
    assert one_line(stat) == "a();b()"
    assert jmacro("") + jmacro("c();") == jmacro("c();")


def test_expression_statement():
    assert one_line(jmacro_e("f(1)").to_stat()) == "f(1);"


def test_to_js_expr_literals():
    assert one_line(to_js_expr({"a": 1, "b": [True]})) == '{"a":1,"b":[true]}'
    assert one_line(to_js_expr(float("inf"))) == "Infinity"
    assert one_line(to_js_expr(float("-inf"))) == "-Infinity"
    assert one_line(to_js_expr(float("nan"))) == "NaN"
    assert one_line(to_js_expr(1.5)) == "1.5"


def test_to_js_expr_string_is_json():
    text = "</script> & 'quotes' \N{LINE SEPARATOR}"
    literal = one_line(to_js_expr(text))
    assert "<" not in literal
    assert json.loads(literal) == text


def test_to_js_expr_hook():
    class Handle:
        def __js__(self):
            return jmacro_e("window.handle")

    assert one_line(to_js_expr(Handle())) == "window.handle"


def test_to_js_expr_rejects_unknown_values():
    with pytest.raises(ConversionError):
        to_js_expr(object())
    with pytest.raises(TypeError):
        to_js_expr(jmacro("x();"))


def test_units_compare_by_tokens():
    assert jmacro_e("a + b") == jmacro_e("a + b")
    assert jmacro_e("a+b") != jmacro_e("a + b")  # layout is part of the unit
    assert jmacro_e("a") != jmacro("a")
    assert isinstance(jmacro_e("a"), JExpr)


def test_identical_quotes_compare_equal():
    assert jmacro("var x;") == jmacro("var x;")
    assert hash(jmacro("var x;")) == hash(jmacro("var x;"))
    assert jmacro("var x;") != jmacro("var y;")


def test_one_line_drops_string_line_continuations():
    stat = jmacro('s = "a\\\nb";')
    assert one_line(stat) == 's="ab";'
    assert one_line(jmacro('s = "a\\\r\nb";')) == 's="ab";'
    # Multi-line output keeps the source as written
    assert stat.render() == 's = "a\\\nb";'


def test_one_line_keeps_escaped_backslashes():
    assert one_line(jmacro('s = "a\\\\";')) == 's="a\\\\";'
    assert one_line(jmacro("s = 'a\\\\' + \"\\n\";")) == "s='a\\\\'+\"\\n\";"


def test_one_line_escapes_raw_line_separators():
    stat = jmacro('s = "a\N{LINE SEPARATOR}b\N{PARAGRAPH SEPARATOR}";')
    assert one_line(stat) == 's="a\\u2028b\\u2029";'


def test_while_after_block_is_a_new_statement():
    stat = jmacro("var o = {}\nwhile (o.a) { o.a-- }")
    assert one_line(stat) == "var jmId_0={};while(jmId_0.a){jmId_0.a--}"


def test_do_while_stays_joined():
    assert one_line(jmacro("do {\n  i++\n}\nwhile (i < 3)")) == "do{i++}while(i<3)"


def test_shorthand_property_keeps_its_key():
    stat = jmacro("var x = 1; send({x});")
    assert one_line(stat) == "var jmId_0=1;send({x:jmId_0});"
    stat = jmacro("var x = 1; send({a: 2, x, b: x});")
    assert one_line(stat) == "var jmId_0=1;send({a:2,x:jmId_0,b:jmId_0});"


def test_shorthand_in_destructuring_pattern():
    stat = jmacro("var x = 1; var {x} = o;")
    assert one_line(stat) == "var jmId_0=1;var{x:jmId_0}=o;"


def test_arrays_and_blocks_are_not_objects():
    assert one_line(jmacro("var x = 1; f([x, x]);")) == (
        "var jmId_0=1;f([jmId_0,jmId_0]);"
    )
    assert one_line(jmacro("var x = 1;\nif (x) {x}")) == (
        "var jmId_0=1;if(jmId_0){jmId_0}"
    )


def test_method_names_untouched():
    stat = jmacro("var x = 1; o = {x() { return x; }};")
    assert one_line(stat) == "var jmId_0=1;o={x(){return jmId_0;}};"
