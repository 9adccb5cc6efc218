from types import MappingProxyType

import pytest

from pagequery import load_document


def names(node):
    return [child.name for child in node.children]


def shape(node):
    """Compact nested description of element structure, ignoring text."""
    return [(child.name, shape(child)) for child in node.children if child.name != "#text"]


def test_no_html_head_body_synthesized():
    doc = load_document("<p>hi</p>")
    assert doc.root.name == "#document"
    assert names(doc.root) == ["p"]


def test_top_level_text_is_kept():
    doc = load_document("before<b>x</b>after")
    assert names(doc.root) == ["#text", "b", "#text"]
    assert doc.root.children[0].data == "before"


def test_paragraph_closed_by_next_paragraph():
    doc = load_document("<p>one<p>two")
    assert shape(doc.root) == [("p", []), ("p", [])]


def test_paragraph_closed_by_block_element():
    doc = load_document("<p>intro<div>block</div>")
    assert shape(doc.root) == [("p", []), ("div", [])]


def test_list_items_close_each_other():
    doc = load_document("<ul><li>a<li>b<li>c</ul>")
    assert shape(doc.root) == [("ul", [("li", []), ("li", []), ("li", [])])]


def test_nested_list_item_does_not_close_outer():
    doc = load_document("<ul><li>a<ul><li>b</ul></li><li>c</ul>")
    assert shape(doc.root) == [("ul", [("li", [("ul", [("li", [])])]), ("li", [])])]


def test_definition_list_items():
    doc = load_document("<dl><dt>term<dd>def<dt>term2<dd>def2</dl>")
    assert names(doc.root.children[0]) == ["dt", "dd", "dt", "dd"]


def test_headings_do_not_nest():
    doc = load_document("<h1>a<h2>b</h2>")
    assert shape(doc.root) == [("h1", []), ("h2", [])]


def test_anchors_do_not_nest():
    doc = load_document('<a href="1">one<a href="2">two</a>')
    assert shape(doc.root) == [("a", []), ("a", [])]


def test_options_close_each_other():
    doc = load_document("<select><option>a<option>b<optgroup><option>c</select>")
    assert shape(doc.root) == [("select", [("option", []), ("option", []), ("optgroup", [("option", [])])])]


def test_table_rows_and_cells():
    doc = load_document("<table><tr><td>1<td>2<tr><td>3</table><p>after")
    assert shape(doc.root) == [
        ("table", [("tr", [("td", []), ("td", [])]), ("tr", [("td", [])])]),
        ("p", []),
    ]


def test_table_sections_close_each_other():
    doc = load_document("<table><thead><tr><th>h<tbody><tr><td>d</table>")
    table = doc.root.children[0]
    assert names(table) == ["thead", "tbody"]


def test_void_elements_get_no_children():
    doc = load_document("<p>a<br>b<img src=x>c</p>")
    p = doc.root.children[0]
    assert names(p) == ["#text", "br", "#text", "img", "#text"]
    assert p.children[1].children == ()


def test_void_end_tag_is_ignored():
    doc = load_document("<p>a</br>b</p>", collect_errors=True)
    assert names(doc.root.children[0]) == ["#text"]
    assert doc.root.children[0].children[0].data == "ab"
    assert [e.code for e in doc.errors] == ["unexpected-void-end-tag"]


def test_unknown_tags_are_elements():
    doc = load_document("<my-widget size=3><x-y>z</x-y></my-widget>")
    assert shape(doc.root) == [("my-widget", [("x-y", [])])]
    assert doc.root.children[0].attrs["size"] == "3"


def test_end_tag_closes_unclosed_children():
    doc = load_document("<div><span>x</div>after", collect_errors=True)
    assert shape(doc.root) == [("div", [("span", [])])]
    assert doc.root.children[1].data == "after"
    assert [e.code for e in doc.errors] == ["end-tag-too-early"]


def test_stray_end_tag_is_ignored():
    doc = load_document("<div>a</span>b</div>", collect_errors=True)
    div = doc.root.children[0]
    assert names(div) == ["#text"]
    assert div.children[0].data == "ab"
    assert doc.errors[0].code == "unexpected-end-tag"
    assert doc.errors[0].line == 1
    assert doc.errors[0].column == 7


def test_unclosed_elements_close_at_end_of_input():
    doc = load_document("<div><p>text", collect_errors=True)
    assert shape(doc.root) == [("div", [("p", [])])]
    # <p> may be left open; <div> may not
    assert [e.code for e in doc.errors] == ["expected-closing-tag-but-got-eof"]


def test_self_closing_non_void_html_element_stays_open():
    doc = load_document("<div/><span>inside</span>", collect_errors=True)
    assert shape(doc.root) == [("div", [("span", [])])]
    assert doc.errors[0].code == "non-void-html-element-start-tag-with-trailing-solidus"


def test_self_closing_in_svg():
    doc = load_document('<svg><circle r="1"/><rect/></svg>', collect_errors=True)
    assert shape(doc.root) == [("svg", [("circle", []), ("rect", [])])]
    assert doc.errors == []


def test_comments_are_discarded():
    doc = load_document("<!doctype html><div><!-- c -->x<?pi?>y</div>")
    div = doc.root.children[0]
    assert names(doc.root) == ["div"]
    assert names(div) == ["#text"]
    assert div.children[0].data == "xy"


def test_boolean_attribute_is_empty_string():
    doc = load_document("<input disabled type=checkbox>")
    assert dict(doc.root.children[0].attrs) == {"disabled": "", "type": "checkbox"}


def test_tree_is_frozen_after_parse():
    doc = load_document('<div id="a"><p>x</p></div>')
    div = doc.root.children[0]
    assert isinstance(div.children, tuple)
    assert isinstance(div.attrs, MappingProxyType)
    with pytest.raises(TypeError):
        div.attrs["id"] = "b"


def test_parent_links():
    doc = load_document("<div><p><b>x</b></p></div>")
    div = doc.root.children[0]
    p = div.children[0]
    b = p.children[0]
    assert b.parent is p
    assert p.parent is div
    assert div.parent is doc.root
    assert doc.root.parent is None
    assert [node.name for node in b.iter_ancestors()] == ["p", "div", "#document"]


def test_deep_nesting_does_not_recurse():
    depth = 2000
    doc = load_document("<div>" * depth + "x" + "</div>" * depth)
    assert doc.text == "x"
    assert len(doc.find_all("div")) == depth
