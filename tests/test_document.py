import logging

import pytest

from pagequery import Document, MalformedMarkupError, ParseError, TokenizerOpts, load_document


def test_load_document_returns_document():
    doc = load_document("<p>x</p>")
    assert isinstance(doc, Document)
    assert doc.root.name == "#document"
    assert doc.errors == []


def test_none_and_empty_markup():
    assert Document(None).root.children == ()
    assert load_document("").find_all("*") == []


def test_lenient_parse_has_no_errors_by_default():
    doc = load_document("<div><p>unclosed</span>")
    assert doc.errors == []
    assert doc.find("p").text == "unclosed"


def test_collect_errors_in_source_order():
    doc = load_document('<div>\n<a href=1 href=2>x</a></span></div>', collect_errors=True)
    codes = [e.code for e in doc.errors]
    assert codes == ["duplicate-attribute", "unexpected-end-tag"]
    assert all(isinstance(e, ParseError) for e in doc.errors)
    assert doc.errors[1].line == 2

    doc = load_document("<div>a</span><p id=1 id=2>b</p></div>", collect_errors=True)
    assert [e.code for e in doc.errors] == ["unexpected-end-tag", "duplicate-attribute"]


def test_strict_raises_first_error():
    with pytest.raises(MalformedMarkupError) as excinfo:
        load_document("<p>ok</p>\n<div>a</span></div>", strict=True)
    err = excinfo.value
    assert err.code == "unexpected-end-tag"
    assert err.lineno == 2
    assert err.offset == 7
    assert err.text == "<div>a</span></div>"
    assert "</span>" in err.msg


def test_strict_raises_earliest_error_across_stages():
    with pytest.raises(MalformedMarkupError) as excinfo:
        load_document("<div>a</span>\n<p id=1 id=2>b</p></div>", strict=True)
    assert excinfo.value.code == "unexpected-end-tag"
    assert excinfo.value.lineno == 1


def test_strict_accepts_clean_markup():
    doc = load_document("<ul><li>a</li></ul>", strict=True)
    assert doc.find("li").text == "a"


def test_unterminated_tag_is_malformed_even_when_lenient():
    with pytest.raises(MalformedMarkupError):
        load_document('<div class="card">text<a href="/x')


def test_malformed_markup_error_is_syntax_error():
    with pytest.raises(SyntaxError):
        load_document("<p")


def test_text_property_and_to_text():
    doc = load_document("<h1> Title </h1><p>Body <b>bold</b></p>")
    assert doc.text == " Title Body bold"
    assert doc.to_text() == "Title Body bold"


def test_to_html_defaults_to_compact():
    doc = load_document("<div><p>x</p></div>")
    assert doc.to_html() == "<div><p>x</p></div>"


def test_tokenizer_opts_are_passed_through():
    doc = load_document("\ufeff<p>x</p>", tokenizer_opts=TokenizerOpts(discard_bom=False))
    assert doc.root.children[0].data == "\ufeff"


def test_parse_is_logged_at_debug(caplog):
    with caplog.at_level(logging.DEBUG, logger="pagequery.document"):
        load_document("<p>x</p>")
    assert any("Parsed" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize(
    "code,tag_name,message",
    [
        ("eof-in-tag", None, "Unexpected end of file in tag"),
        ("unexpected-end-tag", "span", "Unexpected </span> end tag"),
        ("expected-closing-tag-but-got-eof", "div", "Expected </div> closing tag but reached end of file"),
        ("no-such-code", None, "no-such-code"),
    ],
)
def test_generate_error_message(code, tag_name, message):
    from pagequery.errors import generate_error_message

    assert generate_error_message(code, tag_name) == message
