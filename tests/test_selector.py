import pytest

from pagequery.errors import InvalidSelectorError
from pagequery.selector import (
    Combinator,
    ComplexSelector,
    CompoundSelector,
    SelectorList,
    SimpleSelector,
    compile_selector,
    parse_selector,
)


def test_compiles_compound_and_child_combinator():
    compiled = compile_selector("div.card > a[href]")
    assert compiled == SelectorList(
        [
            ComplexSelector(
                [
                    (
                        None,
                        CompoundSelector(
                            [
                                SimpleSelector(SimpleSelector.TYPE_TAG, name="div"),
                                SimpleSelector(SimpleSelector.TYPE_CLASS, name="card"),
                            ]
                        ),
                    ),
                    (
                        Combinator.CHILD,
                        CompoundSelector(
                            [
                                SimpleSelector(SimpleSelector.TYPE_TAG, name="a"),
                                SimpleSelector(SimpleSelector.TYPE_ATTR, name="href"),
                            ]
                        ),
                    ),
                ]
            )
        ]
    )


def test_descendant_combinator_from_whitespace():
    compiled = compile_selector("ul \n li")
    (complex_selector,) = compiled.selectors
    assert [combinator for combinator, _ in complex_selector.parts] == [None, Combinator.DESCENDANT]


@pytest.mark.parametrize(
    "text,expected",
    [
        ("div.card > a[href]", "div.card > a[href]"),
        ("  DIV   P ", "div p"),
        ("a,b , c", "a, b, c"),
        ("*#main", "*#main"),
        ("[data-X='1 2']", '[data-x="1 2"]'),
        ('[title="say \\"hi\\""]', '[title="say \\"hi\\""]'),
        ("[lang=en]", '[lang="en"]'),
        ("a>b", "a > b"),
    ],
)
def test_str_is_canonical(text, expected):
    assert str(compile_selector(text)) == expected


def test_attribute_value_is_case_sensitive():
    (complex_selector,) = compile_selector("[Type=Submit]").selectors
    (simple,) = complex_selector.parts[0][1].selectors
    assert simple.name == "type"
    assert simple.value == "Submit"


def test_compiled_selectors_compare_by_value():
    assert parse_selector("a, b") == parse_selector("a,b")
    assert hash(parse_selector("div > p")) == hash(parse_selector("div>p"))
    assert parse_selector("div p") != parse_selector("div > p")
    assert len({parse_selector(".x"), parse_selector(" .x ")}) == 1


def test_compile_selector_memoizes():
    assert compile_selector("section .item") is compile_selector("section .item")


@pytest.mark.parametrize(
    "text,position,reason",
    [
        ("", 0, "empty selector"),
        ("   ", 0, "empty selector"),
        ("div >", 5, "expected selector after combinator"),
        (">a", 0, "combinator without a preceding selector"),
        (" > a", 1, "combinator without a preceding selector"),
        ("a > > b", 4, "expected selector after combinator"),
        ("a,,b", 2, "empty selector in list"),
        ("a,", 2, "empty selector in list"),
        (",a", 0, "empty selector in list"),
        ("a + b", 2, "unsupported combinator '+'"),
        ("a ~ b", 2, "unsupported combinator '~'"),
        ("a:hover", 1, "pseudo-classes and pseudo-elements are not supported"),
        ("p::before", 1, "pseudo-classes and pseudo-elements are not supported"),
        ("div#", 3, "expected identifier after '#'"),
        ("div.", 3, "expected identifier after '.'"),
        ("[href", 0, "unterminated attribute selector, expected ']'"),
        ("[href=x", 0, "unterminated attribute selector, expected ']'"),
        ("a[href^=x]", 6, "unsupported attribute operator '^='"),
        ("a[class~=x]", 7, "unsupported attribute operator '~='"),
        ("a[x='y]", 4, "unterminated string"),
        ("[x]div", 3, "type selector must come first in a sequence"),
        (".a*", 2, "type selector must come first in a sequence"),
        ("a $", 2, "unexpected character '$'"),
        ("[]", 1, "expected attribute name"),
        ("[x=]", 3, "expected attribute value"),
        ("[x y]", 3, "unexpected character 'y' in attribute selector"),
    ],
)
def test_invalid_selectors(text, position, reason):
    with pytest.raises(InvalidSelectorError) as excinfo:
        compile_selector(text)
    err = excinfo.value
    assert err.position == position
    assert err.reason == reason
    assert err.selector == text


def test_invalid_selector_message_and_type():
    with pytest.raises(ValueError) as excinfo:
        compile_selector("a + b")
    assert str(excinfo.value) == "unsupported combinator '+' at position 2 in 'a + b'"


def test_non_string_selector_is_a_type_error():
    with pytest.raises(TypeError):
        parse_selector(None)
