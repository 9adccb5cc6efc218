import pytest

from pagequery import load_document


def structure(node):
    if node.name == "#text":
        return ("#text", node.data)
    return (node.name, dict(node.attrs), [structure(child) for child in node.children])


@pytest.mark.parametrize(
    "html",
    [
        '<div class="card"><h2 class="jobtitle"><a href="/viewjob?jk=1&amp;from=x">Dev</a></h2></div>',
        "<p>1 &lt; 2 &amp;&amp; 3 &gt; 2</p>",
        "<script>if (a < b && c) { run('</div>'); }</script><p>after</p>",
        "<style>p > a::after { content: '&amp;'; }</style>",
        "<textarea>&lt;b&gt;bold&lt;/b&gt;</textarea>",
        '<img alt=\'say "hi"\' src="x.png"><br><input disabled value="it\'s &quot;q&quot;">',
        "<ul><li>a</li><li>b <em>c</em></li></ul>text at the end",
        "<table><tr><td>1</td><td>2</td></tr></table>",
        '<a title="" href="?q=a b">sp</a>',
        "<svg><circle r=\"1\"/></svg>",
    ],
)
def test_reparse_yields_same_tree(html):
    first = load_document(html)
    second = load_document(first.to_html())
    assert structure(second.root) == structure(first.root)


def test_serialization_is_stable():
    html = "<div><p>one<p>two</div><ul><li>x<li>y</ul>"
    once = load_document(html).to_html()
    assert load_document(once).to_html() == once
    assert once == "<div><p>one</p><p>two</p></div><ul><li>x</li><li>y</li></ul>"


def test_text_escaping():
    doc = load_document("<p>a &amp; b &lt;c&gt;</p>")
    assert doc.to_html() == "<p>a &amp; b &lt;c&gt;</p>"


def test_leading_zero_width_no_break_space_survives_reparse():
    paragraph = load_document("<p>&#xFEFF;x</p>").find("p")
    assert paragraph.text == "\ufeffx"
    assert paragraph.html_content == "&#xfeff;x"
    assert load_document(paragraph.html_content).root.children[0].data == "\ufeffx"


def test_rawtext_written_verbatim():
    doc = load_document("<script>x = 1 < 2 && '&amp;';</script>")
    assert doc.to_html() == "<script>x = 1 < 2 && '&amp;';</script>"


def test_attribute_quoting():
    doc = load_document("<a href=/plain title='has space' data-q='say \"hi\"' data-both=\"a'b&quot;c\" hidden>")
    assert doc.to_html() == (
        "<a href=/plain title=\"has space\" data-q='say \"hi\"' data-both=\"a'b&quot;c\" hidden></a>"
    )


def test_void_elements_have_no_end_tag():
    doc = load_document("<p>a<br>b<hr></p>")
    assert doc.to_html() == "<p>a<br>b</p><hr>"


def test_comments_are_not_serialized():
    doc = load_document("<div><!-- hidden -->shown</div>")
    assert doc.to_html() == "<div>shown</div>"


def test_pretty_output():
    doc = load_document("<div>\n<p>one</p>\n<ul><li>a</li><li>b</li></ul></div>")
    assert doc.to_html(pretty=True) == (
        "<div>\n"
        "  <p>one</p>\n"
        "  <ul>\n"
        "    <li>a</li>\n"
        "    <li>b</li>\n"
        "  </ul>\n"
        "</div>"
    )


def test_inner_html():
    doc = load_document('<div id="d">x<b>y</b>z</div>')
    div = doc.root.children[0]
    assert div.inner_html() == "x<b>y</b>z"
    assert div.to_html() == "<div id=d>x<b>y</b>z</div>"
