"""Element and attribute tables shared by the parser, serializer and projector."""

from __future__ import annotations

VOID_ELEMENTS: frozenset[str] = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Content is taken verbatim up to the matching end tag.
RAWTEXT_ELEMENTS: frozenset[str] = frozenset({"script", "style", "xmp", "iframe", "noembed", "noframes"})

# Content is text with character references decoded, no markup.
RCDATA_ELEMENTS: frozenset[str] = frozenset({"title", "textarea"})

FOREIGN_ROOTS: frozenset[str] = frozenset({"svg", "math"})

HEADING_ELEMENTS: frozenset[str] = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

# Start tags that implicitly close an open <p>.
P_CLOSING_ELEMENTS: frozenset[str] = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "center",
        "details",
        "dialog",
        "dir",
        "div",
        "dl",
        "dd",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hgroup",
        "hr",
        "li",
        "listing",
        "main",
        "menu",
        "nav",
        "ol",
        "p",
        "pre",
        "search",
        "section",
        "summary",
        "table",
        "ul",
    }
)

SPECIAL_ELEMENTS: frozenset[str] = frozenset(
    {
        "address",
        "applet",
        "area",
        "article",
        "aside",
        "base",
        "basefont",
        "bgsound",
        "blockquote",
        "body",
        "br",
        "button",
        "caption",
        "center",
        "col",
        "colgroup",
        "dd",
        "details",
        "dir",
        "div",
        "dl",
        "dt",
        "embed",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "frame",
        "frameset",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "head",
        "header",
        "hgroup",
        "hr",
        "html",
        "iframe",
        "img",
        "input",
        "keygen",
        "li",
        "link",
        "listing",
        "main",
        "marquee",
        "menu",
        "meta",
        "nav",
        "noembed",
        "noframes",
        "noscript",
        "object",
        "ol",
        "p",
        "param",
        "plaintext",
        "pre",
        "script",
        "search",
        "section",
        "select",
        "source",
        "style",
        "summary",
        "table",
        "tbody",
        "td",
        "template",
        "textarea",
        "tfoot",
        "th",
        "thead",
        "title",
        "tr",
        "track",
        "ul",
        "wbr",
        "xmp",
    }
)

# Scope terminators, keyed by the kind of scope an end tag or implied close is checked in.
DEFAULT_SCOPE_TERMINATORS: frozenset[str] = frozenset(
    {"applet", "caption", "html", "table", "td", "th", "marquee", "object", "template", "svg", "math"}
)
BUTTON_SCOPE_TERMINATORS: frozenset[str] = DEFAULT_SCOPE_TERMINATORS | {"button"}
LIST_ITEM_SCOPE_TERMINATORS: frozenset[str] = DEFAULT_SCOPE_TERMINATORS | {"ol", "ul"}
TABLE_SCOPE_TERMINATORS: frozenset[str] = frozenset({"html", "table", "template"})
TABLE_ROW_SCOPE_TERMINATORS: frozenset[str] = TABLE_SCOPE_TERMINATORS | {"tbody", "thead", "tfoot"}
TABLE_CELL_SCOPE_TERMINATORS: frozenset[str] = TABLE_ROW_SCOPE_TERMINATORS | {"tr"}

TABLE_SECTIONS: frozenset[str] = frozenset({"tbody", "thead", "tfoot"})
TABLE_CELLS: frozenset[str] = frozenset({"td", "th"})

# Elements whose end tag may be omitted; no error when input ends with them open.
IMPLIED_END_TAGS: frozenset[str] = frozenset(
    {
        "body",
        "caption",
        "colgroup",
        "dd",
        "dt",
        "head",
        "html",
        "li",
        "optgroup",
        "option",
        "p",
        "rb",
        "rp",
        "rt",
        "rtc",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
    }
)

# Attributes whose value is a whitespace-separated token list.
MULTI_VALUED_ATTRIBUTES: frozenset[str] = frozenset(
    {"class", "rel", "rev", "accept-charset", "headers", "accesskey", "dropzone"}
)

WHITESPACE: str = " \t\n\r\f"
