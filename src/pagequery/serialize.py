"""HTML serialization for pagequery nodes.

Non-pretty output is lossless: re-parsing it yields an equivalent tree. Pretty
output indents block structure and strips whitespace-only text, which is for
display only.
"""

from __future__ import annotations

# ruff: noqa: PERF401

from typing import Any

from .constants import RAWTEXT_ELEMENTS, VOID_ELEMENTS


def _escape_text(text: str | None) -> str:
    if not text:
        return ""
    text = str(text).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    # A leading U+FEFF would be read back as a byte order mark and dropped
    if text[0] == "\ufeff":
        text = "&#xfeff;" + text[1:]
    return text


def _choose_attr_quote(value: str) -> str:
    if '"' in value and "'" not in value:
        return "'"
    return '"'


def _escape_attr_value(value: str, quote_char: str) -> str:
    value = value.replace("&", "&amp;")
    if quote_char == '"':
        return value.replace('"', "&quot;")
    return value.replace("'", "&#39;")


def _can_unquote_attr_value(value: str) -> bool:
    # Disallow characters that would terminate or change an unquoted value.
    for ch in value:
        if ch in {">", '"', "'", "=", "<", "`", " ", "\t", "\n", "\f", "\r"}:
            return False
    return True


def serialize_start_tag(name: str, attrs: Any) -> str:
    parts: list[str] = ["<", name]
    for key, value in (attrs or {}).items():
        if value == "":
            parts.extend([" ", key])
        elif _can_unquote_attr_value(value):
            parts.extend([" ", key, "=", value.replace("&", "&amp;")])
        else:
            quote = _choose_attr_quote(value)
            parts.extend([" ", key, "=", quote, _escape_attr_value(value, quote), quote])
    parts.append(">")
    return "".join(parts)


def serialize_end_tag(name: str) -> str:
    return f"</{name}>"


def to_html(node: Any, indent: int = 0, indent_size: int = 2, *, pretty: bool = False) -> str:
    """Convert node to HTML string."""
    if node.name == "#document":
        # Document root - just render children
        parts: list[str] = []
        for child in node.children:
            child_html = _node_to_html(child, indent, indent_size, pretty)
            if child_html:
                parts.append(child_html)
        return "\n".join(parts) if pretty else "".join(parts)
    return _node_to_html(node, indent, indent_size, pretty)


def _node_to_html(node: Any, indent: int = 0, indent_size: int = 2, pretty: bool = False) -> str:
    """Helper to convert a node to HTML."""
    prefix = " " * (indent * indent_size) if pretty else ""
    newline = "\n" if pretty else ""
    name: str = node.name

    # Text node
    if name == "#text":
        text: str = node.data
        parent = node.parent
        raw = parent is not None and parent.name in RAWTEXT_ELEMENTS
        if pretty:
            text = text.strip()
            if not text:
                return ""
            return f"{prefix}{text if raw else _escape_text(text)}"
        return text if raw else _escape_text(text)

    open_tag = serialize_start_tag(name, node.attrs)

    # Void elements
    if name in VOID_ELEMENTS:
        return f"{prefix}{open_tag}"

    children: list[Any] = list(node.children)
    if not children:
        return f"{prefix}{open_tag}{serialize_end_tag(name)}"

    if not pretty:
        inner = "".join(_node_to_html(child, 0, indent_size, False) for child in children)
        return f"{open_tag}{inner}{serialize_end_tag(name)}"

    # Text-only children render inline
    if all(c.name == "#text" for c in children):
        inner = "".join(_node_to_html(child, 0, indent_size, False) for child in children)
        return f"{prefix}{open_tag}{inner}{serialize_end_tag(name)}"

    # Render with child indentation
    parts = [f"{prefix}{open_tag}"]
    for child in children:
        child_html = _node_to_html(child, indent + 1, indent_size, pretty)
        if child_html:
            parts.append(child_html)
    parts.append(f"{prefix}{serialize_end_tag(name)}")
    return newline.join(parts)
