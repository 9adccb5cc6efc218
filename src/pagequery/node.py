from __future__ import annotations

import weakref
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .selector import query
from .serialize import to_html

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping


def _to_text_collect(node: Any, parts: list[str], strip: bool) -> None:
    # Iterative so deeply nested input cannot exhaust the interpreter stack.
    stack = [node]
    while stack:
        current = stack.pop()
        if current.name == "#text":
            data: str = current.data
            if strip:
                data = data.strip()
            if data:
                parts.append(data)
            continue
        stack.extend(reversed(current.children))


class ElementNode:
    """An element, or the synthetic ``#document`` root wrapping top-level nodes.

    ``children`` is a list while the tree builder runs and a tuple afterwards;
    ``attrs`` likewise becomes a read-only mapping. The parent link is a weak
    reference: the tree is owned top-down by its root.
    """

    __slots__ = ("__weakref__", "_parent", "attrs", "children", "name")

    name: str
    attrs: Mapping[str, str]
    children: list[Any] | tuple[Any, ...]
    _parent: weakref.ref[ElementNode] | None

    def __init__(self, name: str, attrs: dict[str, str] | None = None) -> None:
        self.name = name
        self.attrs = attrs if attrs is not None else {}
        self.children = []
        self._parent = None

    def __repr__(self) -> str:
        return f"<ElementNode {self.name} attrs={dict(self.attrs)!r} children={len(self.children)}>"

    @property
    def parent(self) -> ElementNode | None:
        return self._parent() if self._parent is not None else None

    def append_child(self, node: ElementNode | TextNode) -> None:
        self.children.append(node)  # type: ignore[union-attr]
        node._parent = weakref.ref(self)

    def freeze(self) -> None:
        """Make this subtree read-only: tuples for children, proxies for attrs."""
        stack: list[ElementNode] = [self]
        while stack:
            current = stack.pop()
            current.children = tuple(current.children)
            current.attrs = MappingProxyType(dict(current.attrs))
            stack.extend(child for child in current.children if child.name != "#text")

    def iter_ancestors(self) -> Iterator[ElementNode]:
        parent = self.parent
        while parent is not None:
            yield parent
            parent = parent.parent

    def to_html(self, indent: int = 0, indent_size: int = 2, pretty: bool = False) -> str:
        """Convert node to HTML string."""
        return to_html(self, indent, indent_size, pretty=pretty)

    def inner_html(self) -> str:
        """Serialize this node's children without the node's own tags."""
        return "".join(to_html(child, pretty=False) for child in self.children)

    def query(self, selector: str, limit: int | None = None) -> list[ElementNode]:
        """
        Query this subtree using a CSS selector.

        Args:
            selector: A CSS selector string
            limit: Stop after this many matches (None or <= 0 for all)

        Returns:
            A list of matching nodes in document order

        Raises:
            InvalidSelectorError: If the selector is invalid
        """
        return query(self, selector, limit=limit)

    def to_text(self, separator: str = "", strip: bool = False) -> str:
        """Return the concatenated text of this node's descendants.

        - `separator` controls how text nodes are joined (default: nothing).
        - `strip=True` strips each text node and drops empty segments.
        """
        parts: list[str] = []
        _to_text_collect(self, parts, strip=strip)
        return separator.join(parts)


class TextNode:
    __slots__ = ("_parent", "data", "name")

    data: str
    name: str
    _parent: weakref.ref[ElementNode] | None

    def __init__(self, data: str) -> None:
        self.data = data
        self.name = "#text"
        self._parent = None

    def __repr__(self) -> str:
        return f"<TextNode {self.data!r}>"

    @property
    def parent(self) -> ElementNode | None:
        return self._parent() if self._parent is not None else None

    @property
    def children(self) -> tuple[()]:
        """Return empty tuple for TextNode (leaf node)."""
        return ()


Node = ElementNode | TextNode
