"""Read-only element descriptors returned by queries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .constants import MULTI_VALUED_ATTRIBUTES
from .selector import SelectorList, compile_selector, match_all, split_whitespace

if TYPE_CHECKING:
    from .document import Document
    from .node import ElementNode


def _compiled(selector: str | SelectorList) -> SelectorList:
    if isinstance(selector, SelectorList):
        return selector
    return compile_selector(selector)


def find_all_in(
    scope: ElementNode, document: Document, selector: str | SelectorList, limit: int | None = None
) -> list[ElementDescriptor]:
    return [ElementDescriptor(node, document) for node in match_all(scope, _compiled(selector), limit=limit)]


def find_in(scope: ElementNode, document: Document, selector: str | SelectorList) -> ElementDescriptor | None:
    found = find_all_in(scope, document, selector, limit=1)
    return found[0] if found else None


class ElementDescriptor:
    """A simplified view of one matched element.

    Every property is computed from the underlying node on access, so a
    descriptor never goes stale and never exposes the node for mutation. The
    descriptor holds the owning Document, which keeps the tree alive.
    """

    __slots__ = ("_document", "_node")

    _document: Document
    _node: ElementNode

    def __init__(self, node: ElementNode, document: Document) -> None:
        self._node = node
        self._document = document

    def __repr__(self) -> str:
        return f"<ElementDescriptor {self._node.name} attrs={dict(self._node.attrs)!r}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ElementDescriptor):
            return NotImplemented
        return self._node is other._node

    def __hash__(self) -> int:
        return id(self._node)

    @property
    def tag(self) -> str:
        """The lower-cased element name."""
        return self._node.name

    @property
    def text(self) -> str:
        """All descendant text in document order, unstripped."""
        return self._node.to_text()

    @property
    def html_content(self) -> str:
        """The element's inner markup."""
        return self._node.inner_html()

    @property
    def attrs(self) -> dict[str, Any]:
        """A fresh attribute dict; multi-valued attributes become token lists."""
        result: dict[str, Any] = {}
        for name, value in self._node.attrs.items():
            if name in MULTI_VALUED_ATTRIBUTES:
                result[name] = split_whitespace(value)
            else:
                result[name] = value
        return result

    def to_html(self, pretty: bool = False) -> str:
        """Serialize the element including its own tags."""
        return self._node.to_html(pretty=pretty)

    def get_attr(self, name: str) -> str | None:
        return self._node.attrs.get(name.lower())

    def find(self, selector: str | SelectorList) -> ElementDescriptor | None:
        """First element below this one matching ``selector``, or None."""
        return find_in(self._node, self._document, selector)

    def find_all(self, selector: str | SelectorList, limit: int | None = None) -> list[ElementDescriptor]:
        """Elements below this one matching ``selector``, in document order."""
        return find_all_in(self._node, self._document, selector, limit=limit)
