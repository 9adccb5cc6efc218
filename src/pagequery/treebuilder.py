from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .constants import (
    BUTTON_SCOPE_TERMINATORS,
    DEFAULT_SCOPE_TERMINATORS,
    FOREIGN_ROOTS,
    HEADING_ELEMENTS,
    IMPLIED_END_TAGS,
    LIST_ITEM_SCOPE_TERMINATORS,
    P_CLOSING_ELEMENTS,
    SPECIAL_ELEMENTS,
    TABLE_CELL_SCOPE_TERMINATORS,
    TABLE_CELLS,
    TABLE_ROW_SCOPE_TERMINATORS,
    TABLE_SCOPE_TERMINATORS,
    TABLE_SECTIONS,
    VOID_ELEMENTS,
)
from .errors import generate_error_message
from .node import ElementNode, TextNode
from .tokens import EOFToken, ParseError, Tag

if TYPE_CHECKING:
    from .tokenizer import Tokenizer

# Scope an end tag is looked up in; anything not listed uses the default scope.
_END_TAG_SCOPES: dict[str, frozenset[str]] = {
    "p": BUTTON_SCOPE_TERMINATORS,
    "li": LIST_ITEM_SCOPE_TERMINATORS,
    "tr": TABLE_ROW_SCOPE_TERMINATORS,
    "td": TABLE_CELL_SCOPE_TERMINATORS,
    "th": TABLE_CELL_SCOPE_TERMINATORS,
    "tbody": TABLE_SCOPE_TERMINATORS,
    "thead": TABLE_SCOPE_TERMINATORS,
    "tfoot": TABLE_SCOPE_TERMINATORS,
    "table": TABLE_SCOPE_TERMINATORS,
}

# Special elements that do not stop the search for an open <li>/<dd>/<dt>.
_LIST_ITEM_PASS_THROUGH: frozenset[str] = frozenset({"address", "div", "p"})


class TreeBuilder:
    """Builds the node tree from tokenizer output using an open-element stack.

    This is deliberately smaller than the full HTML5 insertion-mode machine:
    no implied html/head/body, no foster parenting, no adoption agency. It
    keeps the recovery rules that matter for scraping (void elements,
    optional end tags, stray and misnested end tags, unclosed elements at
    end of input) so real-world pages produce sensible trees.
    """

    __slots__ = ("collect_errors", "document", "errors", "open_elements", "tokenizer")

    collect_errors: bool
    document: ElementNode
    errors: list[ParseError]
    open_elements: list[ElementNode]
    tokenizer: Tokenizer | None

    def __init__(self, collect_errors: bool = False) -> None:
        self.collect_errors = collect_errors
        self.errors = []
        self.tokenizer = None  # Set by Document after the tokenizer is created
        self.document = ElementNode("#document")
        self.open_elements = []

    # Token sink interface ---------------------------------------------------

    def process_token(self, token: Any) -> None:
        token_type = type(token)
        if token_type is Tag:
            if token.kind == Tag.START:
                self._process_start_tag(token)
            else:
                self._process_end_tag(token)
        elif token_type is EOFToken:
            self._process_eof()

    def process_characters(self, data: str) -> None:
        parent = self._current_node()
        children = parent.children
        if children and type(children[-1]) is TextNode:
            children[-1].data += data
            return
        parent.append_child(TextNode(data))

    def finish(self) -> ElementNode:
        self.open_elements.clear()
        self.document.freeze()
        return self.document

    # Errors -----------------------------------------------------------------

    def _parse_error(self, code: str, tag_name: str | None = None) -> None:
        if not self.collect_errors:
            return
        line = column = None
        if self.tokenizer is not None:
            line, column = self.tokenizer.last_tag_position()
        message = generate_error_message(code, tag_name)
        self.errors.append(ParseError(code, line=line, column=column, message=message))

    # Stack helpers ----------------------------------------------------------

    def _current_node(self) -> ElementNode:
        if self.open_elements:
            return self.open_elements[-1]
        return self.document

    def _find_in_scope(self, name: str | frozenset[str], terminators: frozenset[str]) -> int:
        """Return the stack index of the nearest open element named ``name``, or -1.

        The search stops at the first element in ``terminators`` that is not
        itself a match.
        """
        names = {name} if isinstance(name, str) else name
        for index in range(len(self.open_elements) - 1, -1, -1):
            node_name = self.open_elements[index].name
            if node_name in names:
                return index
            if node_name in terminators:
                return -1
        return -1

    def _pop_to_index(self, index: int) -> None:
        del self.open_elements[index:]

    def _in_foreign_content(self) -> bool:
        return any(node.name in FOREIGN_ROOTS for node in self.open_elements)

    # Start tags -------------------------------------------------------------

    def _close_implied_by(self, name: str) -> None:
        """Close open elements that cannot contain a new ``name`` element."""
        if name in P_CLOSING_ELEMENTS:
            index = self._find_in_scope("p", BUTTON_SCOPE_TERMINATORS)
            if index != -1:
                self._parse_error("unexpected-start-tag-implies-end-tag", tag_name=name)
                self._pop_to_index(index)

        if name == "li":
            self._close_list_item(frozenset({"li"}))
        elif name in ("dd", "dt"):
            self._close_list_item(frozenset({"dd", "dt"}))
        elif name in HEADING_ELEMENTS:
            if self.open_elements and self.open_elements[-1].name in HEADING_ELEMENTS:
                self._parse_error("unexpected-start-tag-implies-end-tag", tag_name=name)
                self.open_elements.pop()
        elif name == "option":
            if self.open_elements and self.open_elements[-1].name == "option":
                self.open_elements.pop()
        elif name == "optgroup":
            if self.open_elements and self.open_elements[-1].name == "option":
                self.open_elements.pop()
            if self.open_elements and self.open_elements[-1].name == "optgroup":
                self.open_elements.pop()
        elif name in TABLE_CELLS:
            index = self._find_in_scope(TABLE_CELLS, TABLE_CELL_SCOPE_TERMINATORS)
            if index != -1:
                self._pop_to_index(index)
        elif name == "tr":
            # Clear back to the enclosing section or table, keeping it open
            index = self._find_in_scope(TABLE_SECTIONS | {"table"}, TABLE_SCOPE_TERMINATORS)
            if index != -1:
                self._pop_to_index(index + 1)
        elif name in TABLE_SECTIONS:
            index = self._find_in_scope("table", TABLE_SCOPE_TERMINATORS)
            if index != -1:
                self._pop_to_index(index + 1)
        elif name in ("a", "button", "form"):
            index = self._find_in_scope(name, DEFAULT_SCOPE_TERMINATORS)
            if index != -1:
                self._parse_error("unexpected-start-tag-implies-end-tag", tag_name=name)
                self._pop_to_index(index)

    def _close_list_item(self, names: frozenset[str]) -> None:
        for index in range(len(self.open_elements) - 1, -1, -1):
            node_name = self.open_elements[index].name
            if node_name in names:
                self._pop_to_index(index)
                return
            if node_name in SPECIAL_ELEMENTS and node_name not in _LIST_ITEM_PASS_THROUGH:
                return

    def _process_start_tag(self, tag: Tag) -> None:
        name = tag.name
        self._close_implied_by(name)

        node = ElementNode(name, tag.attrs)
        self._current_node().append_child(node)

        if name in VOID_ELEMENTS:
            return
        if tag.self_closing:
            if self._in_foreign_content() or name in FOREIGN_ROOTS:
                return
            self._parse_error("non-void-html-element-start-tag-with-trailing-solidus", tag_name=name)
        self.open_elements.append(node)

    # End tags ---------------------------------------------------------------

    def _process_end_tag(self, tag: Tag) -> None:
        name = tag.name
        if name in VOID_ELEMENTS:
            self._parse_error("unexpected-void-end-tag", tag_name=name)
            return

        terminators = _END_TAG_SCOPES.get(name, DEFAULT_SCOPE_TERMINATORS)
        index = self._find_in_scope(name, terminators)
        if index == -1:
            self._parse_error("unexpected-end-tag", tag_name=name)
            return

        if index != len(self.open_elements) - 1:
            unclosed = self.open_elements[-1].name
            if unclosed not in IMPLIED_END_TAGS:
                self._parse_error("end-tag-too-early", tag_name=name)
        self._pop_to_index(index)

    def _process_eof(self) -> None:
        for node in reversed(self.open_elements):
            if node.name not in IMPLIED_END_TAGS:
                self._parse_error("expected-closing-tag-but-got-eof", tag_name=node.name)
        self.open_elements.clear()
