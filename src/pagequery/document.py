"""Document entry point: parse markup once, query it many times."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .descriptor import find_all_in, find_in
from .errors import MalformedMarkupError
from .tokenizer import Tokenizer, TokenizerOpts
from .treebuilder import TreeBuilder

if TYPE_CHECKING:
    from .descriptor import ElementDescriptor
    from .node import ElementNode
    from .selector import SelectorList
    from .tokens import ParseError

logger = logging.getLogger(__name__)


class Document:
    __slots__ = ("errors", "root", "tokenizer", "tree_builder")

    errors: list[ParseError]
    root: ElementNode
    tokenizer: Tokenizer
    tree_builder: TreeBuilder

    def __init__(
        self,
        markup: str | None,
        *,
        collect_errors: bool = False,
        strict: bool = False,
        tokenizer_opts: TokenizerOpts | None = None,
    ) -> None:
        markup_str = str(markup) if markup is not None else ""

        # Enable error collection if strict mode is on
        should_collect = collect_errors or strict

        self.tree_builder = TreeBuilder(collect_errors=should_collect)
        opts = tokenizer_opts or TokenizerOpts()
        self.tokenizer = Tokenizer(self.tree_builder, opts, collect_errors=should_collect)
        # Link tokenizer to tree_builder for position info
        self.tree_builder.tokenizer = self.tokenizer

        self.tokenizer.run(markup_str)
        self.root = self.tree_builder.finish()

        # Merge errors from both tokenizer and tree builder in source order
        self.errors = sorted(self.tokenizer.errors + self.tree_builder.errors, key=lambda e: e.position)
        logger.debug(
            "Parsed %d characters into %d top-level nodes (%d errors)",
            len(markup_str),
            len(self.root.children),
            len(self.errors),
        )

        # In strict mode, raise on first error
        if strict and self.errors:
            raise MalformedMarkupError(self.errors[0], source=self.tokenizer.buffer)

    def __repr__(self) -> str:
        return f"<Document children={len(self.root.children)} errors={len(self.errors)}>"

    def find(self, selector: str | SelectorList) -> ElementDescriptor | None:
        """Return the first element matching ``selector``, or None."""
        return find_in(self.root, self, selector)

    def find_all(self, selector: str | SelectorList, limit: int | None = None) -> list[ElementDescriptor]:
        """
        Return every element matching ``selector`` in document order.

        Args:
            selector: A CSS selector string or a compiled SelectorList
            limit: Stop after this many matches (None or <= 0 for all)

        Raises:
            InvalidSelectorError: If the selector is invalid
        """
        return find_all_in(self.root, self, selector, limit=limit)

    def to_html(self, pretty: bool = False, indent_size: int = 2) -> str:
        """Serialize the document to HTML. Delegates to root.to_html()."""
        return self.root.to_html(indent=0, indent_size=indent_size, pretty=pretty)

    @property
    def text(self) -> str:
        return self.root.to_text()

    def to_text(self, separator: str = " ", strip: bool = True) -> str:
        """Return the document's concatenated text.

        Delegates to `root.to_text(separator=..., strip=...)`.
        """
        return self.root.to_text(separator=separator, strip=strip)


def load_document(
    markup: str,
    *,
    collect_errors: bool = False,
    strict: bool = False,
    tokenizer_opts: TokenizerOpts | None = None,
) -> Document:
    """Parse ``markup`` into a queryable Document.

    Raises:
        MalformedMarkupError: If the markup ends inside a tag, or on the first
            recoverable error when ``strict`` is set.
    """
    return Document(markup, collect_errors=collect_errors, strict=strict, tokenizer_opts=tokenizer_opts)
