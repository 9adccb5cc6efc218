"""Error types and human-readable messages for parse and selector failures.

Markup problems are reported with the codes below. Most are recoverable and
only show up in ``Document.errors`` when error collection is enabled; an
unterminated tag at end of input is the one fatal case and raises
:class:`MalformedMarkupError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tokens import ParseError


def generate_error_message(code: str, tag_name: str | None = None) -> str:
    """Generate human-readable error message from error code.

    Args:
        code: The error code string (kebab-case format)
        tag_name: Optional tag name to include in the message for context

    Returns:
        Human-readable error message string
    """
    messages = {
        # ================================================================
        # TOKENIZER ERRORS
        # ================================================================
        "eof-in-tag": "Unexpected end of file in tag",
        "eof-in-comment": "Unexpected end of file in comment",
        "eof-before-tag-name": "Unexpected end of file before tag name",
        "empty-end-tag": "Empty end tag </> is not allowed",
        "invalid-first-character-of-tag-name": "Invalid first character of tag name",
        "unexpected-question-mark-instead-of-tag-name": "Unexpected ? instead of tag name",
        "unexpected-character-after-solidus-in-tag": "Unexpected character after / in tag",
        "incorrectly-opened-comment": "Incorrectly opened comment",
        "duplicate-attribute": "Duplicate attribute name",
        "missing-attribute-value": "Missing attribute value",
        "unexpected-character-in-attribute-name": "Unexpected character in attribute name",
        "unexpected-character-in-unquoted-attribute-value": "Unexpected character in unquoted attribute value",
        "missing-whitespace-between-attributes": "Missing whitespace between attributes",
        "unexpected-equals-sign-before-attribute-name": "Unexpected = before attribute name",
        "unexpected-null-character": "Unexpected NULL character (U+0000)",
        # ================================================================
        # TREE BUILDER ERRORS
        # ================================================================
        "unexpected-end-tag": f"Unexpected </{tag_name}> end tag",
        "unexpected-void-end-tag": f"</{tag_name}> end tag on a void element ignored",
        "unexpected-start-tag-implies-end-tag": f"<{tag_name}> start tag implicitly closes previous element",
        "end-tag-too-early": f"</{tag_name}> end tag closed early (unclosed children)",
        "expected-closing-tag-but-got-eof": f"Expected </{tag_name}> closing tag but reached end of file",
        "non-void-html-element-start-tag-with-trailing-solidus": (
            f"<{tag_name}/> self-closing syntax on non-void element"
        ),
    }

    # Return message or fall back to the code itself if not found
    return messages.get(code, code)


class MalformedMarkupError(SyntaxError):
    """Raised when markup cannot be tokenized, or on the first error in strict mode.

    Inherits from SyntaxError so tracebacks point at the offending source line.
    """

    error: ParseError

    def __init__(self, error: ParseError, source: str | None = None) -> None:
        self.error = error
        super().__init__(str(error))
        self.msg = error.message
        self.filename = "<markup>"
        self.lineno = error.line
        self.offset = error.column
        if source is not None and error.line is not None:
            lines = source.split("\n")
            if 1 <= error.line <= len(lines):
                self.text = lines[error.line - 1]

    @property
    def code(self) -> str:
        return self.error.code


class InvalidSelectorError(ValueError):
    """Raised when a CSS selector cannot be compiled."""

    position: int
    reason: str
    selector: str

    def __init__(self, reason: str, position: int, selector: str = "") -> None:
        self.reason = reason
        self.position = position
        self.selector = selector
        super().__init__(f"{reason} at position {position} in {selector!r}")
