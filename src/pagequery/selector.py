# CSS selector compiler and matcher for pagequery
# Supports the scraping subset: type, *, .class, #id, [attr], [attr=value],
# descendant and child combinators, and comma-separated lists.

from __future__ import annotations

from functools import lru_cache
from typing import Any

from .constants import WHITESPACE
from .errors import InvalidSelectorError


def split_whitespace(value: str) -> list[str]:
    """Split on ASCII whitespace only, leaving U+00A0 and other spaces inside tokens."""
    for ch in WHITESPACE[1:]:
        value = value.replace(ch, " ")
    return [token for token in value.split(" ") if token]


# Token types for the CSS selector lexer
class TokenType:
    TAG: str = "TAG"  # div, span, etc.
    ID: str = "ID"  # #foo
    CLASS: str = "CLASS"  # .bar
    UNIVERSAL: str = "UNIVERSAL"  # *
    ATTR_START: str = "ATTR_START"  # [
    ATTR_END: str = "ATTR_END"  # ]
    ATTR_OP: str = "ATTR_OP"  # =
    STRING: str = "STRING"  # "value" or 'value' or unquoted
    COMBINATOR: str = "COMBINATOR"  # > or whitespace (descendant)
    COMMA: str = "COMMA"  # ,
    EOF: str = "EOF"


class Token:
    __slots__ = ("position", "type", "value")

    type: str
    value: str | None
    position: int

    def __init__(self, token_type: str, value: str | None = None, position: int = 0) -> None:
        self.type = token_type
        self.value = value
        self.position = position

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r}, at={self.position})"


class SelectorTokenizer:
    """Tokenizes a CSS selector string into tokens."""

    __slots__ = ("length", "pos", "selector")

    selector: str
    pos: int
    length: int

    def __init__(self, selector: str) -> None:
        self.selector = selector
        self.pos = 0
        self.length = len(selector)

    def _error(self, reason: str, position: int | None = None) -> InvalidSelectorError:
        return InvalidSelectorError(reason, self.pos if position is None else position, self.selector)

    def _peek(self, offset: int = 0) -> str:
        pos = self.pos + offset
        if pos < self.length:
            return self.selector[pos]
        return ""

    def _skip_whitespace(self) -> None:
        while self.pos < self.length and self.selector[self.pos] in " \t\n\r\f":
            self.pos += 1

    def _is_name_start(self, ch: str) -> bool:
        # CSS identifier start: letter, underscore, hyphen, or non-ASCII
        return ch.isalpha() or ch == "_" or ch == "-" or ord(ch) > 127

    def _is_name_char(self, ch: str) -> bool:
        return self._is_name_start(ch) or ch.isdigit()

    def _read_name(self) -> str:
        start = self.pos
        while self.pos < self.length and self._is_name_char(self.selector[self.pos]):
            self.pos += 1
        return self.selector[start : self.pos]

    def _read_string(self, quote: str) -> str:
        start_quote = self.pos
        self.pos += 1
        parts: list[str] = []
        start = self.pos

        while self.pos < self.length:
            ch = self.selector[self.pos]
            if ch == quote:
                parts.append(self.selector[start : self.pos])
                self.pos += 1
                return "".join(parts)
            if ch == "\\":
                parts.append(self.selector[start : self.pos])
                self.pos += 1
                if self.pos < self.length:
                    parts.append(self.selector[self.pos])
                    self.pos += 1
                start = self.pos
            else:
                self.pos += 1

        raise self._error("unterminated string", start_quote)

    def _read_unquoted_attr_value(self) -> str:
        start = self.pos
        while self.pos < self.length:
            ch = self.selector[self.pos]
            if ch in " \t\n\r\f]\"'[":
                break
            self.pos += 1
        return self.selector[start : self.pos]

    def _tokenize_attribute(self, tokens: list[Token]) -> None:
        bracket = self.pos
        self.pos += 1
        tokens.append(Token(TokenType.ATTR_START, position=bracket))
        self._skip_whitespace()

        name_start = self.pos
        attr_name = self._read_name()
        if not attr_name:
            if self.pos >= self.length:
                raise self._error("unterminated attribute selector, expected ']'", bracket)
            raise self._error("expected attribute name")
        tokens.append(Token(TokenType.TAG, attr_name.lower(), name_start))  # Reuse TAG for attr name
        self._skip_whitespace()

        ch = self._peek()
        if ch == "":
            raise self._error("unterminated attribute selector, expected ']'", bracket)
        if ch == "]":
            tokens.append(Token(TokenType.ATTR_END, position=self.pos))
            self.pos += 1
            return

        if ch == "=":
            tokens.append(Token(TokenType.ATTR_OP, "=", self.pos))
            self.pos += 1
        elif ch in "~|^$*" and self._peek(1) == "=":
            raise self._error(f"unsupported attribute operator {ch + '='!r}")
        else:
            raise self._error(f"unexpected character {ch!r} in attribute selector")

        self._skip_whitespace()
        value_start = self.pos
        ch = self._peek()
        if ch == '"' or ch == "'":
            value = self._read_string(ch)
        else:
            value = self._read_unquoted_attr_value()
            if not value:
                if self.pos >= self.length:
                    raise self._error("unterminated attribute selector, expected ']'", bracket)
                raise self._error("expected attribute value")
        tokens.append(Token(TokenType.STRING, value, value_start))

        self._skip_whitespace()
        if self._peek() != "]":
            if self.pos >= self.length:
                raise self._error("unterminated attribute selector, expected ']'", bracket)
            raise self._error("expected ']'")
        tokens.append(Token(TokenType.ATTR_END, position=self.pos))
        self.pos += 1

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        pending_whitespace = False

        while self.pos < self.length:
            ch = self.selector[self.pos]

            # Skip whitespace but remember it for combinator detection
            if ch in " \t\n\r\f":
                pending_whitespace = True
                self._skip_whitespace()
                continue

            if ch == ">":
                pending_whitespace = False
                tokens.append(Token(TokenType.COMBINATOR, ">", self.pos))
                self.pos += 1
                self._skip_whitespace()
                continue

            if ch in "+~":
                raise self._error(f"unsupported combinator {ch!r}")

            # Whitespace followed by anything but a comma is a descendant
            # combinator. Combinators and commas consume trailing whitespace.
            if pending_whitespace and tokens and ch != ",":
                tokens.append(Token(TokenType.COMBINATOR, " ", self.pos))
            pending_whitespace = False

            if ch == "*":
                tokens.append(Token(TokenType.UNIVERSAL, position=self.pos))
                self.pos += 1
                continue

            if ch == "#" or ch == ".":
                start = self.pos
                self.pos += 1
                name = self._read_name()
                if not name:
                    raise self._error(f"expected identifier after {ch!r}", start)
                token_type = TokenType.ID if ch == "#" else TokenType.CLASS
                tokens.append(Token(token_type, name, start))
                continue

            if ch == "[":
                self._tokenize_attribute(tokens)
                continue

            if ch == ",":
                tokens.append(Token(TokenType.COMMA, position=self.pos))
                self.pos += 1
                self._skip_whitespace()
                continue

            if ch == ":":
                raise self._error("pseudo-classes and pseudo-elements are not supported")

            if self._is_name_start(ch):
                start = self.pos
                name = self._read_name()
                tokens.append(Token(TokenType.TAG, name.lower(), start))  # Tags are case-insensitive
                continue

            raise self._error(f"unexpected character {ch!r}")

        tokens.append(Token(TokenType.EOF, position=self.length))
        return tokens


# Compiled selector types. All are immutable and compare by value, so a
# compiled selector can be cached and shared across threads and queries.


class Combinator:
    DESCENDANT: str = " "
    CHILD: str = ">"


class SimpleSelector:
    """A single simple selector (type, universal, id, class, or attribute)."""

    __slots__ = ("name", "type", "value")

    TYPE_TAG: str = "tag"
    TYPE_ID: str = "id"
    TYPE_CLASS: str = "class"
    TYPE_UNIVERSAL: str = "universal"
    TYPE_ATTR: str = "attr"

    type: str
    name: str | None
    value: str | None

    def __init__(self, selector_type: str, name: str | None = None, value: str | None = None) -> None:
        self.type = selector_type
        self.name = name
        self.value = value  # Attribute selectors only; None means presence test

    def _key(self) -> tuple[str, str | None, str | None]:
        return (self.type, self.name, self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SimpleSelector):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        parts = [f"SimpleSelector({self.type!r}"]
        if self.name:
            parts.append(f", name={self.name!r}")
        if self.value is not None:
            parts.append(f", value={self.value!r}")
        parts.append(")")
        return "".join(parts)

    def __str__(self) -> str:
        if self.type == self.TYPE_UNIVERSAL:
            return "*"
        if self.type == self.TYPE_TAG:
            return str(self.name)
        if self.type == self.TYPE_ID:
            return f"#{self.name}"
        if self.type == self.TYPE_CLASS:
            return f".{self.name}"
        if self.value is None:
            return f"[{self.name}]"
        escaped = self.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'[{self.name}="{escaped}"]'


class CompoundSelector:
    """A sequence of simple selectors that must all hold (e.g., div.foo#bar)."""

    __slots__ = ("selectors",)

    selectors: tuple[SimpleSelector, ...]

    def __init__(self, selectors: list[SimpleSelector] | tuple[SimpleSelector, ...]) -> None:
        self.selectors = tuple(selectors)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompoundSelector):
            return NotImplemented
        return self.selectors == other.selectors

    def __hash__(self) -> int:
        return hash(self.selectors)

    def __repr__(self) -> str:
        return f"CompoundSelector({list(self.selectors)!r})"

    def __str__(self) -> str:
        return "".join(str(simple) for simple in self.selectors)


class ComplexSelector:
    """A chain of compound selectors joined by combinators."""

    __slots__ = ("parts",)

    # (combinator, compound) pairs; the first combinator is None
    parts: tuple[tuple[str | None, CompoundSelector], ...]

    def __init__(self, parts: list[tuple[str | None, CompoundSelector]] | tuple[Any, ...]) -> None:
        self.parts = tuple(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComplexSelector):
            return NotImplemented
        return self.parts == other.parts

    def __hash__(self) -> int:
        return hash(self.parts)

    def __repr__(self) -> str:
        return f"ComplexSelector({list(self.parts)!r})"

    def __str__(self) -> str:
        out: list[str] = []
        for combinator, compound in self.parts:
            if combinator == Combinator.CHILD:
                out.append(" > ")
            elif combinator == Combinator.DESCENDANT:
                out.append(" ")
            out.append(str(compound))
        return "".join(out)


class SelectorList:
    """A comma-separated list of complex selectors; matches if any alternative does."""

    __slots__ = ("selectors",)

    selectors: tuple[ComplexSelector, ...]

    def __init__(self, selectors: list[ComplexSelector] | tuple[ComplexSelector, ...]) -> None:
        self.selectors = tuple(selectors)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SelectorList):
            return NotImplemented
        return self.selectors == other.selectors

    def __hash__(self) -> int:
        return hash(self.selectors)

    def __repr__(self) -> str:
        return f"SelectorList({list(self.selectors)!r})"

    def __str__(self) -> str:
        return ", ".join(str(selector) for selector in self.selectors)


_COMPOUND_START = frozenset(
    {TokenType.TAG, TokenType.UNIVERSAL, TokenType.ID, TokenType.CLASS, TokenType.ATTR_START}
)


class SelectorParser:
    """Parses a list of tokens into a SelectorList."""

    __slots__ = ("pos", "selector", "tokens")

    tokens: list[Token]
    pos: int
    selector: str

    def __init__(self, tokens: list[Token], selector: str = "") -> None:
        self.tokens = tokens
        self.pos = 0
        self.selector = selector

    def _error(self, reason: str, token: Token) -> InvalidSelectorError:
        return InvalidSelectorError(reason, token.position, self.selector)

    def _peek(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return Token(TokenType.EOF, position=len(self.selector))

    def _advance(self) -> Token:
        token = self._peek()
        self.pos += 1
        return token

    def _expect(self, token_type: str, reason: str) -> Token:
        token = self._peek()
        if token.type != token_type:
            raise self._error(reason, token)
        return self._advance()

    def parse(self) -> SelectorList:
        """Parse a complete, possibly comma-separated, selector."""
        selectors = [self._parse_complex_selector()]

        while self._peek().type == TokenType.COMMA:
            self._advance()
            selectors.append(self._parse_complex_selector())

        token = self._peek()
        if token.type != TokenType.EOF:
            raise self._error(f"unexpected {token.type.lower()}", token)
        return SelectorList(selectors)

    def _parse_complex_selector(self) -> ComplexSelector:
        token = self._peek()
        if token.type == TokenType.COMBINATOR:
            raise self._error("combinator without a preceding selector", token)
        if token.type in (TokenType.COMMA, TokenType.EOF):
            raise self._error("empty selector in list", token)

        parts: list[tuple[str | None, CompoundSelector]] = [(None, self._parse_compound_selector())]

        while self._peek().type == TokenType.COMBINATOR:
            combinator = self._advance().value
            token = self._peek()
            if token.type not in _COMPOUND_START:
                raise self._error("expected selector after combinator", token)
            parts.append((combinator, self._parse_compound_selector()))

        return ComplexSelector(parts)

    def _parse_compound_selector(self) -> CompoundSelector:
        simple_selectors: list[SimpleSelector] = []

        token = self._peek()
        if token.type == TokenType.TAG:
            self._advance()
            simple_selectors.append(SimpleSelector(SimpleSelector.TYPE_TAG, name=token.value))
        elif token.type == TokenType.UNIVERSAL:
            self._advance()
            simple_selectors.append(SimpleSelector(SimpleSelector.TYPE_UNIVERSAL))

        while True:
            token = self._peek()

            if token.type == TokenType.ID:
                self._advance()
                simple_selectors.append(SimpleSelector(SimpleSelector.TYPE_ID, name=token.value))

            elif token.type == TokenType.CLASS:
                self._advance()
                simple_selectors.append(SimpleSelector(SimpleSelector.TYPE_CLASS, name=token.value))

            elif token.type == TokenType.ATTR_START:
                simple_selectors.append(self._parse_attribute_selector())

            elif token.type in (TokenType.TAG, TokenType.UNIVERSAL):
                raise self._error("type selector must come first in a sequence", token)

            else:
                break

        if not simple_selectors:
            raise self._error("expected selector", self._peek())
        return CompoundSelector(simple_selectors)

    def _parse_attribute_selector(self) -> SimpleSelector:
        """Parse an attribute selector [attr] or [attr=value]."""
        self._expect(TokenType.ATTR_START, "expected '['")
        attr_name = self._expect(TokenType.TAG, "expected attribute name").value

        if self._peek().type == TokenType.ATTR_END:
            self._advance()
            return SimpleSelector(SimpleSelector.TYPE_ATTR, name=attr_name)

        self._expect(TokenType.ATTR_OP, "expected '=' or ']'")
        value = self._expect(TokenType.STRING, "expected attribute value").value
        self._expect(TokenType.ATTR_END, "expected ']'")
        return SimpleSelector(SimpleSelector.TYPE_ATTR, name=attr_name, value=value)


class SelectorMatcher:
    """Matches compiled selectors against nodes."""

    __slots__ = ()

    def matches(
        self, node: Any, selector: SelectorList | ComplexSelector | CompoundSelector, scope: Any | None = None
    ) -> bool:
        """Check if a node matches a compiled selector.

        When ``scope`` is given, combinators may look at ``scope`` itself but
        never at anything above it.
        """
        if isinstance(selector, SelectorList):
            return any(self._matches_complex(node, sel, scope) for sel in selector.selectors)
        if isinstance(selector, ComplexSelector):
            return self._matches_complex(node, selector, scope)
        return self._matches_compound(node, selector)

    def _matches_complex(self, node: Any, selector: ComplexSelector, scope: Any | None = None) -> bool:
        """Match a complex selector, working right-to-left from the subject."""
        parts = selector.parts
        if not self._matches_compound(node, parts[-1][1]):
            return False
        return self._matches_chain(node, parts, len(parts) - 1, scope, set())

    def _matches_chain(
        self,
        node: Any,
        parts: tuple[tuple[str | None, CompoundSelector], ...],
        index: int,
        scope: Any | None,
        failed: set[tuple[int, int]],
    ) -> bool:
        """Check parts[:index] against the ancestors of node, which matches parts[index].

        ``failed`` remembers (node, index) pairs already known not to match, so
        each ancestor is tried at most once per chain position.
        """
        if index == 0:
            return True
        key = (id(node), index)
        if key in failed:
            return False

        combinator = parts[index][0]
        prev_compound = parts[index - 1][1]
        result = False

        if combinator == Combinator.CHILD:
            parent = _parent_within(node, scope)
            if parent is not None and self._matches_compound(parent, prev_compound):
                result = self._matches_chain(parent, parts, index - 1, scope, failed)
        else:
            # Descendant: a failure further left moves on to the next matching ancestor.
            ancestor = _parent_within(node, scope)
            while ancestor is not None:
                if self._matches_compound(ancestor, prev_compound) and self._matches_chain(
                    ancestor, parts, index - 1, scope, failed
                ):
                    result = True
                    break
                ancestor = _parent_within(ancestor, scope)

        if not result:
            failed.add(key)
        return result

    def _matches_compound(self, node: Any, compound: CompoundSelector) -> bool:
        """Match a compound selector (all simple selectors must match)."""
        # Text nodes and the document root never match
        if node.name.startswith("#"):
            return False
        return all(self._matches_simple(node, simple) for simple in compound.selectors)

    def _matches_simple(self, node: Any, selector: SimpleSelector) -> bool:
        sel_type = selector.type

        if sel_type == SimpleSelector.TYPE_UNIVERSAL:
            return True

        if sel_type == SimpleSelector.TYPE_TAG:
            return bool(node.name == selector.name)

        attrs = node.attrs

        if sel_type == SimpleSelector.TYPE_ID:
            return bool(attrs.get("id") == selector.name)

        if sel_type == SimpleSelector.TYPE_CLASS:
            class_attr = attrs.get("class")
            return bool(class_attr) and selector.name in split_whitespace(class_attr)

        # SimpleSelector.TYPE_ATTR
        attr_value = attrs.get(selector.name)
        if attr_value is None:
            return False
        if selector.value is None:
            return True
        return bool(attr_value == selector.value)


def _parent_within(node: Any, scope: Any | None) -> Any | None:
    if node is scope:
        return None
    return node.parent


def parse_selector(selector_string: str) -> SelectorList:
    """Parse a CSS selector string into a SelectorList."""
    if not isinstance(selector_string, str):
        raise TypeError(f"selector must be a string, not {type(selector_string).__name__}")
    if not selector_string.strip():
        raise InvalidSelectorError("empty selector", 0, selector_string)

    tokenizer = SelectorTokenizer(selector_string)
    tokens = tokenizer.tokenize()
    parser = SelectorParser(tokens, selector_string)
    return parser.parse()


@lru_cache(maxsize=512)
def compile_selector(selector_string: str) -> SelectorList:
    """Compile ``selector_string``, reusing earlier results for identical text."""
    return parse_selector(selector_string)


# Global matcher instance
_matcher: SelectorMatcher = SelectorMatcher()


def match_all(scope: Any, selector: SelectorList, limit: int | None = None) -> list[Any]:
    """
    Return the descendants of ``scope`` matching ``selector``, in document order.

    The scope node itself is never a candidate. It can satisfy a combinator,
    but nothing above it can.

    Args:
        scope: The node whose subtree is searched
        selector: A compiled selector
        limit: Stop after this many matches; None, 0 or negative means no limit

    Returns:
        A list of matching element nodes
    """
    if limit is not None and limit <= 0:
        limit = None

    results: list[Any] = []
    stack = list(reversed(scope.children))
    while stack:
        node = stack.pop()
        if node.name == "#text":
            continue
        if _matcher.matches(node, selector, scope):
            results.append(node)
            if limit is not None and len(results) >= limit:
                break
        stack.extend(reversed(node.children))
    return results


def match_first(scope: Any, selector: SelectorList) -> Any | None:
    """Return the first descendant of ``scope`` matching ``selector``, or None."""
    found = match_all(scope, selector, limit=1)
    return found[0] if found else None


def query(root: Any, selector_string: str, limit: int | None = None) -> list[Any]:
    """
    Query the tree below root, returning matching elements in document order.

    Args:
        root: The root node to search from (not itself a candidate)
        selector_string: A CSS selector string
        limit: Optional maximum number of results

    Returns:
        A list of matching nodes
    """
    return match_all(root, compile_selector(selector_string), limit=limit)


def matches(node: Any, selector_string: str) -> bool:
    """
    Check if a node matches a CSS selector.

    Args:
        node: The node to check
        selector_string: A CSS selector string

    Returns:
        True if the node matches, False otherwise
    """
    return _matcher.matches(node, compile_selector(selector_string))
