from __future__ import annotations

from typing import Literal


class Tag:
    __slots__ = ("attrs", "kind", "name", "self_closing")

    START: Literal[0] = 0
    END: Literal[1] = 1

    kind: int
    name: str
    attrs: dict[str, str]
    self_closing: bool

    def __init__(
        self,
        kind: int,
        name: str,
        attrs: dict[str, str] | None,
        self_closing: bool = False,
    ) -> None:
        self.kind = kind
        self.name = name
        self.attrs = attrs if attrs is not None else {}
        self.self_closing = bool(self_closing)

    def __repr__(self) -> str:
        slash = "/" if self.kind == Tag.END else ""
        return f"Tag(<{slash}{self.name}>, attrs={self.attrs!r})"


class EOFToken:
    __slots__ = ()


class ParseError:
    """A recoverable (or, for the tokenizer, fatal) problem found while parsing.

    Errors order by source position; an error without a position sorts last.
    """

    __slots__ = ("code", "column", "line", "message")

    code: str
    line: int | None
    column: int | None
    message: str

    def __init__(
        self,
        code: str,
        line: int | None = None,
        column: int | None = None,
        message: str | None = None,
    ) -> None:
        self.code = code
        self.line = line
        self.column = column
        self.message = message or code

    @property
    def position(self) -> tuple[float, float]:
        if self.line is None:
            return (float("inf"), float("inf"))
        return (self.line, self.column if self.column is not None else 0)

    def __repr__(self) -> str:
        if self.line is None:
            return f"ParseError({self.code!r})"
        return f"ParseError({self.code!r}, line={self.line}, column={self.column})"

    def __str__(self) -> str:
        where = f"line {self.line}, column {self.column}: " if self.line is not None else ""
        if self.message == self.code:
            return f"{where}{self.code}"
        return f"{where}{self.message} [{self.code}]"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseError):
            return NotImplemented
        return (self.code, self.line, self.column) == (other.code, other.line, other.column)

    def __hash__(self) -> int:
        return hash((self.code, self.line, self.column))
