import re
from bisect import bisect_right

from .constants import RAWTEXT_ELEMENTS, RCDATA_ELEMENTS
from .entities import decode_entities_in_text
from .errors import MalformedMarkupError, generate_error_message
from .tokens import EOFToken, ParseError, Tag

_ASCII_LOWER_TABLE = str.maketrans({chr(code): chr(code + 32) for code in range(65, 91)})
_WHITESPACE_CHARS = ("\t", "\n", "\f", " ")

_TAG_NAME_RUN_PATTERN = re.compile(r"[^\t\n\f />\0]+")
_ATTR_NAME_RUN_PATTERN = re.compile(r"[^\t\n\f />=\0\"'<]+")
_ATTR_VALUE_UNQUOTED_RUN_PATTERN = re.compile(r"[^\t\n\f >\0]+")
_WHITESPACE_PATTERN = re.compile(r"[ \t\n\f]+")

_end_tag_patterns = {}


def _end_tag_pattern(name):
    """Pattern finding ``</name`` followed by whitespace, ``/`` or ``>``, any case."""
    pattern = _end_tag_patterns.get(name)
    if pattern is None:
        pattern = re.compile(r"</" + re.escape(name) + r"(?=[\t\n\f />])", re.IGNORECASE)
        _end_tag_patterns[name] = pattern
    return pattern


def _is_ascii_alpha(c):
    return ("a" <= c <= "z") or ("A" <= c <= "Z")


class TokenizerOpts:
    __slots__ = ("discard_bom",)

    def __init__(self, discard_bom=True):
        self.discard_bom = bool(discard_bom)


class Tokenizer:
    """Splits markup into start tags, end tags and character runs. Comments are skipped.

    One handler per state, dispatched through ``_STATE_HANDLERS``. Each handler
    consumes input, may emit tokens to the sink, and returns True once EOF has
    been emitted.
    """

    DATA = 0
    TAG_OPEN = 1
    END_TAG_OPEN = 2
    TAG_NAME = 3
    BEFORE_ATTRIBUTE_NAME = 4
    ATTRIBUTE_NAME = 5
    AFTER_ATTRIBUTE_NAME = 6
    BEFORE_ATTRIBUTE_VALUE = 7
    ATTRIBUTE_VALUE_DOUBLE = 8
    ATTRIBUTE_VALUE_SINGLE = 9
    ATTRIBUTE_VALUE_UNQUOTED = 10
    AFTER_ATTRIBUTE_VALUE_QUOTED = 11
    SELF_CLOSING_START_TAG = 12
    MARKUP_DECLARATION_OPEN = 13
    COMMENT = 14
    BOGUS_COMMENT = 15
    RCDATA = 16
    RAWTEXT = 17

    __slots__ = (
        "_newline_positions",
        "buffer",
        "collect_errors",
        "current_attr_name",
        "current_attr_value",
        "current_char",
        "current_tag_attrs",
        "current_tag_kind",
        "current_tag_name",
        "current_tag_self_closing",
        "errors",
        "length",
        "opts",
        "pos",
        "rawtext_tag_name",
        "sink",
        "state",
        "tag_start",
        "text_buffer",
    )

    # _STATE_HANDLERS is defined at the end of the file

    def __init__(self, sink, opts=None, collect_errors=False):
        self.sink = sink
        self.opts = opts or TokenizerOpts()
        self.collect_errors = collect_errors
        self.errors = []

        self.state = self.DATA
        self.buffer = ""
        self.length = 0
        self.pos = 0
        self.current_char = ""
        self.tag_start = 0
        self._newline_positions = None

        self.text_buffer = []
        self.current_tag_name = []
        self.current_tag_attrs = {}
        self.current_tag_kind = Tag.START
        self.current_tag_self_closing = False
        self.current_attr_name = []
        self.current_attr_value = []
        self.rawtext_tag_name = None

    def initialize(self, html):
        if html and html[0] == "\ufeff" and self.opts.discard_bom:
            html = html[1:]
        html = html or ""
        if "\r" in html:
            html = html.replace("\r\n", "\n").replace("\r", "\n")

        self.buffer = html
        self.length = len(html)
        self.pos = 0
        self.current_char = ""
        self.tag_start = 0
        self._newline_positions = None
        self.errors = []
        self.state = self.DATA
        self.text_buffer.clear()
        self.current_tag_name.clear()
        self.current_tag_attrs = {}
        self.current_tag_kind = Tag.START
        self.current_tag_self_closing = False
        self.current_attr_name.clear()
        self.current_attr_value.clear()
        self.rawtext_tag_name = None

    def step(self):
        """Run one step of the tokenizer state machine. Returns True if EOF reached."""
        handler = self._STATE_HANDLERS[self.state]
        return handler(self)

    def run(self, html):
        self.initialize(html)
        while True:
            if self.step():
                break

    def position_at(self, pos):
        """Return the 1-indexed (line, column) of buffer offset ``pos``."""
        if self._newline_positions is None:
            positions = []
            found = self.buffer.find("\n")
            while found != -1:
                positions.append(found)
                found = self.buffer.find("\n", found + 1)
            self._newline_positions = positions
        line_index = bisect_right(self._newline_positions, pos - 1)
        line_start = self._newline_positions[line_index - 1] + 1 if line_index else 0
        return line_index + 1, pos - line_start + 1

    def last_tag_position(self):
        return self.position_at(self.tag_start)

    # ---------------------
    # Helper methods
    # ---------------------

    def _get_char(self):
        if self.pos >= self.length:
            self.current_char = None
            return None
        c = self.buffer[self.pos]
        self.pos += 1
        self.current_char = c
        return c

    def _reconsume_current(self):
        if self.current_char is not None:
            self.pos -= 1

    def _skip_whitespace(self):
        match = _WHITESPACE_PATTERN.match(self.buffer, self.pos)
        if match:
            self.pos = match.end()

    def _consume_if(self, literal):
        end = self.pos + len(literal)
        if self.buffer[self.pos : end] != literal:
            return False
        self.pos = end
        return True

    def _consume_case_insensitive(self, literal):
        end = self.pos + len(literal)
        if self.buffer[self.pos : end].lower() != literal.lower():
            return False
        self.pos = end
        return True

    def _append_text(self, text):
        if text:
            self.text_buffer.append(text)

    def _flush_text(self):
        if not self.text_buffer:
            return
        data = "".join(self.text_buffer)
        self.text_buffer.clear()

        if "\0" in data:
            self._emit_error("unexpected-null-character")
            in_text_content = self.state in (self.RAWTEXT, self.RCDATA)
            data = data.replace("\0", "\ufffd" if in_text_content else "")
            if not data:
                return

        # RAWTEXT content (script, style, ...) keeps references undecoded.
        if self.state != self.RAWTEXT and "&" in data:
            data = decode_entities_in_text(data)

        self.sink.process_characters(data)

    def _start_tag(self, kind):
        self.current_tag_kind = kind
        self.current_tag_name.clear()
        self.current_tag_attrs = {}
        self.current_tag_self_closing = False
        self.current_attr_name.clear()
        self.current_attr_value.clear()

    def _start_attribute(self):
        self.current_attr_name.clear()
        self.current_attr_value.clear()

    def _finish_attribute(self):
        if not self.current_attr_name:
            return
        name = "".join(self.current_attr_name)
        self.current_attr_name.clear()
        value = "".join(self.current_attr_value)
        self.current_attr_value.clear()

        if name in self.current_tag_attrs:
            self._emit_error("duplicate-attribute")
            return
        if "\0" in value:
            self._emit_error("unexpected-null-character")
            value = value.replace("\0", "\ufffd")
        if "&" in value:
            value = decode_entities_in_text(value, in_attribute=True)
        self.current_tag_attrs[name] = value

    def _emit_current_tag(self):
        self._finish_attribute()
        name = "".join(self.current_tag_name)
        tag = Tag(self.current_tag_kind, name, self.current_tag_attrs, self.current_tag_self_closing)
        self.current_tag_attrs = {}
        self.current_tag_name.clear()

        self.state = self.DATA
        if tag.kind == Tag.START:
            if name in RAWTEXT_ELEMENTS:
                self.state = self.RAWTEXT
                self.rawtext_tag_name = name
            elif name in RCDATA_ELEMENTS:
                self.state = self.RCDATA
                self.rawtext_tag_name = name

        self.sink.process_token(tag)

    def _emit_eof(self):
        self._flush_text()
        self.sink.process_token(EOFToken())
        return True

    def _emit_error(self, code):
        if not self.collect_errors:
            return
        line, column = self.position_at(max(0, self.pos - 1))
        self.errors.append(ParseError(code, line=line, column=column, message=generate_error_message(code)))

    def _fatal_eof_in_tag(self):
        line, column = self.position_at(self.tag_start)
        error = ParseError("eof-in-tag", line=line, column=column, message=generate_error_message("eof-in-tag"))
        raise MalformedMarkupError(error, source=self.buffer)

    # ---------------------
    # State handlers
    # ---------------------

    def _state_data(self):
        pos = self.pos
        next_lt = self.buffer.find("<", pos)
        if next_lt == -1:
            self._append_text(self.buffer[pos:])
            self.pos = self.length
            return self._emit_eof()

        self._append_text(self.buffer[pos:next_lt])
        self.tag_start = next_lt
        self.pos = next_lt + 1
        self.state = self.TAG_OPEN
        return False

    def _state_tag_open(self):
        c = self._get_char()
        if c is None:
            self._emit_error("eof-before-tag-name")
            self._append_text("<")
            return self._emit_eof()
        if c == "!":
            self.state = self.MARKUP_DECLARATION_OPEN
            return False
        if c == "/":
            self.state = self.END_TAG_OPEN
            return False
        if _is_ascii_alpha(c):
            self._flush_text()
            self._start_tag(Tag.START)
            self._reconsume_current()
            self.state = self.TAG_NAME
            return False
        if c == "?":
            self._flush_text()
            self._emit_error("unexpected-question-mark-instead-of-tag-name")
            self._reconsume_current()
            self.state = self.BOGUS_COMMENT
            return False

        self._emit_error("invalid-first-character-of-tag-name")
        self._append_text("<")
        self._reconsume_current()
        self.state = self.DATA
        return False

    def _state_end_tag_open(self):
        c = self._get_char()
        if c is None:
            self._emit_error("eof-before-tag-name")
            self._append_text("</")
            return self._emit_eof()
        if _is_ascii_alpha(c):
            self._flush_text()
            self._start_tag(Tag.END)
            self._reconsume_current()
            self.state = self.TAG_NAME
            return False
        if c == ">":
            self._emit_error("empty-end-tag")
            self.state = self.DATA
            return False

        self._emit_error("invalid-first-character-of-tag-name")
        self._flush_text()
        self._reconsume_current()
        self.state = self.BOGUS_COMMENT
        return False

    def _state_tag_name(self):
        append_tag_char = self.current_tag_name.append
        while True:
            match = _TAG_NAME_RUN_PATTERN.match(self.buffer, self.pos)
            if match:
                append_tag_char(match.group(0).translate(_ASCII_LOWER_TABLE))
                self.pos = match.end()

            c = self._get_char()
            if c is None:
                self._fatal_eof_in_tag()
            if c in _WHITESPACE_CHARS:
                self.state = self.BEFORE_ATTRIBUTE_NAME
                return False
            if c == "/":
                self.state = self.SELF_CLOSING_START_TAG
                return False
            if c == ">":
                self._emit_current_tag()
                return False
            # c == "\0"
            self._emit_error("unexpected-null-character")
            append_tag_char("\ufffd")

    def _state_before_attribute_name(self):
        self._skip_whitespace()
        c = self._get_char()
        if c is None:
            self._fatal_eof_in_tag()
        if c == "/":
            self.state = self.SELF_CLOSING_START_TAG
            return False
        if c == ">":
            self._emit_current_tag()
            return False

        self._start_attribute()
        if c == "=":
            self._emit_error("unexpected-equals-sign-before-attribute-name")
            self.current_attr_name.append("=")
        else:
            self._reconsume_current()
        self.state = self.ATTRIBUTE_NAME
        return False

    def _state_attribute_name(self):
        append_attr_char = self.current_attr_name.append
        while True:
            match = _ATTR_NAME_RUN_PATTERN.match(self.buffer, self.pos)
            if match:
                append_attr_char(match.group(0).translate(_ASCII_LOWER_TABLE))
                self.pos = match.end()

            c = self._get_char()
            if c is None:
                self._fatal_eof_in_tag()
            if c in _WHITESPACE_CHARS:
                self.state = self.AFTER_ATTRIBUTE_NAME
                return False
            if c == "/":
                self._finish_attribute()
                self.state = self.SELF_CLOSING_START_TAG
                return False
            if c == ">":
                self._emit_current_tag()
                return False
            if c == "=":
                self.state = self.BEFORE_ATTRIBUTE_VALUE
                return False
            if c == "\0":
                self._emit_error("unexpected-null-character")
                append_attr_char("\ufffd")
                continue
            # c is one of " ' <
            self._emit_error("unexpected-character-in-attribute-name")
            append_attr_char(c)

    def _state_after_attribute_name(self):
        self._skip_whitespace()
        c = self._get_char()
        if c is None:
            self._fatal_eof_in_tag()
        if c == "=":
            self.state = self.BEFORE_ATTRIBUTE_VALUE
            return False
        self._finish_attribute()
        if c == "/":
            self.state = self.SELF_CLOSING_START_TAG
            return False
        if c == ">":
            self._emit_current_tag()
            return False
        self._start_attribute()
        self._reconsume_current()
        self.state = self.ATTRIBUTE_NAME
        return False

    def _state_before_attribute_value(self):
        self._skip_whitespace()
        c = self._get_char()
        if c is None:
            self._fatal_eof_in_tag()
        if c == '"':
            self.state = self.ATTRIBUTE_VALUE_DOUBLE
            return False
        if c == "'":
            self.state = self.ATTRIBUTE_VALUE_SINGLE
            return False
        if c == ">":
            self._emit_error("missing-attribute-value")
            self._emit_current_tag()
            return False
        self._reconsume_current()
        self.state = self.ATTRIBUTE_VALUE_UNQUOTED
        return False

    def _consume_quoted_value(self, quote):
        end = self.buffer.find(quote, self.pos)
        if end == -1:
            self.pos = self.length
            self._fatal_eof_in_tag()
        self.current_attr_value.append(self.buffer[self.pos : end])
        self.pos = end + 1
        self.state = self.AFTER_ATTRIBUTE_VALUE_QUOTED
        return False

    def _state_attribute_value_double(self):
        return self._consume_quoted_value('"')

    def _state_attribute_value_single(self):
        return self._consume_quoted_value("'")

    def _state_attribute_value_unquoted(self):
        while True:
            match = _ATTR_VALUE_UNQUOTED_RUN_PATTERN.match(self.buffer, self.pos)
            if match:
                chunk = match.group(0)
                if any(ch in chunk for ch in "\"'<=`"):
                    self._emit_error("unexpected-character-in-unquoted-attribute-value")
                self.current_attr_value.append(chunk)
                self.pos = match.end()

            c = self._get_char()
            if c is None:
                self._fatal_eof_in_tag()
            if c in _WHITESPACE_CHARS:
                self._finish_attribute()
                self.state = self.BEFORE_ATTRIBUTE_NAME
                return False
            if c == ">":
                self._emit_current_tag()
                return False
            # c == "\0"
            self._emit_error("unexpected-null-character")
            self.current_attr_value.append("\ufffd")

    def _state_after_attribute_value_quoted(self):
        c = self._get_char()
        if c is None:
            self._fatal_eof_in_tag()
        self._finish_attribute()
        if c in _WHITESPACE_CHARS:
            self.state = self.BEFORE_ATTRIBUTE_NAME
            return False
        if c == "/":
            self.state = self.SELF_CLOSING_START_TAG
            return False
        if c == ">":
            self._emit_current_tag()
            return False
        self._emit_error("missing-whitespace-between-attributes")
        self._reconsume_current()
        self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_self_closing_start_tag(self):
        c = self._get_char()
        if c is None:
            self._fatal_eof_in_tag()
        if c == ">":
            self.current_tag_self_closing = True
            self._emit_current_tag()
            return False
        self._emit_error("unexpected-character-after-solidus-in-tag")
        self._reconsume_current()
        self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_markup_declaration_open(self):
        self._flush_text()
        if self._consume_if("--"):
            self.state = self.COMMENT
            return False
        # DOCTYPE and CDATA are not kept in the tree; both read as bogus comments.
        if not (self._consume_case_insensitive("DOCTYPE") or self._consume_if("[CDATA[")):
            self._emit_error("incorrectly-opened-comment")
        self.state = self.BOGUS_COMMENT
        return False

    def _state_comment(self):
        # Comments are skipped; only their extent matters.
        buffer = self.buffer
        pos = self.pos

        # <!--> and <!---> close immediately
        for abrupt in (">", "->"):
            if buffer.startswith(abrupt, pos):
                self.pos = pos + len(abrupt)
                self.state = self.DATA
                return False

        end = buffer.find("-->", pos)
        bang_end = buffer.find("--!>", pos)
        if bang_end != -1 and (end == -1 or bang_end < end):
            self.pos = bang_end + 4
            self.state = self.DATA
            return False
        if end == -1:
            self.pos = self.length
            self._emit_error("eof-in-comment")
            return self._emit_eof()

        self.pos = end + 3
        self.state = self.DATA
        return False

    def _state_bogus_comment(self):
        end = self.buffer.find(">", self.pos)
        if end == -1:
            self.pos = self.length
            return self._emit_eof()
        self.pos = end + 1
        self.state = self.DATA
        return False

    def _state_rawtext(self):
        match = _end_tag_pattern(self.rawtext_tag_name).search(self.buffer, self.pos)
        if match is None:
            self._append_text(self.buffer[self.pos :])
            self.pos = self.length
            return self._emit_eof()

        self._append_text(self.buffer[self.pos : match.start()])
        self._flush_text()
        self.tag_start = match.start()
        self._start_tag(Tag.END)
        self.current_tag_name.append(self.rawtext_tag_name)
        self.rawtext_tag_name = None
        self.pos = match.end()
        self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    # RCDATA differs only in decoding, which _flush_text keys off self.state.
    _state_rcdata = _state_rawtext


Tokenizer._STATE_HANDLERS = [  # type: ignore[attr-defined]
    Tokenizer._state_data,
    Tokenizer._state_tag_open,
    Tokenizer._state_end_tag_open,
    Tokenizer._state_tag_name,
    Tokenizer._state_before_attribute_name,
    Tokenizer._state_attribute_name,
    Tokenizer._state_after_attribute_name,
    Tokenizer._state_before_attribute_value,
    Tokenizer._state_attribute_value_double,
    Tokenizer._state_attribute_value_single,
    Tokenizer._state_attribute_value_unquoted,
    Tokenizer._state_after_attribute_value_quoted,
    Tokenizer._state_self_closing_start_tag,
    Tokenizer._state_markup_declaration_open,
    Tokenizer._state_comment,
    Tokenizer._state_bogus_comment,
    Tokenizer._state_rcdata,
    Tokenizer._state_rawtext,
]
