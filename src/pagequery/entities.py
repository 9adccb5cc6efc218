"""Character reference decoding for text and attribute values.

Handles named references (``&amp;``, ``&nbsp;``), decimal (``&#60;``) and
hexadecimal (``&#x3C;``) numeric references, and the legacy Latin-1 names that
browsers accept without a trailing semicolon.
"""

from __future__ import annotations

import html.entities

# Python ships the complete HTML5 table; keys carry the trailing semicolon
# ("amp;") and legacy names also appear without it ("amp").
_HTML5_ENTITIES: dict[str, str] = html.entities.html5

NAMED_ENTITIES: dict[str, str] = {key.rstrip(";"): value for key, value in _HTML5_ENTITIES.items()}

# Names usable without a semicolon are exactly those the table lists bare.
LEGACY_ENTITIES: frozenset[str] = frozenset(key for key in _HTML5_ENTITIES if not key.endswith(";"))

_LONGEST_LEGACY = max(len(name) for name in LEGACY_ENTITIES)

# Windows-1252 remapping of C1 controls in numeric references.
NUMERIC_REPLACEMENTS: dict[int, str] = {
    0x00: "\ufffd",
    0x80: "€",
    0x82: "‚",
    0x83: "ƒ",
    0x84: "„",
    0x85: "…",
    0x86: "†",
    0x87: "‡",
    0x88: "ˆ",
    0x89: "‰",
    0x8A: "Š",
    0x8B: "‹",
    0x8C: "Œ",
    0x8E: "Ž",
    0x91: "‘",
    0x92: "’",
    0x93: "“",
    0x94: "”",
    0x95: "•",
    0x96: "–",
    0x97: "—",
    0x98: "˜",
    0x99: "™",
    0x9A: "š",
    0x9B: "›",
    0x9C: "œ",
    0x9E: "ž",
    0x9F: "Ÿ",
}

_HEX_DIGITS = "0123456789abcdefABCDEF"


def decode_numeric_entity(text: str, is_hex: bool = False) -> str:
    """Decode the digits of a numeric reference (without ``&#``/``&#x`` and ``;``)."""
    codepoint = int(text, 16 if is_hex else 10)

    if codepoint in NUMERIC_REPLACEMENTS:
        return NUMERIC_REPLACEMENTS[codepoint]
    if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
        return "\ufffd"
    return chr(codepoint)


def _legacy_prefix(name: str) -> str | None:
    for k in range(min(len(name), _LONGEST_LEGACY), 0, -1):
        if name[:k] in LEGACY_ENTITIES:
            return name[:k]
    return None


def decode_entities_in_text(text: str, in_attribute: bool = False) -> str:
    """Decode all character references in ``text``.

    Unknown references are left as written. In attribute values a legacy name
    without semicolon that runs into an alphanumeric or ``=`` is not decoded,
    so query strings such as ``?a=1&copy=2`` survive intact.
    """
    if "&" not in text:
        return text

    result: list[str] = []
    i = 0
    length = len(text)
    while i < length:
        next_amp = text.find("&", i)
        if next_amp == -1:
            result.append(text[i:])
            break
        if next_amp > i:
            result.append(text[i:next_amp])
        i = next_amp
        j = i + 1

        if j < length and text[j] == "#":
            j += 1
            is_hex = j < length and text[j] in "xX"
            if is_hex:
                j += 1
            digit_start = j
            digits = _HEX_DIGITS if is_hex else "0123456789"
            while j < length and text[j] in digits:
                j += 1
            if j == digit_start:
                result.append(text[i:j])
                i = j
                continue
            result.append(decode_numeric_entity(text[digit_start:j], is_hex=is_hex))
            i = j + 1 if j < length and text[j] == ";" else j
            continue

        while j < length and text[j].isalnum():
            j += 1
        name = text[i + 1 : j]
        has_semicolon = j < length and text[j] == ";"

        if not name:
            result.append("&")
            i += 1
            continue

        if has_semicolon and name in NAMED_ENTITIES:
            result.append(NAMED_ENTITIES[name])
            i = j + 1
            continue

        prefix = _legacy_prefix(name)
        if prefix is None:
            result.append("&")
            i += 1
            continue

        end = i + 1 + len(prefix)
        next_char = text[end] if end < length else ""
        if in_attribute and (next_char.isalnum() or next_char == "="):
            result.append("&")
            i += 1
            continue

        result.append(NAMED_ENTITIES[prefix])
        i = end

    return "".join(result)
