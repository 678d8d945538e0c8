"""Recursive-descent repair of truncated JSON for streaming consumers."""

from __future__ import annotations

import codecs
import json
import logging

from fieldwalk.models.parse import ParseResult, TruncatedAt

logger = logging.getLogger("fieldwalk.partialjson")

# ---------------------------------------------------------------------------
# Character classes
# ---------------------------------------------------------------------------

_WHITESPACE = " \t\n\r"
_DIGITS = "0123456789"
_NONZERO_DIGITS = "123456789"
_HEX_DIGITS = "0123456789abcdefABCDEF"


class Parser:
    """Repairs incomplete JSON and reports which values were cut off.

    Use ``strict=False`` for language-model output: a literal newline inside
    a string is then kept as content instead of being read as a truncation.
    The parser holds no per-call state and can be shared between threads.
    """

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict

    @property
    def strict(self) -> bool:
        return self._strict

    def parse(self, data: bytes | str) -> ParseResult:
        """Repair ``data`` into valid JSON. Never raises for malformed input.

        Empty or whitespace-only input is assumed to be the start of an object
        and repairs to ``{}``.
        """
        text = _decode(data).strip()
        if not text:
            return ParseResult(repaired=b"{}", incomplete=[], truncated_at=TruncatedAt.COMPLETE)

        state = _ParseState(text, self._strict)
        repaired, truncated_at = state.parse_value()
        logger.debug(
            "partial parse: %d chars, truncated_at=%s, incomplete=%d",
            len(text),
            truncated_at,
            len(state.incomplete),
        )
        return ParseResult(
            repaired=repaired.encode("utf-8"),
            incomplete=state.incomplete,
            truncated_at=truncated_at,
        )


def _decode(data: bytes | str) -> str:
    """Decode UTF-8 input, dropping a multi-byte character cut at the end."""
    if isinstance(data, str):
        return data
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    return decoder.decode(bytes(data), final=False)


class _ParseState:
    """Transient state of one ``Parser.parse`` call."""

    def __init__(self, text: str, strict: bool) -> None:
        self.text = text
        self.strict = strict
        self.pos = 0
        self.incomplete: list[list[str]] = []
        self.path: list[str] = []

    # -- values --------------------------------------------------------------

    def parse_value(self) -> tuple[str, TruncatedAt]:
        self._skip_whitespace()
        if self._at_end():
            return "null", TruncatedAt.VALUE

        ch = self.text[self.pos]
        if ch == "{":
            return self._parse_object()
        if ch == "[":
            return self._parse_array()
        if ch == '"':
            return self._parse_string()
        if ch == "t":
            return self._parse_literal("true")
        if ch == "f":
            return self._parse_literal("false")
        if ch == "n":
            return self._parse_literal("null")
        if ch == "-" or ch in _DIGITS:
            return self._parse_number()
        return "null", TruncatedAt.VALUE

    def _parse_object(self) -> tuple[str, TruncatedAt]:
        self.pos += 1  # '{'
        pairs: list[str] = []
        truncated_at = TruncatedAt.COMPLETE

        while True:
            self._skip_whitespace()
            if self._at_end():
                truncated_at = TruncatedAt.OBJECT
                break

            if self.text[self.pos] == "}":
                self.pos += 1
                return "{" + ",".join(pairs) + "}", truncated_at

            if pairs:
                if self.text[self.pos] != ",":
                    truncated_at = TruncatedAt.OBJECT
                    break
                self.pos += 1
                self._skip_whitespace()

            if self._at_end() or self.text[self.pos] != '"':
                truncated_at = TruncatedAt.KEY
                break

            key_text, key_truncated = self._parse_string(record=False)
            key = _key_name(key_text)
            self.path.append(key)

            if key_truncated != TruncatedAt.COMPLETE:
                self._mark_incomplete()
                self.path.pop()
                truncated_at = TruncatedAt.KEY
                break

            self._skip_whitespace()
            if self._at_end() or self.text[self.pos] != ":":
                self._mark_incomplete()
                self.path.pop()
                truncated_at = TruncatedAt.KEY
                break
            self.pos += 1  # ':'

            self._skip_whitespace()
            if self._at_end():
                self._mark_incomplete()
                self.path.pop()
                truncated_at = TruncatedAt.VALUE
                break

            value_text, value_truncated = self.parse_value()
            pairs.append(f"{key_text}:{value_text}")
            self.path.pop()

            # A truncated value ends the input; nothing can follow it.
            if value_truncated != TruncatedAt.COMPLETE:
                truncated_at = value_truncated
                break

        return "{" + ",".join(pairs) + "}", truncated_at

    def _parse_array(self) -> tuple[str, TruncatedAt]:
        self.pos += 1  # '['
        items: list[str] = []
        truncated_at = TruncatedAt.COMPLETE

        while True:
            self._skip_whitespace()
            if self._at_end():
                truncated_at = TruncatedAt.ARRAY
                break

            if self.text[self.pos] == "]":
                self.pos += 1
                return "[" + ",".join(items) + "]", truncated_at

            if items:
                if self.text[self.pos] != ",":
                    truncated_at = TruncatedAt.ARRAY
                    break
                self.pos += 1
                self._skip_whitespace()
                if self._at_end():
                    truncated_at = TruncatedAt.ARRAY
                    break

            self.path.append(f"[{len(items)}]")
            value_text, value_truncated = self.parse_value()
            self.path.pop()
            items.append(value_text)

            if value_truncated != TruncatedAt.COMPLETE:
                truncated_at = value_truncated
                break

        return "[" + ",".join(items) + "]", truncated_at

    def _parse_string(self, record: bool = True) -> tuple[str, TruncatedAt]:
        text = self.text
        start = self.pos
        self.pos += 1  # opening quote

        while self.pos < len(text):
            ch = text[self.pos]

            if ch == "\\":
                self.pos += 1
                if self.pos >= len(text):
                    # Dangling backslash: keep it as an escaped literal.
                    if record:
                        self._mark_incomplete()
                    return text[start : self.pos - 1] + '\\\\"', TruncatedAt.STRING
                if text[self.pos] == "u":
                    escape_start = self.pos - 1
                    self.pos += 1
                    hex_count = 0
                    while hex_count < 4 and self.pos < len(text) and text[self.pos] in _HEX_DIGITS:
                        self.pos += 1
                        hex_count += 1
                    if hex_count < 4:
                        if record:
                            self._mark_incomplete()
                        return text[start:escape_start] + '"', TruncatedAt.STRING
                else:
                    self.pos += 1
                continue

            if ch == '"':
                self.pos += 1
                return text[start : self.pos], TruncatedAt.COMPLETE

            if ch == "\n" and self.strict:
                if record:
                    self._mark_incomplete()
                return text[start : self.pos] + '"', TruncatedAt.STRING

            self.pos += 1

        if record:
            self._mark_incomplete()
        return text[start:] + '"', TruncatedAt.STRING

    def _parse_number(self) -> tuple[str, TruncatedAt]:
        text = self.text
        start = self.pos

        if text[self.pos] == "-":
            self.pos += 1
        if self._at_end():
            self._mark_incomplete()
            return "0", TruncatedAt.VALUE

        ch = text[self.pos]
        if ch == "0":
            self.pos += 1
        elif ch in _NONZERO_DIGITS:
            self._skip_digits()
        else:
            return "0", TruncatedAt.VALUE

        if not self._at_end() and text[self.pos] == ".":
            self.pos += 1
            if not self._skip_digits():
                self._mark_incomplete()
                return text[start : self.pos - 1], TruncatedAt.VALUE

        if not self._at_end() and text[self.pos] in "eE":
            exponent_start = self.pos
            self.pos += 1
            if not self._at_end() and text[self.pos] in "+-":
                self.pos += 1
            if not self._skip_digits():
                self._mark_incomplete()
                return text[start:exponent_start], TruncatedAt.VALUE

        return text[start : self.pos], TruncatedAt.COMPLETE

    def _parse_literal(self, expected: str) -> tuple[str, TruncatedAt]:
        for expected_ch in expected:
            if self._at_end() or self.text[self.pos] != expected_ch:
                self._mark_incomplete()
                return expected, TruncatedAt.VALUE
            self.pos += 1
        return expected, TruncatedAt.COMPLETE

    # -- helpers -------------------------------------------------------------

    def _mark_incomplete(self) -> None:
        if self.path:
            self.incomplete.append(list(self.path))

    def _at_end(self) -> bool:
        return self.pos >= len(self.text)

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _WHITESPACE:
            self.pos += 1

    def _skip_digits(self) -> bool:
        """Consume a digit run; return whether any digit was consumed."""
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] in _DIGITS:
            self.pos += 1
        return self.pos > start


def _key_name(key_text: str) -> str:
    """Decode a repaired key string into the path segment it names."""
    try:
        return json.loads(key_text, strict=False)
    except json.JSONDecodeError:
        return key_text[1:-1]
