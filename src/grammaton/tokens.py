"""Token alphabets, inclusive token ranges and diagnostic rendering.

A token is a plain ``int``: a byte value for the byte alphabet, a Unicode scalar
value for the scalar alphabet.  Everything alphabet-specific (validity, the
successor relation, case folding, rendering) goes through an ``Alphabet``
instance so the set, map and engine code stays identical for both.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from grammaton.errors import AlphabetConversionError

if TYPE_CHECKING:
    from grammaton.dfa import DFA

ASCII_MAX = 0x7F
U32_MAX = 0xFFFF_FFFF

SURROGATE_LOW = 0xD800
SURROGATE_HIGH = 0xDFFF

# Escapes shared by both renderers
_SIMPLE_ESCAPES = {
    0x00: "\\0",
    0x09: "\\t",
    0x0A: "\\n",
    0x0D: "\\r",
    0x27: "\\'",
    0x5C: "\\\\",
}


@dataclass(frozen=True, slots=True)
class Range:
    """Inclusive token interval, low <= high."""

    low: int
    high: int

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ValueError(f"empty range: {self.low:#x} > {self.high:#x}")

    def contains(self, token: int) -> bool:
        return self.low <= token <= self.high

    def intersects(self, other: Range) -> bool:
        return self.low <= other.high and other.low <= self.high


class Alphabet:
    """Capability set for one token domain."""

    name = ""
    min_token = 0
    max_token = 0
    unicode = False

    def __repr__(self) -> str:
        return f"<alphabet {self.name}>"

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def is_valid(self, value: int) -> bool:
        return self.min_token <= value <= self.max_token

    def from_byte(self, b: int) -> int:
        raise NotImplementedError

    def from_char(self, c: str) -> int:
        raise NotImplementedError

    def from_u32(self, value: int) -> int:
        """Convert an unsigned 32-bit value, failing outside the alphabet."""
        if not 0 <= value <= U32_MAX:
            raise AlphabetConversionError("value is not an unsigned 32-bit integer", value, self.name)
        if not self.is_valid(value):
            raise AlphabetConversionError(f"value is not a valid {self.name} token", value, self.name)
        return value

    def to_u32(self, token: int) -> int:
        return token

    def tokens(self, data: bytes | str | Iterable[int]) -> Iterator[int]:
        """Yield the tokens of an input sequence."""
        if isinstance(data, str):
            for c in data:
                yield self.from_char(c)
        elif isinstance(data, (bytes, bytearray)):
            for b in data:
                yield self.from_byte(b)
        else:
            for value in data:
                yield self.from_u32(value)

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def successor(self, token: int) -> int | None:
        """Next token in alphabet order, None past the end."""
        if token >= self.max_token:
            return None
        return token + 1

    def predecessor(self, token: int) -> int | None:
        if token <= self.min_token:
            return None
        return token - 1

    def range(self, low: int, high: int) -> Range:
        for token in (low, high):
            if not self.is_valid(token):
                raise AlphabetConversionError(f"range bound is not a valid {self.name} token", token, self.name)
        return Range(low, high)

    def full_range(self) -> Range:
        return Range(self.min_token, self.max_token)

    def range_len(self, r: Range) -> int:
        return r.high - r.low + 1

    def case_variants(self, token: int) -> tuple[int, int]:
        """Lowercase and uppercase counterparts of a token (the token itself when it has none)."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, token: int) -> str:
        raise NotImplementedError

    def render_range(self, r: Range) -> str:
        if r.low == r.high:
            return f"'{self.render(r.low)}'"
        return f"'{self.render(r.low)}'..='{self.render(r.high)}'"

    # ------------------------------------------------------------------
    # Automaton-level predicates
    # ------------------------------------------------------------------

    def is_ascii(self, automaton: DFA) -> bool:
        """Return True if every transition of the automaton stays in the ASCII subrange."""
        for transitions in automaton.transitions:
            for r, _ in transitions:
                if r.high > ASCII_MAX:
                    return False
        return True


class ByteAlphabet(Alphabet):
    """Tokens are bytes 0-255."""

    name = "bytes"
    min_token = 0
    max_token = 0xFF
    unicode = False

    def from_byte(self, b: int) -> int:
        if not 0 <= b <= 0xFF:
            raise AlphabetConversionError("value is not a byte", b, self.name)
        return b

    def from_char(self, c: str) -> int:
        if len(c) != 1:
            raise AlphabetConversionError("expected a single character", c, self.name)
        if not c.isascii():
            raise AlphabetConversionError("non-ASCII character has no byte token", c, self.name)
        return ord(c)

    def case_variants(self, token: int) -> tuple[int, int]:
        if 0x41 <= token <= 0x5A:
            return token + 0x20, token
        if 0x61 <= token <= 0x7A:
            return token, token - 0x20
        return token, token

    def render(self, token: int) -> str:
        if token in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[token]
        if 0x20 <= token < ASCII_MAX:
            return chr(token)
        return f"\\x{token:02x}"


class ScalarAlphabet(Alphabet):
    """Tokens are Unicode scalar values (code points minus surrogates)."""

    name = "scalars"
    min_token = 0
    max_token = 0x10FFFF
    unicode = True

    def is_valid(self, value: int) -> bool:
        return 0 <= value <= self.max_token and not SURROGATE_LOW <= value <= SURROGATE_HIGH

    def from_byte(self, b: int) -> int:
        if not 0 <= b <= ASCII_MAX:
            raise AlphabetConversionError("only ASCII bytes map to scalar tokens", b, self.name)
        return b

    def from_char(self, c: str) -> int:
        if len(c) != 1:
            raise AlphabetConversionError("expected a single character", c, self.name)
        value = ord(c)
        if not self.is_valid(value):
            raise AlphabetConversionError("surrogate code point is not a scalar value", value, self.name)
        return value

    def successor(self, token: int) -> int | None:
        if token == SURROGATE_LOW - 1:
            return SURROGATE_HIGH + 1
        return super().successor(token)

    def predecessor(self, token: int) -> int | None:
        if token == SURROGATE_HIGH + 1:
            return SURROGATE_LOW - 1
        return super().predecessor(token)

    def range_len(self, r: Range) -> int:
        n = r.high - r.low + 1
        # Surrogates inside the interval are not tokens
        overlap = min(r.high, SURROGATE_HIGH) - max(r.low, SURROGATE_LOW) + 1
        if overlap > 0:
            n -= overlap
        return n

    def case_variants(self, token: int) -> tuple[int, int]:
        c = chr(token)
        lower = c.lower()
        upper = c.upper()
        return (
            ord(lower) if len(lower) == 1 else token,
            ord(upper) if len(upper) == 1 else token,
        )

    def render(self, token: int) -> str:
        if token in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[token]
        c = chr(token)
        if c.isprintable():
            return c
        if token <= 0xFF:
            return f"\\x{token:02x}"
        return f"\\u{{{token:x}}}"


BYTES = ByteAlphabet()
SCALARS = ScalarAlphabet()

_ALPHABETS: dict[str, Alphabet] = {a.name: a for a in (BYTES, SCALARS)}


def get_alphabet(name: str) -> Alphabet:
    """Look up an alphabet by its serialized name."""
    try:
        return _ALPHABETS[name]
    except KeyError:
        raise ValueError(f"unknown alphabet: {name!r}") from None
