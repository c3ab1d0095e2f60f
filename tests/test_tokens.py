"""Test alphabets: conversions, ordering, rendering and the ASCII predicate."""

from __future__ import annotations

import pytest

from grammaton.dfa import DFA
from grammaton.errors import AlphabetConversionError
from grammaton.tokenmap import TokenMap
from grammaton.tokens import BYTES, SCALARS, Range, get_alphabet


class TestByteConversions:
    def test_from_byte_identity(self):
        assert all(BYTES.from_byte(b) == b for b in range(256))

    def test_from_char_ascii(self):
        assert BYTES.from_char("A") == 0x41

    def test_from_char_non_ascii_fails(self):
        with pytest.raises(AlphabetConversionError) as exc_info:
            BYTES.from_char("é")
        assert exc_info.value.alphabet == "bytes"

    def test_from_u32_round_trip(self):
        for value in range(256):
            assert BYTES.to_u32(BYTES.from_u32(value)) == value

    def test_from_u32_above_255_fails(self):
        with pytest.raises(AlphabetConversionError):
            BYTES.from_u32(256)

    def test_from_u32_negative_fails(self):
        with pytest.raises(AlphabetConversionError):
            BYTES.from_u32(-1)

    def test_tokens_from_bytes_and_str(self):
        assert list(BYTES.tokens(b"\xffa")) == [0xFF, 0x61]
        assert list(BYTES.tokens("ab")) == [0x61, 0x62]


class TestScalarConversions:
    def test_from_byte_ascii_only(self):
        assert SCALARS.from_byte(0x7A) == 0x7A
        with pytest.raises(AlphabetConversionError):
            SCALARS.from_byte(0x80)

    def test_from_char_identity(self):
        assert SCALARS.from_char("€") == 0x20AC

    def test_from_char_surrogate_fails(self):
        with pytest.raises(AlphabetConversionError):
            SCALARS.from_char("\ud800")

    @pytest.mark.parametrize("value", [0, 0x41, 0xD7FF, 0xE000, 0xFFFF, 0x10000, 0x10FFFF])
    def test_from_u32_round_trip(self, value):
        assert SCALARS.to_u32(SCALARS.from_u32(value)) == value

    @pytest.mark.parametrize("value", [0xD800, 0xDABC, 0xDFFF, 0x110000, 0xFFFF_FFFF])
    def test_from_u32_invalid(self, value):
        with pytest.raises(AlphabetConversionError):
            SCALARS.from_u32(value)


class TestOrdering:
    def test_byte_successor_bounds(self):
        assert BYTES.successor(0x41) == 0x42
        assert BYTES.successor(0xFF) is None
        assert BYTES.predecessor(0) is None

    def test_scalar_successor_skips_surrogates(self):
        assert SCALARS.successor(0xD7FF) == 0xE000
        assert SCALARS.predecessor(0xE000) == 0xD7FF
        assert SCALARS.successor(0x10FFFF) is None

    def test_scalar_range_len_excludes_surrogates(self):
        assert SCALARS.range_len(Range(0xD7FF, 0xE000)) == 2
        assert SCALARS.range_len(Range(0, 0x10FFFF)) == 0x110000 - 0x800

    def test_range_rejects_invalid_bounds(self):
        with pytest.raises(AlphabetConversionError):
            SCALARS.range(0xD800, 0xE000)
        with pytest.raises(ValueError):
            Range(5, 4)


class TestCaseVariants:
    def test_byte_letter(self):
        assert BYTES.case_variants(ord("q")) == (ord("q"), ord("Q"))
        assert BYTES.case_variants(ord("Q")) == (ord("q"), ord("Q"))

    def test_byte_non_letter(self):
        assert BYTES.case_variants(ord("1")) == (ord("1"), ord("1"))

    def test_scalar_non_ascii_letter(self):
        assert SCALARS.case_variants(ord("é")) == (ord("é"), ord("É"))

    def test_scalar_multi_char_fold_falls_back(self):
        # "ß".upper() is "SS"
        assert SCALARS.case_variants(ord("ß")) == (ord("ß"), ord("ß"))


class TestRendering:
    def test_printable_byte(self):
        assert BYTES.render(ord("a")) == "a"

    def test_control_bytes(self):
        assert BYTES.render(0x0A) == "\\n"
        assert BYTES.render(0x7F) == "\\x7f"
        assert BYTES.render(0xE9) == "\\xe9"

    def test_scalar_printable_non_ascii(self):
        assert SCALARS.render(ord("é")) == "é"

    def test_scalar_unprintable(self):
        assert SCALARS.render(0x200B) == "\\u{200b}"
        assert SCALARS.render(0x85) == "\\x85"

    def test_quote_and_backslash_escaped(self):
        assert BYTES.render(ord("'")) == "\\'"
        assert SCALARS.render(ord("\\")) == "\\\\"

    def test_render_range(self):
        assert BYTES.render_range(Range(0x30, 0x39)) == "'0'..='9'"
        assert BYTES.render_range(Range(0x30, 0x30)) == "'0'"


class TestAsciiPredicate:
    def _dfa(self, alphabet, *ranges):
        start: TokenMap[int] = TokenMap(alphabet)
        for low, high in ranges:
            start.insert_range(Range(low, high), 1)
        return DFA(alphabet, 0, [start, TokenMap(alphabet)], {1: None})

    def test_no_transitions_is_ascii(self):
        dfa = DFA(SCALARS, 0, [TokenMap(SCALARS)], {0: None})
        assert SCALARS.is_ascii(dfa)

    def test_ascii_transitions(self):
        assert BYTES.is_ascii(self._dfa(BYTES, (0x30, 0x39), (0x7F, 0x7F)))

    def test_non_ascii_transition(self):
        assert not BYTES.is_ascii(self._dfa(BYTES, (0x30, 0x39), (0x7F, 0x80)))

    def test_scalar_non_ascii(self):
        assert not SCALARS.is_ascii(self._dfa(SCALARS, (0xE9, 0xE9)))


class TestLookup:
    def test_get_alphabet(self):
        assert get_alphabet("bytes") is BYTES
        assert get_alphabet("scalars") is SCALARS

    def test_unknown_alphabet(self):
        with pytest.raises(ValueError, match="unknown alphabet"):
            get_alphabet("utf16")
