"""Normalized sets of tokens stored as sorted, disjoint, coalesced ranges."""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Iterable, Iterator

from grammaton.errors import AlphabetConversionError
from grammaton.tokens import ASCII_MAX, Alphabet, Range


def _high(r: Range) -> int:
    return r.high


class TokenSet:
    """The tokens allowed at one point of a grammar.

    Invariant: ``ranges`` is sorted by lower bound and no two ranges overlap
    or touch (touching ranges are merged on insertion).
    """

    __slots__ = ("alphabet", "_ranges")

    def __init__(self, alphabet: Alphabet, ranges: Iterable[Range] = ()) -> None:
        self.alphabet = alphabet
        self._ranges: list[Range] = []
        for r in ranges:
            self.insert_range(r)

    @classmethod
    def singleton(cls, alphabet: Alphabet, token: int, case_sensitive: bool = True) -> TokenSet:
        """Set holding one token, plus its case variants when case_sensitive is False."""
        result = cls(alphabet, [alphabet.range(token, token)])
        if not case_sensitive:
            for variant in alphabet.case_variants(token):
                result.insert_range(Range(variant, variant))
        return result

    @classmethod
    def from_range(cls, alphabet: Alphabet, low: int, high: int) -> TokenSet:
        return cls(alphabet, [alphabet.range(low, high)])

    @classmethod
    def full(cls, alphabet: Alphabet) -> TokenSet:
        return cls(alphabet, [alphabet.full_range()])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ranges(self) -> Iterator[Range]:
        return iter(self._ranges)

    def __iter__(self) -> Iterator[Range]:
        return iter(self._ranges)

    def is_empty(self) -> bool:
        return not self._ranges

    def __bool__(self) -> bool:
        return bool(self._ranges)

    def __len__(self) -> int:
        """Number of tokens in the set."""
        return sum(self.alphabet.range_len(r) for r in self._ranges)

    def range_count(self) -> int:
        return len(self._ranges)

    def peek(self) -> int | None:
        """Lowest token in the set, None when empty."""
        if not self._ranges:
            return None
        return self._ranges[0].low

    def __contains__(self, token: int) -> bool:
        i = bisect_left(self._ranges, token, key=_high)
        return i < len(self._ranges) and self._ranges[i].low <= token

    def intersects_range(self, r: Range) -> bool:
        """Return True if at least one token of ``r`` is in the set."""
        i = bisect_left(self._ranges, r.low, key=_high)
        return i < len(self._ranges) and self._ranges[i].low <= r.high

    def is_ascii(self) -> bool:
        return not self._ranges or self._ranges[-1].high <= ASCII_MAX

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenSet):
            return NotImplemented
        return self.alphabet is other.alphabet and self._ranges == other._ranges

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"TokenSet({self.alphabet.name}, {self})"

    def __str__(self) -> str:
        return "[" + " ".join(self.alphabet.render_range(r) for r in self._ranges) + "]"

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert_range(self, r: Range) -> None:
        """Add every token of ``r``, merging with overlapping or touching ranges.

        Both bounds must be valid tokens of the set's alphabet.
        """
        for token in (r.low, r.high):
            if not self.alphabet.is_valid(token):
                raise AlphabetConversionError(
                    f"range bound is not a valid {self.alphabet.name} token", token, self.alphabet.name
                )
        ranges = self._ranges
        succ = self.alphabet.successor
        i = bisect_left(ranges, r.low, key=_high)
        if i > 0 and succ(ranges[i - 1].high) == r.low:
            i -= 1
        after_high = succ(r.high)
        j = i
        while j < len(ranges) and (ranges[j].low <= r.high or ranges[j].low == after_high):
            j += 1
        if i == j:
            ranges.insert(i, r)
            return
        ranges[i:j] = [Range(min(r.low, ranges[i].low), max(r.high, ranges[j - 1].high))]

    def insert(self, token: int) -> None:
        self.insert_range(Range(token, token))

    def merge_with(self, other: TokenSet) -> None:
        """In-place union."""
        self._check_alphabet(other)
        for r in other._ranges:
            self.insert_range(r)

    # ------------------------------------------------------------------
    # Set algebra (new sets)
    # ------------------------------------------------------------------

    def copy(self) -> TokenSet:
        result = TokenSet(self.alphabet)
        result._ranges = list(self._ranges)
        return result

    def __or__(self, other: TokenSet) -> TokenSet:
        result = self.copy()
        result.merge_with(other)
        return result

    def complement(self) -> TokenSet:
        """Every token of the alphabet not in this set."""
        alphabet = self.alphabet
        result = TokenSet(alphabet)
        low: int | None = alphabet.min_token
        for r in self._ranges:
            if low is not None and low < r.low:
                high = alphabet.predecessor(r.low)
                if high is not None and low <= high:
                    result._ranges.append(Range(low, high))
            low = alphabet.successor(r.high)
        if low is not None:
            result._ranges.append(Range(low, alphabet.max_token))
        return result

    def __and__(self, other: TokenSet) -> TokenSet:
        self._check_alphabet(other)
        result = TokenSet(self.alphabet)
        a, b = self._ranges, other._ranges
        i = j = 0
        while i < len(a) and j < len(b):
            low = max(a[i].low, b[j].low)
            high = min(a[i].high, b[j].high)
            if low <= high:
                result._ranges.append(Range(low, high))
            if a[i].high < b[j].high:
                i += 1
            else:
                j += 1
        return result

    def __sub__(self, other: TokenSet) -> TokenSet:
        return self & other.complement()

    def _check_alphabet(self, other: TokenSet) -> None:
        if other.alphabet is not self.alphabet:
            raise ValueError(f"cannot combine {self.alphabet.name} and {other.alphabet.name} token sets")
