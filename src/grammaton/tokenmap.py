"""Range-keyed maps: disjoint, sorted token ranges each carrying one value."""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

from grammaton.tokens import Alphabet, Range
from grammaton.tokenset import TokenSet

V = TypeVar("V")


def _entry_high(entry: tuple[Range, object]) -> int:
    return entry[0].high


class TokenMap(Generic[V]):
    """Ordered ``(range, value)`` pairs over one alphabet.

    Invariant: ranges are sorted and disjoint, and two touching ranges never
    carry equal values (they are coalesced). Values are compared with ``==``.
    """

    __slots__ = ("alphabet", "_entries")

    def __init__(self, alphabet: Alphabet) -> None:
        self.alphabet = alphabet
        self._entries: list[tuple[Range, V]] = []

    def is_empty(self) -> bool:
        return not self._entries

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __len__(self) -> int:
        """Number of stored ranges."""
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[Range, V]]:
        return iter(self._entries)

    def keys(self) -> Iterator[Range]:
        return (r for r, _ in self._entries)

    def values(self) -> Iterator[V]:
        return (v for _, v in self._entries)

    def get(self, token: int) -> V | None:
        i = bisect_left(self._entries, token, key=_entry_high)
        if i < len(self._entries):
            r, value = self._entries[i]
            if r.low <= token:
                return value
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenMap):
            return NotImplemented
        return self.alphabet is other.alphabet and self._entries == other._entries

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        parts = ", ".join(f"{self.alphabet.render_range(r)}: {v!r}" for r, v in self._entries)
        return f"TokenMap({{{parts}}})"

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def insert_range(self, r: Range, value: V) -> None:
        """Map every token of ``r`` to ``value``, overriding what was there."""
        self.update_range(r, lambda _old: value)

    def insert(self, tokens: TokenSet, value: V) -> None:
        """Map every token of the set to ``value``, one range at a time in increasing order."""
        for r in tokens.ranges():
            self.insert_range(r, value)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_range(self, r: Range, f: Callable[[V | None], V | None]) -> None:
        """Replace each segment of ``r`` by ``f(current value or None)``.

        Existing entries are split at the boundaries of ``r``; gaps inside
        ``r`` are offered to ``f`` as None. Segments where ``f`` returns None
        are left unmapped.
        """
        alphabet = self.alphabet
        entries = self._entries
        start = bisect_left(entries, r.low, key=_entry_high)
        end = start
        while end < len(entries) and entries[end][0].low <= r.high:
            end += 1

        replacement: list[tuple[Range, V]] = []

        def emit(low: int, high: int, value: V | None) -> None:
            if value is not None:
                replacement.append((Range(low, high), value))

        cursor: int | None = r.low
        for current, value in entries[start:end]:
            if current.low < r.low:
                # Part of the entry left of the query keeps its value
                replacement.append((Range(current.low, alphabet.predecessor(r.low)), value))
            seg_low = max(current.low, r.low)
            if cursor is not None and cursor < seg_low:
                gap_high = alphabet.predecessor(seg_low)
                if gap_high is not None and cursor <= gap_high:
                    emit(cursor, gap_high, f(None))
            seg_high = min(current.high, r.high)
            emit(seg_low, seg_high, f(value))
            cursor = alphabet.successor(seg_high)
            if current.high > r.high:
                replacement.append((Range(alphabet.successor(r.high), current.high), value))
        if cursor is not None and cursor <= r.high:
            emit(cursor, r.high, f(None))

        entries[start:end] = replacement
        self._coalesce(max(start - 1, 0), start + len(replacement) + 1)

    def update(self, tokens: TokenSet, f: Callable[[V | None], V | None]) -> None:
        for r in tokens.ranges():
            self.update_range(r, f)

    def _coalesce(self, first: int, last: int) -> None:
        """Merge touching equal-valued neighbours among entries[first:last]."""
        entries = self._entries
        successor = self.alphabet.successor
        last = min(last, len(entries))
        i = first
        while i + 1 < last:
            (a, a_value), (b, b_value) = entries[i], entries[i + 1]
            if a_value == b_value and successor(a.high) == b.low:
                entries[i] = (Range(a.low, b.high), a_value)
                del entries[i + 1]
                last -= 1
            else:
                i += 1
