"""Shared test fixtures and helpers."""

from __future__ import annotations

from itertools import product

import pytest

from grammaton.nfa import NFA
from grammaton.tokens import Alphabet
from grammaton.tokenset import TokenSet


@pytest.fixture
def tset():
    """Return a helper building a TokenSet from chars and (low, high) char pairs."""

    def _tset(alphabet: Alphabet, *parts: str | tuple[str, str]) -> TokenSet:
        result = TokenSet(alphabet)
        for part in parts:
            if isinstance(part, tuple):
                low, high = part
                result.merge_with(TokenSet.from_range(alphabet, ord(low), ord(high)))
            else:
                result.merge_with(TokenSet.singleton(alphabet, ord(part)))
        return result

    return _tset


@pytest.fixture
def words_nfa():
    """Return a helper building an NFA for a union of literal words.

    Each word gets its own chain out of the start state, so shared prefixes
    are genuinely nondeterministic.
    """

    def _words(alphabet: Alphabet, *words: str, labels: list[str] | None = None) -> NFA:
        nfa = NFA(alphabet)
        start = nfa.add_state(rule="start")
        for index, word in enumerate(words):
            current = start
            for c in word:
                nxt = nfa.add_state(rule=word)
                nfa.add_transition(current, TokenSet.singleton(alphabet, ord(c)), nxt)
                current = nxt
            nfa.set_accepting(current, labels[index] if labels else None)
        return nfa

    return _words


@pytest.fixture
def sample_strings():
    """Return a helper listing every string over ``chars`` up to ``max_len``."""

    def _samples(chars: str, max_len: int) -> list[str]:
        result = [""]
        for n in range(1, max_len + 1):
            result.extend("".join(p) for p in product(chars, repeat=n))
        return result

    return _samples
