"""Subset construction over range-partitioned transitions."""

from __future__ import annotations

from collections import deque

from grammaton.dfa import DFA
from grammaton.nfa import NFA
from grammaton.tokenmap import TokenMap


class Determinizer:
    """Turn one NFA into a DFA whose states are closed NFA-state-sets.

    DFA states live in an arena indexed by id; ``_ids`` maps the sorted tuple
    of founding NFA states to the id, so equal subsets share one DFA state.
    """

    def __init__(self, nfa: NFA) -> None:
        self._nfa = nfa
        self._ids: dict[tuple[int, ...], int] = {}
        self._founding: list[frozenset[int]] = []
        self._transitions: list[TokenMap[int]] = []
        self._pending: deque[int] = deque()
        self._closures: dict[frozenset[int], frozenset[int]] = {}

    def run(self) -> DFA:
        nfa = self._nfa
        nfa.validate()
        start = self._state_for(nfa.epsilon_closure((nfa.start,)))
        while self._pending:
            self._expand(self._pending.popleft())

        accepting: dict[int, str | None] = {}
        for state, subset in enumerate(self._founding):
            is_accepting, label = nfa.resolve_accept(subset)
            if is_accepting:
                accepting[state] = label
        return DFA(nfa.alphabet, start, self._transitions, accepting)

    def _state_for(self, subset: frozenset[int]) -> int:
        key = tuple(sorted(subset))
        state = self._ids.get(key)
        if state is None:
            state = len(self._founding)
            self._ids[key] = state
            self._founding.append(subset)
            self._transitions.append(TokenMap(self._nfa.alphabet))
            self._pending.append(state)
        return state

    def _closure(self, targets: frozenset[int]) -> frozenset[int]:
        closed = self._closures.get(targets)
        if closed is None:
            closed = self._nfa.epsilon_closure(targets)
            self._closures[targets] = closed
        return closed

    def _expand(self, state: int) -> None:
        nfa = self._nfa
        # Reachable NFA states per disjoint range of tokens
        partition: TokenMap[frozenset[int]] = TokenMap(nfa.alphabet)
        for source in sorted(self._founding[state]):
            for tokens, targets in nfa.transitions(source):
                closed = self._closure(targets)
                partition.update(tokens, lambda old, closed=closed: closed if old is None else old | closed)

        transitions = self._transitions[state]
        for r, reached in partition:
            transitions.insert_range(r, self._state_for(reached))


def determinize(nfa: NFA) -> DFA:
    """Build the DFA recognizing the same language as ``nfa``."""
    return Determinizer(nfa).run()
