"""Nondeterministic automata handed to the engine by the grammar collaborator."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from grammaton.errors import MalformedTransitionError
from grammaton.tokens import Alphabet
from grammaton.tokenset import TokenSet


@dataclass(slots=True)
class NfaState:
    """One NFA node: labelled transitions, epsilon moves and the grammar rule it came from."""

    transitions: list[tuple[TokenSet, frozenset[int]]] = field(default_factory=list)
    epsilons: set[int] = field(default_factory=set)
    rule: str | None = None


class NFA:
    """Graph of states with token-set labelled transitions.

    State 0 is the start state unless ``start`` is reassigned. Accepting
    states carry an optional label (the named production they complete);
    labels are ranked by the order in which they were first declared.
    """

    def __init__(self, alphabet: Alphabet) -> None:
        self.alphabet = alphabet
        self.states: list[NfaState] = []
        self.start = 0
        self.accepting: dict[int, str | None] = {}
        self.labels: list[str | None] = []

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_state(self, *, rule: str | None = None) -> int:
        self.states.append(NfaState(rule=rule))
        return len(self.states) - 1

    def add_transition(self, source: int, tokens: TokenSet, targets: int | Iterable[int]) -> None:
        """Add ``source --tokens--> targets``. Several targets make the move nondeterministic."""
        self._check_state(source)
        if tokens.alphabet is not self.alphabet:
            raise ValueError(f"transition set is over {tokens.alphabet.name}, automaton over {self.alphabet.name}")
        if isinstance(targets, int):
            targets = (targets,)
        target_set = frozenset(targets)
        for target in target_set:
            self._check_state(target)
        self.states[source].transitions.append((tokens, target_set))

    def add_epsilon(self, source: int, target: int) -> None:
        self._check_state(source)
        self._check_state(target)
        self.states[source].epsilons.add(target)

    def set_accepting(self, state: int, label: str | None = None) -> None:
        self._check_state(state)
        if label not in self.labels:
            self.labels.append(label)
        self.accepting[state] = label

    def _check_state(self, state: int) -> None:
        if not 0 <= state < len(self.states):
            raise ValueError(f"unknown NFA state: {state}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.states)

    def transitions(self, state: int) -> Iterator[tuple[TokenSet, frozenset[int]]]:
        return iter(self.states[state].transitions)

    def transition_count(self) -> int:
        return sum(len(s.transitions) + len(s.epsilons) for s in self.states)

    def label_priority(self, label: str | None) -> int:
        """Rank of an accept label; lower wins when a DFA state merges several."""
        return self.labels.index(label)

    def resolve_accept(self, states: Iterable[int]) -> tuple[bool, str | None]:
        """Accept status of an NFA-state-set: (accepting, winning label)."""
        found = [self.accepting[s] for s in states if s in self.accepting]
        if not found:
            return False, None
        return True, min(found, key=self.label_priority)

    def epsilon_closure(self, states: Iterable[int]) -> frozenset[int]:
        closure = set(states)
        stack = list(closure)
        while stack:
            state = stack.pop()
            for target in self.states[state].epsilons:
                if target not in closure:
                    closure.add(target)
                    stack.append(target)
        return frozenset(closure)

    def validate(self) -> None:
        """Raise MalformedTransitionError on the first transition with an empty token set."""
        if not self.states:
            raise ValueError("NFA has no states")
        self._check_state(self.start)
        for state, node in enumerate(self.states):
            for index, (tokens, _) in enumerate(node.transitions):
                if tokens.is_empty():
                    raise MalformedTransitionError(
                        "transition has an empty token set",
                        state,
                        index,
                        node.rule,
                    )

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form, stable across runs; used to fingerprint grammars without source text."""
        states = []
        for node in self.states:
            states.append(
                {
                    "rule": node.rule,
                    "transitions": [
                        [[[r.low, r.high] for r in tokens], sorted(targets)]
                        for tokens, targets in node.transitions
                    ],
                    "epsilons": sorted(node.epsilons),
                }
            )
        return {
            "alphabet": self.alphabet.name,
            "start": self.start,
            "states": states,
            "accepting": sorted(([s, label] for s, label in self.accepting.items()), key=lambda p: p[0]),
            "labels": list(self.labels),
        }

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def step(self, states: frozenset[int], token: int) -> frozenset[int]:
        reached: set[int] = set()
        for state in states:
            for tokens, targets in self.states[state].transitions:
                if token in tokens:
                    reached.update(targets)
        return self.epsilon_closure(reached)

    def accepts(self, data: bytes | str | Iterable[int]) -> bool:
        current = self.epsilon_closure((self.start,))
        for token in self.alphabet.tokens(data):
            current = self.step(current, token)
            if not current:
                return False
        return any(s in self.accepting for s in current)
