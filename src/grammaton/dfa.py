"""Deterministic automata: the engine's immutable output."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Sequence
from typing import Any

from grammaton.errors import AlphabetConversionError
from grammaton.tokenmap import TokenMap
from grammaton.tokens import Alphabet, get_alphabet


class DFA:
    """Flat table of states, each owning a TokenMap from ranges to a target state id.

    Instances are not mutated after construction; ``canonical`` and
    ``minimize`` return new automata.
    """

    def __init__(
        self,
        alphabet: Alphabet,
        start: int,
        transitions: Sequence[TokenMap[int]],
        accepting: dict[int, str | None],
    ) -> None:
        if not 0 <= start < len(transitions):
            raise ValueError(f"start state {start} out of range")
        self.alphabet = alphabet
        self.start = start
        self.transitions: tuple[TokenMap[int], ...] = tuple(transitions)
        self.accepting = dict(accepting)

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------

    def state_count(self) -> int:
        return len(self.transitions)

    def transition_count(self) -> int:
        return sum(len(m) for m in self.transitions)

    def accept_count(self) -> int:
        return len(self.accepting)

    @property
    def is_ascii(self) -> bool:
        return self.alphabet.is_ascii(self)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def is_accepting(self, state: int) -> bool:
        return state in self.accepting

    def label(self, state: int) -> str | None:
        return self.accepting.get(state)

    def next_state(self, state: int, token: int) -> int | None:
        return self.transitions[state].get(token)

    def run(self, data: bytes | str | Iterable[int]) -> int | None:
        """State reached after consuming ``data``, None if the automaton gets stuck."""
        state: int | None = self.start
        for token in self.alphabet.tokens(data):
            state = self.transitions[state].get(token)
            if state is None:
                return None
        return state

    def accepts(self, data: bytes | str | Iterable[int]) -> bool:
        state = self.run(data)
        return state is not None and state in self.accepting

    def accept_label(self, data: bytes | str | Iterable[int]) -> str | None:
        """Label of the accepting state reached on ``data``, None if not accepted or unlabelled."""
        state = self.run(data)
        if state is None:
            return None
        return self.accepting.get(state)

    # ------------------------------------------------------------------
    # Structural transforms
    # ------------------------------------------------------------------

    def canonical(self) -> DFA:
        """Renumber reachable states breadth-first from the start, in range order."""
        order = {self.start: 0}
        queue = deque([self.start])
        while queue:
            state = queue.popleft()
            for _, target in self.transitions[state]:
                if target not in order:
                    order[target] = len(order)
                    queue.append(target)

        transitions: list[TokenMap[int]] = []
        for old in order:
            renamed: TokenMap[int] = TokenMap(self.alphabet)
            for r, target in self.transitions[old]:
                renamed.insert_range(r, order[target])
            transitions.append(renamed)
        accepting = {order[s]: label for s, label in self.accepting.items() if s in order}
        return DFA(self.alphabet, 0, transitions, accepting)

    def minimize(self) -> DFA:
        """Equivalent automaton with the fewest states.

        States that cannot reach acceptance are dropped first, then states are
        merged by partition refinement on (accept label, range-wise target blocks).
        """
        productive = self._productive_states()
        if self.start not in productive:
            return DFA(self.alphabet, 0, [TokenMap(self.alphabet)], {})

        states = sorted(productive)
        block: dict[int, int] = {}
        initial: dict[tuple[bool, str | None], int] = {}
        for s in states:
            key = (s in self.accepting, self.accepting.get(s))
            block[s] = initial.setdefault(key, len(initial))

        count = len(initial)
        while True:
            signatures: dict[tuple[Any, ...], int] = {}
            refined: dict[int, int] = {}
            for s in states:
                signature = (block[s], *self._block_signature(s, block))
                refined[s] = signatures.setdefault(signature, len(signatures))
            block = refined
            if len(signatures) == count:
                break
            count = len(signatures)

        representatives: dict[int, int] = {}
        for s in states:
            representatives.setdefault(block[s], s)
        transitions: list[TokenMap[int]] = []
        accepting: dict[int, str | None] = {}
        for b in range(count):
            rep = representatives[b]
            transitions.append(self._block_map(rep, block))
            if rep in self.accepting:
                accepting[b] = self.accepting[rep]
        return DFA(self.alphabet, block[self.start], transitions, accepting).canonical()

    def _productive_states(self) -> set[int]:
        reverse: dict[int, set[int]] = {}
        for source, transitions in enumerate(self.transitions):
            for _, target in transitions:
                reverse.setdefault(target, set()).add(source)
        productive = set(self.accepting)
        stack = list(productive)
        while stack:
            state = stack.pop()
            for source in reverse.get(state, ()):
                if source not in productive:
                    productive.add(source)
                    stack.append(source)
        return productive

    def _block_map(self, state: int, block: dict[int, int]) -> TokenMap[int]:
        result: TokenMap[int] = TokenMap(self.alphabet)
        for r, target in self.transitions[state]:
            if target in block:
                result.insert_range(r, block[target])
        return result

    def _block_signature(self, state: int, block: dict[int, int]) -> tuple[tuple[int, int, int], ...]:
        return tuple((r.low, r.high, b) for r, b in self._block_map(state, block))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DFA):
            return NotImplemented
        return (
            self.alphabet is other.alphabet
            and self.start == other.start
            and self.transitions == other.transitions
            and self.accepting == other.accepting
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"DFA({self.alphabet.name}, states={self.state_count()}, "
            f"transitions={self.transition_count()}, accepting={self.accept_count()})"
        )

    # ------------------------------------------------------------------
    # Plain-data form
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        states = []
        for state, transitions in enumerate(self.transitions):
            states.append(
                {
                    "accept": state in self.accepting,
                    "label": self.accepting.get(state),
                    "transitions": [[r.low, r.high, target] for r, target in transitions],
                }
            )
        return {"alphabet": self.alphabet.name, "start": self.start, "states": states}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DFA:
        """Rebuild an automaton from ``to_dict`` output. Raises ValueError on malformed data."""
        try:
            alphabet = get_alphabet(data["alphabet"])
            raw_states = data["states"]
            count = len(raw_states)
            transitions: list[TokenMap[int]] = []
            accepting: dict[int, str | None] = {}
            for index, raw in enumerate(raw_states):
                m: TokenMap[int] = TokenMap(alphabet)
                for low, high, target in raw["transitions"]:
                    if not _is_int(low) or not _is_int(high):
                        raise ValueError(f"state {index}: range bounds must be integers, got {low!r}..{high!r}")
                    if not _is_int(target) or not 0 <= target < count:
                        raise ValueError(f"state {index}: transition target {target!r} out of range")
                    m.insert_range(alphabet.range(low, high), target)
                if len(m) != len(raw["transitions"]):
                    raise ValueError(f"state {index}: transition ranges are not normalized")
                transitions.append(m)
                if not isinstance(raw["accept"], bool):
                    raise ValueError(f"state {index}: accept flag must be a boolean")
                if raw["accept"]:
                    label = raw["label"]
                    if label is not None and not isinstance(label, str):
                        raise ValueError(f"state {index}: accept label must be a string")
                    accepting[index] = label
            start = data["start"]
            if not _is_int(start):
                raise ValueError(f"start state must be an integer, got {start!r}")
            return cls(alphabet, start, transitions, accepting)
        except (KeyError, TypeError, AlphabetConversionError) as exc:
            raise ValueError(f"malformed automaton data: {exc}") from exc


def _is_int(value: object) -> bool:
    # bool is an int subclass but never a valid token or state id
    return type(value) is int
