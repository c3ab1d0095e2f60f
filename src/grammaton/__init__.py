"""Grammar automaton compiler: range-partitioned subset construction with caching."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from grammaton.cache import AutomatonCache
    from grammaton.dfa import DFA
    from grammaton.nfa import NFA

__version__ = "0.1.0"


def compile_automaton(nfa: NFA, source: str | bytes | None = None, cache: AutomatonCache | None = None) -> DFA:
    """Determinize an NFA, reading and writing ``cache`` when given."""
    from grammaton.build import build_automaton

    return build_automaton(nfa, source, cache=cache).automaton
