"""Automaton dumps and statistics on stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from grammaton.dfa import DFA
from grammaton.nfa import NFA


def dump_automaton(dfa: DFA, *, file: TextIO = sys.stderr) -> None:
    """Print every state and its transitions to *file*."""
    alphabet = dfa.alphabet
    file.write(f"DFA over {alphabet.name}, start {dfa.start}\n")
    for state, transitions in enumerate(dfa.transitions):
        file.write(f"  {state}{_accept_suffix(state in dfa.accepting, dfa.accepting.get(state))}\n")
        for r, target in transitions:
            file.write(f"    {alphabet.render_range(r)} -> {target}\n")


def dump_nfa(nfa: NFA, *, file: TextIO = sys.stderr) -> None:
    alphabet = nfa.alphabet
    file.write(f"NFA over {alphabet.name}, start {nfa.start}\n")
    for state, node in enumerate(nfa.states):
        rule = f" ({node.rule})" if node.rule is not None else ""
        suffix = _accept_suffix(state in nfa.accepting, nfa.accepting.get(state))
        file.write(f"  {state}{rule}{suffix}\n")
        for tokens, targets in node.transitions:
            file.write(f"    {tokens} -> {_targets(targets)}\n")
        if node.epsilons:
            file.write(f"    <empty> -> {_targets(node.epsilons)}\n")


def describe_stats(dfa: DFA, *, file: TextIO = sys.stderr) -> None:
    file.write(f"  states: {dfa.state_count():_}\n")
    file.write(f"  transitions: {dfa.transition_count():_}\n")
    file.write(f"  accepting: {dfa.accept_count():_}\n")
    file.write(f"  ascii: {'yes' if dfa.is_ascii else 'no'}\n")


def _accept_suffix(accepting: bool, label: str | None) -> str:
    if not accepting:
        return ""
    if label is None:
        return " accept"
    return f" accept {label}"


def _targets(states: frozenset[int] | set[int]) -> str:
    return "{" + ", ".join(str(s) for s in sorted(states)) + "}"
