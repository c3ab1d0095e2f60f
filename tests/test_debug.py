"""Test automaton dumps and statistics output."""

from __future__ import annotations

import io

from grammaton.debug import describe_stats, dump_automaton, dump_nfa
from grammaton.determinize import determinize
from grammaton.nfa import NFA
from grammaton.tokens import BYTES, SCALARS
from grammaton.tokenset import TokenSet


def digit_nfa() -> NFA:
    nfa = NFA(BYTES)
    start = nfa.add_state(rule="digit")
    end = nfa.add_state(rule="digit")
    nfa.add_transition(start, TokenSet.from_range(BYTES, 0x30, 0x39), end)
    nfa.add_epsilon(start, end)
    nfa.set_accepting(end, "digit")
    return nfa


class TestDumpAutomaton:
    def test_digit(self):
        out = io.StringIO()
        nfa = NFA(BYTES)
        s0, s1 = nfa.add_state(), nfa.add_state()
        nfa.add_transition(s0, TokenSet.from_range(BYTES, 0x30, 0x39), s1)
        nfa.set_accepting(s1, "digit")
        dump_automaton(determinize(nfa), file=out)
        assert out.getvalue() == (
            "DFA over bytes, start 0\n"
            "  0\n"
            "    '0'..='9' -> 1\n"
            "  1 accept digit\n"
        )

    def test_scalar_rendering(self):
        out = io.StringIO()
        nfa = NFA(SCALARS)
        s0, s1 = nfa.add_state(), nfa.add_state()
        nfa.add_transition(s0, TokenSet.from_range(SCALARS, 0xE000, 0x10FFFF), s1)
        nfa.set_accepting(s1)
        dump_automaton(determinize(nfa), file=out)
        assert "'\\u{e000}'..='\\u{10ffff}' -> 1" in out.getvalue()
        assert "  1 accept\n" in out.getvalue()


class TestDumpNfa:
    def test_rules_and_epsilons(self):
        out = io.StringIO()
        dump_nfa(digit_nfa(), file=out)
        lines = out.getvalue().splitlines()
        assert lines[0] == "NFA over bytes, start 0"
        assert lines[1] == "  0 (digit)"
        assert lines[2] == "    ['0'..='9'] -> {1}"
        assert lines[3] == "    <empty> -> {1}"
        assert lines[4] == "  1 (digit) accept digit"


class TestDescribeStats:
    def test_counts(self):
        out = io.StringIO()
        describe_stats(determinize(digit_nfa()), file=out)
        assert out.getvalue() == ("  states: 2\n  transitions: 1\n  accepting: 2\n  ascii: yes\n")
