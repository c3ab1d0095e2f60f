"""Build an automaton for one grammar, reusing a cached result when possible."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import TextIO

from grammaton.cache import AutomatonCache, FileCache, fingerprint
from grammaton.config import EngineOptions
from grammaton.debug import describe_stats
from grammaton.determinize import determinize
from grammaton.dfa import DFA
from grammaton.errors import CacheError
from grammaton.nfa import NFA


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Automaton handed to code generation, with its diagnostics."""

    automaton: DFA
    fingerprint: str
    cache_hit: bool
    is_ascii: bool
    state_count: int
    transition_count: int


def build_automaton(
    nfa: NFA,
    source: str | bytes | None = None,
    *,
    cache: AutomatonCache | None = None,
    options: EngineOptions | None = None,
    file: TextIO = sys.stderr,
) -> BuildResult:
    """Determinize ``nfa``, short-circuiting through the cache.

    ``source`` is the grammar text used for the fingerprint; without it the
    NFA structure itself is fingerprinted. Cache failures print a warning to
    *file* and fall back to recomputing.
    """
    if options is None:
        options = EngineOptions()
    if not options.cache_enabled:
        cache = None
    elif cache is None and options.cache_path is not None:
        cache = FileCache(options.cache_path)

    if source is None:
        source = json.dumps(nfa.to_dict(), sort_keys=True, separators=(",", ":"))
    key = fingerprint(source, nfa.alphabet, minimized=options.minimize)

    automaton = None
    if cache is not None:
        automaton = _load(cache, key, file)
        if automaton is not None and automaton.alphabet is not nfa.alphabet:
            automaton = None
    cache_hit = automaton is not None

    if automaton is None:
        automaton = determinize(nfa)
        if options.minimize:
            automaton = automaton.minimize()
        if cache is not None:
            _store(cache, key, automaton, file)

    if options.debug:
        file.write(f"automaton {key[:16]} ({'cached' if cache_hit else 'built'}):\n")
        describe_stats(automaton, file=file)

    return BuildResult(
        automaton=automaton,
        fingerprint=key,
        cache_hit=cache_hit,
        is_ascii=automaton.is_ascii,
        state_count=automaton.state_count(),
        transition_count=automaton.transition_count(),
    )


def _load(cache: AutomatonCache, key: str, file: TextIO) -> DFA | None:
    try:
        return cache.load(key)
    except CacheError as exc:
        print(f"warning: ignoring automaton cache: {exc}", file=file)
        return None


def _store(cache: AutomatonCache, key: str, automaton: DFA, file: TextIO) -> None:
    try:
        cache.store(key, automaton)
    except CacheError as exc:
        print(f"warning: automaton cache not updated: {exc}", file=file)
