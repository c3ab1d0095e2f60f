"""Content-addressed persistence of computed automata."""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from grammaton.dfa import DFA
from grammaton.errors import CacheFormatError, CacheIOError
from grammaton.tokens import Alphabet

FORMAT_VERSION = 1


def fingerprint(source: str | bytes, alphabet: Alphabet | None = None, minimized: bool = False) -> str:
    """SHA-256 key for a grammar source compiled over an alphabet.

    Fields are joined with NUL bytes so that distinct field splits never
    produce the same payload.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    parts = [
        f"grammaton-automaton-v{FORMAT_VERSION}".encode(),
        (alphabet.name if alphabet is not None else "").encode(),
        b"minimized" if minimized else b"",
        source,
    ]
    return hashlib.sha256(b"\x00".join(parts)).hexdigest()


def encode(key: str, automaton: DFA) -> bytes:
    payload = {
        "format": FORMAT_VERSION,
        "fingerprint": key,
        "automaton": automaton.to_dict(),
    }
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def decode(data: bytes, path: Path | None = None) -> tuple[str, DFA]:
    """Return (fingerprint, automaton) from ``encode`` output."""
    try:
        payload = json.loads(data.decode("utf-8"))
    except (ValueError, RecursionError) as exc:
        # JSONDecodeError and UnicodeDecodeError are ValueErrors; deep nesting overflows the decoder
        raise CacheFormatError(f"automaton cache is not valid JSON: {exc}", path) from exc
    if not isinstance(payload, dict):
        raise CacheFormatError("automaton cache root is not an object", path)
    if payload.get("format") != FORMAT_VERSION:
        raise CacheFormatError(f"unsupported automaton cache format {payload.get('format')!r}", path)
    key = payload.get("fingerprint")
    if not isinstance(key, str):
        raise CacheFormatError("automaton cache has no fingerprint", path)
    try:
        automaton = DFA.from_dict(payload.get("automaton"))
    except ValueError as exc:
        raise CacheFormatError(str(exc), path) from exc
    return key, automaton


class AutomatonCache(ABC):
    """Key-value store from grammar fingerprint to automaton.

    ``load`` returns None on a plain miss and raises CacheIOError or
    CacheFormatError when storage is unreadable or corrupt; callers treat
    both as a miss.
    """

    @abstractmethod
    def load(self, key: str) -> DFA | None:
        pass

    @abstractmethod
    def store(self, key: str, automaton: DFA) -> None:
        pass


class MemoryCache(AutomatonCache):
    """In-process cache holding serialized entries."""

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def load(self, key: str) -> DFA | None:
        data = self._entries.get(key)
        if data is None:
            return None
        _, automaton = decode(data)
        return automaton

    def store(self, key: str, automaton: DFA) -> None:
        self._entries[key] = encode(key, automaton)


class FileCache(AutomatonCache):
    """Single cache file for one grammar; the fingerprint is stored inside.

    A fingerprint mismatch means the grammar changed: the entry is stale and
    the next ``store`` overwrites it.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self, key: str) -> DFA | None:
        data = _read(self.path)
        if data is None:
            return None
        stored_key, automaton = decode(data, self.path)
        if stored_key != key:
            return None
        return automaton

    def store(self, key: str, automaton: DFA) -> None:
        _atomic_write(self.path, encode(key, automaton))


class DirectoryCache(AutomatonCache):
    """One file per fingerprint under a directory."""

    suffix = ".automaton.json"

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        return self.root / f"{key}{self.suffix}"

    def load(self, key: str) -> DFA | None:
        path = self.path_for(key)
        data = _read(path)
        if data is None:
            return None
        stored_key, automaton = decode(data, path)
        if stored_key != key:
            raise CacheFormatError("cache entry does not match its file name", path)
        return automaton

    def store(self, key: str, automaton: DFA) -> None:
        _atomic_write(self.path_for(key), encode(key, automaton))


def _read(path: Path) -> bytes | None:
    """Read a cache file, None when it does not exist."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise CacheIOError(f"cannot read automaton cache: {exc.strerror or exc}", path) from exc


def _atomic_write(path: Path, data: bytes) -> None:
    """Write to a sibling temp file, then rename over ``path``."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "wb", prefix=f".{path.name}.", suffix=".tmp", dir=path.parent, delete=False
            ) as f:
                tmp_path = Path(f.name)
                f.write(data)
            os.replace(tmp_path, path)
        finally:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
    except OSError as exc:
        raise CacheIOError(f"cannot write automaton cache: {exc.strerror or exc}", path) from exc
