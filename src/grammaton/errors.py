"""Error types with formatted automaton context."""

from __future__ import annotations

from pathlib import Path


class AlphabetConversionError(Exception):
    """Raised when a raw value cannot be represented as a token of an alphabet."""

    def __init__(self, message: str, value: int | str, alphabet: str) -> None:
        self.message = message
        self.value = value
        self.alphabet = alphabet
        super().__init__(self.format())

    def format(self) -> str:
        if isinstance(self.value, int):
            shown = f"{self.value:#x}"
        else:
            shown = repr(self.value)
        return f"error: {self.message}\n  --> alphabet {self.alphabet}, value {shown}"


class MalformedTransitionError(Exception):
    """Raised by the engine on an NFA transition it cannot determinize."""

    def __init__(self, message: str, state: int, index: int, rule: str | None = None) -> None:
        self.message = message
        self.state = state
        self.index = index
        self.rule = rule
        super().__init__(self.format())

    def format(self) -> str:
        result = f"error: {self.message}\n  --> state {self.state}, transition #{self.index}"
        if self.rule is not None:
            result += f"\n  in grammar rule: {self.rule}"
        return result


class CacheError(Exception):
    """Base class for recoverable automaton cache failures."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(self.format())

    def format(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message} ({self.path})"


class CacheIOError(CacheError):
    """Cache storage could not be read or written."""


class CacheFormatError(CacheError):
    """Cache content exists but does not decode to an automaton."""
