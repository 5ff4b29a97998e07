"""Opaque progress signals for agent runs."""

from __future__ import annotations

from typing import Iterable


class ProgressTracker:
    """Set of domain-agnostic signals marking progress toward a goal.

    The runtime never interprets these; a Policy may use them to decide
    convergence.
    """

    def __init__(self, signals: Iterable[str] = ()):
        self._signals: set[str] = {str(s) for s in signals}

    def mark(self, signal: str) -> None:
        self._signals.add(str(signal))

    def includes(self, *signals: str) -> bool:
        """True if every given signal has been marked."""
        return all(str(s) in self._signals for s in signals)

    @property
    def signals(self) -> list[str]:
        return sorted(self._signals)

    def clear(self) -> None:
        self._signals.clear()

    def snapshot(self) -> list[str]:
        return self.signals

    def __len__(self) -> int:
        return len(self._signals)

    def __bool__(self) -> bool:
        return bool(self._signals)

    def __repr__(self) -> str:
        return f"ProgressTracker({self.signals!r})"
