from __future__ import annotations

from collections.abc import Callable

_verbose = False
_sink: Callable[[str], None] = print


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def is_verbose() -> bool:
    return _verbose


def set_sink(sink: Callable[[str], None] | None) -> None:
    """Route log messages to `sink` instead of stdout; None restores print."""
    global _sink
    _sink = print if sink is None else sink


def log(message: str) -> None:
    if _verbose:
        _sink(message)
