from __future__ import annotations

from typing import Literal, TypeAlias

RangeKind: TypeAlias = Literal["index_too_small", "index_too_large", "unexplained"]

_RANGE_MESSAGES: dict[str, str] = {
    "index_too_small": "smooth normal index is out of range (too small)",
    "index_too_large": "smooth normal index is out of range (too large)",
    "unexplained": "smooth normal index is out of range for an unknown reason",
}


class MarkovPenError(Exception):
    """Base class for errors raised by the markovpen package."""


class SmoothNormalRangeError(MarkovPenError, IndexError):
    """Interpolation window of a smooth normal query left the recorded frames.

    This is a bookkeeping failure inside `BaseCurve`, not bad caller input.
    Nothing is mutated when it is raised.
    """

    def __init__(self, kind: RangeKind, index: int, count: int) -> None:
        self.kind = kind
        self.index = index
        self.count = count
        super().__init__(f"{_RANGE_MESSAGES[kind]}: index={index} normals={count}")
