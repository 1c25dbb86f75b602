from __future__ import annotations

from ..utils import debug
from .mapping import Mapping
from .types import PointPair


class Synthesizer:
    """Replays the delta-offset signal of an example mapping onto a target."""

    def __init__(self, example_mapping: Mapping | None = None) -> None:
        self._example_mapping = example_mapping

    @property
    def example_mapping(self) -> Mapping | None:
        return self._example_mapping

    def is_trained(self) -> bool:
        return self._example_mapping is not None

    def clear(self) -> None:
        self._example_mapping = None

    def reconstruct(self, target_mapping: Mapping) -> list[PointPair]:
        """Grow `target_mapping` as far as its base curve allows.

        Playback resumes after the last example index the target consumed and
        wraps around the example signal. Returns the (base point, offset
        point) pairs added by this call, possibly none.
        """

        example = self._example_mapping
        if example is None:
            raise ValueError("synthesizer is not trained")
        count = len(example)
        if count == 0:
            return []

        if target_mapping.is_empty():
            target_mapping.set_max_offset(example.max_offset)

        index = target_mapping.last_applied_index + 1
        if index >= count and not example.is_repetitive():
            return []
        index %= count

        pairs: list[PointPair] = []
        cycle_start = self._last_arc_length(target_mapping)
        steps = 0
        while True:
            if not target_mapping.apply(example.get_offsets(index), index):
                break
            pairs.append(target_mapping.inflate(target_mapping.entries[-1]))
            steps += 1
            index += 1
            if index == count:
                if not example.is_repetitive():
                    break
                index = 0
            if steps % count == 0:
                # A whole cycle without forward progress would never end.
                position = self._last_arc_length(target_mapping)
                if position <= cycle_start:
                    debug.log("reconstruct: example cycle makes no progress, stopping")
                    break
                cycle_start = position

        if pairs:
            debug.log(
                f"reconstruct: added={len(pairs)} "
                f"l={target_mapping.entries[-1].arc_length:.6g} next_index={index}"
            )
        return pairs

    @staticmethod
    def _last_arc_length(mapping: Mapping) -> float:
        if mapping.is_empty():
            return float("-inf")
        return mapping.entries[-1].arc_length
