from __future__ import annotations

from typing import NamedTuple

import numpy as np

from ..utils import debug, debug_helpers
from .base_curve import BaseCurve
from .curve import Curve
from .types import PointPair

SAMPLING_INTERVAL = 0.025


class MappingEntry(NamedTuple):
    arc_length: float
    offset: float


class Mapping:
    """Offset signal of a style curve measured along a base curve.

    Example side: built from two finished curves; every uniform sample of the
    style curve is projected onto the base curve and stored as
    (arc length on base, signed offset along the base normal).

    Target side: built with an empty style curve and grown one entry at a time
    with `apply`, each entry inflated into a point appended to the style curve.
    """

    def __init__(
        self,
        style_curve: Curve | None,
        base_curve: BaseCurve | None,
        *,
        sampling_interval: float = SAMPLING_INTERVAL,
        repetitive: bool = True,
    ) -> None:
        if style_curve is None:
            raise ValueError("style_curve must not be None")
        if base_curve is None:
            raise ValueError("base_curve must not be None")
        if not sampling_interval > 0.0:
            raise ValueError("sampling_interval must be > 0")

        self._init_fields(style_curve, base_curve, sampling_interval, repetitive)

        if style_curve.is_empty() or style_curve.arc_length() < self._sampling_interval:
            return

        interval = self.compute_sampling_interval()
        samples = self.sample_style_curve_uniformly(interval)
        projections = self.project(samples)
        self.compute_mapping(samples, projections)
        self.compute_max_offset()
        self.compute_offsets()
        self._sampling_interval = interval
        debug.log(
            f"mapping: samples={len(samples)} interval={interval:.6g} "
            f"entries={len(self._entries)} max_offset={self._max_offset:.6g}"
        )
        debug_helpers.log_array(
            "mapping.offsets", np.array([e.offset for e in self._entries])
        )

    @classmethod
    def from_entries(
        cls,
        entries: list[tuple[float, float]],
        delta_offsets: list[float],
        *,
        repetitive: bool = True,
    ) -> Mapping:
        """Example-side mapping rebuilt from a stored signal, without curves."""

        if len(entries) != len(delta_offsets):
            raise ValueError("entries and delta_offsets must have the same length")
        mapping = cls.__new__(cls)
        mapping._init_fields(None, None, SAMPLING_INTERVAL, repetitive)
        mapping._entries = [MappingEntry(float(l), float(o)) for l, o in entries]
        mapping._delta_offsets = [float(d) for d in delta_offsets]
        mapping.compute_max_offset()
        return mapping

    def _init_fields(
        self,
        style_curve: Curve | None,
        base_curve: BaseCurve | None,
        sampling_interval: float,
        repetitive: bool,
    ) -> None:
        self._base_curve = base_curve
        self._style_curve = style_curve
        self._default_interval = float(sampling_interval)
        self._sampling_interval = float(sampling_interval)
        self._repetitive = bool(repetitive)
        self._entries: list[MappingEntry] = []
        self._delta_offsets: list[float] = []
        self._max_offset = 0.0
        self._last_applied_index = -1

    # --------------------------------------------------------------- analysis

    def compute_sampling_interval(self) -> float:
        """Interval closest to the default that lands the last sample on the end."""

        length = self.style_curve.arc_length()
        num_samples = max(round(length / self._default_interval), 1)
        return length / num_samples

    def sample_style_curve_uniformly(self, sampling_interval: float) -> list[np.ndarray]:
        style = self.style_curve
        num_samples = max(round(style.arc_length() / self._default_interval), 1) + 1
        return [style.position_at(i * sampling_interval) for i in range(num_samples)]

    def project(self, samples: list[np.ndarray]) -> list[float]:
        return [self.base_curve.project(sample)[0] for sample in samples]

    def compute_mapping(self, samples: list[np.ndarray], projections: list[float]) -> None:
        base = self.base_curve
        self._entries = []
        for sample, l in zip(samples, projections):
            base_point = base.position_at(l)
            normal = base.smooth_normal_at(l)
            to_sample = sample - base_point
            offset = float(np.linalg.norm(to_sample))
            if float(np.dot(normal, to_sample)) < 0.0:
                offset = -offset
            self._entries.append(MappingEntry(float(l), offset))

    def compute_max_offset(self) -> None:
        self._max_offset = max((abs(e.offset) for e in self._entries), default=0.0)

    def compute_offsets(self) -> None:
        entries = self._entries
        self._delta_offsets = [
            entries[i].arc_length - entries[i - 1].arc_length
            for i in range(1, len(entries))
        ]
        if not self._delta_offsets:
            return
        if self._repetitive:
            # Close the loop: replay starts with the advance that leads back
            # from the last sample to the first one.
            self._delta_offsets.insert(0, self._delta_offsets.pop())
            self._entries.pop()
        else:
            self._delta_offsets.insert(0, 0.0)

    # ----------------------------------------------------------------- growth

    def set_max_offset(self, offset: float) -> None:
        """Seed the smoothing window of the base curve before any growth."""

        if not self.is_empty():
            raise ValueError("set_max_offset() must be called on an empty mapping")
        self.base_curve.set_tap(offset)

    def apply(self, offsets: tuple[float, float], index: int) -> bool:
        """Append one (advance, offset) step; False once the base curve is used up."""

        delta, offset = offsets
        l = 0.0 if self.is_empty() else self._entries[-1].arc_length + float(delta)
        if l >= self.base_curve.arc_length():
            return False
        entry = MappingEntry(l, float(offset))
        self._entries.append(entry)
        self.style_curve.append(self.inflate(entry)[1])
        self._last_applied_index = int(index)
        return True

    def inflate(self, entry: tuple[float, float]) -> PointPair:
        l, offset = entry
        base_point = self.base_curve.position_at(l)
        normal = self.base_curve.smooth_normal_at(l)
        return base_point, base_point + normal * float(offset)

    def get_offsets(self, index: int) -> tuple[float, float]:
        return self._delta_offsets[index], self._entries[index].offset

    def get_association(self, index: int) -> MappingEntry:
        return self._entries[index]

    def clear(self) -> None:
        self._base_curve = None
        self._style_curve = None
        self._entries = []
        self._delta_offsets = []
        self._max_offset = 0.0
        self._last_applied_index = -1
        self._sampling_interval = self._default_interval

    # ---------------------------------------------------------------- queries

    @property
    def base_curve(self) -> BaseCurve:
        if self._base_curve is None:
            raise ValueError("mapping has been cleared")
        return self._base_curve

    @property
    def style_curve(self) -> Curve:
        if self._style_curve is None:
            raise ValueError("mapping has been cleared")
        return self._style_curve

    @property
    def entries(self) -> list[MappingEntry]:
        return self._entries

    @property
    def delta_offsets(self) -> list[float]:
        return self._delta_offsets

    @property
    def max_offset(self) -> float:
        return self._max_offset

    @property
    def last_applied_index(self) -> int:
        return self._last_applied_index

    @property
    def sampling_interval(self) -> float:
        return self._sampling_interval

    def is_empty(self) -> bool:
        return len(self._entries) == 0

    def is_repetitive(self) -> bool:
        return self._repetitive

    def __len__(self) -> int:
        return len(self._entries)
