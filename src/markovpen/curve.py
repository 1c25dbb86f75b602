from __future__ import annotations

import bisect
import math
from dataclasses import dataclass
from typing import TypeAlias

import numpy as np
from jaxtyping import Float

from .hermite import (
    ARC_LENGTH_THRESHOLD,
    compute_tangent,
    interpolate,
    normalized,
    rectify,
)
from .types import SegmentPositions

RESPONSIVENESS = 1.0


@dataclass(frozen=True)
class Empty:
    """No sample received yet."""


@dataclass(frozen=True)
class OneSample:
    """The anchor is stored as the first control point; nothing is buffered."""


@dataclass(frozen=True)
class Buffered:
    """A raw sample waits for its successor; only the anchor exists."""

    pending: np.ndarray


@dataclass(frozen=True)
class Streaming:
    """Smoothed control points are being emitted, one per raw sample."""

    pending: np.ndarray


@dataclass(frozen=True)
class Appended:
    """Smooth points were appended directly; raw input is refused."""


InputState: TypeAlias = Empty | OneSample | Buffered | Streaming | Appended


def as_point(point: object, name: str = "point") -> Float[np.ndarray, "3"]:
    """Validate a 2D/3D point and return it as a float64 (3,) array."""

    P = np.asarray(point, dtype=np.float64).reshape(-1)
    if P.shape == (2,):
        P = np.array([P[0], P[1], 0.0], dtype=np.float64)
    if P.shape != (3,):
        raise ValueError(f"{name} must have shape (3,) or (2,)")
    if not np.isfinite(P).all():
        raise ValueError(f"{name} contains non-finite coordinates")
    return P


class Curve:
    """Incrementally built Hermite spline queried by arc length.

    Raw samples are smoothed with a one-sample delay: every sample after the
    second emits the Hermite point at `t = responsiveness` between the last
    accepted control point and the buffered raw sample. With the default
    responsiveness of 1 the emitted point is the buffered sample itself.

    `arc_length_positions[i]` is the arc length at control point `i`. The table
    trails the control points by one entry until `finish()` closes the last
    segment.
    """

    def __init__(
        self,
        responsiveness: float = RESPONSIVENESS,
        *,
        tension: float = 0.0,
        continuity: float = 0.0,
        bias: float = 0.0,
        arc_threshold: float = ARC_LENGTH_THRESHOLD,
    ) -> None:
        if not (0.0 < responsiveness <= 1.0):
            raise ValueError("responsiveness must be in (0, 1]")
        if not arc_threshold > 0.0:
            raise ValueError("arc_threshold must be > 0")
        self.tension = float(tension)
        self.continuity = float(continuity)
        self.bias = float(bias)
        self._responsiveness = float(responsiveness)
        self._arc_threshold = float(arc_threshold)
        self._control_points: list[np.ndarray] = []
        self._arc_length_positions: list[float] = [0.0]
        self._state: InputState = Empty()

    # ------------------------------------------------------------------ build

    def add_control_point(self, point: object, up: object | None = None) -> None:
        """Feed one raw sample. `up` is accepted for parity with BaseCurve."""

        P = as_point(point)
        if self.is_finished():
            raise ValueError("cannot add control points to a finished curve")

        state = self._state
        if isinstance(state, Appended):
            raise ValueError("add_control_point() cannot follow append()")
        if isinstance(state, Empty):
            self._control_points.append(P)
            self._state = OneSample()
            return
        if isinstance(state, OneSample):
            self._state = Buffered(P)
            return

        cps = self._control_points
        previous = cps[-2] if len(cps) > 1 else cps[-1]
        smoothed = interpolate(
            previous,
            cps[-1],
            state.pending,
            P,
            self._responsiveness,
            self.tension,
            self.continuity,
            self.bias,
        )
        cps.append(np.array(smoothed, dtype=np.float64))
        self._state = Streaming(P)
        if len(cps) >= 3:
            # The segment ending at cps[-2] now has both of its neighbours.
            self._push_arc_length(len(cps) - 3)

    def append(self, point: object) -> None:
        """Append an already smooth point, bypassing the input delay."""

        P = as_point(point)
        if isinstance(self._state, (Buffered, Streaming)):
            raise ValueError("append() cannot follow buffered raw input")
        if self.is_finished():
            raise ValueError("cannot append to a finished curve")
        self._control_points.append(P)
        self._state = Appended()
        if len(self._control_points) >= 3:
            self._push_arc_length(len(self._control_points) - 3)

    def finish(self) -> None:
        """Close the arc-length table over the last segment."""

        n = len(self._control_points)
        if n < 2 or len(self._arc_length_positions) == n:
            return
        self._push_arc_length(n - 2)

    def _push_arc_length(self, segment_index: int) -> None:
        self._arc_length_positions.append(
            self._arc_length_positions[-1] + self.compute_arc_length(segment_index)
        )

    # ---------------------------------------------------------------- queries

    @property
    def control_points(self) -> list[np.ndarray]:
        return self._control_points

    @property
    def arc_length_positions(self) -> list[float]:
        return self._arc_length_positions

    @property
    def responsiveness(self) -> float:
        return self._responsiveness

    @property
    def state(self) -> InputState:
        return self._state

    def is_empty(self) -> bool:
        return len(self._control_points) == 0

    def is_finished(self) -> bool:
        n = len(self._control_points)
        return n >= 2 and len(self._arc_length_positions) == n

    def arc_length(self) -> float:
        return self._arc_length_positions[-1]

    def get_segment_positions(self, index: int) -> SegmentPositions:
        """Four-point Hermite window of segment `index` (clamped at the ends)."""

        cps = self._control_points
        p1 = cps[index - 1] if index > 0 else cps[index]
        p4 = cps[index + 2] if index + 2 < len(cps) else cps[index + 1]
        return p1, cps[index], cps[index + 1], p4

    def compute_arc_length(self, segment_index: int) -> float:
        p1, p2, p3, p4 = self.get_segment_positions(segment_index)
        return rectify(
            p1,
            p2,
            p3,
            p4,
            0.0,
            1.0,
            self._arc_threshold,
            self.tension,
            self.continuity,
            self.bias,
        )

    def time_at(self, l: float) -> float:
        """Segment index plus local fraction for arc length `l`.

        The fraction is linear between the segment's arc-length bounds, which
        only approximates the true reparametrization inside a segment.
        """

        arc = self._arc_length_positions
        if len(arc) < 2:
            return 0.0
        i = bisect.bisect_right(arc, l) - 1
        i = min(max(i, 0), len(arc) - 2)
        span = arc[i + 1] - arc[i]
        if span <= 0.0:
            return float(i)
        return i + (l - arc[i]) / span

    @staticmethod
    def segment_index(t: float) -> int:
        return int(math.floor(t))

    @staticmethod
    def segment_t(t: float) -> float:
        return t % 1.0

    def position_at(self, l: float) -> np.ndarray:
        """Point at arc length `l`; linear extrapolation outside the table."""

        cps = self._control_points
        if not cps:
            raise ValueError("curve has no control points")
        l = float(l)
        if l < 0.0:
            return cps[0] + l * self._start_direction()
        arc = self._arc_length_positions
        if l >= arc[-1]:
            end = len(arc) - 1
            return cps[end] + (l - arc[-1]) * self._end_direction()
        t = self.time_at(l)
        p1, p2, p3, p4 = self.get_segment_positions(self.segment_index(t))
        return interpolate(
            p1,
            p2,
            p3,
            p4,
            self.segment_t(t),
            self.tension,
            self.continuity,
            self.bias,
        )

    def start_tangent(self) -> np.ndarray:
        cps = self._control_points
        following = cps[1] if len(cps) > 1 else cps[0]
        return compute_tangent(cps[0], cps[0], following)

    def end_tangent(self) -> np.ndarray:
        """Tangent at the last control point covered by the arc-length table."""

        cps = self._control_points
        end = len(self._arc_length_positions) - 1
        previous = cps[end - 1] if end > 0 else cps[end]
        following = cps[end + 1] if end + 1 < len(cps) else cps[end]
        return compute_tangent(previous, cps[end], following)

    def _start_direction(self) -> np.ndarray:
        return normalized(self.start_tangent())

    def _end_direction(self) -> np.ndarray:
        return normalized(self.end_tangent())
