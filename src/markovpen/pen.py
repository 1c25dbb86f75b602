from __future__ import annotations

from typing import Literal, TypeAlias

import numpy as np

from ..utils import debug
from .base_curve import BaseCurve
from .curve import Curve, as_point
from .mapping import SAMPLING_INTERVAL, Mapping
from .synthesizer import Synthesizer
from .types import PointPair

Stage: TypeAlias = Literal["example_base", "example_style", "target"]
StrokeRole: TypeAlias = Literal["example_base", "example_style", "target_base"]


class MarkovPen:
    """Holds the trained example mapping and its synthesizer."""

    def __init__(self) -> None:
        self._example_mapping: Mapping | None = None
        self._synthesizer: Synthesizer | None = None

    @property
    def example_mapping(self) -> Mapping | None:
        return self._example_mapping

    def initialize(self, example_mapping: Mapping) -> None:
        self._example_mapping = example_mapping
        self._synthesizer = Synthesizer(example_mapping)

    def reconstruct(self, target_mapping: Mapping) -> list[PointPair]:
        if self._synthesizer is None:
            raise ValueError("pen is not trained")
        return self._synthesizer.reconstruct(target_mapping)

    def is_trained(self) -> bool:
        return self._example_mapping is not None

    def clear(self) -> None:
        self._synthesizer = None
        self._example_mapping = None


class SketchSession:
    """Routes strokes of raw samples through the example/target workflow.

    The first stroke draws the example base curve, the second the example
    style curve; ending the second stroke trains the pen. Every later stroke
    draws a target base curve, and each of its samples grows a fresh target
    style curve by replaying the example.
    """

    def __init__(
        self,
        *,
        style_responsiveness: float = 1.0,
        target_style_responsiveness: float = 1.0,
        sampling_interval: float = SAMPLING_INTERVAL,
        repetitive: bool = True,
        base_curve_kwargs: dict[str, float] | None = None,
    ) -> None:
        self._style_responsiveness = style_responsiveness
        self._target_style_responsiveness = target_style_responsiveness
        self._sampling_interval = sampling_interval
        self._repetitive = repetitive
        self._base_curve_kwargs = dict(base_curve_kwargs or {})

        self.pen = MarkovPen()
        self.example_base_curve = self._new_base_curve()
        self.example_style_curve = Curve(self._style_responsiveness)
        self.target_base_curve = self._new_base_curve()
        self.target_style_curve = Curve(self._target_style_responsiveness)
        self.target_mapping: Mapping | None = None

        self._active: Curve | None = None
        self._active_role: StrokeRole | None = None
        self._last_sample: np.ndarray | None = None
        self._strokes: list[StrokeRole] = []
        self._synthesized: list[PointPair] = []

    def _new_base_curve(self) -> BaseCurve:
        return BaseCurve(**self._base_curve_kwargs)

    @property
    def stage(self) -> Stage:
        if self.pen.is_trained():
            return "target"
        if self.example_base_curve.is_finished():
            return "example_style"
        return "example_base"

    @property
    def synthesized(self) -> list[PointPair]:
        """Point pairs synthesized for the current target stroke."""

        return self._synthesized

    @property
    def active_role(self) -> StrokeRole | None:
        return self._active_role

    def use_example(self, example_mapping: Mapping) -> None:
        """Train from a stored example mapping instead of drawing one."""

        if self._active is not None:
            raise ValueError("cannot train while a stroke is in progress")
        if example_mapping.is_empty():
            raise ValueError("example mapping is empty")
        self.pen.initialize(example_mapping)

    def begin_stroke(self) -> StrokeRole:
        if self._active is not None:
            raise ValueError("a stroke is already in progress")
        stage = self.stage
        if stage == "example_base":
            self.example_base_curve = self._new_base_curve()
            self._active, self._active_role = self.example_base_curve, "example_base"
        elif stage == "example_style":
            self.example_style_curve = Curve(self._style_responsiveness)
            self._active, self._active_role = self.example_style_curve, "example_style"
        else:
            self.target_base_curve = self._new_base_curve()
            self.target_style_curve = Curve(self._target_style_responsiveness)
            self.target_mapping = Mapping(
                self.target_style_curve,
                self.target_base_curve,
                sampling_interval=self._sampling_interval,
                repetitive=self._repetitive,
            )
            self._synthesized = []
            self._active, self._active_role = self.target_base_curve, "target_base"
        self._last_sample = None
        debug.log(f"session: begin stroke role={self._active_role}")
        return self._active_role

    def add_sample(self, point: object, up: object) -> list[PointPair]:
        """Feed one raw sample to the active stroke.

        Returns the point pairs synthesized because of this sample (only
        target strokes synthesize).
        """

        if self._active is None:
            raise ValueError("no stroke in progress")
        P = as_point(point)
        if self._last_sample is not None and np.array_equal(P, self._last_sample):
            return []
        self._last_sample = P
        self._active.add_control_point(P, up)
        return self._reconstruct()

    def end_stroke(self) -> list[PointPair]:
        if self._active is None:
            raise ValueError("no stroke in progress")
        active, role = self._active, self._active_role
        if role is None:
            raise ValueError("active stroke has no role")
        active.finish()
        pairs = self._reconstruct()
        self._active = None
        self._active_role = None
        if not active.is_finished():
            # Fewer than two control points; the stroke leaves nothing to undo.
            debug.log(f"session: stroke role={role} too short, discarded")
            return pairs
        self._strokes.append(role)

        if role == "example_style":
            self._train()
        debug.log(f"session: end stroke role={role} synthesized={len(pairs)}")
        return pairs

    def undo_last_stroke(self) -> StrokeRole | None:
        """Discard the most recent finished stroke and what was trained from it."""

        if self._active is not None:
            raise ValueError("cannot undo while a stroke is in progress")
        if not self._strokes:
            return None
        role = self._strokes.pop()
        if role == "example_base":
            self.example_base_curve = self._new_base_curve()
        elif role == "example_style":
            self.example_style_curve = Curve(self._style_responsiveness)
            self.pen.clear()
            self.target_mapping = None
        else:
            self.target_base_curve = self._new_base_curve()
            self.target_style_curve = Curve(self._target_style_responsiveness)
            self.target_mapping = None
            self._synthesized = []
        return role

    def _train(self) -> None:
        mapping = Mapping(
            self.example_style_curve,
            self.example_base_curve,
            sampling_interval=self._sampling_interval,
            repetitive=self._repetitive,
        )
        if mapping.is_empty():
            # Too short to sample; the style stroke has to be drawn again.
            debug.log("session: example style curve too short, discarding it")
            self.example_style_curve = Curve(self._style_responsiveness)
            self._strokes.pop()
            return
        self.pen.initialize(mapping)

    def _reconstruct(self) -> list[PointPair]:
        if self._active_role != "target_base" or self.target_mapping is None:
            return []
        pairs = self.pen.reconstruct(self.target_mapping)
        self._synthesized.extend(pairs)
        return pairs
