from __future__ import annotations

import math

import numpy as np

from ..utils import debug
from .curve import Curve, as_point
from .errors import SmoothNormalRangeError
from .hermite import first_derivative, interpolate, normalized

BASE_RESPONSIVENESS = 0.25
UP_VECTOR_BLEND = 0.25
PROJECTION_TOLERANCE = 0.25
MAX_PROJECTION_DEPTH = 32
# Up vectors are scaled before projection so the subtraction keeps precision.
UP_VECTOR_SCALE = 100.0


class BaseCurve(Curve):
    """Curve carrying a twist-stable normal frame for offsetting.

    With `tap > 0` every control point gets a smoothed up vector and, once
    `tap` arc-length units of curve lie ahead of it, a smoothed normal: the up
    vector made orthogonal to the tangent averaged over [l - tap, l + tap].
    Consecutive normals never point against each other.

    With `tap == 0` every frame query answers the static normal, the in-plane
    perpendicular of the chord from the first to the last control point.
    """

    def __init__(
        self,
        responsiveness: float = BASE_RESPONSIVENESS,
        *,
        tap: float = 0.0,
        projection_tolerance: float = PROJECTION_TOLERANCE,
        max_projection_depth: int = MAX_PROJECTION_DEPTH,
        **kwargs: float,
    ) -> None:
        super().__init__(responsiveness, **kwargs)
        if not projection_tolerance > 0.0:
            raise ValueError("projection_tolerance must be > 0")
        self._tap = 0.0
        self._projection_tolerance = float(projection_tolerance)
        self._max_projection_depth = int(max_projection_depth)
        self._up_vectors: list[np.ndarray] = []
        self._smooth_normals: list[np.ndarray] = []
        self.set_tap(tap)

    @property
    def tap(self) -> float:
        return self._tap

    @property
    def up_vectors(self) -> list[np.ndarray]:
        return self._up_vectors

    @property
    def smooth_normals(self) -> list[np.ndarray]:
        return self._smooth_normals

    def set_tap(self, tap: float) -> None:
        tap = float(tap)
        if not np.isfinite(tap) or tap < 0.0:
            raise ValueError("tap must be finite and >= 0")
        self._tap = tap
        if tap > 0.0 and self.is_finished():
            self._catch_up_normals()

    # ------------------------------------------------------------------ build

    def add_control_point(self, point: object, up: object | None = None) -> None:
        if up is None:
            raise ValueError("BaseCurve.add_control_point requires an up vector")
        U = as_point(up, "up")
        count = len(self._control_points)
        super().add_control_point(point)
        if len(self._control_points) > count:
            self._push_up_vector(U)
        if self._tap == 0.0 or len(self._control_points) < 4:
            return

        arc = self._arc_length_positions
        normals = self._smooth_normals
        while (
            len(normals) < len(arc)
            and self._tap <= arc[-1] - arc[len(normals)]
        ):
            self._push_smooth_normal(len(normals))

    def finish(self) -> None:
        super().finish()
        if len(self._control_points) < 2 or self._tap == 0.0:
            return
        self._catch_up_normals()

    def _catch_up_normals(self) -> None:
        # Frames the sliding window has not reached yet.
        for i in range(len(self._smooth_normals), len(self._control_points)):
            self._push_smooth_normal(i)

    def _push_up_vector(self, up: np.ndarray) -> None:
        if self._up_vectors:
            blended = UP_VECTOR_BLEND * up + (1.0 - UP_VECTOR_BLEND) * self._up_vectors[-1]
            self._up_vectors.append(normalized(blended))
        else:
            self._up_vectors.append(normalized(up))

    def _push_smooth_normal(self, index: int) -> None:
        tangent = self.compute_smooth_tangent(self._arc_length_positions[index])
        normal = self.compute_smooth_normal(self._up_vectors[index], tangent)
        if self._smooth_normals and float(np.dot(normal, self._smooth_normals[-1])) < 0.0:
            normal = -normal
        self._smooth_normals.append(normal)

    # ------------------------------------------------------------------ frame

    def compute_smooth_tangent(self, center: float) -> np.ndarray:
        """Mean unit derivative over [center - tap, center + tap].

        Samples are spaced 1 / (2 * tap + 1) apart.
        """

        window = 2.0 * self._tap + 1.0
        step = 1.0 / window
        count = int(math.floor(2.0 * self._tap / step + 1e-9)) + 1
        acc = np.zeros(3, dtype=np.float64)
        start = center - self._tap
        for k in range(count):
            acc += normalized(self.first_derivative_at(start + k * step))
        return acc / window

    @staticmethod
    def compute_smooth_normal(up: np.ndarray, smooth_tangent: np.ndarray) -> np.ndarray:
        up = normalized(up) * UP_VECTOR_SCALE
        tangent = normalized(smooth_tangent)
        return normalized(up - tangent * float(np.dot(up, tangent)))

    def first_derivative_at(self, l: float) -> np.ndarray:
        arc = self._arc_length_positions
        if l <= 0.0:
            return self.start_tangent()
        if l >= arc[-1]:
            return self.end_tangent()
        t = self.time_at(l)
        p1, p2, p3, p4 = self.get_segment_positions(self.segment_index(t))
        return first_derivative(
            p1,
            p2,
            p3,
            p4,
            self.segment_t(t),
            self.tension,
            self.continuity,
            self.bias,
        )

    def static_normal(self) -> np.ndarray:
        cps = self._control_points
        if not cps:
            raise ValueError("curve has no control points")
        line = normalized(cps[-1] - cps[0])
        return normalized(np.array([-line[1], line[0], 0.0], dtype=np.float64))

    def smooth_normal_at(self, l: float) -> np.ndarray:
        normals = self._smooth_normals
        if self._tap == 0.0 or not normals:
            return self.static_normal()

        arc = self._arc_length_positions
        last = len(normals) - 1
        if l <= 0.0:
            return normals[0]
        if l >= arc[last]:
            return normals[last]

        t = self.time_at(l)
        index = self.segment_index(t)
        if index < 0:
            raise SmoothNormalRangeError("index_too_small", index, len(normals))
        if index + 2 > len(normals):
            raise SmoothNormalRangeError("index_too_large", index, len(normals))
        if not (0 <= index <= len(normals) - 2):
            raise SmoothNormalRangeError("unexplained", index, len(normals))

        n1 = normals[index - 1] if index > 0 else normals[0]
        n4 = normals[index + 2] if index + 2 < len(normals) else normals[index + 1]
        normal = interpolate(
            normalized(n1),
            normalized(normals[index]),
            normalized(normals[index + 1]),
            normalized(n4),
            self.segment_t(t),
        )
        return normalized(normal)

    def arc_length(self) -> float:
        """Arc length covered by the frame.

        Capped at the last computed smooth normal, so frame queries below it
        always interpolate between recorded normals.
        """

        if self._tap == 0.0:
            return super().arc_length()
        if len(self._up_vectors) < 4 or not self._smooth_normals:
            return 0.0
        return self._arc_length_positions[len(self._smooth_normals) - 1]

    # ------------------------------------------------------------- projection

    def shoot(self, point: np.ndarray, normal: np.ndarray, l: float) -> float:
        """Signed distance from `point` to the line along `normal` at `l`."""

        base_point = self.position_at(l)
        to_point = point - base_point
        normal = normalized(normal)
        closest = base_point + normal * float(np.dot(normal, to_point))
        dist = float(np.linalg.norm(point - closest))
        determinant = to_point[0] * normal[1] - to_point[1] * normal[0]
        if determinant < 0.0:
            dist = -dist
        return dist

    def project(self, point: object) -> list[float]:
        """Arc lengths where the static-normal line through the curve hits `point`.

        Each arc-length interval whose end distances do not share a sign is
        bisected until both distances are below the projection tolerance.
        If no interval brackets the point, it is projected onto the tangent
        of the nearer end instead, giving a single extrapolated arc length.
        """

        P = as_point(point)
        cps = self._control_points
        if not cps:
            raise ValueError("curve has no control points")
        normal = self.static_normal()
        arc = self._arc_length_positions

        projections: list[float] = []
        distances = [self.shoot(P, normal, l) for l in arc]
        for i in range(1, len(arc)):
            self._bisect(
                P, normal, arc[i - 1], arc[i], distances[i - 1], distances[i], projections
            )
        if projections:
            return projections

        if np.linalg.norm(P - cps[0]) < np.linalg.norm(P - cps[-1]):
            l = float(np.dot(P - cps[0], self._start_direction()))
        else:
            end = len(arc) - 1
            l = arc[-1] + float(np.dot(P - cps[end], self._end_direction()))
        debug.log(f"project: no crossing found, extrapolated to l={l:.6g}")
        return [l]

    def _bisect(
        self,
        point: np.ndarray,
        normal: np.ndarray,
        l1: float,
        l2: float,
        d1: float,
        d2: float,
        projections: list[float],
    ) -> None:
        tol = self._projection_tolerance
        stack = [(l1, l2, d1, d2, 0)]
        while stack:
            a, b, da, db, depth = stack.pop()
            if (da < 0.0 and db < 0.0) or (da > 0.0 and db > 0.0):
                continue
            middle = a + (b - a) / 2.0
            if (abs(da) < tol and abs(db) < tol) or depth >= self._max_projection_depth:
                projections.append(middle)
                continue
            dm = self.shoot(point, normal, middle)
            stack.append((middle, b, dm, db, depth + 1))
            stack.append((a, middle, da, dm, depth + 1))
