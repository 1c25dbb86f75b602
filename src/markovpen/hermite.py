from __future__ import annotations

import numpy as np
from beartype import beartype
from jaxtyping import Float, jaxtyped

ARC_LENGTH_THRESHOLD = 0.1
MAX_RECTIFY_DEPTH = 24


def normalized(v: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    """Unit vector along `v`, or the zero vector when `v` is (nearly) zero."""

    n = float(np.linalg.norm(v))
    if not np.isfinite(n) or n <= eps:
        return np.zeros_like(v, dtype=np.float64)
    return np.asarray(v, dtype=np.float64) / n


@jaxtyped(typechecker=beartype)
def compute_tangent(
    point1: Float[np.ndarray, "3"],
    point2: Float[np.ndarray, "3"],
    point3: Float[np.ndarray, "3"],
    tension: float = 0.0,
    continuity: float = 0.0,
    bias: float = 0.0,
) -> Float[np.ndarray, "3"]:
    """Kochanek-Bartels tangent at `point2`.

    With tension = continuity = bias = 0 this is the Catmull-Rom tangent
    0.5 * (point3 - point1).
    """

    factor1 = (1.0 - tension) * (1.0 + continuity) * (1.0 + bias) / 2.0
    factor2 = (1.0 - tension) * (1.0 - continuity) * (1.0 - bias) / 2.0
    return factor1 * (point2 - point1) + factor2 * (point3 - point2)


def _hermite_point(
    p1: np.ndarray,
    p2: np.ndarray,
    p3: np.ndarray,
    p4: np.ndarray,
    t: float,
    tension: float,
    continuity: float,
    bias: float,
) -> np.ndarray:
    if t <= 0.0:
        return p2
    if t >= 1.0:
        return p3
    m2 = compute_tangent(p1, p2, p3, tension, continuity, bias)
    m3 = compute_tangent(p2, p3, p4, tension, continuity, bias)
    t2 = t * t
    t3 = t2 * t
    h1 = 2.0 * t3 - 3.0 * t2 + 1.0
    h2 = -2.0 * t3 + 3.0 * t2
    h3 = t3 - 2.0 * t2 + t
    h4 = t3 - t2
    return h1 * p2 + h2 * p3 + h3 * m2 + h4 * m3


@jaxtyped(typechecker=beartype)
def interpolate(
    point1: Float[np.ndarray, "3"],
    point2: Float[np.ndarray, "3"],
    point3: Float[np.ndarray, "3"],
    point4: Float[np.ndarray, "3"],
    t: float,
    tension: float = 0.0,
    continuity: float = 0.0,
    bias: float = 0.0,
) -> Float[np.ndarray, "3"]:
    """Cubic Hermite point between `point2` (t=0) and `point3` (t=1).

    `point1` and `point4` only shape the end tangents. `t` is clamped to [0,1].
    """

    return _hermite_point(
        point1, point2, point3, point4, float(t), tension, continuity, bias
    )


@jaxtyped(typechecker=beartype)
def first_derivative(
    point1: Float[np.ndarray, "3"],
    point2: Float[np.ndarray, "3"],
    point3: Float[np.ndarray, "3"],
    point4: Float[np.ndarray, "3"],
    t: float,
    tension: float = 0.0,
    continuity: float = 0.0,
    bias: float = 0.0,
) -> Float[np.ndarray, "3"]:
    """d/dt of `interpolate`, evaluated with `t` clamped to [0,1]."""

    t = min(max(float(t), 0.0), 1.0)
    m2 = compute_tangent(point1, point2, point3, tension, continuity, bias)
    m3 = compute_tangent(point2, point3, point4, tension, continuity, bias)
    t2 = t * t
    h1 = 6.0 * t2 - 6.0 * t
    h2 = -6.0 * t2 + 6.0 * t
    h3 = 3.0 * t2 - 4.0 * t + 1.0
    h4 = 3.0 * t2 - 2.0 * t
    return h1 * point2 + h2 * point3 + h3 * m2 + h4 * m3


@jaxtyped(typechecker=beartype)
def rectify(
    point1: Float[np.ndarray, "3"],
    point2: Float[np.ndarray, "3"],
    point3: Float[np.ndarray, "3"],
    point4: Float[np.ndarray, "3"],
    t1: float = 0.0,
    t2: float = 1.0,
    threshold: float = ARC_LENGTH_THRESHOLD,
    tension: float = 0.0,
    continuity: float = 0.0,
    bias: float = 0.0,
    max_depth: int = MAX_RECTIFY_DEPTH,
) -> float:
    """Arc length of one Hermite segment over [t1, t2].

    Intervals are bisected until the chord between their end points is shorter
    than `threshold`; chord lengths are then summed. `max_depth` bounds the
    bisection on degenerate segments.
    """

    if threshold <= 0.0:
        raise ValueError("threshold must be > 0")

    def point_at(t: float) -> np.ndarray:
        return _hermite_point(
            point1, point2, point3, point4, t, tension, continuity, bias
        )

    total = 0.0
    stack = [(float(t1), float(t2), point_at(float(t1)), point_at(float(t2)), 0)]
    while stack:
        a, b, pa, pb, depth = stack.pop()
        chord = float(np.linalg.norm(pb - pa))
        if chord < threshold or depth >= max_depth:
            total += chord
            continue
        mid = a + (b - a) / 2.0
        pm = point_at(mid)
        stack.append((mid, b, pm, pb, depth + 1))
        stack.append((a, mid, pa, pm, depth + 1))
    return total
