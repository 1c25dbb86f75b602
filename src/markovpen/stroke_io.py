from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from beartype import beartype
from jaxtyping import Float, jaxtyped
from svgpathtools import svg2paths2  # type: ignore[reportMissingTypeStubs]

STROKE_NAMES = ("example_base", "example_style", "target_base")
DEFAULT_UP = (0.0, 0.0, 1.0)


@dataclass(frozen=True)
class Stroke:
    points: np.ndarray
    ups: np.ndarray

    def __len__(self) -> int:
        return int(self.points.shape[0])


@dataclass(frozen=True)
class StrokeSet:
    example_base: Stroke
    example_style: Stroke
    target_base: Stroke
    # Input units per stored unit.
    scale: float = 1.0

    def strokes(self) -> tuple[Stroke, Stroke, Stroke]:
        return self.example_base, self.example_style, self.target_base


def _as_points(raw: object, name: str) -> np.ndarray:
    P = np.asarray(raw, dtype=np.float64)
    if P.ndim != 2 or P.shape[1] not in (2, 3):
        raise ValueError(f"{name} must have shape (N,2) or (N,3)")
    if P.shape[0] < 2:
        raise ValueError(f"{name} needs at least 2 points")
    if not np.isfinite(P).all():
        raise ValueError(f"{name} contains non-finite coordinates")
    if P.shape[1] == 2:
        P = np.hstack([P, np.zeros((P.shape[0], 1), dtype=np.float64)])
    return P


@jaxtyped(typechecker=beartype)
def planar_up_hints(points: Float[np.ndarray, "N 3"]) -> Float[np.ndarray, "N 3"]:
    """Left perpendicular of the local direction, in the xy plane.

    Planar strokes have no pen orientation; this hint makes the smoothed
    normal of a base curve lie in the drawing plane.
    """

    P = np.asarray(points, dtype=np.float64)
    d = np.zeros_like(P)
    if P.shape[0] > 1:
        d[1:-1] = P[2:] - P[:-2]
        d[0] = P[1] - P[0]
        d[-1] = P[-1] - P[-2]
    ups = np.stack([-d[:, 1], d[:, 0], np.zeros(P.shape[0])], axis=1)
    norms = np.linalg.norm(ups, axis=1)
    ups[norms <= 1e-12] = DEFAULT_UP
    norms = np.linalg.norm(ups, axis=1, keepdims=True)
    return ups / norms


def load_strokes_json(path: str | Path) -> StrokeSet:
    """Read three strokes from a JSON object.

    Keys are `example_base`, `example_style` and `target_base`, each a list of
    [x, y(, z)] points. An optional `<name>_up` list gives one up vector per
    point; planar strokes without one get `planar_up_hints`.
    """

    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("stroke file must contain a JSON object")
    strokes: dict[str, Stroke] = {}
    for name in STROKE_NAMES:
        if name not in data:
            raise ValueError(f"stroke file is missing '{name}'")
        points = _as_points(data[name], name)
        ups_raw = data.get(f"{name}_up")
        if ups_raw is None:
            ups = planar_up_hints(points)
        else:
            ups = _as_points(ups_raw, f"{name}_up")
            if ups.shape != points.shape:
                raise ValueError(f"{name}_up must have one vector per point")
        strokes[name] = Stroke(points, ups)
    return StrokeSet(**strokes)


def load_strokes_svg(
    path: str | Path, flat_tol: float = 1.0, normalize: bool = True
) -> StrokeSet:
    """Read the first three <path> elements as planar strokes.

    Paths are flattened to points about `flat_tol` user units apart. The SVG
    y axis is flipped so strokes are right-handed in the xy plane. With
    `normalize`, strokes are rescaled by `normalize_strokes`.
    """

    if not flat_tol > 0:
        raise ValueError("flat_tol must be > 0")
    paths = svg2paths2(str(path))[0]
    if len(paths) < len(STROKE_NAMES):
        raise ValueError(
            f"SVG needs {len(STROKE_NAMES)} <path> elements, found {len(paths)}"
        )

    strokes: dict[str, Stroke] = {}
    for name, p in zip(STROKE_NAMES, paths):
        pts: list[tuple[float, float]] = []
        for seg in p:
            L = max(float(seg.length(error=1e-3)), 1e-6)
            n = max(2, int(np.ceil(L / flat_tol)))
            for t in np.linspace(0.0, 1.0, n, endpoint=False):
                z = seg.point(t)
                pts.append((z.real, -z.imag))
        z = p[-1].point(1.0)
        pts.append((z.real, -z.imag))

        P = np.asarray(pts, dtype=np.float64)
        keep: list[int] = [0]
        for i in range(1, len(P)):
            if np.linalg.norm(P[i] - P[keep[-1]]) > flat_tol * 0.25:
                keep.append(i)
        points = _as_points(P[keep], name)
        strokes[name] = Stroke(points, planar_up_hints(points))
    loaded = StrokeSet(**strokes)
    return normalize_strokes(loaded) if normalize else loaded


def normalize_strokes(strokes: StrokeSet) -> StrokeSet:
    """Rescale strokes so their joint bounding box is one unit across.

    Curve and mapping defaults are tuned for strokes about a unit long; SVG
    drawings are usually hundreds of units across. Multiplying by the
    returned `scale` maps points back to the input units.
    """

    P = np.vstack([s.points for s in strokes.strokes()])
    extent = float(np.max(P.max(axis=0) - P.min(axis=0)))
    if extent <= 0.0:
        return strokes
    base, style, target = (Stroke(s.points / extent, s.ups) for s in strokes.strokes())
    return StrokeSet(base, style, target, scale=strokes.scale * extent)


def load_strokes(
    path: str | Path, flat_tol: float = 1.0, normalize: bool = True
) -> StrokeSet:
    if Path(path).suffix.lower() == ".svg":
        return load_strokes_svg(path, flat_tol=flat_tol, normalize=normalize)
    return load_strokes_json(path)
