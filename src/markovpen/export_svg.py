from __future__ import annotations

from typing import TypeAlias

import numpy as np
import svgwrite  # type: ignore[reportMissingTypeStubs]
from beartype import beartype
from jaxtyping import Float, jaxtyped

from .types import PointPair

Point2: TypeAlias = Float[np.ndarray, "2"]
BezierSegment: TypeAlias = tuple[Point2, Point2, Point2, Point2]


@jaxtyped(typechecker=beartype)
def catmull_rom_to_beziers(
    points: Float[np.ndarray, "M 2"],
) -> list[BezierSegment]:
    """
    Convert a polyline to cubic Bezier segments following its Catmull-Rom spline.
    points: (M,2)
    Returns list of (p0, c1, c2, p3) per segment; end segments reuse the end points.
    """
    P = points
    M = P.shape[0]
    if M < 2:
        raise ValueError("Need at least 2 points for Catmull-Rom conversion.")

    segs: list[BezierSegment] = []
    for i in range(M - 1):
        pm1 = P[i - 1] if i > 0 else P[i]
        p0 = P[i]
        p1 = P[i + 1]
        p2 = P[i + 2] if i + 2 < M else P[i + 1]
        c1 = p0 + (p1 - pm1) / 6.0
        c2 = p1 - (p2 - p0) / 6.0
        segs.append((p0, c1, c2, p1))
    return segs


def to_svg_xy(points: np.ndarray) -> np.ndarray:
    """Project (N,3) points to SVG user space (x right, y down)."""

    P = np.asarray(points, dtype=np.float64)
    return np.stack([P[:, 0], -P[:, 1]], axis=1)


def pairs_to_polylines(pairs: list[PointPair]) -> tuple[np.ndarray, np.ndarray]:
    """Split point pairs into base points (N,3) and offset points (N,3)."""

    if not pairs:
        empty = np.zeros((0, 3), dtype=np.float64)
        return empty, empty.copy()
    base = np.stack([np.asarray(b, dtype=np.float64) for b, _ in pairs])
    offset = np.stack([np.asarray(o, dtype=np.float64) for _, o in pairs])
    return base, offset


def export_synthesis_svg(
    out_path: str,
    style_curves: list[np.ndarray],
    base_curves: list[np.ndarray] | None = None,
    stroke: str = "#111111",
    stroke_width: float | str = 1.0,
    base_stroke: str = "#777777",
    base_stroke_width: float | str = 0.5,
    base_opacity: float = 0.6,
    base_dasharray: str | None = "2,2",
    pad: float = 5.0,
) -> None:
    """
    style_curves: list of (N,3) point sequences drawn solid
    base_curves: list of (N,3) point sequences drawn dashed for context
    Only x/y are drawn; z is dropped.
    """
    base_curves = base_curves or []
    drawn = [to_svg_xy(c) for c in style_curves if len(c) > 0]
    context = [to_svg_xy(c) for c in base_curves if len(c) > 0]
    if not drawn and not context:
        raise ValueError("nothing to export")

    allp = np.vstack(drawn + context)
    minx, miny = allp.min(axis=0)
    maxx, maxy = allp.max(axis=0)
    viewbox = (
        float(minx - pad),
        float(miny - pad),
        float((maxx - minx) + 2 * pad),
        float((maxy - miny) + 2 * pad),
    )

    dwg = svgwrite.Drawing(out_path, profile="tiny")
    dwg.attribs["viewBox"] = f"{viewbox[0]} {viewbox[1]} {viewbox[2]} {viewbox[3]}"

    def to_point_list(points: np.ndarray) -> list[tuple[float, float]]:
        return [(float(p[0]), float(p[1])) for p in points]

    for pts in context:
        base_kwargs: dict[str, object] = {
            "stroke": base_stroke,
            "fill": "none",
            "stroke_width": base_stroke_width,
            "opacity": base_opacity,
        }
        if base_dasharray is not None:
            base_kwargs["stroke_dasharray"] = base_dasharray
        dwg.add(dwg.polyline(points=to_point_list(pts), **base_kwargs))

    for pts in drawn:
        # Short sequences are exported as polylines
        if pts.shape[0] < 4:
            dwg.add(
                dwg.polyline(
                    points=to_point_list(pts),
                    stroke=stroke,
                    fill="none",
                    stroke_width=stroke_width,
                )
            )
            continue

        segs = catmull_rom_to_beziers(pts)
        p = segs[0][0]
        d = [f"M {p[0]:.3f},{p[1]:.3f}"]
        for _p0, c1, c2, p3 in segs:
            d.append(
                f"C {c1[0]:.3f},{c1[1]:.3f} {c2[0]:.3f},{c2[1]:.3f} {p3[0]:.3f},{p3[1]:.3f}"
            )
        dwg.add(
            dwg.path(
                d=" ".join(d),
                stroke=stroke,
                fill="none",
                stroke_width=stroke_width,
            )
        )

    dwg.save()
