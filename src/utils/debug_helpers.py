from __future__ import annotations

import numpy as np

from . import debug


def log_array(name: str, arr: np.ndarray) -> None:
    """Shape, dtype and finite range of `arr`; silent unless verbose."""

    if not debug.is_verbose():
        return
    values = np.asarray(arr, dtype=np.float64)
    finite = values[np.isfinite(values)]
    if finite.size:
        lo, hi = float(finite.min()), float(finite.max())
    else:
        lo = hi = float("nan")
    debug.log(
        f"{name}: shape={values.shape} finite_all={finite.size == values.size} "
        f"min={lo:.6g} max={hi:.6g}"
    )


def log_points(name: str, points: np.ndarray) -> None:
    """Sample count, polyline length and bounding box of an (N,3) stroke."""

    if not debug.is_verbose():
        return
    P = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if P.shape[0] == 0:
        debug.log(f"{name}: empty")
        return
    length = float(np.linalg.norm(np.diff(P, axis=0), axis=1).sum())
    lo = np.array2string(P.min(axis=0), precision=4)
    hi = np.array2string(P.max(axis=0), precision=4)
    debug.log(f"{name}: samples={P.shape[0]} length={length:.6g} bbox={lo}..{hi}")
