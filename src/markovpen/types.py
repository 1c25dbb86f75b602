from __future__ import annotations

from typing import TypeAlias

import numpy as np
from jaxtyping import Float

Point3: TypeAlias = Float[np.ndarray, "3"]
Polyline3: TypeAlias = Float[np.ndarray, "N 3"]
Polyline2: TypeAlias = Float[np.ndarray, "N 2"]
PointPair: TypeAlias = tuple[Point3, Point3]
SegmentPositions: TypeAlias = tuple[Point3, Point3, Point3, Point3]
