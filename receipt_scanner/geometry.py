"""
Planar geometry helpers: points, quadrilaterals and corner ordering.
"""

from dataclasses import dataclass
from itertools import combinations
from typing import Iterable, NamedTuple, Sequence

import numpy as np


# Relative cross-product below which three corners count as collinear
COLLINEAR_TOLERANCE = 1e-3


class Point(NamedTuple):
    x: float
    y: float


def polygon_area(points: np.ndarray) -> float:
    """
    Enclosed area of a polygon using the shoelace formula.

    Args:
        points: Array of vertices with shape (N, 2) or (N, 1, 2)

    Returns:
        Absolute area in square pixels (0.0 for fewer than 3 vertices)
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return 0.0

    x = pts[:, 0]
    y = pts[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)


def distance(p1: Sequence[float], p2: Sequence[float]) -> float:
    return float(np.hypot(p1[0] - p2[0], p1[1] - p2[1]))


def has_collinear_triple(points: np.ndarray, tolerance: float = COLLINEAR_TOLERANCE) -> bool:
    """
    Check whether any three of the given points are (nearly) collinear.

    The cross product of each triple is compared against the squared
    largest pairwise distance, so the test does not depend on scale.
    Coincident points always count as collinear.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)

    scale = max(
        (distance(a, b) for a, b in combinations(pts, 2)),
        default=0.0
    )
    if scale == 0.0:
        return True

    for a, b, c in combinations(pts, 3):
        cross = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
        if abs(cross) <= tolerance * scale * scale:
            return True

    return False


@dataclass(frozen=True)
class Quadrilateral:
    """
    Four corners in canonical order: top-left, top-right,
    bottom-right, bottom-left.
    """

    tl: Point
    tr: Point
    br: Point
    bl: Point

    @classmethod
    def from_array(cls, corners: np.ndarray) -> "Quadrilateral":
        """Build from an already ordered (4, 2) array."""
        pts = np.asarray(corners, dtype=np.float64).reshape(4, 2)
        return cls(*(Point(float(x), float(y)) for x, y in pts))

    def as_array(self) -> np.ndarray:
        return np.array([self.tl, self.tr, self.br, self.bl], dtype=np.float32)

    def scaled(self, factor: float) -> "Quadrilateral":
        """Multiply every coordinate by factor."""
        return Quadrilateral(*(Point(p.x * factor, p.y * factor) for p in self))

    def area(self) -> float:
        return polygon_area(self.as_array())

    def is_degenerate(self) -> bool:
        return has_collinear_triple(self.as_array())

    def __iter__(self):
        return iter((self.tl, self.tr, self.br, self.bl))


def order_corners(points: Iterable[Sequence[float]]) -> Quadrilateral:
    """
    Order 4 points as top-left, top-right, bottom-right, bottom-left.

    The two points with the smallest x form the left pair and the other
    two the right pair. Within each pair the point with the smaller y is
    the top one. Both sorts are stable, so ties resolve by input order.

    Args:
        points: Exactly 4 (x, y) points in any order

    Returns:
        Ordered Quadrilateral
    """
    pts = [Point(float(x), float(y)) for x, y in np.asarray(list(points), dtype=np.float64).reshape(-1, 2)]
    if len(pts) != 4:
        raise ValueError(f"Expected 4 corner points, got {len(pts)}")

    by_x = sorted(pts, key=lambda p: p.x)
    tl, bl = sorted(by_x[:2], key=lambda p: p.y)
    tr, br = sorted(by_x[2:], key=lambda p: p.y)

    return Quadrilateral(tl=tl, tr=tr, br=br, bl=bl)
