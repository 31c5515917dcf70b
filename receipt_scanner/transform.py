"""
Perspective solving and resampling of the receipt
"""

from typing import Tuple

import cv2
import numpy as np

from .errors import DegenerateGeometryError
from .geometry import Quadrilateral, distance, has_collinear_triple

# Below this the normalised 8x8 system is treated as singular
SINGULAR_DETERMINANT = 1e-9


def target_size(quad: Quadrilateral) -> Tuple[int, int]:
    """
    Output size that keeps the longest opposite edges.

    Args:
        quad: Ordered quadrilateral

    Returns:
        Tuple (width, height) in pixels, each at least 1
    """
    width = max(distance(quad.br, quad.bl), distance(quad.tr, quad.tl))
    height = max(distance(quad.tr, quad.br), distance(quad.tl, quad.bl))
    return max(int(width), 1), max(int(height), 1)


def destination_corners(width: int, height: int) -> np.ndarray:
    return np.array([
        [0, 0],
        [width - 1, 0],
        [width - 1, height - 1],
        [0, height - 1]
    ], dtype=np.float64)


def _normalizing_transform(points: np.ndarray) -> np.ndarray:
    """
    Similarity that moves the centroid to the origin and the mean distance
    from it to sqrt(2).
    """
    center = points.mean(axis=0)
    mean_dist = np.mean(np.linalg.norm(points - center, axis=1))
    if mean_dist == 0:
        raise DegenerateGeometryError("All corners coincide")

    s = np.sqrt(2.0) / mean_dist
    return np.array([
        [s, 0, -s * center[0]],
        [0, s, -s * center[1]],
        [0, 0, 1]
    ], dtype=np.float64)


def _apply(transform: np.ndarray, points: np.ndarray) -> np.ndarray:
    homogeneous = np.hstack([points, np.ones((len(points), 1))])
    mapped = homogeneous @ transform.T
    return mapped[:, :2] / mapped[:, 2:3]


def solve_homography(quad: Quadrilateral, width: int, height: int) -> np.ndarray:
    """
    Solve the projective transform from the quadrilateral to a rectangle.

    Direct linear transform: every corner correspondence gives two linear
    equations in the eight unknown entries (the bottom-right entry is
    fixed to 1), and the 8x8 system is solved exactly. Coordinates are
    normalised first so the determinant test does not depend on image size.

    Args:
        quad: Ordered source corners
        width: Destination width
        height: Destination height

    Returns:
        3x3 float64 matrix mapping source to destination coordinates

    Raises:
        DegenerateGeometryError: If the corners are collinear, coincide or
            make the system singular
    """
    src = quad.as_array().astype(np.float64)
    dst = destination_corners(width, height)

    if has_collinear_triple(src):
        raise DegenerateGeometryError(f"Source corners are collinear or coincide: {src.tolist()}")
    if has_collinear_triple(dst):
        raise DegenerateGeometryError(f"Destination rectangle {width}x{height} is degenerate")

    t_src = _normalizing_transform(src)
    t_dst = _normalizing_transform(dst)
    src_n = _apply(t_src, src)
    dst_n = _apply(t_dst, dst)

    a = np.zeros((8, 8), dtype=np.float64)
    b = np.zeros(8, dtype=np.float64)
    for i, ((x, y), (u, v)) in enumerate(zip(src_n, dst_n)):
        a[2 * i] = [x, y, 1, 0, 0, 0, -u * x, -u * y]
        a[2 * i + 1] = [0, 0, 0, x, y, 1, -v * x, -v * y]
        b[2 * i] = u
        b[2 * i + 1] = v

    det = np.linalg.det(a)
    if not np.isfinite(det) or abs(det) < SINGULAR_DETERMINANT:
        raise DegenerateGeometryError(f"Singular perspective system (det={det:.3g})")

    h = np.linalg.solve(a, b)
    normalized = np.append(h, 1.0).reshape(3, 3)
    matrix = np.linalg.inv(t_dst) @ normalized @ t_src

    if not np.all(np.isfinite(matrix)) or abs(matrix[2, 2]) < 1e-12:
        raise DegenerateGeometryError("Perspective solve produced a non-finite matrix")

    return matrix / matrix[2, 2]


def project_points(homography: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Map (N, 2) points through a homography."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return _apply(homography, pts)


class Rectifier:
    """
    Resamples the source image into the destination rectangle.

    Every destination pixel is mapped back through the inverse homography
    and filled by bilinear interpolation of the 4 nearest source pixels.
    Source positions outside the image get border_value.
    """

    def __init__(self, border_value: int = 0):
        self.border_value = border_value

    def rectify(
        self,
        image: np.ndarray,
        homography: np.ndarray,
        size: Tuple[int, int]
    ) -> np.ndarray:
        """
        Args:
            image: Full-resolution source image
            homography: Source-to-destination matrix from solve_homography
            size: Output (width, height)

        Returns:
            New image of the requested size
        """
        try:
            inverse = np.linalg.inv(homography)
        except np.linalg.LinAlgError as e:
            raise DegenerateGeometryError("Homography is not invertible") from e

        width, height = size
        border = (self.border_value,) * 4

        return cv2.warpPerspective(
            image,
            inverse,
            (width, height),
            flags=cv2.INTER_LINEAR | cv2.WARP_INVERSE_MAP,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=border
        )
