"""
Contour tracing and polygon simplification
"""

from typing import List

import cv2
import numpy as np


class ContourExtractor:
    """Traces every closed boundary curve in a binary edge map."""

    def extract(self, edge_map: np.ndarray) -> List[np.ndarray]:
        """
        Find all contours in the edge map.

        Foreground pixels are followed with 8-connectivity. Tiny one or
        two pixel curves are kept, filtering is left to the caller.

        Args:
            edge_map: Single-channel binary image (non-zero = edge)

        Returns:
            List of float32 arrays with shape (N, 2), in no particular order
        """
        contours, _ = cv2.findContours(
            edge_map,
            cv2.RETR_LIST,
            cv2.CHAIN_APPROX_SIMPLE
        )
        return [c.reshape(-1, 2).astype(np.float32) for c in contours]


def arc_length(contour: np.ndarray) -> float:
    """Perimeter of a closed contour."""
    pts = np.asarray(contour, dtype=np.float32).reshape(-1, 2)
    if len(pts) < 2:
        return 0.0
    return float(cv2.arcLength(pts, True))


class PolygonApproximator:
    """
    Douglas-Peucker simplification with a tolerance relative to perimeter.

    The tolerance is epsilon_ratio times the contour's arc length, so small
    and large shapes are simplified alike.
    """

    def __init__(self, epsilon_ratio: float = 0.02):
        self.epsilon_ratio = epsilon_ratio

    def approximate(self, contour: np.ndarray) -> np.ndarray:
        """
        Simplify a closed contour to a polygon.

        Args:
            contour: Array of points with shape (N, 2)

        Returns:
            float32 polygon with shape (K, 2); empty only for empty input
        """
        pts = np.asarray(contour, dtype=np.float32).reshape(-1, 2)
        if len(pts) < 3:
            return pts.copy()

        epsilon = self.epsilon_ratio * arc_length(pts)
        approx = cv2.approxPolyDP(pts, epsilon, True)
        return approx.reshape(-1, 2).astype(np.float32)
