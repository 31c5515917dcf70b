"""
Selection of the receipt boundary among candidate polygons
"""

import logging
from typing import Iterable, Optional, Tuple

import numpy as np

from .geometry import polygon_area

logger = logging.getLogger(__name__)


class QuadrilateralSelector:
    """
    Picks the largest 4-vertex polygon that is not noise.
    """

    def __init__(self, min_area_ratio: float = 0.0015):
        """
        Args:
            min_area_ratio: Minimum polygon area as ratio of the frame area
        """
        self.min_area_ratio = min_area_ratio

    def select(
        self,
        polygons: Iterable[np.ndarray],
        frame_shape: Tuple[int, ...]
    ) -> Optional[np.ndarray]:
        """
        Select the receipt-boundary candidate.

        Args:
            polygons: Simplified polygons, each with shape (K, 2)
            frame_shape: Shape of the image the polygons were found in

        Returns:
            The (4, 2) polygon with the largest area, or None if no polygon
            passes the area and vertex-count filters
        """
        frame_area = frame_shape[0] * frame_shape[1]
        min_area = frame_area * self.min_area_ratio

        best = None
        best_area = 0.0
        candidates = 0

        for polygon in polygons:
            area = polygon_area(polygon)
            if area < min_area:
                continue

            if len(polygon) != 4:
                continue

            candidates += 1
            if area > best_area:
                best_area = area
                best = polygon

        if best is None:
            logger.debug("No quadrilateral above %.0f px2", min_area)
            return None

        logger.debug(
            "Selected quadrilateral of %.0f px2 (%.1f%% of frame) among %d candidates",
            best_area, 100.0 * best_area / frame_area, candidates
        )
        return np.asarray(best, dtype=np.float32).reshape(4, 2)
