"""
Debug visualization of a detected receipt outline
"""

from typing import Tuple

import cv2
import numpy as np

from .geometry import Quadrilateral
from .transform import target_size

CORNER_LABELS = ("TL", "TR", "BR", "BL")


class ScanVisualizer:
    """
    Draws the detected receipt outline on a copy of the input image:
    a frame, a transparent fill and labeled corners.
    """

    def __init__(
        self,
        border_color: Tuple[int, int, int] = (0, 200, 0),  # Green in BGR
        border_thickness: int = 3,
        overlay_color: Tuple[int, int, int] = (100, 255, 100),
        overlay_alpha: float = 0.25
    ):
        """
        Args:
            border_color: Frame color in BGR format
            border_thickness: Frame thickness in pixels
            overlay_color: Transparent overlay color in BGR format
            overlay_alpha: Overlay transparency (0.0 = transparent, 1.0 = opaque)
        """
        self.border_color = border_color
        self.border_thickness = border_thickness
        self.overlay_color = overlay_color
        self.overlay_alpha = overlay_alpha

    def visualize(self, image: np.ndarray, corners: Quadrilateral, show_info: bool = True) -> np.ndarray:
        """
        Args:
            image: Input image (BGR, BGRA or grayscale)
            corners: Ordered receipt corners in image coordinates
            show_info: Whether to print the output size in the top left corner

        Returns:
            New BGR image with the outline drawn
        """
        if image.ndim == 2:
            result = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        elif image.shape[2] == 4:
            result = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        else:
            result = image.copy()

        pts = corners.as_array().astype(np.int32)

        overlay = result.copy()
        cv2.fillPoly(overlay, [pts], self.overlay_color)
        result = cv2.addWeighted(overlay, self.overlay_alpha, result, 1 - self.overlay_alpha, 0)

        cv2.polylines(result, [pts], True, self.border_color, self.border_thickness, cv2.LINE_AA)

        # Scale markers with the image so they stay visible on large photos
        radius = max(5, min(result.shape[:2]) // 150)
        for label, (x, y) in zip(CORNER_LABELS, pts):
            cv2.circle(result, (int(x), int(y)), radius, self.border_color, -1)
            self._put_text(result, label, (int(x) + radius + 2, int(y) - radius - 2))

        if show_info:
            width, height = target_size(corners)
            self._put_text(result, f"Output: {width}x{height}px", (10, 30))

        return result

    def _put_text(self, image: np.ndarray, text: str, origin: Tuple[int, int]):
        # White outline under black text
        cv2.putText(image, text, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2, cv2.LINE_AA)
        cv2.putText(image, text, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 0), 1, cv2.LINE_AA)
