"""
Edge map construction for receipt boundary detection
"""

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Reduce an image to a single luminance channel.

    Args:
        image: BGR, BGRA or single-channel image

    Returns:
        New single-channel uint8 image
    """
    if image.ndim == 2:
        return image.copy()

    channels = image.shape[2]
    if channels == 1:
        return image[:, :, 0].copy()
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


class EdgeMapBuilder:
    """
    Builds a binary edge map: grayscale, Gaussian blur, Canny.

    Canny's hysteresis keeps a weak edge pixel (above canny_low) only when
    it is connected to a strong one (above canny_high).
    """

    def __init__(
        self,
        blur_kernel: int = 5,
        canny_low: int = 50,
        canny_high: int = 150
    ):
        """
        Initialize the builder.

        Args:
            blur_kernel: Odd Gaussian kernel size, suppresses print texture
            canny_low: Threshold for edge continuation
            canny_high: Threshold for edge seeding
        """
        if blur_kernel < 1 or blur_kernel % 2 == 0:
            raise ValueError(f"blur_kernel must be a positive odd number, got {blur_kernel}")
        if canny_low >= canny_high:
            raise ValueError(f"canny_low ({canny_low}) must be below canny_high ({canny_high})")

        self.blur_kernel = blur_kernel
        self.canny_low = canny_low
        self.canny_high = canny_high

    def build(self, image: np.ndarray) -> np.ndarray:
        """
        Produce the edge map of an image.

        Args:
            image: Input image of any resolution

        Returns:
            Single-channel uint8 map of the same height and width,
            255 on edges and 0 elsewhere
        """
        if image is None or image.size == 0:
            raise ValueError("Cannot build an edge map of an empty image")

        gray = to_grayscale(image)
        blurred = cv2.GaussianBlur(gray, (self.blur_kernel, self.blur_kernel), 0)
        edges = cv2.Canny(blurred, self.canny_low, self.canny_high)

        logger.debug(
            "Edge map %dx%d: %d edge pixels",
            edges.shape[1], edges.shape[0], int(np.count_nonzero(edges))
        )
        return edges
