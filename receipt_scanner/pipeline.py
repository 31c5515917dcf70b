"""
Receipt scan pipeline: detection on a downscaled copy, rectification of
the full-resolution original, and fallback to the original image.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple, Union

import cv2
import numpy as np

from .codec import load_image, save_image
from .config import ScannerConfig
from .contours import ContourExtractor, PolygonApproximator
from .edges import EdgeMapBuilder
from .errors import (
    DegenerateGeometryError,
    NoQuadrilateralFound,
    ScannerError,
    ScanTimeout,
)
from .geometry import Quadrilateral, order_corners
from .selector import QuadrilateralSelector
from .transform import Rectifier, solve_homography, target_size

logger = logging.getLogger(__name__)


class ScanState(Enum):
    """Stages a scan passes through"""
    RECEIVED = "received"
    DOWNSCALED = "downscaled"
    EDGE_DETECTED = "edge_detected"
    CONTOURS_FOUND = "contours_found"
    QUAD_SELECTED = "quad_selected"
    CORNERS_ORDERED = "corners_ordered"
    HOMOGRAPHY_SOLVED = "homography_solved"
    RECTIFIED = "rectified"
    FALLBACK = "fallback"


class FallbackReason(Enum):
    """Why a scan returned the original image"""
    NO_QUADRILATERAL = "no_quadrilateral"
    DEGENERATE_GEOMETRY = "degenerate_geometry"
    TIMEOUT = "timeout"


@dataclass(frozen=True, eq=False)
class ScanResult:
    """
    Outcome of one scan.

    Use ScanResult.rectified() or ScanResult.fallback() to build one. A
    fallback carries the untouched input image and a reason; it is a
    degraded result, not an error.
    """

    success: bool
    image: np.ndarray
    reason: Optional[FallbackReason] = None
    corners: Optional[Quadrilateral] = None

    @classmethod
    def rectified(cls, image: np.ndarray, corners: Quadrilateral) -> "ScanResult":
        return cls(success=True, image=image, reason=None, corners=corners)

    @classmethod
    def fallback(cls, image: np.ndarray, reason: FallbackReason) -> "ScanResult":
        return cls(success=False, image=image, reason=reason, corners=None)

    @property
    def is_fallback(self) -> bool:
        return not self.success


class _Deadline:
    def __init__(self, timeout: Optional[float]):
        self.expires_at = None if timeout is None else time.monotonic() + timeout

    def check(self, state: ScanState):
        if self.expires_at is not None and time.monotonic() > self.expires_at:
            raise ScanTimeout(f"Time budget exceeded after {state.value}")


class ScanPipeline:
    """
    Locates a receipt in a photo and flattens it to a top-down image.

    Edge and contour detection run on a copy scaled to a fixed working
    height. The corners found there are scaled back up and the original,
    full-resolution image is resampled.
    """

    def __init__(self, config: Optional[ScannerConfig] = None):
        self.config = (config or ScannerConfig()).validate()

        self.edge_builder = EdgeMapBuilder(
            blur_kernel=self.config.blur_kernel,
            canny_low=self.config.canny_low,
            canny_high=self.config.canny_high
        )
        self.contour_extractor = ContourExtractor()
        self.approximator = PolygonApproximator(self.config.epsilon_ratio)
        self.selector = QuadrilateralSelector(self.config.min_area_ratio)
        self.rectifier = Rectifier(self.config.border_value)

    def downscale(self, image: np.ndarray) -> Tuple[np.ndarray, float]:
        """
        Scale an image to the working height, keeping the aspect ratio.

        Images that are not taller than the working height are copied
        unchanged.

        Returns:
            Tuple (working copy, ratio) where original = working * ratio
        """
        h, w = image.shape[:2]
        working_height = self.config.working_height

        if h <= working_height:
            return image.copy(), 1.0

        ratio = h / float(working_height)
        new_width = max(1, int(w / ratio))
        working = cv2.resize(image, (new_width, working_height), interpolation=cv2.INTER_AREA)
        return working, ratio

    def _find_corners(self, image: np.ndarray, deadline: _Deadline) -> Quadrilateral:
        working, ratio = self.downscale(image)
        logger.debug("%s: %dx%d (ratio %.3f)", ScanState.DOWNSCALED.value,
                     working.shape[1], working.shape[0], ratio)
        deadline.check(ScanState.DOWNSCALED)

        edges = self.edge_builder.build(working)
        deadline.check(ScanState.EDGE_DETECTED)

        contours = self.contour_extractor.extract(edges)
        logger.debug("%s: %d contours", ScanState.CONTOURS_FOUND.value, len(contours))
        deadline.check(ScanState.CONTOURS_FOUND)

        polygons = []
        for contour in contours:
            polygons.append(self.approximator.approximate(contour))
            deadline.check(ScanState.CONTOURS_FOUND)

        quad = self.selector.select(polygons, working.shape)
        if quad is None:
            raise NoQuadrilateralFound(f"No receipt outline among {len(contours)} contours")
        deadline.check(ScanState.QUAD_SELECTED)

        ordered = order_corners(quad)
        deadline.check(ScanState.CORNERS_ORDERED)

        return ordered.scaled(ratio)

    def detect_corners(self, image: np.ndarray) -> Optional[Quadrilateral]:
        """
        Find the receipt corners without rectifying.

        Args:
            image: Input image (BGR, BGRA or grayscale)

        Returns:
            Ordered corners in the coordinates of the input image,
            or None if no receipt outline was found
        """
        try:
            return self._find_corners(image, _Deadline(None))
        except NoQuadrilateralFound:
            return None

    def scan(self, image: np.ndarray, timeout: Optional[float] = None) -> ScanResult:
        """
        Rectify the receipt in an image.

        Args:
            image: Decoded input image; never modified
            timeout: Time budget in seconds, defaults to config.timeout

        Returns:
            ScanResult with the rectified image, or the input image and a
            FallbackReason when no usable receipt outline was found
        """
        if image is None or image.size == 0:
            raise ValueError("Cannot scan an empty image")

        if timeout is None:
            timeout = self.config.timeout
        deadline = _Deadline(timeout)
        logger.debug("%s: %dx%d", ScanState.RECEIVED.value, image.shape[1], image.shape[0])

        try:
            corners = self._find_corners(image, deadline)

            size = target_size(corners)
            homography = solve_homography(corners, *size)
            deadline.check(ScanState.HOMOGRAPHY_SOLVED)

            rectified = self.rectifier.rectify(image, homography, size)
            deadline.check(ScanState.RECTIFIED)
        except NoQuadrilateralFound as e:
            return self._fallback(image, FallbackReason.NO_QUADRILATERAL, e)
        except DegenerateGeometryError as e:
            return self._fallback(image, FallbackReason.DEGENERATE_GEOMETRY, e)
        except ScanTimeout as e:
            return self._fallback(image, FallbackReason.TIMEOUT, e)

        logger.info(
            "%s: %dx%d -> %dx%d",
            ScanState.RECTIFIED.value,
            image.shape[1], image.shape[0], size[0], size[1]
        )
        return ScanResult.rectified(rectified, corners)

    def _fallback(self, image: np.ndarray, reason: FallbackReason, error: Exception) -> ScanResult:
        logger.info("%s (%s): %s. Using original.", ScanState.FALLBACK.value, reason.value, error)
        return ScanResult.fallback(image, reason)


def scan(
    image: np.ndarray,
    timeout: Optional[float] = None,
    config: Optional[ScannerConfig] = None
) -> ScanResult:
    """Scan one decoded image with a fresh pipeline."""
    return ScanPipeline(config).scan(image, timeout=timeout)


def scan_file(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    timeout: Optional[float] = None,
    pipeline: Optional[ScanPipeline] = None
) -> ScanResult:
    """
    Decode, scan and write the result.

    On fallback the original image is written, so output_path always
    holds an image after a successful call.

    Raises:
        DecodeError: If the input cannot be read
        EncodeError: If the output cannot be written
    """
    pipeline = pipeline or ScanPipeline()

    image = load_image(input_path)
    result = pipeline.scan(image, timeout=timeout)
    save_image(output_path, result.image)

    if result.success:
        logger.info("Processed image saved to %s", output_path)
    else:
        logger.info("No document found in %s, original saved to %s", input_path, output_path)
    return result


def output_paths(input_paths: Iterable[Path], output_dir: Path) -> Dict[Path, Path]:
    """
    Output file for each input under output_dir.

    Inputs keep their file name. A name already taken by an earlier input
    gets a numeric suffix on its stem (scan.png, scan_1.png, ...).
    """
    taken = set()
    targets = {}
    for path in input_paths:
        candidate = output_dir / path.name
        n = 1
        while candidate.name in taken:
            candidate = output_dir / f"{path.stem}_{n}{path.suffix}"
            n += 1
        taken.add(candidate.name)
        targets[path] = candidate
    return targets


def scan_files(
    input_paths: Iterable[Union[str, Path]],
    output_dir: Union[str, Path],
    max_workers: int = 4,
    timeout: Optional[float] = None,
    pipeline: Optional[ScanPipeline] = None
) -> Dict[Path, Union[ScanResult, ScannerError]]:
    """
    Scan several files in parallel.

    Outputs are written to output_dir, named by output_paths(). A path
    given more than once is scanned once.

    Returns:
        Mapping of input path to its ScanResult, or to the ScannerError
        that prevented decoding or writing it
    """
    pipeline = pipeline or ScanPipeline()
    output_dir = Path(output_dir)
    targets = output_paths(dict.fromkeys(Path(p) for p in input_paths), output_dir)
    results = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_path = {
            executor.submit(scan_file, path, target, timeout, pipeline): path
            for path, target in targets.items()
        }
        for future in as_completed(future_to_path):
            path = future_to_path[future]
            try:
                results[path] = future.result()
            except ScannerError as e:
                logger.error("Error scanning %s: %s", path, e)
                results[path] = e

    return results
