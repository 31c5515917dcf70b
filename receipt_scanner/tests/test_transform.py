"""
Tests for the perspective solver and rectifier
"""

import cv2
import numpy as np
import pytest

from receipt_scanner.errors import DegenerateGeometryError
from receipt_scanner.geometry import Point, Quadrilateral, order_corners
from receipt_scanner.transform import (
    Rectifier,
    destination_corners,
    project_points,
    solve_homography,
    target_size,
)


def full_frame(image):
    h, w = image.shape[:2]
    return Quadrilateral(Point(0, 0), Point(w - 1, 0), Point(w - 1, h - 1), Point(0, h - 1))


class TestTargetSize:

    def test_rectangle(self):
        quad = order_corners([(0, 0), (99, 0), (99, 49), (0, 49)])
        assert target_size(quad) == (99, 49)

    def test_uses_longest_opposite_edges(self):
        # Top edge 100, bottom edge 80; left 60, right 50
        quad = Quadrilateral(Point(0, 0), Point(100, 0), Point(90, 50), Point(10, 60))
        width, height = target_size(quad)
        assert width == 100
        assert height == int(np.hypot(10, 60))

    def test_floors_to_integers(self):
        quad = order_corners([(0, 0), (10.9, 0), (10.9, 5.5), (0, 5.5)])
        assert target_size(quad) == (10, 5)

    def test_minimum_one_pixel(self):
        quad = Quadrilateral(Point(0, 0), Point(0.2, 0), Point(0.2, 0.3), Point(0, 0.3))
        assert target_size(quad) == (1, 1)


class TestSolveHomography:

    @pytest.fixture
    def skewed(self):
        return Quadrilateral(Point(112, 80), Point(690, 140), Point(640, 910), Point(60, 850))

    def test_maps_corners_to_rectangle(self, skewed):
        width, height = target_size(skewed)
        matrix = solve_homography(skewed, width, height)

        mapped = project_points(matrix, skewed.as_array())
        np.testing.assert_allclose(mapped, destination_corners(width, height), atol=1e-6)

    def test_normalized_bottom_right(self, skewed):
        matrix = solve_homography(skewed, *target_size(skewed))
        assert matrix.shape == (3, 3)
        assert matrix[2, 2] == pytest.approx(1.0)

    def test_matches_opencv(self, skewed):
        width, height = target_size(skewed)
        expected = cv2.getPerspectiveTransform(
            skewed.as_array(),
            destination_corners(width, height).astype(np.float32)
        )
        np.testing.assert_allclose(solve_homography(skewed, width, height), expected, rtol=1e-4, atol=1e-6)

    def test_identity_for_matching_rectangle(self):
        quad = Quadrilateral(Point(0, 0), Point(99, 0), Point(99, 49), Point(0, 49))
        matrix = solve_homography(quad, 100, 50)
        np.testing.assert_allclose(matrix, np.eye(3), atol=1e-9)

    def test_collinear_corners(self):
        quad = Quadrilateral(Point(0, 0), Point(10, 0), Point(20, 0), Point(30, 0))
        with pytest.raises(DegenerateGeometryError):
            solve_homography(quad, 30, 1)

    def test_coincident_corners(self):
        quad = Quadrilateral(Point(5, 5), Point(5, 5), Point(5, 5), Point(5, 5))
        with pytest.raises(DegenerateGeometryError):
            solve_homography(quad, *target_size(quad))

    def test_three_collinear_corners(self):
        quad = Quadrilateral(Point(0, 0), Point(50, 50), Point(100, 100), Point(0, 100))
        with pytest.raises(DegenerateGeometryError):
            solve_homography(quad, 100, 100)

    def test_degenerate_destination(self, skewed):
        with pytest.raises(DegenerateGeometryError):
            solve_homography(skewed, 1, 1)

    def test_no_nan_output(self, skewed):
        matrix = solve_homography(skewed, *target_size(skewed))
        assert np.all(np.isfinite(matrix))


class TestRectifier:

    def test_full_frame_matches_resize(self, gradient_image):
        quad = full_frame(gradient_image)
        size = target_size(quad)
        matrix = solve_homography(quad, *size)

        result = Rectifier().rectify(gradient_image, matrix, size)
        expected = cv2.resize(gradient_image, size, interpolation=cv2.INTER_LINEAR)

        assert result.shape == expected.shape
        diff = np.abs(result.astype(np.int16) - expected.astype(np.int16))
        assert diff.max() <= 3

    def test_output_size(self, gradient_image):
        quad = Quadrilateral(Point(20, 10), Point(180, 15), Point(170, 110), Point(25, 100))
        size = target_size(quad)
        result = Rectifier().rectify(gradient_image, solve_homography(quad, *size), size)
        assert result.shape == (size[1], size[0], 3)

    def test_source_not_modified(self, gradient_image):
        before = gradient_image.copy()
        quad = full_frame(gradient_image)
        size = target_size(quad)
        Rectifier().rectify(gradient_image, solve_homography(quad, *size), size)
        assert np.array_equal(gradient_image, before)

    def test_out_of_bounds_uses_border_value(self, gradient_image):
        # Quad larger than the image, so the output borders sample outside
        quad = Quadrilateral(Point(-50, -50), Point(249, -50), Point(249, 169), Point(-50, 169))
        size = target_size(quad)
        result = Rectifier(border_value=255).rectify(gradient_image, solve_homography(quad, *size), size)
        assert np.all(result[0, 0] == 255)
        assert np.all(result[-1, -1] == 255)

    def test_bilinear_interpolation(self):
        # Half-pixel shift averages neighbouring columns
        image = np.zeros((4, 4), dtype=np.uint8)
        image[:, 1::2] = 200
        shift = np.array([[1, 0, -0.5], [0, 1, 0], [0, 0, 1]], dtype=np.float64)

        result = Rectifier().rectify(image, shift, (3, 4))
        assert np.all(np.abs(result.astype(int) - 100) <= 1)

    def test_singular_homography(self, gradient_image):
        with pytest.raises(DegenerateGeometryError):
            Rectifier().rectify(gradient_image, np.zeros((3, 3)), (10, 10))
