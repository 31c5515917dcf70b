"""
Tests for edge map construction
"""

import cv2
import numpy as np
import pytest

from receipt_scanner.edges import EdgeMapBuilder, to_grayscale


class TestEdgeMapBuilder:

    @pytest.fixture
    def builder(self):
        return EdgeMapBuilder()

    def test_defaults(self, builder):
        assert builder.blur_kernel == 5
        assert builder.canny_low == 50
        assert builder.canny_high == 150

    def test_output_is_binary_and_same_size(self, builder, rotated_receipt):
        image, _ = rotated_receipt
        edges = builder.build(image)

        assert edges.shape == image.shape[:2]
        assert edges.dtype == np.uint8
        assert set(np.unique(edges)).issubset({0, 255})
        assert np.count_nonzero(edges) > 0

    def test_solid_image_has_no_edges(self, builder, solid_image):
        assert np.count_nonzero(builder.build(solid_image)) == 0

    def test_input_not_modified(self, builder, rotated_receipt):
        image, _ = rotated_receipt
        before = image.copy()
        builder.build(image)
        assert np.array_equal(image, before)

    def test_edges_follow_receipt_border(self, builder, axis_aligned_receipt):
        edges = builder.build(axis_aligned_receipt)

        # Left border of the receipt is at x=200, rows 300..800 are away from the corners
        band = edges[300:800, 196:205]
        assert np.all(band.max(axis=1) == 255)
        # Receipt interior is flat
        assert np.count_nonzero(edges[300:800, 300:700]) == 0

    def test_weak_texture_is_ignored(self, builder, solid_image):
        noisy = solid_image.copy()
        rng = np.random.default_rng(0)
        noisy = np.clip(noisy.astype(np.int16) + rng.integers(-4, 5, noisy.shape), 0, 255).astype(np.uint8)
        assert np.count_nonzero(builder.build(noisy)) == 0

    @pytest.mark.parametrize("channels", [1, 4])
    def test_grayscale_and_bgra_input(self, builder, channels):
        shape = (200, 200) if channels == 1 else (200, 200, channels)
        image = np.zeros(shape, dtype=np.uint8)
        cv2.rectangle(image, (50, 50), (150, 150), (255,) * channels, -1)

        edges = builder.build(image)
        assert edges.shape == (200, 200)
        assert np.count_nonzero(edges) > 0

    def test_empty_image(self, builder):
        with pytest.raises(ValueError):
            builder.build(np.zeros((0, 0, 3), dtype=np.uint8))

    def test_even_kernel_rejected(self):
        with pytest.raises(ValueError):
            EdgeMapBuilder(blur_kernel=4)

    def test_inverted_thresholds_rejected(self):
        with pytest.raises(ValueError):
            EdgeMapBuilder(canny_low=150, canny_high=50)


def test_to_grayscale_uses_luminance_weights():
    pixel = np.zeros((1, 1, 3), dtype=np.uint8)
    pixel[0, 0] = (0, 255, 0)  # Green in BGR
    green = to_grayscale(pixel)[0, 0]

    pixel[0, 0] = (255, 0, 0)  # Blue in BGR
    blue = to_grayscale(pixel)[0, 0]

    assert green > blue


def test_to_grayscale_returns_copy():
    gray = np.full((10, 10), 7, dtype=np.uint8)
    result = to_grayscale(gray)
    result[0, 0] = 0
    assert gray[0, 0] == 7
