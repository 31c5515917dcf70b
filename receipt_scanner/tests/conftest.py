"""
Shared fixtures: synthetic receipt photos drawn with OpenCV
"""

import cv2
import numpy as np
import pytest

BACKGROUND = 60
PAPER = 255


def draw_receipt(
    size=(1000, 1000),
    center=(500, 550),
    paper_size=(600, 700),
    angle=10.0,
    channels=3
):
    """Dark frame with a white rotated rectangle; returns (image, true corners)."""
    height, width = size
    shape = (height, width, channels) if channels > 1 else (height, width)
    image = np.full(shape, BACKGROUND, dtype=np.uint8)

    box = cv2.boxPoints((center, paper_size, angle))
    color = (PAPER,) * channels if channels > 1 else PAPER
    cv2.fillPoly(image, [np.round(box).astype(np.int32)], color)
    return image, box


@pytest.fixture
def rotated_receipt():
    """1000x1000 frame, receipt (200,200)-(800,900) rotated 10 degrees"""
    return draw_receipt()


@pytest.fixture
def axis_aligned_receipt():
    """1000x1000 frame, receipt (200,200)-(800,900) without rotation"""
    image = np.full((1000, 1000, 3), BACKGROUND, dtype=np.uint8)
    cv2.rectangle(image, (200, 200), (800, 900), (PAPER, PAPER, PAPER), -1)
    return image


@pytest.fixture
def solid_image():
    return np.full((800, 600, 3), 128, dtype=np.uint8)


@pytest.fixture
def gradient_image():
    """Smooth BGR gradient, so resampling differences stay small"""
    ys, xs = np.mgrid[0:120, 0:200]
    image = np.zeros((120, 200, 3), dtype=np.uint8)
    image[:, :, 0] = xs
    image[:, :, 1] = ys * 2
    image[:, :, 2] = (xs + ys) // 2
    return image


@pytest.fixture
def receipt_factory():
    """Access to draw_receipt for tests that need other sizes or channel counts"""
    return draw_receipt
