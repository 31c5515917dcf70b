"""
Receipt Scanner Module

Finds a paper receipt in a photo and flattens it to a top-down image
for text recognition. Falls back to the original image when no receipt
outline can be found.
"""

from .codec import load_image, save_image
from .config import ScannerConfig
from .contours import ContourExtractor, PolygonApproximator
from .edges import EdgeMapBuilder
from .errors import (
    DecodeError,
    DegenerateGeometryError,
    EncodeError,
    NoQuadrilateralFound,
    ScannerError,
    ScanTimeout,
)
from .geometry import Point, Quadrilateral, order_corners
from .pipeline import (
    FallbackReason,
    ScanPipeline,
    ScanResult,
    ScanState,
    output_paths,
    scan,
    scan_file,
    scan_files,
)
from .selector import QuadrilateralSelector
from .transform import Rectifier, solve_homography, target_size
from .visualizer import ScanVisualizer

__all__ = [
    'ContourExtractor',
    'DecodeError',
    'DegenerateGeometryError',
    'EdgeMapBuilder',
    'EncodeError',
    'FallbackReason',
    'NoQuadrilateralFound',
    'Point',
    'PolygonApproximator',
    'Quadrilateral',
    'QuadrilateralSelector',
    'Rectifier',
    'ScanPipeline',
    'ScanResult',
    'ScanState',
    'ScanTimeout',
    'ScanVisualizer',
    'ScannerConfig',
    'ScannerError',
    'load_image',
    'order_corners',
    'output_paths',
    'save_image',
    'scan',
    'scan_file',
    'scan_files',
    'solve_homography',
    'target_size',
]
