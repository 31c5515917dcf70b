"""
Exceptions raised by the receipt scanner.

Only DecodeError and EncodeError reach callers of the public API. The
remaining ones are raised by individual stages and turned into a fallback
ScanResult by the pipeline.
"""


class ScannerError(Exception):
    """Base class for every scanner error."""


class DecodeError(ScannerError):
    """Input image is missing, malformed or in an unsupported format."""


class EncodeError(ScannerError):
    """Output image could not be written."""


class NoQuadrilateralFound(ScannerError):
    """No 4-vertex polygon of sufficient area survived filtering."""


class DegenerateGeometryError(ScannerError):
    """Corners are collinear, coincident or produce a singular system."""


class ScanTimeout(ScannerError):
    """The scan exceeded the caller's time budget."""
