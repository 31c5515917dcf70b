"""
Image decode / encode at the pipeline boundary
"""

from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from .errors import DecodeError, EncodeError

# Any channel count and bit depth, with the EXIF orientation applied
ORIENTED = cv2.IMREAD_ANYCOLOR | cv2.IMREAD_ANYDEPTH


def _decode(buffer: np.ndarray) -> Optional[np.ndarray]:
    if buffer.size == 0:
        return None

    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    except cv2.error:
        return None
    if image is None or (image.ndim == 3 and image.shape[2] == 4):
        return image

    # IMREAD_UNCHANGED ignores the orientation tag phones write
    return cv2.imdecode(buffer, ORIENTED)


def load_image(source: Union[str, Path, bytes, bytearray]) -> np.ndarray:
    """
    Decode an image from a file path or encoded bytes.

    Alpha is kept when present, so the result is BGR, BGRA or grayscale.
    Images without alpha are turned upright according to their EXIF
    orientation.

    Args:
        source: Path to an image file or the encoded file contents

    Returns:
        Decoded uint8 image

    Raises:
        DecodeError: If the file is missing or cannot be decoded
    """
    if isinstance(source, (bytes, bytearray)):
        if len(source) == 0:
            raise DecodeError("Empty image buffer")
        image = _decode(np.frombuffer(bytes(source), dtype=np.uint8))
        if image is None:
            raise DecodeError("Failed to decode image buffer")
    else:
        path = Path(source)
        if not path.is_file():
            raise DecodeError(f"Image not found: {path}")
        image = _decode(np.fromfile(str(path), dtype=np.uint8))
        if image is None:
            raise DecodeError(f"Failed to decode image: {path}")

    if image.size == 0:
        raise DecodeError("Decoded image has zero area")

    # 16-bit or floating point input
    if image.dtype != np.uint8:
        if np.issubdtype(image.dtype, np.integer):
            scale = 255.0 / np.iinfo(image.dtype).max
        else:
            scale = 255.0
        image = cv2.convertScaleAbs(image, alpha=scale)

    return image


def save_image(path: Union[str, Path], image: np.ndarray) -> Path:
    """
    Encode an image; the format follows the file extension.

    Raises:
        EncodeError: If OpenCV cannot write the file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        ok = cv2.imwrite(str(path), image)
    except cv2.error as e:
        raise EncodeError(f"Failed to write {path}: {e}") from e

    if not ok:
        raise EncodeError(f"Failed to write {path}")
    return path
