"""
==============================================================================
Luminance Source Module
==============================================================================

Greyscale buffers fed to the codec's binarizers.

Both packed ARGB integer buffers and OpenCV images are
reduced to one byte of luminance per pixel using (R + 2G + B) / 4.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Sequence, Union

import cv2
import numpy as np

from viewfinder.core import exceptions
from viewfinder.overlay.geometry import Rect


# Module logger
logger = logging.getLogger(__name__)


PixelBuffer = Union[Sequence[int], np.ndarray]


def _rgb_to_luminance(red: np.ndarray, green: np.ndarray, blue: np.ndarray) -> np.ndarray:
    total = red.astype(np.uint16) + 2 * green.astype(np.uint16) + blue.astype(np.uint16)
    return (total // 4).astype(np.uint8)


def _to_uint8(image: np.ndarray) -> np.ndarray:
    """Bring 16-bit and floating point images into the 0-255 range."""
    if image.dtype == np.uint8:
        return image
    if image.dtype == np.uint16:
        return (image >> 8).astype(np.uint8)
    if np.issubdtype(image.dtype, np.floating):
        # OpenCV convention: floating point images span 0.0-1.0
        return cv2.convertScaleAbs(image, alpha=255.0)
    return np.clip(image, 0, 255).astype(np.uint8)


class LuminanceSource:
    """
    Immutable width x height luminance buffer.

    Attributes:
        width: Image width in pixels
        height: Image height in pixels

    Example:
        >>> source = LuminanceSource.from_argb([0xFF000000, 0xFFFFFFFF], 2, 1)
        >>> source.matrix.tolist()
        [[0, 255]]
    """

    def __init__(self, luminances: np.ndarray) -> None:
        if luminances.ndim != 2 or luminances.size == 0:
            raise exceptions.invalid_image("luminance buffer must be a non-empty 2D array")
        self._matrix = np.ascontiguousarray(luminances, dtype=np.uint8)
        self._matrix.setflags(write=False)

    @property
    def width(self) -> int:
        return int(self._matrix.shape[1])

    @property
    def height(self) -> int:
        return int(self._matrix.shape[0])

    @property
    def matrix(self) -> np.ndarray:
        """Read-only (height, width) uint8 luminance array."""
        return self._matrix

    @classmethod
    def from_argb(cls, pixels: PixelBuffer, width: int, height: int) -> "LuminanceSource":
        """
        Build a source from packed 0xAARRGGBB pixels in row-major order.

        Args:
            pixels: width * height packed integers (signed or unsigned)
            width: Image width
            height: Image height

        Raises:
            AppException: INVALID_IMAGE on size mismatch
        """
        if width <= 0 or height <= 0:
            raise exceptions.invalid_image(f"non-positive dimensions {width}x{height}")

        packed = np.asarray(pixels, dtype=np.int64).ravel() & 0xFFFFFFFF
        if packed.size != width * height:
            raise exceptions.invalid_image(
                f"expected {width * height} pixels for {width}x{height}, got {packed.size}"
            )

        packed = packed.reshape(height, width)
        red = ((packed >> 16) & 0xFF).astype(np.uint8)
        green = ((packed >> 8) & 0xFF).astype(np.uint8)
        blue = (packed & 0xFF).astype(np.uint8)
        return cls(_rgb_to_luminance(red, green, blue))

    @classmethod
    def from_image(cls, image: np.ndarray) -> "LuminanceSource":
        """
        Build a source from an OpenCV image (gray, BGR or BGRA).

        16-bit images keep their high byte; float images are read as 0.0-1.0.

        Raises:
            AppException: INVALID_IMAGE for empty or unsupported arrays
        """
        if image is None or image.size == 0:
            raise exceptions.invalid_image("empty image")

        image = _to_uint8(image)
        if image.ndim == 2:
            return cls(image)

        if image.ndim == 3 and image.shape[2] in (3, 4):
            blue = image[:, :, 0]
            green = image[:, :, 1]
            red = image[:, :, 2]
            return cls(_rgb_to_luminance(red, green, blue))

        raise exceptions.invalid_image(f"unsupported image shape {image.shape}")

    def crop(self, rect: Rect) -> "LuminanceSource":
        """Return the part of the source inside `rect` (clipped to bounds)."""
        left, top = max(0, rect.left), max(0, rect.top)
        right, bottom = min(self.width, rect.right), min(self.height, rect.bottom)
        if left >= right or top >= bottom:
            raise exceptions.invalid_image(f"crop {rect} outside {self.width}x{self.height}")
        return LuminanceSource(self._matrix[top:bottom, left:right])
