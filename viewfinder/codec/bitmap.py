"""
Bitmap conversion helpers.

Encoded symbols leave the codec as a BitMatrix and are handed to callers
as BGRA uint8 images (OpenCV channel order). Packed 0xAARRGGBB integer
buffers are supported for callers that exchange packed pixels.
"""

from typing import Sequence, Union

import cv2
import numpy as np

from viewfinder.codec.models import BitMatrix
from viewfinder.core import exceptions


BLACK_ARGB = 0xFF000000
WHITE_ARGB = 0xFFFFFFFF

BLACK_BGRA = (0, 0, 0, 255)
WHITE_BGRA = (255, 255, 255, 255)


def matrix_to_bitmap(matrix: BitMatrix) -> np.ndarray:
    """
    Render a module grid as an opaque BGRA image.

    Args:
        matrix: Encoded symbol, True = black module

    Returns:
        (height, width, 4) uint8 array
    """
    bitmap = np.empty((matrix.height, matrix.width, 4), dtype=np.uint8)
    bitmap[:] = WHITE_BGRA
    bitmap[matrix.bits] = BLACK_BGRA
    return bitmap


def bitmap_to_argb(image: np.ndarray) -> np.ndarray:
    """
    Pack a BGRA, BGR or gray image into row-major 0xAARRGGBB integers.

    Returns:
        Flat uint32 array of width * height pixels
    """
    if image is None or image.size == 0:
        raise exceptions.invalid_image("empty bitmap")

    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    elif image.ndim == 3 and image.shape[2] == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    elif image.ndim != 3 or image.shape[2] != 4:
        raise exceptions.invalid_image(f"unsupported bitmap shape {image.shape}")

    pixels = image.astype(np.uint32)
    packed = (
        (pixels[:, :, 3] << 24)
        | (pixels[:, :, 2] << 16)
        | (pixels[:, :, 1] << 8)
        | pixels[:, :, 0]
    )
    return packed.ravel()


def argb_to_bitmap(pixels: Union[Sequence[int], np.ndarray], width: int, height: int) -> np.ndarray:
    """Unpack row-major 0xAARRGGBB integers into a BGRA image."""
    packed = np.asarray(pixels, dtype=np.int64).ravel() & 0xFFFFFFFF
    if width <= 0 or height <= 0 or packed.size != width * height:
        raise exceptions.invalid_image(
            f"expected {width * height} pixels for {width}x{height}, got {packed.size}"
        )

    packed = packed.reshape(height, width)
    bitmap = np.empty((height, width, 4), dtype=np.uint8)
    bitmap[:, :, 0] = packed & 0xFF
    bitmap[:, :, 1] = (packed >> 8) & 0xFF
    bitmap[:, :, 2] = (packed >> 16) & 0xFF
    bitmap[:, :, 3] = (packed >> 24) & 0xFF
    return bitmap
