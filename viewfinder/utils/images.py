"""
==============================================================================
Image Transport Utilities Module
==============================================================================

Conversions between OpenCV images and the encodings used on the wire.

This module implements:
- decode_base64_image: base64 (optionally a data URL) to ndarray
- encode_png / encode_jpeg_base64: ndarray to bytes / base64 text

==============================================================================
"""

from __future__ import annotations

import base64
import binascii

import cv2
import numpy as np

from viewfinder.core import exceptions


DATA_URL_SEPARATOR = ";base64,"


def decode_base64_image(data: str, flags: int = cv2.IMREAD_COLOR) -> np.ndarray:
    """
    Decode a base64 JPEG/PNG payload into an OpenCV image.

    Args:
        data: Base64 text, with or without a "data:image/...;base64," prefix
        flags: cv2.imdecode flags (IMREAD_UNCHANGED keeps alpha)

    Returns:
        Decoded image

    Raises:
        AppException: INVALID_IMAGE when the payload is not a readable image
    """
    if not data:
        raise exceptions.invalid_image("empty payload")

    if DATA_URL_SEPARATOR in data:
        data = data.split(DATA_URL_SEPARATOR, 1)[1]

    try:
        raw = base64.b64decode(data, validate=False)
    except (binascii.Error, ValueError) as e:
        raise exceptions.invalid_image(f"bad base64: {e}") from e

    image = cv2.imdecode(np.frombuffer(raw, np.uint8), flags)
    if image is None or image.size == 0:
        raise exceptions.invalid_image("payload is not a JPEG/PNG image")
    return image


def encode_png(image: np.ndarray) -> bytes:
    """Encode an image (BGRA keeps transparency) as PNG bytes."""
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise exceptions.internal_error("PNG encoding failed")
    return buffer.tobytes()


def encode_jpeg_base64(image: np.ndarray, quality: int = 80) -> str:
    """Encode a BGR image as base64 JPEG text."""
    ok, buffer = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise exceptions.internal_error("JPEG encoding failed")
    return base64.b64encode(buffer.tobytes()).decode("ascii")
