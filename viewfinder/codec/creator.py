"""
==============================================================================
Code Creator Module
==============================================================================

Generates barcode images, optionally with a centered logo.

Defaults follow what scanner apps expect from a shareable QR code:
UTF-8 text, error correction level H (so a logo covering the middle stays
readable) and a one-module quiet zone.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

from viewfinder.codec.bitmap import matrix_to_bitmap
from viewfinder.codec.models import BarcodeFormat, EncodeHints, ErrorCorrectionLevel
from viewfinder.codec.zxing_codec import BarcodeCodec, ZXingCodec
from viewfinder.core import exceptions


# Module logger
logger = logging.getLogger(__name__)


# Logo fits within this fraction of the code's width and height
LOGO_FRACTION = 5

DEFAULT_CODE_SIZE = 150
DEFAULT_LOGO_CODE_SIZE = 500


def _is_image(image: Optional[np.ndarray]) -> bool:
    if image is None or not isinstance(image, np.ndarray) or image.size == 0:
        return False
    if image.ndim == 2:
        return True
    return image.ndim == 3 and image.shape[2] in (3, 4)


def add_logo(image: np.ndarray, logo: Optional[np.ndarray]) -> np.ndarray:
    """
    Composite `logo` over the center of `image`.

    The logo is scaled uniformly to fit within 1/5 of the image width and
    height and alpha-blended (BGRA logos use their own alpha). Pixels
    outside the logo footprint are untouched.

    Args:
        image: Base image (BGR or BGRA)
        logo: Logo image (gray, BGR or BGRA)

    Returns:
        New composited image, or `image` itself when either input is
        empty or malformed
    """
    if not _is_image(image) or image.ndim != 3 or not _is_image(logo):
        return image

    height, width = image.shape[:2]
    logo_height, logo_width = logo.shape[:2]
    scale = min(width / LOGO_FRACTION / logo_width, height / LOGO_FRACTION / logo_height)
    new_width = max(1, int(logo_width * scale))
    new_height = max(1, int(logo_height * scale))

    if logo.ndim == 2:
        logo = cv2.cvtColor(logo, cv2.COLOR_GRAY2BGR)
    resized = cv2.resize(logo, (new_width, new_height), interpolation=cv2.INTER_AREA)

    if resized.shape[2] == 4:
        alpha = resized[:, :, 3].astype(np.float32) / 255.0
    else:
        alpha = np.ones((new_height, new_width), dtype=np.float32)

    x0 = (width - new_width) // 2
    y0 = (height - new_height) // 2

    composed = image.copy()
    roi = composed[y0:y0 + new_height, x0:x0 + new_width]
    base = roi[:, :, :3].astype(np.float32)
    top = resized[:, :, :3].astype(np.float32)
    roi[:, :, :3] = np.clip(top * alpha[:, :, None] + base * (1.0 - alpha[:, :, None]), 0, 255).astype(np.uint8)

    if roi.shape[2] == 4:
        base_alpha = roi[:, :, 3].astype(np.float32) / 255.0
        roi[:, :, 3] = np.clip((alpha + base_alpha * (1.0 - alpha)) * 255.0, 0, 255).astype(np.uint8)

    return composed


class CodeCreator:
    """
    Barcode image generator.

    Attributes:
        codec: Barcode codec used for encoding
        character_set: Text character set passed to the codec

    Example:
        >>> creator = CodeCreator()
        >>> image = creator.create_code("HELLO")
        >>> image.shape
        (150, 150, 4)
    """

    def __init__(self, codec: Optional[BarcodeCodec] = None, character_set: str = "utf-8") -> None:
        self.codec = codec if codec is not None else ZXingCodec()
        self.character_set = character_set

    def create_code(
        self,
        text: Optional[str],
        size: int = DEFAULT_CODE_SIZE,
        margin: int = 1,
        barcode_format: BarcodeFormat = BarcodeFormat.QR_CODE,
        error_correction: ErrorCorrectionLevel = ErrorCorrectionLevel.H
    ) -> np.ndarray:
        """
        Encode `text` as a BGRA image of at least size x size pixels.

        Args:
            text: Content to encode
            size: Requested width and height in pixels
            margin: Quiet zone in modules
            barcode_format: Target symbology
            error_correction: QR error correction level

        Returns:
            BGRA uint8 image, black modules on an opaque white background

        Raises:
            AppException: INVALID_TEXT for empty text,
                ENCODE_FAILURE when the codec cannot fit the text
        """
        if not text:
            raise exceptions.invalid_text("Text to encode must not be empty")
        if size <= 0:
            raise exceptions.encode_failure(
                text_length=len(text),
                barcode_format=barcode_format.value,
                width=size,
                height=size,
                error_correction=error_correction.value,
                reason="size must be positive",
            )

        hints = EncodeHints(
            character_set=self.character_set,
            error_correction=error_correction,
            margin=margin,
        )
        matrix = self.codec.encode(text, barcode_format, size, size, hints)
        logger.debug(f"Encoded {len(text)} chars as {barcode_format.value} ({matrix.width}x{matrix.height})")
        return matrix_to_bitmap(matrix)

    def create_code_with_logo(
        self,
        text: Optional[str],
        logo: Optional[np.ndarray],
        size: int = DEFAULT_LOGO_CODE_SIZE,
        margin: int = 1
    ) -> np.ndarray:
        """Create a level-H QR code with `logo` composited in the middle."""
        code = self.create_code(
            text,
            size=size,
            margin=margin,
            barcode_format=BarcodeFormat.QR_CODE,
            error_correction=ErrorCorrectionLevel.H,
        )
        return add_logo(code, logo)

    # Exposed on the class for callers holding a creator instance
    add_logo = staticmethod(add_logo)
