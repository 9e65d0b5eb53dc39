"""
==============================================================================
Decode Pipeline Module
==============================================================================

Turns a preview frame into a decoded symbol with a binarizer fallback.

Steps:
1. Build a luminance source from the frame
2. Decode with the primary (hybrid) binarizer
3. On a decode miss, retry the SAME source with the global histogram
   binarizer, which copes better with low-contrast and uneven lighting
4. Report None when both miss; absent symbols are never errors

Points reported by failed attempts are kept as candidates so the overlay
can show where a symbol might be.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from viewfinder.codec.luminance import LuminanceSource, PixelBuffer
from viewfinder.codec.models import Binarizer, DecodeHints, DecodeOutcome, DecodeResult
from viewfinder.codec.zxing_codec import BarcodeCodec, ZXingCodec
from viewfinder.core.exceptions import DECODE_FAILURE_CODES, AppException
from viewfinder.overlay.geometry import ResultPoint


# Module logger
logger = logging.getLogger(__name__)


class DecodePipeline:
    """
    Luminance extraction followed by primary and fallback decode attempts.

    Attributes:
        codec: Barcode codec (zxing-cpp by default)
        hints: Format allow-list and decode options
        binarizers: Attempt order, primary first

    Example:
        >>> pipeline = DecodePipeline()
        >>> result = pipeline.decode_image(frame)
        >>> if result:
        ...     print(result.text, result.format)
    """

    def __init__(
        self,
        codec: Optional[BarcodeCodec] = None,
        hints: Optional[DecodeHints] = None,
        primary: Binarizer = Binarizer.HYBRID,
        fallback: Optional[Binarizer] = Binarizer.GLOBAL_HISTOGRAM
    ) -> None:
        self.codec = codec if codec is not None else ZXingCodec()
        self.hints = hints or DecodeHints()
        self.binarizers = (primary,) if fallback in (None, primary) else (primary, fallback)

    @classmethod
    def from_settings(cls, settings, codec: Optional[BarcodeCodec] = None) -> "DecodePipeline":
        """Build a pipeline from application settings."""
        hints = DecodeHints.from_names(
            settings.decode_format_names,
            character_set=settings.character_set,
            try_harder=settings.decode_try_harder,
        )
        return cls(codec=codec, hints=hints)

    # =========================================================================
    # ENTRY POINTS
    # =========================================================================

    def decode(self, pixels: PixelBuffer, width: int, height: int) -> Optional[DecodeResult]:
        """
        Decode a packed ARGB frame.

        Args:
            pixels: width * height 0xAARRGGBB integers, row-major
            width: Frame width
            height: Frame height

        Returns:
            DecodeResult, or None if no symbol was readable

        Raises:
            AppException: INVALID_IMAGE for mismatched buffers
        """
        return self.decode_source(LuminanceSource.from_argb(pixels, width, height)).result

    def decode_image(self, image: np.ndarray) -> Optional[DecodeResult]:
        """Decode an OpenCV image (gray, BGR or BGRA)."""
        return self.decode_source(LuminanceSource.from_image(image)).result

    def decode_source(self, source: LuminanceSource) -> DecodeOutcome:
        """
        Run every binarizer on one luminance source until a symbol decodes.

        Returns:
            DecodeOutcome with the result (if any) and candidate points seen
            by failed attempts
        """
        candidates: List[ResultPoint] = []

        for binarizer in self.binarizers:
            try:
                result = self.codec.decode(source, self.hints, binarizer)
            except AppException as e:
                if e.code not in DECODE_FAILURE_CODES:
                    raise
                candidates.extend(
                    ResultPoint(float(p["x"]), float(p["y"]))
                    for p in e.details.get("points", [])
                )
                logger.debug(f"{binarizer.value} binarizer: {e.code}")
                continue

            logger.debug(f"Decoded {result.format.value} with {binarizer.value} binarizer")
            return DecodeOutcome(result=result, candidates=tuple(candidates))

        return DecodeOutcome(result=None, candidates=tuple(candidates))
