"""
==============================================================================
ZXing Codec Module
==============================================================================

Adapter between the decode pipeline / code creator and zxing-cpp.

The symbol algorithms live in zxing-cpp; this module only translates
formats, hints and binarizer choices and turns codec misses into
AppExceptions with decode failure codes.

Classes:
--------
- BarcodeCodec: Protocol every codec implementation follows
- ZXingCodec: zxing-cpp backed implementation

==============================================================================
"""

from __future__ import annotations

import codecs
import functools
import logging
import operator
from typing import Dict, List, Protocol, Tuple

import cv2
import numpy as np
import zxingcpp

from viewfinder.codec.luminance import LuminanceSource
from viewfinder.codec.models import (
    BarcodeFormat,
    Binarizer,
    BitMatrix,
    DecodeHints,
    DecodeResult,
    EncodeHints,
    ErrorCorrectionLevel,
)
from viewfinder.core import exceptions
from viewfinder.overlay.geometry import ResultPoint


# Module logger
logger = logging.getLogger(__name__)


class BarcodeCodec(Protocol):
    """External barcode codec contract."""

    def encode(
        self,
        text: str,
        barcode_format: BarcodeFormat,
        width: int,
        height: int,
        hints: EncodeHints
    ) -> BitMatrix: ...

    def decode(
        self,
        source: LuminanceSource,
        hints: DecodeHints,
        binarizer: Binarizer
    ) -> DecodeResult: ...


# =============================================================================
# ZXING-CPP MAPPINGS
# =============================================================================

_FORMATS: Dict[BarcodeFormat, "zxingcpp.BarcodeFormat"] = {
    BarcodeFormat.AZTEC: zxingcpp.BarcodeFormat.Aztec,
    BarcodeFormat.CODABAR: zxingcpp.BarcodeFormat.Codabar,
    BarcodeFormat.CODE_39: zxingcpp.BarcodeFormat.Code39,
    BarcodeFormat.CODE_93: zxingcpp.BarcodeFormat.Code93,
    BarcodeFormat.CODE_128: zxingcpp.BarcodeFormat.Code128,
    BarcodeFormat.DATA_MATRIX: zxingcpp.BarcodeFormat.DataMatrix,
    BarcodeFormat.EAN_8: zxingcpp.BarcodeFormat.EAN8,
    BarcodeFormat.EAN_13: zxingcpp.BarcodeFormat.EAN13,
    BarcodeFormat.ITF: zxingcpp.BarcodeFormat.ITF,
    BarcodeFormat.MAXICODE: zxingcpp.BarcodeFormat.MaxiCode,
    BarcodeFormat.PDF_417: zxingcpp.BarcodeFormat.PDF417,
    BarcodeFormat.QR_CODE: zxingcpp.BarcodeFormat.QRCode,
    BarcodeFormat.RSS_14: zxingcpp.BarcodeFormat.DataBar,
    BarcodeFormat.RSS_EXPANDED: zxingcpp.BarcodeFormat.DataBarExpanded,
    BarcodeFormat.UPC_A: zxingcpp.BarcodeFormat.UPCA,
    BarcodeFormat.UPC_E: zxingcpp.BarcodeFormat.UPCE,
}

_FORMATS_BY_NAME: Dict[str, BarcodeFormat] = {
    native.name: ours for ours, native in _FORMATS.items()
}

_BINARIZERS = {
    Binarizer.HYBRID: zxingcpp.Binarizer.LocalAverage,
    Binarizer.GLOBAL_HISTOGRAM: zxingcpp.Binarizer.GlobalHistogram,
}

# zxing-cpp takes a 0-8 scale; QR maps (level - 1) // 2 onto L/M/Q/H
_EC_LEVELS = {
    ErrorCorrectionLevel.L: 2,
    ErrorCorrectionLevel.M: 4,
    ErrorCorrectionLevel.Q: 6,
    ErrorCorrectionLevel.H: 8,
}


def _position_points(result) -> Tuple[ResultPoint, ...]:
    position = getattr(result, "position", None)
    if position is None:
        return ()
    corners = (
        position.top_left,
        position.top_right,
        position.bottom_right,
        position.bottom_left,
    )
    return tuple(ResultPoint(float(c.x), float(c.y)) for c in corners)


def _result_text(result, character_set: str) -> str:
    """zxing-cpp's text for UTF-8, otherwise the raw payload in `character_set`."""
    if codecs.lookup(character_set).name == "utf-8":
        return result.text
    return bytes(result.bytes).decode(character_set, errors="replace")


class ZXingCodec:
    """
    Barcode codec backed by zxing-cpp.

    The hybrid binarizer maps to zxing-cpp's LocalAverage strategy and the
    global histogram binarizer to GlobalHistogram.

    Example:
        >>> codec = ZXingCodec()
        >>> matrix = codec.encode("HELLO", BarcodeFormat.QR_CODE, 150, 150, EncodeHints())
        >>> matrix.width
        150
    """

    def encode(
        self,
        text: str,
        barcode_format: BarcodeFormat,
        width: int,
        height: int,
        hints: EncodeHints
    ) -> BitMatrix:
        """
        Encode text into a module grid of exactly width x height.

        zxing-cpp picks the byte mode and ECI itself; `hints.character_set`
        only restricts the text to characters that charset can represent.

        Raises:
            AppException: ENCODE_FAILURE when the codec rejects the input
        """
        try:
            text.encode(hints.character_set)
        except UnicodeEncodeError as e:
            raise exceptions.encode_failure(
                text_length=len(text),
                barcode_format=barcode_format.value,
                width=width,
                height=height,
                error_correction=hints.error_correction.value,
                reason=f"text not representable in {hints.character_set}",
            ) from e

        try:
            image = zxingcpp.write_barcode(
                _FORMATS[barcode_format],
                text,
                width=width,
                height=height,
                quiet_zone=hints.margin,
                ec_level=_EC_LEVELS[hints.error_correction],
            )
        except (ValueError, RuntimeError) as e:
            raise exceptions.encode_failure(
                text_length=len(text),
                barcode_format=barcode_format.value,
                width=width,
                height=height,
                error_correction=hints.error_correction.value,
                reason=str(e),
            ) from e

        pixels = np.asarray(image)
        if pixels.ndim == 3:
            pixels = pixels[:, :, 0]
        if pixels.shape != (height, width):
            logger.debug(
                f"Codec returned {pixels.shape[1]}x{pixels.shape[0]}, scaling to {width}x{height}"
            )
            pixels = cv2.resize(
                np.ascontiguousarray(pixels, dtype=np.uint8),
                (width, height),
                interpolation=cv2.INTER_NEAREST,
            )
        return BitMatrix(pixels < 128)

    def decode(
        self,
        source: LuminanceSource,
        hints: DecodeHints,
        binarizer: Binarizer
    ) -> DecodeResult:
        """
        Decode the first symbol found in `source`.

        Raises:
            AppException: NOT_FOUND, CHECKSUM_ERROR or FORMAT_ERROR
        """
        formats = functools.reduce(operator.or_, (_FORMATS[f] for f in hints.formats))
        results = zxingcpp.read_barcodes(
            source.matrix,
            formats=formats,
            try_rotate=hints.try_harder,
            try_downscale=hints.try_harder,
            binarizer=_BINARIZERS[binarizer],
            return_errors=True,
        )

        failed: List = []
        for result in results:
            if result.valid and result.text is not None:
                return DecodeResult(
                    text=_result_text(result, hints.character_set),
                    format=_FORMATS_BY_NAME.get(result.format.name, hints.formats[0]),
                    points=_position_points(result),
                    binarizer=binarizer,
                )
            failed.append(result)

        if not failed:
            raise exceptions.barcode_not_found(binarizer.value)

        points = [point for result in failed for point in _position_points(result)]
        error_type = getattr(getattr(failed[0], "error", None), "type", None)
        if error_type == zxingcpp.ErrorType.Checksum:
            raise exceptions.checksum_error(binarizer.value, points)
        raise exceptions.format_error(binarizer.value, points)
