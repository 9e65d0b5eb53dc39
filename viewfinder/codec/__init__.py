"""
Barcode codec layer: luminance sources, zxing-cpp adapter, decode
pipeline and code creation.
"""

from viewfinder.codec.bitmap import argb_to_bitmap, bitmap_to_argb, matrix_to_bitmap
from viewfinder.codec.creator import CodeCreator, add_logo
from viewfinder.codec.luminance import LuminanceSource
from viewfinder.codec.models import (
    ALL_FORMATS,
    BarcodeFormat,
    Binarizer,
    BitMatrix,
    DecodeHints,
    DecodeOutcome,
    DecodeResult,
    EncodeHints,
    ErrorCorrectionLevel,
)
from viewfinder.codec.pipeline import DecodePipeline
from viewfinder.codec.zxing_codec import BarcodeCodec, ZXingCodec

__all__ = [
    "ALL_FORMATS",
    "BarcodeCodec",
    "BarcodeFormat",
    "Binarizer",
    "BitMatrix",
    "CodeCreator",
    "DecodeHints",
    "DecodeOutcome",
    "DecodePipeline",
    "DecodeResult",
    "EncodeHints",
    "ErrorCorrectionLevel",
    "LuminanceSource",
    "ZXingCodec",
    "add_logo",
    "argb_to_bitmap",
    "bitmap_to_argb",
    "matrix_to_bitmap",
]
