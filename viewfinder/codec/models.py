"""
==============================================================================
Codec Models Module
==============================================================================

Value types exchanged with the barcode codec.

This module implements:
- BarcodeFormat, ErrorCorrectionLevel, Binarizer: codec enumerations
- EncodeHints / DecodeHints: Pydantic hint models
- BitMatrix: Boolean module grid produced by encoding
- DecodeResult / DecodeOutcome: Decode pipeline results

==============================================================================
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from viewfinder.overlay.geometry import ResultPoint


class BarcodeFormat(str, Enum):
    """Symbologies the codec can read (and, for most, write)."""

    AZTEC = "AZTEC"
    CODABAR = "CODABAR"
    CODE_39 = "CODE_39"
    CODE_93 = "CODE_93"
    CODE_128 = "CODE_128"
    DATA_MATRIX = "DATA_MATRIX"
    EAN_8 = "EAN_8"
    EAN_13 = "EAN_13"
    ITF = "ITF"
    MAXICODE = "MAXICODE"
    PDF_417 = "PDF_417"
    QR_CODE = "QR_CODE"
    RSS_14 = "RSS_14"
    RSS_EXPANDED = "RSS_EXPANDED"
    UPC_A = "UPC_A"
    UPC_E = "UPC_E"


ALL_FORMATS: Tuple[BarcodeFormat, ...] = tuple(BarcodeFormat)


class ErrorCorrectionLevel(str, Enum):
    """QR code error correction level (roughly 7/15/25/30% recovery)."""

    L = "L"
    M = "M"
    Q = "Q"
    H = "H"


class Binarizer(str, Enum):
    """Luminance to black/white conversion strategy."""

    HYBRID = "hybrid"
    GLOBAL_HISTOGRAM = "global_histogram"


def check_character_set(value: str) -> str:
    """Normalize a charset name; unknown names raise ValueError."""
    try:
        return codecs.lookup(value).name
    except LookupError as e:
        raise ValueError(f"Unknown character set: {value}") from e


class EncodeHints(BaseModel):
    """Hints passed to the codec when encoding."""

    model_config = ConfigDict(frozen=True)

    character_set: str = Field(default="utf-8", description="Text character set")
    error_correction: ErrorCorrectionLevel = Field(
        default=ErrorCorrectionLevel.H,
        description="Error correction level"
    )
    margin: int = Field(default=1, ge=0, le=32, description="Quiet zone in modules")

    @field_validator("character_set")
    @classmethod
    def validate_character_set(cls, value: str) -> str:
        return check_character_set(value)


class DecodeHints(BaseModel):
    """Hints passed to the codec when decoding."""

    model_config = ConfigDict(frozen=True)

    formats: List[BarcodeFormat] = Field(
        default_factory=lambda: list(ALL_FORMATS),
        description="Format allow-list"
    )
    character_set: str = Field(default="utf-8", description="Text character set")
    try_harder: bool = Field(default=True, description="Try rotated and downscaled variants")

    @field_validator("formats")
    @classmethod
    def validate_formats(cls, value: List[BarcodeFormat]) -> List[BarcodeFormat]:
        """An empty allow-list means every format."""
        return list(value) or list(ALL_FORMATS)

    @field_validator("character_set")
    @classmethod
    def validate_character_set(cls, value: str) -> str:
        """Payload bytes are read in this charset unless it is UTF-8."""
        return check_character_set(value)

    @classmethod
    def from_names(cls, names: Optional[List[str]] = None, **kwargs) -> "DecodeHints":
        """Build hints from format names such as "QR_CODE"."""
        formats = [BarcodeFormat(name.upper()) for name in (names or [])]
        return cls(formats=formats, **kwargs)


class BitMatrix:
    """
    Module grid of an encoded symbol, already scaled to output pixels.

    `True` marks a black (foreground) module.
    """

    def __init__(self, bits: np.ndarray) -> None:
        if bits.ndim != 2:
            raise ValueError("BitMatrix expects a 2D array")
        self._bits = bits.astype(bool)

    @property
    def width(self) -> int:
        return int(self._bits.shape[1])

    @property
    def height(self) -> int:
        return int(self._bits.shape[0])

    @property
    def bits(self) -> np.ndarray:
        return self._bits

    def get(self, x: int, y: int) -> bool:
        return bool(self._bits[y, x])

    def __repr__(self) -> str:
        return f"BitMatrix({self.width}x{self.height})"


@dataclass(frozen=True)
class DecodeResult:
    """A successfully decoded symbol."""

    text: str
    format: BarcodeFormat
    points: Tuple[ResultPoint, ...] = ()
    binarizer: Binarizer = Binarizer.HYBRID


@dataclass(frozen=True)
class DecodeOutcome:
    """Result of a pipeline pass including points seen by failed attempts."""

    result: Optional[DecodeResult] = None
    candidates: Tuple[ResultPoint, ...] = field(default_factory=tuple)

    @property
    def found(self) -> bool:
        return self.result is not None

    @property
    def points(self) -> Tuple[ResultPoint, ...]:
        """Every point of interest: candidates, then the result's corners."""
        if self.result is None:
            return self.candidates
        return self.candidates + self.result.points
