"""
==============================================================================
Barcode Schemas Module
==============================================================================

Request and response models for the encode / decode endpoints.

Validation Rules:
-----------------
- Text: 1-4296 characters (QR capacity for alphanumeric data)
- Size: 16-2000 pixels (defaults come from settings)
- Margin: 0-32 modules
- Images and logos: base64 JPEG/PNG, data URLs accepted

==============================================================================
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from viewfinder.codec.models import BarcodeFormat, Binarizer, DecodeOutcome, ErrorCorrectionLevel


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class EncodeRequest(BaseModel):
    """Barcode generation request."""
    text: str = Field(..., min_length=1, max_length=4296)
    format: BarcodeFormat = Field(default=BarcodeFormat.QR_CODE)
    size: Optional[int] = Field(default=None, ge=16, le=2000)
    margin: Optional[int] = Field(default=None, ge=0, le=32)
    error_correction: Optional[ErrorCorrectionLevel] = Field(default=None)
    logo: Optional[str] = Field(default=None, description="Base64 logo image")

    @field_validator("format", mode="before")
    @classmethod
    def normalize_format(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator("error_correction", mode="before")
    @classmethod
    def normalize_error_correction(cls, v):
        return v.upper() if isinstance(v, str) else v


class DecodeRequest(BaseModel):
    """Barcode decode request."""
    image: str = Field(..., min_length=1, description="Base64 JPEG/PNG image")
    formats: Optional[List[BarcodeFormat]] = Field(default=None)

    @field_validator("formats", mode="before")
    @classmethod
    def normalize_formats(cls, v):
        if v is None:
            return v
        return [name.upper() if isinstance(name, str) else name for name in v]


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class PointSchema(BaseModel):
    """Point in image coordinates."""
    x: float
    y: float


class DecodeResponse(BaseModel):
    """Decode result; a missing symbol is found=False, not an error."""
    success: bool = Field(default=True)
    found: bool
    text: Optional[str] = None
    format: Optional[BarcodeFormat] = None
    points: List[PointSchema] = Field(default_factory=list)
    binarizer: Optional[Binarizer] = None

    @classmethod
    def from_outcome(cls, outcome: DecodeOutcome):
        points = [PointSchema(x=p.x, y=p.y) for p in outcome.points]
        result = outcome.result
        if result is None:
            return cls(found=False, points=points)
        return cls(
            found=True,
            text=result.text,
            format=result.format,
            points=points,
            binarizer=result.binarizer
        )
