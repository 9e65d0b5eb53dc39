"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

==============================================================================
"""

from .barcode import DecodeRequest, DecodeResponse, EncodeRequest, PointSchema

__all__ = [
    "DecodeRequest",
    "DecodeResponse",
    "EncodeRequest",
    "PointSchema",
]
