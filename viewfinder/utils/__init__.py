"""
==============================================================================
Utilities Package
==============================================================================

Utility functions for the application.

Modules:
--------
- images: base64 / PNG / JPEG image transport helpers

==============================================================================
"""

from .images import decode_base64_image, encode_jpeg_base64, encode_png

__all__ = [
    "decode_base64_image",
    "encode_jpeg_base64",
    "encode_png",
]
