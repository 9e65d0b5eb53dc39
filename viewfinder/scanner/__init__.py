"""
==============================================================================
Scanner Package - Scanning Sessions
==============================================================================

Scanning sessions with OpenCV frame sources and overlay feedback.

Classes:
--------
- BarcodeScanner: Session tying frames, decoding and the overlay together
- DecodeWorker: Background decode thread (newest frame wins)
- OpenCVCameraPreview / StreamPreview: Frame sources

==============================================================================
"""

from .camera import OpenCVCameraPreview, StreamPreview
from .core import BarcodeScanner, DecodeMode, DecodeWorker, ScanCallback

__all__ = [
    "BarcodeScanner",
    "DecodeMode",
    "DecodeWorker",
    "OpenCVCameraPreview",
    "ScanCallback",
    "StreamPreview",
]
