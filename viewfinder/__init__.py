"""
==============================================================================
Viewfinder - Barcode Scanning Overlay & Codec Toolkit
==============================================================================

Live scanning overlay rendering on top of camera frames, plus a
pixel-buffer decode pipeline with binarizer fallback and barcode image
generation.

Packages:
---------
- overlay: Framing geometry, point trail, scan indicator, renderer
- codec: Luminance sources, zxing-cpp adapter, decode pipeline, creator
- scanner: Scan sessions, camera previews, decode worker
- api / websockets: FastAPI surface

==============================================================================
"""

__version__ = "1.0.0"
