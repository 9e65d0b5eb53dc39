"""
==============================================================================
Overlay Package - Scanning Preview Overlay
==============================================================================

Geometry, candidate-point trail, scan indicator animation and the OpenCV
renderer drawn over camera frames.

==============================================================================
"""

from .animator import (
    AnimationDriver,
    IndicatorFrame,
    IndicatorMode,
    PulsingLaserAnimator,
    ScanIndicatorAnimator,
    SweepingLineAnimator,
    create_animator,
)
from .camera import CameraPreview, PreviewListeners, PreviewStateListener, centered_framing_rect
from .geometry import FramingState, PreviewSize, Rect, ResultPoint
from .points import ResultPointBuffer
from .renderer import OverlayColors, OverlayRenderer, OverlayStyle, ResultSnapshot, ScanState

__all__ = [
    "AnimationDriver",
    "CameraPreview",
    "FramingState",
    "IndicatorFrame",
    "IndicatorMode",
    "OverlayColors",
    "OverlayRenderer",
    "OverlayStyle",
    "PreviewListeners",
    "PreviewSize",
    "PreviewStateListener",
    "PulsingLaserAnimator",
    "Rect",
    "ResultPoint",
    "ResultPointBuffer",
    "ResultSnapshot",
    "ScanIndicatorAnimator",
    "ScanState",
    "SweepingLineAnimator",
    "centered_framing_rect",
]
