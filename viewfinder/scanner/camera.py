"""
==============================================================================
Camera Preview Module
==============================================================================

Frame sources that drive the overlay renderer.

Classes:
--------
- OpenCVCameraPreview: Local capture device through cv2.VideoCapture
- StreamPreview: Frames pushed by a client (e.g. over a WebSocket)

Both publish their geometry (preview size, centered framing rectangle)
and lifecycle events to registered PreviewStateListeners.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

from viewfinder.core import exceptions
from viewfinder.overlay.camera import PreviewListeners, PreviewStateListener, centered_framing_rect
from viewfinder.overlay.geometry import PreviewSize, Rect


# Module logger
logger = logging.getLogger(__name__)


class _FramePreview:
    """Geometry and listener bookkeeping shared by preview implementations."""

    def __init__(
        self,
        margin_fraction: float = 0.125,
        framing_size: Optional[PreviewSize] = None
    ) -> None:
        self.margin_fraction = margin_fraction
        self.framing_size = framing_size
        self._listeners = PreviewListeners()
        self._preview_size: Optional[PreviewSize] = None
        self._running = False

    @property
    def preview_size(self) -> Optional[PreviewSize]:
        return self._preview_size

    @property
    def framing_rect(self) -> Optional[Rect]:
        if self._preview_size is None:
            return None
        return centered_framing_rect(self._preview_size, self.margin_fraction, self.framing_size)

    @property
    def is_running(self) -> bool:
        return self._running

    def add_state_listener(self, listener: PreviewStateListener) -> None:
        self._listeners.add(listener)

    def remove_state_listener(self, listener: PreviewStateListener) -> None:
        self._listeners.remove(listener)

    def _track_frame(self, frame: np.ndarray) -> None:
        height, width = frame.shape[:2]
        size = PreviewSize(int(width), int(height))
        if size != self._preview_size:
            self._preview_size = size
            logger.debug(f"Preview sized {width}x{height}")
            self._listeners.preview_sized(size)
        if not self._running:
            self._running = True
            self._listeners.preview_started()

    def stop(self) -> None:
        """Stop delivering frames; geometry is kept for the overlay."""
        if self._running:
            self._running = False
            self._listeners.preview_stopped()


class OpenCVCameraPreview(_FramePreview):
    """
    Camera preview backed by cv2.VideoCapture.

    Attributes:
        camera_index: Camera device index (0 = default)

    Example:
        >>> preview = OpenCVCameraPreview(0)
        >>> preview.start()
        >>> frame = preview.read()
        >>> preview.close()
    """

    def __init__(
        self,
        camera_index: int = 0,
        margin_fraction: float = 0.125,
        framing_size: Optional[PreviewSize] = None
    ) -> None:
        super().__init__(margin_fraction, framing_size)
        self.camera_index = camera_index
        self._cap: Optional[cv2.VideoCapture] = None

    def start(self) -> None:
        """
        Open the capture device.

        Raises:
            AppException: CAMERA_UNAVAILABLE if the device cannot be opened
        """
        if self._cap is not None:
            return

        cap = cv2.VideoCapture(self.camera_index)
        if not cap.isOpened():
            cap.release()
            error = exceptions.camera_unavailable(self.camera_index)
            self._listeners.camera_error(error)
            raise error

        self._cap = cap
        logger.info(f"📷 Camera {self.camera_index} opened")

    def read(self) -> Optional[np.ndarray]:
        """Grab the next BGR frame, or None when the device yields nothing."""
        if self._cap is None:
            return None

        ok, frame = self._cap.read()
        if not ok or frame is None:
            logger.warning(f"Failed to read frame from camera {self.camera_index}")
            return None

        self._track_frame(frame)
        return frame

    def close(self) -> None:
        """Release the capture device."""
        self.stop()
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            self._listeners.camera_closed()
            logger.debug(f"Camera {self.camera_index} closed")


class StreamPreview(_FramePreview):
    """
    Preview fed with frames from outside, such as a browser camera.

    The preview size follows the most recent frame.
    """

    def feed(self, frame: np.ndarray) -> np.ndarray:
        """
        Register a pushed frame.

        Raises:
            AppException: INVALID_IMAGE for empty frames
        """
        if frame is None or frame.size == 0 or frame.ndim not in (2, 3):
            raise exceptions.invalid_image("empty preview frame")
        self._track_frame(frame)
        return frame

    def close(self) -> None:
        self.stop()
        self._listeners.camera_closed()
