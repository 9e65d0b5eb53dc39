"""
==============================================================================
Camera Collaborator Protocols
==============================================================================

Interfaces between the overlay renderer and whatever produces preview
frames (an OpenCV capture device, frames pushed over a WebSocket, a test
double).

Classes:
--------
- CameraPreview: Geometry source with listener registration
- PreviewStateListener: Lifecycle callbacks a preview emits
- PreviewListeners: Listener registry shared by preview implementations

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Protocol, runtime_checkable

from viewfinder.overlay.geometry import PreviewSize, Rect


# Module logger
logger = logging.getLogger(__name__)


@runtime_checkable
class PreviewStateListener(Protocol):
    """Lifecycle callbacks; calls may arrive in any order and repeat."""

    def preview_sized(self, size: PreviewSize) -> None: ...

    def preview_started(self) -> None: ...

    def preview_stopped(self) -> None: ...

    def camera_error(self, error: Exception) -> None: ...

    def camera_closed(self) -> None: ...


@runtime_checkable
class CameraPreview(Protocol):
    """Camera collaborator consumed by the overlay renderer."""

    @property
    def framing_rect(self) -> Optional[Rect]: ...

    @property
    def preview_size(self) -> Optional[PreviewSize]: ...

    def add_state_listener(self, listener: PreviewStateListener) -> None: ...

    def remove_state_listener(self, listener: PreviewStateListener) -> None: ...


class PreviewListeners:
    """
    Thread-safe listener registry with fault-isolated dispatch.

    A failing listener is logged and skipped; it never breaks the preview
    or the other listeners.
    """

    def __init__(self) -> None:
        self._listeners: List[PreviewStateListener] = []
        self._lock = threading.Lock()

    def add(self, listener: PreviewStateListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove(self, listener: PreviewStateListener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _dispatch(self, method: str, *args) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                getattr(listener, method)(*args)
            except Exception as e:
                logger.warning(f"Preview listener {method} failed: {e}")

    def preview_sized(self, size: PreviewSize) -> None:
        self._dispatch("preview_sized", size)

    def preview_started(self) -> None:
        self._dispatch("preview_started")

    def preview_stopped(self) -> None:
        self._dispatch("preview_stopped")

    def camera_error(self, error: Exception) -> None:
        self._dispatch("camera_error", error)

    def camera_closed(self) -> None:
        self._dispatch("camera_closed")


def centered_framing_rect(
    preview_size: PreviewSize,
    margin_fraction: float = 0.125,
    framing_size: Optional[PreviewSize] = None
) -> Optional[Rect]:
    """
    Compute a framing rectangle centered in the preview.

    Args:
        preview_size: Preview dimensions
        margin_fraction: Margin on each side as a fraction of the short side,
            used when no explicit framing size is given (square rect)
        framing_size: Explicit framing dimensions, clamped to the preview

    Returns:
        Centered rectangle, or None for an empty preview
    """
    if preview_size.is_empty:
        return None

    if framing_size is not None:
        width = min(framing_size.width, preview_size.width)
        height = min(framing_size.height, preview_size.height)
    else:
        short_side = min(preview_size.width, preview_size.height)
        margin = int(short_side * margin_fraction)
        width = height = max(1, short_side - 2 * margin)

    left = (preview_size.width - width) // 2
    top = (preview_size.height - height) // 2
    return Rect.from_size(left, top, width, height)
