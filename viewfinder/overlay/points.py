"""
==============================================================================
Result Point Buffer Module
==============================================================================

Double-buffered candidate point set producing a one-frame fading trail.

Points found during a decode attempt are added to the *current* buffer.
Every paint draws the *previous* buffer faded, the *current* buffer at full
point opacity, then flips the two buffers. Points therefore live for exactly
two paints without per-point timestamps.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, List, Tuple

from viewfinder.overlay.geometry import ResultPoint


# Module logger
logger = logging.getLogger(__name__)


MAX_RESULT_POINTS = 20
CURRENT_POINT_OPACITY = 0xA0
POINT_SIZE = 6

# draw_fn(x, y, opacity, radius) in view coordinates
PointDrawFn = Callable[[float, float, int, int], None]


class ResultPointBuffer:
    """
    Capacity-bounded current/previous point buffers.

    The two lists are allocated once and addressed through an index that
    flips between 0 and 1 on every paint. `add` may be called from a decode
    worker thread while painting happens on the render thread, so both are
    serialized with a lock.

    Attributes:
        capacity: Maximum points held by one buffer
        opacity: Opacity of current points (previous points use half)
        point_size: Radius of current points (previous points use half)

    Example:
        >>> buffer = ResultPointBuffer()
        >>> buffer.add(ResultPoint(10.0, 20.0))
        True
        >>> buffer.swap_and_render(lambda x, y, a, r: None)
        1
    """

    def __init__(
        self,
        capacity: int = MAX_RESULT_POINTS,
        opacity: int = CURRENT_POINT_OPACITY,
        point_size: int = POINT_SIZE
    ) -> None:
        self.capacity = capacity
        self.opacity = opacity
        self.point_size = point_size
        self._buffers: Tuple[List[ResultPoint], List[ResultPoint]] = ([], [])
        self._current = 0
        self._lock = threading.Lock()

    @property
    def current(self) -> Tuple[ResultPoint, ...]:
        with self._lock:
            return tuple(self._buffers[self._current])

    @property
    def previous(self) -> Tuple[ResultPoint, ...]:
        with self._lock:
            return tuple(self._buffers[1 - self._current])

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return not self._buffers[0] and not self._buffers[1]

    def add(self, point: ResultPoint) -> bool:
        """
        Queue a point for the next paint.

        Args:
            point: Candidate point in preview coordinates

        Returns:
            True if stored, False if the current buffer is full
        """
        with self._lock:
            current = self._buffers[self._current]
            if len(current) >= self.capacity:
                return False
            current.append(point)
            return True

    def add_all(self, points: Iterable[ResultPoint]) -> int:
        """Queue several points; returns how many were stored."""
        return sum(1 for point in points if self.add(point))

    def swap_and_render(
        self,
        draw_fn: PointDrawFn,
        scale_x: float = 1.0,
        scale_y: float = 1.0
    ) -> int:
        """
        Draw the fading trail and the current points, then flip buffers.

        Args:
            draw_fn: Callback drawing one point at view coordinates
            scale_x: view width / preview width
            scale_y: view height / preview height

        Returns:
            Number of points drawn
        """
        with self._lock:
            previous = self._buffers[1 - self._current]
            current = self._buffers[self._current]
            faded = list(previous)
            fresh = list(current)
            previous.clear()
            self._current = 1 - self._current
            # new current is the list cleared above

        for point in faded:
            draw_fn(
                point.x * scale_x,
                point.y * scale_y,
                self.opacity // 2,
                max(1, self.point_size // 2),
            )
        for point in fresh:
            draw_fn(point.x * scale_x, point.y * scale_y, self.opacity, self.point_size)

        return len(faded) + len(fresh)

    def clear(self) -> None:
        with self._lock:
            self._buffers[0].clear()
            self._buffers[1].clear()
