"""
==============================================================================
Scan Indicator Animation Module
==============================================================================

Scan indicator animators and the repaint driver.

This module implements:
- SweepingLineAnimator: Line sweeping top to bottom, fading near the bottom
- PulsingLaserAnimator: Fixed mid-line laser flickering through 8 opacities
- AnimationDriver: Single pending repaint request polled by the host loop

Only one animator is active for a renderer, selected by configuration.

==============================================================================
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from viewfinder.overlay.geometry import Rect


# Module logger
logger = logging.getLogger(__name__)


SWEEP_CYCLE_MS = 3000
SCANNER_ALPHA = (0, 64, 128, 192, 255, 192, 128, 64)
ANIMATION_DELAY_MS = 80

Clock = Callable[[], float]


class IndicatorMode(str, Enum):
    """Scan indicator style."""

    SWEEP = "sweep"
    PULSE = "pulse"


@dataclass(frozen=True)
class IndicatorFrame:
    """Indicator state for one paint."""

    position: int
    opacity: int


class ScanIndicatorAnimator(ABC):
    """
    Base class for scan indicator animators.

    Animators own their animation state; the renderer only reads the frame
    returned by `tick`. Ticking while stopped returns the stored frame.
    """

    mode: IndicatorMode

    def __init__(self) -> None:
        self._bounds: Optional[Rect] = None
        self._running = False
        self._frame = IndicatorFrame(position=0, opacity=0)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def bounds(self) -> Optional[Rect]:
        return self._bounds

    @property
    def frame(self) -> IndicatorFrame:
        return self._frame

    def set_bounds(self, rect: Rect) -> None:
        self._bounds = rect

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    def tick(self) -> IndicatorFrame:
        if self._running and self._bounds is not None:
            self._frame = self._advance(self._bounds)
        return self._frame

    @property
    @abstractmethod
    def repaint_delay(self) -> float:
        """Seconds until the next paint should happen."""

    @abstractmethod
    def _advance(self, bounds: Rect) -> IndicatorFrame:
        """Compute the next frame within `bounds`."""


class SweepingLineAnimator(ScanIndicatorAnimator):
    """
    Sweeps a scan line from the top to the bottom of the framing rectangle.

    The position follows a linear 3000 ms cycle restarting at the top. Time
    accumulates only while running, so stop/start continues the cycle.
    Opacity ramps to 0 over the last sixth of the rectangle height.
    """

    mode = IndicatorMode.SWEEP

    def __init__(self, cycle_ms: int = SWEEP_CYCLE_MS, clock: Clock = time.monotonic) -> None:
        super().__init__()
        self.cycle_ms = cycle_ms
        self._clock = clock
        self._elapsed = 0.0
        self._started_at: Optional[float] = None

    @property
    def repaint_delay(self) -> float:
        return 0.0

    def start(self) -> None:
        if self._running:
            return
        super().start()
        self._started_at = self._clock()

    def stop(self) -> None:
        if not self._running:
            return
        if self._started_at is not None:
            self._elapsed += self._clock() - self._started_at
        self._started_at = None
        super().stop()

    def elapsed_ms(self) -> float:
        elapsed = self._elapsed
        if self._running and self._started_at is not None:
            elapsed += self._clock() - self._started_at
        return elapsed * 1000.0

    @staticmethod
    def opacity_at(bounds: Rect, position: int) -> int:
        """
        Opacity of the line at `position` within `bounds`.

        Full opacity until the remaining distance to the bottom edge drops
        to a sixth of the height, then linear down to 0 at the edge.
        """
        start_hide = bounds.height / 6.0
        remaining = bounds.bottom - position
        if start_hide <= 0:
            return 0
        if remaining > start_hide:
            return 255
        return max(0, int(remaining / start_hide * 255))

    def _advance(self, bounds: Rect) -> IndicatorFrame:
        fraction = (self.elapsed_ms() % self.cycle_ms) / self.cycle_ms
        position = bounds.top + int(fraction * bounds.height)
        return IndicatorFrame(position=position, opacity=self.opacity_at(bounds, position))


class PulsingLaserAnimator(ScanIndicatorAnimator):
    """Laser fixed at the vertical midpoint, one opacity step per paint."""

    mode = IndicatorMode.PULSE

    def __init__(self) -> None:
        super().__init__()
        self._index = 0

    @property
    def repaint_delay(self) -> float:
        return ANIMATION_DELAY_MS / 1000.0

    def _advance(self, bounds: Rect) -> IndicatorFrame:
        opacity = SCANNER_ALPHA[self._index]
        self._index = (self._index + 1) % len(SCANNER_ALPHA)
        return IndicatorFrame(position=bounds.center_y, opacity=opacity)


def create_animator(mode: str, clock: Clock = time.monotonic) -> ScanIndicatorAnimator:
    """
    Build the animator for a configured indicator mode.

    Args:
        mode: "sweep" or "pulse"
        clock: Monotonic clock in seconds (sweep only)

    Returns:
        A stopped animator
    """
    if IndicatorMode(mode) is IndicatorMode.PULSE:
        return PulsingLaserAnimator()
    return SweepingLineAnimator(clock=clock)


class AnimationDriver:
    """
    Repaint scheduler polled by the host render loop.

    At most one repaint request is pending at a time. Hiding the overlay
    cancels the pending request and refuses new ones until it is shown
    again, so no request outlives visibility loss.

    Example:
        >>> driver = AnimationDriver(min_interval=0.0)
        >>> driver.schedule()
        True
        >>> driver.schedule()
        False
        >>> driver.consume()
        True
    """

    def __init__(self, min_interval: float = 1.0 / 60.0, clock: Clock = time.monotonic) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._deadline: Optional[float] = None
        self._region: Optional[Rect] = None
        self._visible = True

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def region(self) -> Optional[Rect]:
        """Dirty region of the pending repaint; None means the whole view."""
        return self._region

    def schedule(self, delay: float = 0.0, region: Optional[Rect] = None) -> bool:
        """
        Request a repaint after `delay` seconds.

        Returns:
            False if hidden or a request is already pending
        """
        if not self._visible or self._deadline is not None:
            return False
        self._deadline = self._clock() + max(delay, self.min_interval)
        self._region = region
        return True

    def time_until_due(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def consume(self) -> bool:
        """
        Take the pending request if it is due.

        Returns:
            True when the host should paint now
        """
        if self._deadline is None or self._clock() < self._deadline:
            return False
        self._deadline = None
        self._region = None
        return True

    def cancel(self) -> None:
        self._deadline = None
        self._region = None

    def set_visible(self, visible: bool) -> None:
        self._visible = visible
        if not visible:
            self.cancel()
