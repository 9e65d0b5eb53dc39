"""
==============================================================================
Overlay Geometry Module
==============================================================================

Pixel-grid geometry shared by the overlay renderer and the camera previews.

This module implements:
- Rect: Axis-aligned integer rectangle
- PreviewSize: Camera preview dimensions
- ResultPoint: Candidate point in preview space
- FramingState: Cached framing rectangle with vertical offset override

==============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional


# Module logger
logger = logging.getLogger(__name__)


# Sentinel for "no vertical offset override"
UNSET_OFFSET = -1


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle on the preview pixel grid.

    Attributes:
        left: Left edge (inclusive)
        top: Top edge (inclusive)
        right: Right edge
        bottom: Bottom edge
    """

    left: int
    top: int
    right: int
    bottom: int

    def __post_init__(self) -> None:
        if self.left > self.right or self.top > self.bottom:
            raise ValueError(
                f"Invalid rectangle: ({self.left}, {self.top}, {self.right}, {self.bottom})"
            )

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def center_y(self) -> int:
        return (self.top + self.bottom) // 2

    def offset_to(self, left: int, top: int) -> "Rect":
        """Return a copy moved so its top-left corner is (left, top)."""
        return Rect(left, top, left + self.width, top + self.height)

    def inset(self, dx: int, dy: int) -> "Rect":
        """Return a copy grown (negative) or shrunk (positive) on every side."""
        return Rect(
            self.left + dx,
            self.top + dy,
            max(self.left + dx, self.right - dx),
            max(self.top + dy, self.bottom - dy),
        )

    @classmethod
    def from_size(cls, left: int, top: int, width: int, height: int) -> "Rect":
        return cls(left, top, left + width, top + height)


@dataclass(frozen=True)
class PreviewSize:
    """Camera preview dimensions in pixels."""

    width: int
    height: int

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class ResultPoint:
    """A candidate symbol location in preview-pixel space."""

    x: float
    y: float


class FramingState:
    """
    Tracks the framing rectangle and preview size reported by the camera.

    The last known geometry is cached so a final paint is still possible
    after the camera stops reporting it. The cache is only cleared when a
    new camera preview is attached.

    Example:
        >>> state = FramingState()
        >>> state.update_geometry(PreviewSize(640, 480), Rect(80, 40, 560, 440), 10)
        Rect(left=80, top=10, right=560, bottom=410)
    """

    def __init__(self) -> None:
        self._rect: Optional[Rect] = None
        self._preview_size: Optional[PreviewSize] = None

    @property
    def rect(self) -> Optional[Rect]:
        return self._rect

    @property
    def preview_size(self) -> Optional[PreviewSize]:
        return self._preview_size

    @property
    def is_available(self) -> bool:
        return self._rect is not None and self._preview_size is not None

    def update_geometry(
        self,
        preview_size: Optional[PreviewSize],
        raw_framing_rect: Optional[Rect],
        vertical_offset: int = UNSET_OFFSET
    ) -> Optional[Rect]:
        """
        Recompute the framing rectangle from collaborator geometry.

        Args:
            preview_size: Current preview size, or None if not sized yet
            raw_framing_rect: Framing rectangle reported by the camera
            vertical_offset: Top override; UNSET_OFFSET keeps the raw top

        Returns:
            The adjusted rectangle, the cached one when the collaborator has
            no geometry, or None if nothing was ever available
        """
        if raw_framing_rect is None or preview_size is None:
            return self._rect if self.is_available else None

        rect = raw_framing_rect
        if vertical_offset != UNSET_OFFSET:
            rect = rect.offset_to(rect.left, vertical_offset)

        self._rect = rect
        self._preview_size = preview_size
        return rect

    def reset(self) -> None:
        """Forget cached geometry (a new camera preview was attached)."""
        self._rect = None
        self._preview_size = None
