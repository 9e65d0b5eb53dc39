"""
==============================================================================
Overlay Geometry Tests
==============================================================================

Tests for rectangles, framing state and centered framing rectangles.

==============================================================================
"""

import pytest

from viewfinder.overlay.camera import centered_framing_rect
from viewfinder.overlay.geometry import UNSET_OFFSET, FramingState, PreviewSize, Rect


class TestRect:
    """Tests for the Rect value type."""

    def test_dimensions(self):
        rect = Rect(10, 20, 110, 70)
        assert rect.width == 100
        assert rect.height == 50
        assert rect.center_y == 45

    def test_inverted_rect_rejected(self):
        with pytest.raises(ValueError):
            Rect(10, 10, 5, 20)

    def test_offset_to_keeps_size(self):
        moved = Rect(10, 20, 110, 70).offset_to(10, 0)
        assert moved == Rect(10, 0, 110, 50)

    def test_negative_inset_grows(self):
        assert Rect(100, 100, 300, 300).inset(-6, -6) == Rect(94, 94, 306, 306)

    def test_from_size(self):
        assert Rect.from_size(5, 6, 10, 20) == Rect(5, 6, 15, 26)


class TestFramingState:
    """Tests for framing rectangle caching and offset override."""

    def test_nothing_available_returns_none(self):
        state = FramingState()
        assert state.update_geometry(None, None) is None
        assert state.is_available is False

    def test_raw_rect_used_without_offset(self):
        state = FramingState()
        rect = state.update_geometry(PreviewSize(640, 480), Rect(80, 40, 560, 440))
        assert rect == Rect(80, 40, 560, 440)
        assert state.preview_size == PreviewSize(640, 480)

    def test_offset_sets_top_and_preserves_height(self):
        state = FramingState()
        raw = Rect(80, 40, 560, 440)
        rect = state.update_geometry(PreviewSize(640, 480), raw, 10)
        assert rect.top == 10
        assert rect.height == raw.height
        assert rect.left == raw.left and rect.right == raw.right

    def test_unset_offset_is_ignored(self):
        state = FramingState()
        rect = state.update_geometry(PreviewSize(640, 480), Rect(80, 40, 560, 440), UNSET_OFFSET)
        assert rect.top == 40

    def test_missing_geometry_returns_cached_rect(self):
        state = FramingState()
        state.update_geometry(PreviewSize(640, 480), Rect(80, 40, 560, 440))
        assert state.update_geometry(None, None) == Rect(80, 40, 560, 440)
        assert state.update_geometry(PreviewSize(640, 480), None) == Rect(80, 40, 560, 440)

    def test_reset_clears_cache(self):
        state = FramingState()
        state.update_geometry(PreviewSize(640, 480), Rect(80, 40, 560, 440))
        state.reset()
        assert state.rect is None
        assert state.update_geometry(None, None) is None


class TestCenteredFramingRect:
    """Tests for the default square framing rectangle."""

    def test_square_preview(self):
        # 45/360 margin on each side
        assert centered_framing_rect(PreviewSize(360, 360)) == Rect(45, 45, 315, 315)

    def test_landscape_preview(self):
        rect = centered_framing_rect(PreviewSize(640, 480))
        assert rect == Rect(140, 60, 500, 420)
        assert rect.width == rect.height

    def test_explicit_size_is_clamped(self):
        rect = centered_framing_rect(PreviewSize(640, 480), framing_size=PreviewSize(800, 100))
        assert rect == Rect(0, 190, 640, 290)

    def test_empty_preview(self):
        assert centered_framing_rect(PreviewSize(0, 480)) is None
