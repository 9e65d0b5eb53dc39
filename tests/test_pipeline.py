"""
==============================================================================
Decode Pipeline Tests
==============================================================================

Tests for luminance extraction, the binarizer fallback (scripted codec)
and real zxing-cpp round trips.

==============================================================================
"""

import numpy as np
import pytest

from conftest import FakeCodec
from viewfinder.codec import (
    BarcodeFormat,
    Binarizer,
    DecodeHints,
    DecodePipeline,
    DecodeResult,
    LuminanceSource,
    bitmap_to_argb,
)
from viewfinder.core import exceptions
from viewfinder.core.exceptions import AppException
from viewfinder.overlay.geometry import Rect, ResultPoint


def qr_result(binarizer: Binarizer) -> DecodeResult:
    return DecodeResult(
        text="HELLO",
        format=BarcodeFormat.QR_CODE,
        points=(ResultPoint(1, 1), ResultPoint(9, 1), ResultPoint(9, 9)),
        binarizer=binarizer,
    )


class TestLuminanceSource:
    """Tests for ARGB and OpenCV luminance extraction."""

    def test_black_and_white(self):
        source = LuminanceSource.from_argb([0xFF000000, 0xFFFFFFFF], 2, 1)
        assert source.matrix.tolist() == [[0, 255]]

    def test_signed_pixels_accepted(self):
        source = LuminanceSource.from_argb([-1, -0x1000000], 2, 1)
        assert source.matrix.tolist() == [[255, 0]]

    def test_green_weighted_twice(self):
        source = LuminanceSource.from_argb([0xFFFF0000, 0xFF00FF00, 0xFF0000FF], 3, 1)
        assert source.matrix.tolist() == [[63, 127, 63]]

    def test_size_mismatch(self):
        with pytest.raises(AppException) as exc:
            LuminanceSource.from_argb([0] * 5, 2, 2)
        assert exc.value.code == "INVALID_IMAGE"

    def test_from_bgr_image(self):
        image = np.zeros((2, 2, 3), dtype=np.uint8)
        image[0, 0] = (0, 0, 255)
        source = LuminanceSource.from_image(image)
        assert source.width == 2 and source.height == 2
        assert source.matrix[0, 0] == 63

    def test_from_16bit_gray(self):
        image = np.array([[0xFFFF, 0x8000, 0x00FF]], dtype=np.uint16)
        assert LuminanceSource.from_image(image).matrix.tolist() == [[255, 128, 0]]

    def test_from_16bit_bgr_does_not_overflow(self):
        image = np.full((2, 2, 3), 0xFFFF, dtype=np.uint16)
        assert (LuminanceSource.from_image(image).matrix == 255).all()

    def test_from_float_image(self):
        image = np.array([[0.0, 0.2, 1.0]], dtype=np.float32)
        assert LuminanceSource.from_image(image).matrix.tolist() == [[0, 51, 255]]

    def test_matrix_is_read_only(self):
        source = LuminanceSource.from_image(np.zeros((4, 4), dtype=np.uint8))
        with pytest.raises(ValueError):
            source.matrix[0, 0] = 1

    def test_crop(self):
        image = np.arange(16, dtype=np.uint8).reshape(4, 4)
        cropped = LuminanceSource.from_image(image).crop(Rect(1, 1, 3, 3))
        assert cropped.matrix.tolist() == [[5, 6], [9, 10]]


class TestBinarizerFallback:
    """Tests for primary / fallback decode attempts."""

    def test_primary_success_skips_fallback(self):
        codec = FakeCodec({Binarizer.HYBRID: qr_result(Binarizer.HYBRID)})
        pipeline = DecodePipeline(codec=codec)

        result = pipeline.decode([0xFFFFFFFF] * 4, 2, 2)

        assert result.text == "HELLO"
        assert [call[2] for call in codec.calls] == [Binarizer.HYBRID]

    def test_fallback_runs_on_same_source(self):
        codec = FakeCodec({Binarizer.GLOBAL_HISTOGRAM: qr_result(Binarizer.GLOBAL_HISTOGRAM)})
        pipeline = DecodePipeline(codec=codec)

        result = pipeline.decode([0xFF808080] * 4, 2, 2)

        assert result.text == "HELLO"
        assert result.binarizer is Binarizer.GLOBAL_HISTOGRAM
        assert [call[2] for call in codec.calls] == [Binarizer.HYBRID, Binarizer.GLOBAL_HISTOGRAM]
        assert codec.calls[0][0] is codec.calls[1][0]

    @pytest.mark.parametrize("failure", [
        exceptions.barcode_not_found("hybrid"),
        exceptions.checksum_error("hybrid", []),
        exceptions.format_error("hybrid", []),
    ])
    def test_every_decode_failure_triggers_fallback(self, failure):
        codec = FakeCodec({
            Binarizer.HYBRID: failure,
            Binarizer.GLOBAL_HISTOGRAM: qr_result(Binarizer.GLOBAL_HISTOGRAM),
        })
        assert DecodePipeline(codec=codec).decode([0] * 4, 2, 2) is not None

    def test_both_fail_returns_none_with_candidates(self):
        codec = FakeCodec({
            Binarizer.HYBRID: exceptions.checksum_error("hybrid", [ResultPoint(3, 4)]),
            Binarizer.GLOBAL_HISTOGRAM: exceptions.format_error("global_histogram", [ResultPoint(5, 6)]),
        })
        pipeline = DecodePipeline(codec=codec)

        outcome = pipeline.decode_source(LuminanceSource.from_argb([0] * 4, 2, 2))

        assert outcome.found is False
        assert outcome.result is None
        assert outcome.points == (ResultPoint(3, 4), ResultPoint(5, 6))

    def test_outcome_points_include_result_corners(self):
        codec = FakeCodec({
            Binarizer.HYBRID: exceptions.checksum_error("hybrid", [ResultPoint(3, 4)]),
            Binarizer.GLOBAL_HISTOGRAM: qr_result(Binarizer.GLOBAL_HISTOGRAM),
        })
        outcome = DecodePipeline(codec=codec).decode_source(LuminanceSource.from_argb([0] * 4, 2, 2))
        assert outcome.points[0] == ResultPoint(3, 4)
        assert len(outcome.points) == 4

    def test_other_errors_propagate(self):
        codec = FakeCodec({Binarizer.HYBRID: exceptions.internal_error("codec crashed")})
        with pytest.raises(AppException) as exc:
            DecodePipeline(codec=codec).decode([0] * 4, 2, 2)
        assert exc.value.code == "INTERNAL_ERROR"

    def test_without_fallback(self):
        codec = FakeCodec()
        assert DecodePipeline(codec=codec, fallback=None).decode([0] * 4, 2, 2) is None
        assert len(codec.calls) == 1


class TestDecodeHints:
    """Tests for format allow-lists."""

    def test_empty_means_all_formats(self):
        assert len(DecodeHints.from_names([]).formats) == len(BarcodeFormat)

    def test_names_are_case_insensitive(self):
        assert DecodeHints.from_names(["qr_code"]).formats == [BarcodeFormat.QR_CODE]

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            DecodeHints.from_names(["NOT_A_FORMAT"])

    def test_character_set_normalized(self):
        assert DecodeHints(character_set="UTF8").character_set == "utf-8"
        assert DecodeHints(character_set="latin-1").character_set == "iso8859-1"

    def test_unknown_character_set(self):
        with pytest.raises(ValueError):
            DecodeHints(character_set="not-a-charset")


class TestZXingRoundTrip:
    """Round trips through the real zxing-cpp codec."""

    def test_hello_from_argb_pixels(self, hello_frame):
        pixels = bitmap_to_argb(hello_frame)
        result = DecodePipeline().decode(pixels, 400, 400)

        assert result is not None
        assert result.text == "HELLO"
        assert result.format is BarcodeFormat.QR_CODE
        assert len(result.points) == 4

    def test_hello_from_opencv_frame(self, hello_frame):
        result = DecodePipeline().decode_image(hello_frame)
        assert result.text == "HELLO"

    def test_low_contrast_frame_needs_global_histogram(self, hello_frame):
        # modules at 98/120: every 8x8 block stays under the hybrid
        # binarizer's dynamic range, while the histogram still splits at 112
        faded = np.where(hello_frame[:, :, 0] < 128, 98, 120).astype(np.uint8)

        assert DecodePipeline(fallback=None).decode_image(faded) is None

        result = DecodePipeline().decode_image(faded)
        assert result is not None
        assert result.text == "HELLO"
        assert result.binarizer is Binarizer.GLOBAL_HISTOGRAM

    def test_payload_read_in_character_set(self, hello_frame):
        pipeline = DecodePipeline(hints=DecodeHints(character_set="cp037"))
        result = pipeline.decode_image(hello_frame)

        assert result.text == b"HELLO".decode("cp037")
        assert result.text != "HELLO"

    def test_blank_frame(self):
        assert DecodePipeline().decode_image(np.full((200, 200, 3), 255, dtype=np.uint8)) is None

    def test_format_allow_list(self, hello_frame):
        pipeline = DecodePipeline(hints=DecodeHints(formats=[BarcodeFormat.EAN_13]))
        assert pipeline.decode_image(hello_frame) is None
