"""
==============================================================================
Barcode Endpoints
==============================================================================

Endpoints for generating barcode images and decoding uploaded images.

Endpoints:
----------
- POST /barcodes/encode: text -> PNG (optionally with a centered logo)
- POST /barcodes/decode: base64 image -> decoded text, format and points

==============================================================================
"""

import logging

import cv2
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from viewfinder.codec import CodeCreator, DecodeHints, DecodePipeline, LuminanceSource
from viewfinder.codec.creator import DEFAULT_LOGO_CODE_SIZE
from viewfinder.codec.models import BarcodeFormat, ErrorCorrectionLevel
from viewfinder.config import Settings, get_settings
from viewfinder.core import exceptions
from viewfinder.schemas.barcode import DecodeRequest, DecodeResponse, EncodeRequest
from viewfinder.utils.images import decode_base64_image, encode_png


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/barcodes", tags=["Barcodes"])


class BarcodeController:
    """Controller for barcode encode / decode operations."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._creator = CodeCreator(character_set=settings.character_set)

    def encode(self, request: EncodeRequest) -> bytes:
        """Render the requested barcode as PNG bytes."""
        margin = request.margin if request.margin is not None else self._settings.default_margin
        level = request.error_correction or ErrorCorrectionLevel(self._settings.default_error_correction)

        if request.logo:
            if request.format is not BarcodeFormat.QR_CODE:
                raise exceptions.AppException(
                    "Logos are only supported on QR codes",
                    "VALIDATION_ERROR",
                    422,
                    {"format": request.format.value}
                )
            size = request.size or DEFAULT_LOGO_CODE_SIZE
            logo = decode_base64_image(request.logo, cv2.IMREAD_UNCHANGED)
            image = self._creator.create_code_with_logo(request.text, logo, size=size, margin=margin)
        else:
            size = request.size or self._settings.default_code_size
            image = self._creator.create_code(
                request.text,
                size=size,
                margin=margin,
                barcode_format=request.format,
                error_correction=level
            )

        logger.info(f"🧾 Encoded {request.format.value} ({image.shape[1]}x{image.shape[0]})")
        return encode_png(image)

    def decode(self, request: DecodeRequest) -> DecodeResponse:
        """Decode the first symbol in the uploaded image."""
        image = decode_base64_image(request.image, cv2.IMREAD_UNCHANGED)

        if request.formats:
            hints = DecodeHints(
                formats=request.formats,
                character_set=self._settings.character_set,
                try_harder=self._settings.decode_try_harder
            )
            pipeline = DecodePipeline(hints=hints)
        else:
            pipeline = DecodePipeline.from_settings(self._settings)

        outcome = pipeline.decode_source(LuminanceSource.from_image(image))
        if outcome.found:
            logger.info(f"✓ Decoded {outcome.result.format.value} via {outcome.result.binarizer.value}")
        else:
            logger.debug("No barcode found in uploaded image")
        return DecodeResponse.from_outcome(outcome)


@router.post("/encode", response_class=Response)
async def encode_barcode(request: EncodeRequest, settings: Settings = Depends(get_settings)):
    """
    Generate a barcode image.

    Returns image/png. Text the format cannot hold yields ENCODE_FAILURE.
    """
    controller = BarcodeController(settings)
    png = await run_in_threadpool(controller.encode, request)
    return Response(content=png, media_type="image/png")


@router.post("/decode", response_model=DecodeResponse)
async def decode_barcode(request: DecodeRequest, settings: Settings = Depends(get_settings)):
    """
    Decode a barcode from a base64 image.

    A missing barcode is a successful response with found=false.
    """
    controller = BarcodeController(settings)
    return await run_in_threadpool(controller.decode, request)
