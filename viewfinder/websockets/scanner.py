"""
==============================================================================
Scanner WebSocket Module
==============================================================================

Real-time barcode scanning with overlay rendering via WebSocket.

Protocol:
---------
1. Client sends init: {"type": "init", "formats": [...], "render": bool,
   "indicator": "sweep" | "pulse", "single": bool}
2. Client sends frames as base64 JPEG/PNG: {"type": "frame", "frame": "..."}
3. Server returns "points" for every frame with candidates, "result" when
   a symbol decodes and, when render is on, the "overlay" frame
4. Client sends "reset" to resume after a result, "stop" to end

==============================================================================
"""

import json
import logging
from dataclasses import replace
from typing import List, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from viewfinder.codec import DecodeHints, DecodePipeline, DecodeResult
from viewfinder.config import Settings, get_settings
from viewfinder.core.exceptions import AppException
from viewfinder.overlay import OverlayRenderer, OverlayStyle, ResultPoint
from viewfinder.scanner import BarcodeScanner, StreamPreview
from viewfinder.utils.images import decode_base64_image, encode_jpeg_base64


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()


def _points_payload(points: List[ResultPoint]) -> List[dict]:
    return [{"x": p.x, "y": p.y} for p in points]


class _SessionCallback:
    """Collects what the scanner reports for the frame being processed."""

    def __init__(self) -> None:
        self.points: List[ResultPoint] = []
        self.result: Optional[DecodeResult] = None

    def take(self):
        points, result = self.points, self.result
        self.points, self.result = [], None
        return points, result

    def on_result(self, result: DecodeResult) -> None:
        self.result = result

    def on_possible_result_points(self, points: List[ResultPoint]) -> None:
        self.points.extend(points)


class ScannerWebSocketHandler:
    """
    Handler for barcode scanning WebSocket connections.

    Manages the lifecycle of a scanning session including:
    - Scanner and overlay initialization
    - Frame decoding off the event loop
    - Point, result and overlay reporting
    """

    def __init__(self, websocket: WebSocket, settings: Settings):
        self._websocket = websocket
        self._settings = settings
        self._scanner: Optional[BarcodeScanner] = None
        self._preview: Optional[StreamPreview] = None
        self._callback = _SessionCallback()
        self._render = False
        self._single = False

    async def send_error(self, message: str, code: str = "ERROR") -> None:
        """Send error message to client."""
        await self._websocket.send_json({
            "type": "error",
            "code": code,
            "message": message
        })

    def _start_decoding(self) -> None:
        if self._single:
            self._scanner.decode_single(self._callback)
        else:
            self._scanner.decode_continuous(self._callback)

    async def handle_init(self, data: dict) -> bool:
        """Handle init message from client."""
        formats = data.get("formats") or []
        indicator = data.get("indicator", self._settings.indicator_mode)
        self._render = bool(data.get("render", False))
        self._single = bool(data.get("single", False))

        logger.info(f"Init: formats={formats}, indicator={indicator}, single={self._single}")

        try:
            hints = DecodeHints.from_names(
                formats,
                character_set=self._settings.character_set,
                try_harder=self._settings.decode_try_harder
            )
            style = replace(OverlayStyle.from_settings(self._settings), indicator_mode=indicator)
        except (ValueError, TypeError, AttributeError) as e:
            await self.send_error(f"Invalid init message: {e}", "INVALID_INIT")
            return False

        renderer = OverlayRenderer(style=style)
        renderer.driver.min_interval = self._settings.min_repaint_interval
        renderer.offset_top = self._settings.offset_top

        if self._scanner is not None:
            self._scanner.close()
        self._scanner = BarcodeScanner(pipeline=DecodePipeline(hints=hints), renderer=renderer)
        self._preview = StreamPreview(margin_fraction=self._settings.framing_margin_fraction)
        self._scanner.preview = self._preview
        self._start_decoding()

        await self._websocket.send_json({
            "type": "init",
            "formats": [f.value for f in hints.formats],
            "indicator": style.indicator_mode,
            "render": self._render,
            "single": self._single
        })
        return True

    async def handle_frame(self, data: dict, frame_count: int) -> None:
        """Handle frame message from client."""
        if self._scanner is None:
            await self.send_error("Send init before frames", "NOT_INITIALIZED")
            return

        frame_data = data.get("frame", "")
        if not isinstance(frame_data, str):
            await self.send_error("Frame must be a base64 string", "INVALID_IMAGE")
            return

        try:
            frame = decode_base64_image(frame_data)
            self._preview.feed(frame)
            await run_in_threadpool(self._scanner.process_frame, frame)
        except AppException as e:
            await self.send_error(e.message, e.code)
            return

        points, result = self._callback.take()

        if points:
            await self._websocket.send_json({
                "type": "points",
                "frame_id": frame_count,
                "points": _points_payload(points)
            })

        if result is not None:
            await self._websocket.send_json({
                "type": "result",
                "frame_id": frame_count,
                "text": result.text,
                "format": result.format.value,
                "binarizer": result.binarizer.value,
                "points": _points_payload(list(result.points))
            })

        if self._render:
            canvas = frame.copy()
            self._scanner.render_overlay(canvas)
            await self._websocket.send_json({
                "type": "overlay",
                "frame_id": frame_count,
                "state": self._scanner.renderer.state.value,
                "frame": encode_jpeg_base64(canvas)
            })

    async def handle_reset(self) -> None:
        """Handle reset message: unfreeze and decode again."""
        if self._scanner is None:
            await self.send_error("Send init before reset", "NOT_INITIALIZED")
            return
        self._scanner.reset()
        if not self._scanner.is_decoding:
            self._start_decoding()

    async def _receive_message(self) -> Optional[dict]:
        """Read one JSON object; anything else is reported and skipped."""
        text = await self._websocket.receive_text()
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            await self.send_error("Message is not valid JSON", "INVALID_MESSAGE")
            return None
        if not isinstance(data, dict):
            await self.send_error("Message must be a JSON object", "INVALID_MESSAGE")
            return None
        return data

    async def run(self) -> None:
        """Main handler loop."""
        await self._websocket.accept()
        logger.info("📱 Scanner WebSocket connected")

        try:
            frame_count = 0

            while True:
                data = await self._receive_message()
                if data is None:
                    continue
                message_type = data.get("type")

                if message_type == "init":
                    await self.handle_init(data)

                elif message_type == "frame":
                    frame_count += 1
                    await self.handle_frame(data, frame_count)

                elif message_type == "reset":
                    await self.handle_reset()

                elif message_type == "stop":
                    logger.info("🛑 Client requested stop")
                    break

                else:
                    await self.send_error(f"Unknown message type: {message_type}", "UNKNOWN_MESSAGE")

        except WebSocketDisconnect:
            logger.info("📱 Client disconnected")
        except Exception as e:
            logger.error(f"WebSocket error: {e}")
            try:
                await self.send_error(str(e))
            except Exception as report_error:
                logger.debug(f"Could not report error to client: {report_error}")
        finally:
            if self._scanner is not None:
                self._scanner.close()
            if self._preview is not None:
                self._preview.close()
            logger.info("✅ Scanner WebSocket closed")


@router.websocket("/ws/scan")
async def websocket_scan(websocket: WebSocket, settings: Settings = Depends(get_settings)):
    """Real-time barcode scanning via WebSocket."""
    handler = ScannerWebSocketHandler(websocket, settings)
    await handler.run()
