"""Camera capture session: owns the decoding stream and emits decode events."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import Any

from capture.camera import CameraBackend, CameraStream, decode_barcode
from core.exceptions import CameraUnavailable
from core.sentry import add_lookup_breadcrumb

logger = logging.getLogger(__name__)

DecodeHandler = Callable[[str], Awaitable[Any]]
ErrorHandler = Callable[[Exception], Any]
Decoder = Callable[[Any], str | None]


class CaptureSession:
    """A single camera decoding stream that stops itself after one decode.

    At most one stream is open at a time. A successful decode releases the
    stream first and then hands the barcode to ``on_decode`` in a detached
    task, so ``stop()`` never cancels the lookup a decode started. The
    session knows nothing about lookups or their state.
    """

    def __init__(
        self,
        backend: CameraBackend,
        on_decode: DecodeHandler | None = None,
        on_error: ErrorHandler | None = None,
        decoder: Decoder = decode_barcode,
        facing: str = "environment",
        frame_interval: float = 0.05,
    ):
        self.backend = backend
        self.on_decode = on_decode
        self.on_error = on_error
        self.decoder = decoder
        self.facing = facing
        self.frame_interval = frame_interval
        self.last_error: str | None = None
        self._stream: CameraStream | None = None
        self._task: asyncio.Task | None = None
        self._scans: set[asyncio.Task] = set()
        self._dispatches: set[asyncio.Task] = set()
        self._device: ThreadPoolExecutor | None = None
        self._lock = asyncio.Lock()

    @property
    def active(self) -> bool:
        return self._stream is not None

    async def start(self) -> None:
        """Open the camera and begin decoding frames.

        Raises:
            CameraUnavailable: If no camera can be opened
        """
        async with self._lock:
            if self.active:
                logger.debug("Capture session already active")
                return

            self.last_error = None
            try:
                stream = await self._on_device(self.backend.open, self.facing)
            except CameraUnavailable as e:
                self.last_error = e.message
                logger.warning(f"Camera unavailable: {e.message}")
                raise
            except OSError as e:
                self.last_error = str(e)
                logger.warning(f"Camera could not be opened: {e}")
                raise CameraUnavailable(f"Camera could not be opened: {e}") from e
            except Exception as e:
                # cv2.error, or ImportError when OpenCV or its native libraries cannot load
                self.last_error = str(e)
                logger.warning(f"Camera backend failed: {e!r}")
                raise CameraUnavailable(f"Camera backend failed: {e}") from e

            self._stream = stream
            self._task = asyncio.create_task(self._scan(stream))
            self._scans.add(self._task)
            self._task.add_done_callback(self._scans.discard)
            add_lookup_breadcrumb("scan_started", {"facing": self.facing})
            logger.info("Capture session started")

    async def stop(self) -> None:
        """Release the camera stream. Calling this while inactive is a no-op."""
        async with self._lock:
            task, self._task = self._task, None
            stream, self._stream = self._stream, None

            if task is not None and not task.done():
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
            if stream is not None:
                await self._on_device(stream.release)
                logger.info("Capture session stopped")

    async def join(self) -> None:
        """Wait for the running scan and any decode handlers it started."""
        if self._scans:
            await asyncio.gather(*list(self._scans))
        if self._dispatches:
            await asyncio.gather(*list(self._dispatches))

    async def close(self) -> None:
        """Stop scanning and let in-flight decode handlers finish."""
        await self.stop()
        # A scan that already detached may still be about to dispatch
        if self._scans:
            await asyncio.gather(*list(self._scans), return_exceptions=True)
        if self._dispatches:
            await asyncio.gather(*list(self._dispatches), return_exceptions=True)
        if self._device is not None:
            self._device.shutdown(wait=False)
            self._device = None

    async def _scan(self, stream: CameraStream) -> None:
        """Read frames until one decodes or the device fails."""
        try:
            while True:
                frame = await self._on_device(stream.read)
                code = await asyncio.to_thread(self.decoder, frame) if frame is not None else None
                if code:
                    break
                await asyncio.sleep(self.frame_interval)
        except Exception as e:
            if self._detach(stream):
                self.last_error = getattr(e, "message", str(e))
                logger.error(f"Capture session failed: {self.last_error}")
                await self._on_device(stream.release)
                self._report_error(e)
            return

        if not self._detach(stream):
            # stop() took the stream while the last frame was decoding
            return
        await self._on_device(stream.release)
        logger.info(f"Decoded barcode {code}, capture session stopped")
        add_lookup_breadcrumb("scan_decoded", {"barcode": code})
        self._dispatch(code)

    async def _on_device(self, fn, *args):
        """Run a blocking camera call on the session's single device thread.

        OpenCV capture handles are not thread-safe, so open, read and release
        are serialized: a release issued by stop() waits for a read that is
        still in progress.
        """
        if self._device is None:
            self._device = ThreadPoolExecutor(max_workers=1, thread_name_prefix="camera")
        return await asyncio.get_running_loop().run_in_executor(self._device, fn, *args)

    def _detach(self, stream: CameraStream) -> bool:
        """Mark the session inactive if ``stream`` is still the open one."""
        if self._stream is not stream:
            return False
        self._stream = None
        self._task = None
        return True

    def _dispatch(self, code: str) -> None:
        if self.on_decode is None:
            logger.warning(f"No decode handler registered, dropping barcode {code}")
            return
        task = asyncio.create_task(self._deliver(code))
        self._dispatches.add(task)
        task.add_done_callback(self._dispatches.discard)

    async def _deliver(self, code: str) -> None:
        assert self.on_decode is not None
        try:
            await self.on_decode(code)
        except Exception:
            logger.exception(f"Decode handler failed for barcode {code}")

    def _report_error(self, error: Exception) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(error)
        except Exception:
            logger.exception("Capture error handler failed")
