"""OpenCV camera binding and pyzbar barcode decoder.

OpenCV and pyzbar load native libraries (libGL-free OpenCV build, libzbar),
so both are imported on first use rather than at module import. This keeps
the HTTP service importable on hosts without a camera stack.
"""

import logging
from typing import Any, Protocol

from core.exceptions import CameraUnavailable

logger = logging.getLogger(__name__)

CAMERA_FACINGS = ("environment", "user")


class CameraStream(Protocol):
    """An open camera stream. Both methods block and run off the event loop."""

    def read(self) -> Any | None: ...

    def release(self) -> None: ...


class CameraBackend(Protocol):
    """Opens camera streams; raises CameraUnavailable when it cannot."""

    def open(self, facing: str) -> CameraStream: ...


class OpenCVCameraStream:
    """Frame source wrapping a ``cv2.VideoCapture``."""

    def __init__(self, capture: Any):
        self._capture = capture

    def read(self) -> Any | None:
        """Grab one frame.

        Raises:
            CameraUnavailable: If the device stopped delivering frames
        """
        ok, frame = self._capture.read()
        if not ok:
            raise CameraUnavailable("Camera stopped delivering frames")
        return frame

    def release(self) -> None:
        self._capture.release()


class OpenCVCameraBackend:
    """Opens the configured OpenCV device.

    OpenCV has no notion of camera facing, so the facing preference selects
    nothing by itself; deployments point ``CAMERA_INDEX`` at the rear camera.
    """

    def __init__(self, index: int = 0):
        self.index = index

    def open(self, facing: str) -> OpenCVCameraStream:
        import cv2

        logger.info(f"Opening camera {self.index} (facing preference: {facing})")
        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            raise CameraUnavailable(
                f"No camera available at index {self.index}",
                details={"index": self.index, "facing": facing},
            )
        return OpenCVCameraStream(capture)


def decode_barcode(frame: Any) -> str | None:
    """Decode the first non-empty barcode in a frame, or return None."""
    import cv2
    from pyzbar import pyzbar

    if getattr(frame, "ndim", 2) == 3:
        frame = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)

    for symbol in pyzbar.decode(frame):
        text = symbol.data.decode("utf-8", errors="replace").strip()
        if text:
            logger.debug(f"Decoded {symbol.type} barcode: {text}")
            return text
    return None
