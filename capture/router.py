"""FastAPI router for camera scanning."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from capture.session import CaptureSession
from core.dependencies import get_capture_session
from core.exceptions import CameraUnavailable
from lookup.models import ScanStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scan", tags=["scan"])


def _require_session(session: CaptureSession | None) -> CaptureSession:
    """Raise 503 if the camera is disabled."""
    if session is None:
        raise HTTPException(
            status_code=503,
            detail="Camera scanning is disabled. Set ENABLE_CAMERA=true to enable it.",
        )
    return session


@router.post(
    "/start",
    response_model=ScanStatus,
    summary="Start scanning with the camera",
    responses={
        200: {"description": "Camera stream open and decoding"},
        503: {"description": "Camera disabled or unavailable"},
    },
)
async def start_scan(
    session: CaptureSession | None = Depends(get_capture_session),
) -> ScanStatus:
    """Open the camera; the first decoded barcode is looked up automatically."""
    svc = _require_session(session)
    try:
        await svc.start()
    except CameraUnavailable as e:
        raise HTTPException(status_code=503, detail=e.message) from e
    return ScanStatus(scanning=svc.active)


@router.post(
    "/stop",
    response_model=ScanStatus,
    summary="Stop scanning",
)
async def stop_scan(
    session: CaptureSession | None = Depends(get_capture_session),
) -> ScanStatus:
    """Release the camera. Does not cancel a lookup already in flight."""
    if session is not None:
        await session.stop()
    return ScanStatus(scanning=False)
