"""Lookup API router."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from capture.session import CaptureSession
from core.dependencies import get_capture_session, get_coordinator
from core.exceptions import ValidationError
from lookup.coordinator import LookupCoordinator
from lookup.models import LookupRequest, LookupState

logger = logging.getLogger(__name__)

router = APIRouter(tags=["lookup"])


def build_state(
    coordinator: LookupCoordinator,
    capture_session: CaptureSession | None,
) -> LookupState:
    """Snapshot the coordinator and capture session for presentation."""
    return LookupState(
        outcome=coordinator.outcome,
        barcode=coordinator.barcode,
        scanning=bool(capture_session and capture_session.active),
        validation_message=coordinator.validation_message,
        camera_error=capture_session.last_error if capture_session else None,
    )


@router.get(
    "/lookup/state",
    response_model=LookupState,
    summary="Current lookup outcome and scanning status",
)
async def get_lookup_state(
    coordinator: LookupCoordinator = Depends(get_coordinator),
    capture_session: CaptureSession | None = Depends(get_capture_session),
) -> LookupState:
    """Return the current state for a UI to render."""
    return build_state(coordinator, capture_session)


@router.post(
    "/lookup",
    response_model=LookupState,
    summary="Look up a manually entered barcode",
    description="""
    Validates the barcode, queries OpenFoodFacts and returns the resulting
    state once the lookup resolves. A product that does not exist and a
    failed request are both successful calls: inspect `outcome.status`.
    """,
    responses={
        200: {"description": "Lookup resolved (found, not found or transport error)"},
        422: {"description": "Empty barcode"},
        500: {"description": "Internal server error"},
    },
)
async def handle_lookup(
    request: LookupRequest,
    coordinator: LookupCoordinator = Depends(get_coordinator),
    capture_session: CaptureSession | None = Depends(get_capture_session),
) -> LookupState:
    """Process a manual lookup request."""
    try:
        await coordinator.submit_manual(request.barcode)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    except Exception as e:
        logger.error(f"Lookup failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error") from e

    return build_state(coordinator, capture_session)
