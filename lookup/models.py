"""Models for the lookup API contract."""

from pydantic import BaseModel

from products.models import LookupOutcome


class LookupRequest(BaseModel):
    """Request body for the POST /lookup endpoint."""

    barcode: str = ""


class LookupState(BaseModel):
    """Everything a UI needs to render the lookup workflow."""

    outcome: LookupOutcome
    barcode: str | None = None
    scanning: bool = False
    validation_message: str | None = None
    camera_error: str | None = None


class ScanStatus(BaseModel):
    """Response from the scan start/stop endpoints."""

    scanning: bool
