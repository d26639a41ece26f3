"""Health check router with real dependency connectivity checks."""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from capture.session import CaptureSession
from config.settings import Settings, get_settings
from core.dependencies import get_capture_session, get_product_client
from products.client import OpenFoodFactsClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 3.0
CORE_SERVICES = {"openfoodfacts"}


async def _check_openfoodfacts(client: OpenFoodFactsClient) -> str:
    """Ping OpenFoodFacts via the client's own HTTP pool."""
    return "ok" if await client.check_api() else "error"


async def _check_camera(session: CaptureSession | None) -> str:
    """Report the camera state without opening it."""
    if session is None:
        return "unavailable"
    if session.active:
        return "scanning"
    return "error" if session.last_error else "ok"


async def _run_check(coro) -> str:
    """Run a single health check with a timeout."""
    try:
        return await asyncio.wait_for(coro, timeout=CHECK_TIMEOUT)
    except TimeoutError:
        return "timeout"


@router.get(
    "/health",
    summary="Health check",
    responses={
        200: {"description": "Service is healthy or degraded"},
        503: {"description": "Service is unhealthy (core dependency down)"},
    },
)
async def health_check(
    settings: Settings = Depends(get_settings),
    product_client: OpenFoodFactsClient = Depends(get_product_client),
    capture_session: CaptureSession | None = Depends(get_capture_session),
):
    """Health check with a real connectivity probe for OpenFoodFacts."""
    results = await asyncio.gather(
        _run_check(_check_openfoodfacts(product_client)),
        _run_check(_check_camera(capture_session)),
    )

    services = {
        "openfoodfacts": results[0],
        "camera": results[1],
    }

    core_ok = all(services[s] == "ok" for s in CORE_SERVICES)
    all_configured_ok = all(v in ("ok", "scanning", "unavailable") for v in services.values())

    if core_ok and all_configured_ok:
        status = "healthy"
    elif core_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    body = {
        "status": status,
        "version": settings.app_version,
        "services": services,
    }

    status_code = 200 if status in ("healthy", "degraded") else 503
    return JSONResponse(content=body, status_code=status_code)
