"""FastAPI dependency injection providers."""

import logging

from fastapi import Depends
from posthog import Posthog

from capture.camera import CAMERA_FACINGS, OpenCVCameraBackend
from capture.session import CaptureSession
from config.settings import Settings, get_settings
from core.exceptions import ConfigurationError
from core.sentry import capture_exception
from lookup.coordinator import LookupCoordinator
from products.client import OpenFoodFactsClient

logger = logging.getLogger(__name__)

# Module-level instances for lifecycle management
_product_client: OpenFoodFactsClient | None = None
_coordinator: LookupCoordinator | None = None
_capture_session: CaptureSession | None = None
_posthog_client: Posthog | None = None


def get_product_client(settings: Settings = Depends(get_settings)) -> OpenFoodFactsClient:
    """Get the OpenFoodFacts client instance."""
    global _product_client

    if _product_client is None:
        _product_client = OpenFoodFactsClient(settings)
        logger.info(f"OpenFoodFacts client initialized ({settings.openfoodfacts_base_url})")

    return _product_client


async def close_product_client() -> None:
    """Close the OpenFoodFacts client and its HTTP connection pool."""
    global _product_client
    if _product_client:
        await _product_client.close()
        _product_client = None


def get_posthog_client(settings: Settings = Depends(get_settings)) -> Posthog | None:
    """Get PostHog client instance.

    Returns:
        Optional[Posthog]: PostHog client if configured and enabled, None otherwise
    """
    global _posthog_client

    if not settings.enable_telemetry:
        logger.debug("Telemetry disabled")
        return None

    if not settings.posthog_api_key:
        logger.debug("POSTHOG_API_KEY not set - telemetry disabled")
        return None

    if _posthog_client is None:
        _posthog_client = Posthog(
            project_api_key=settings.posthog_api_key,
            host=settings.posthog_host,
        )
        logger.info(f"PostHog client initialized (host: {settings.posthog_host})")

    return _posthog_client


def flush_posthog() -> None:
    """Flush any buffered PostHog events."""
    if _posthog_client:
        _posthog_client.flush()


def shutdown_posthog() -> None:
    """Shutdown PostHog client gracefully."""
    global _posthog_client
    if _posthog_client:
        _posthog_client.shutdown()
        _posthog_client = None
        logger.info("PostHog client shutdown")


def get_coordinator(
    settings: Settings = Depends(get_settings),
    product_client: OpenFoodFactsClient = Depends(get_product_client),
    posthog_client: Posthog | None = Depends(get_posthog_client),
) -> LookupCoordinator:
    """Get the process-wide lookup coordinator."""
    global _coordinator

    if _coordinator is None:
        _coordinator = LookupCoordinator(
            product_client,
            race_policy=settings.lookup_race_policy,
            posthog_client=posthog_client,
        )
        logger.info(f"Lookup coordinator initialized (race policy: {settings.lookup_race_policy})")

    return _coordinator


def check_camera_settings(settings: Settings) -> None:
    """Reject camera settings the backend cannot honour.

    Raises:
        ConfigurationError: If CAMERA_FACING is not a known facing
    """
    if settings.camera_facing not in CAMERA_FACINGS:
        raise ConfigurationError(
            f"CAMERA_FACING must be one of {', '.join(CAMERA_FACINGS)}",
            {"camera_facing": settings.camera_facing},
        )


def _report_capture_error(error: Exception) -> None:
    capture_exception(error, {"component": "capture_session"})


def get_capture_session(
    settings: Settings = Depends(get_settings),
    coordinator: LookupCoordinator = Depends(get_coordinator),
) -> CaptureSession | None:
    """Get the capture session, or None when the camera is disabled."""
    global _capture_session

    if not settings.enable_camera:
        logger.debug("Camera disabled")
        return None

    if _capture_session is None:
        check_camera_settings(settings)
        _capture_session = CaptureSession(
            OpenCVCameraBackend(settings.camera_index),
            on_decode=coordinator.submit_from_capture,
            on_error=_report_capture_error,
            facing=settings.camera_facing,
            frame_interval=settings.scan_frame_interval,
        )
        logger.info(f"Capture session initialized (camera index: {settings.camera_index})")

    return _capture_session


async def close_capture_session() -> None:
    """Release the camera and wait for decode handlers to finish."""
    global _capture_session
    if _capture_session:
        await _capture_session.close()
        _capture_session = None


def reset_coordinator() -> None:
    """Forget the coordinator so the next request builds a fresh one."""
    global _coordinator
    _coordinator = None
