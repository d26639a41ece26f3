"""Telemetry module for tracking lookup performance with PostHog."""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from posthog import Posthog

logger = logging.getLogger(__name__)

DISTINCT_ID = "food-barcode-lookup-service"


@dataclass
class StepResult:
    """Result of a tracked step."""

    duration_ms: float
    success: bool = True
    error_type: str | None = None


@dataclass
class LookupTelemetry:
    """Tracks timing and outcome for a single barcode lookup.

    Attributes:
        source: Where the barcode came from ("manual" or "capture")
        steps: Timings for each tracked step, keyed by step name
    """

    source: str = "manual"
    steps: dict[str, StepResult] = field(default_factory=dict)
    start_time: float = field(default_factory=time.perf_counter)

    @contextmanager
    def track_step(self, step_name: str):
        """Context manager to time a step.

        Exceptions raised inside the block are recorded and re-raised.
        """
        step_start = time.perf_counter()
        error_type = None

        try:
            yield
        except Exception as e:
            error_type = type(e).__name__
            raise
        finally:
            self.steps[step_name] = StepResult(
                duration_ms=(time.perf_counter() - step_start) * 1000,
                success=error_type is None,
                error_type=error_type,
            )

    def get_total_duration_ms(self) -> float:
        """Get total elapsed time since telemetry was created."""
        return (time.perf_counter() - self.start_time) * 1000

    def get_step_timings(self) -> dict[str, float]:
        """Get timing for each step in milliseconds."""
        return {f"{name}_ms": step.duration_ms for name, step in self.steps.items()}

    def send_to_posthog(
        self,
        posthog_client: Posthog,
        status: str,
        extra_properties: dict[str, Any] | None = None,
    ) -> None:
        """Send the lookup summary event to PostHog.

        Args:
            posthog_client: PostHog client instance
            status: Final outcome status of the lookup
            extra_properties: Additional properties to include in the event
        """
        extra_properties = extra_properties or {}

        posthog_client.capture(
            distinct_id=DISTINCT_ID,
            event="barcode_lookup_completed",
            properties={
                "status": status,
                "source": self.source,
                "total_duration_ms": round(self.get_total_duration_ms(), 2),
                "steps": self.get_step_timings(),
                **extra_properties,
            },
        )

        logger.debug(
            f"Sent telemetry: {status} via {self.source}, "
            f"total {self.get_total_duration_ms():.1f}ms"
        )
