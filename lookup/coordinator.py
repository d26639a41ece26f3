"""Lookup coordinator: the barcode lookup state machine.

Manual entry and camera decode events both end up in begin_lookup(), which
moves the state through LOADING to one of FOUND, NOT_FOUND or
TRANSPORT_ERROR. Every state accepts a new submission, including LOADING.

Overlapping lookups are settled by the race policy:

- ``last_resolved``: every completed lookup overwrites the state, so the
  lookup that finishes last wins.
- ``last_issued``: each lookup carries a request token and results with a
  stale token are dropped, so the lookup started last wins.
"""

import logging
from collections.abc import Callable
from typing import Protocol

from posthog import Posthog

from config.settings import RacePolicy
from core.exceptions import EMPTY_BARCODE_MESSAGE, EmptyBarcodeError
from core.sentry import capture_exception
from core.telemetry import LookupTelemetry
from products.models import LookupOutcome

logger = logging.getLogger(__name__)

OutcomeListener = Callable[[LookupOutcome], None]


class ProductRepository(Protocol):
    async def fetch_product(self, barcode: str) -> LookupOutcome: ...


class LookupCoordinator:
    """Owns the current LookupOutcome; nothing else writes it."""

    def __init__(
        self,
        product_client: ProductRepository,
        race_policy: RacePolicy = RacePolicy.LAST_RESOLVED,
        posthog_client: Posthog | None = None,
    ):
        self.product_client = product_client
        self.race_policy = race_policy
        self.posthog_client = posthog_client
        self.barcode: str | None = None
        self.validation_message: str | None = None
        self._outcome = LookupOutcome.idle()
        self._latest_token = 0
        self._listeners: list[OutcomeListener] = []

    @property
    def outcome(self) -> LookupOutcome:
        return self._outcome

    def subscribe(self, listener: OutcomeListener) -> None:
        """Call ``listener`` with every new outcome."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: OutcomeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def submit_manual(self, text: str) -> LookupOutcome:
        """Look up a typed barcode.

        Raises:
            EmptyBarcodeError: If ``text`` is empty after trimming. The
                current outcome is left untouched.
        """
        code = (text or "").strip()
        if not code:
            self.validation_message = EMPTY_BARCODE_MESSAGE
            logger.info("Rejected empty manual barcode")
            raise EmptyBarcodeError()
        return await self.begin_lookup(code, source="manual")

    async def submit_from_capture(self, code: str) -> LookupOutcome:
        """Look up a barcode delivered by a capture session decode event."""
        return await self.begin_lookup(code, source="capture")

    async def begin_lookup(self, code: str, source: str = "manual") -> LookupOutcome:
        """Run one lookup and settle the state according to the race policy.

        Returns:
            The outcome of this lookup, even when the race policy discarded it
        """
        self._latest_token += 1
        token = self._latest_token
        self.barcode = code
        self.validation_message = None
        self._transition(LookupOutcome.loading(code))
        logger.info(f"Looking up barcode {code} from {source} (request {token})")

        telemetry = LookupTelemetry(source=source)
        try:
            with telemetry.track_step("fetch_product"):
                result = await self.product_client.fetch_product(code)
        except Exception as e:
            logger.error(f"Product lookup for {code} raised unexpectedly: {e!r}")
            capture_exception(e, {"barcode": code, "source": source})
            result = LookupOutcome.transport_error(code)

        if self.posthog_client:
            telemetry.send_to_posthog(
                self.posthog_client,
                result.status,
                {"superseded": token != self._latest_token},
            )

        if self.race_policy == RacePolicy.LAST_ISSUED and token != self._latest_token:
            logger.info(
                f"Discarding stale result for barcode {code} "
                f"(request {token}, latest {self._latest_token})"
            )
            return result

        self._transition(result)
        return result

    def _transition(self, outcome: LookupOutcome) -> None:
        self._outcome = outcome
        if outcome.is_terminal:
            # Echo the barcode this outcome belongs to, which under last_resolved
            # can be an earlier submission than the latest one
            self.barcode = outcome.barcode
        for listener in list(self._listeners):
            try:
                listener(outcome)
            except Exception:
                logger.exception(f"Outcome listener {listener!r} failed")
