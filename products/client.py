"""OpenFoodFacts product repository client."""

import logging
from typing import Any

import httpx

from config.settings import Settings, get_settings
from core.exceptions import ProductFetchError
from core.sentry import add_lookup_breadcrumb
from products.models import NUTRIENT_UNITS, LookupOutcome, Nutrients, Number, ProductRecord

logger = logging.getLogger(__name__)

PRODUCT_PATH = "/api/v0/product/{barcode}.json"

STATUS_FOUND = 1
STATUS_NOT_FOUND = 0

def _as_number(value: Any) -> Number | None:
    """Coerce a nutriment value to a number, or None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return value
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return None
        return int(parsed) if parsed.is_integer() and "." not in value else parsed
    return None


def _optional_text(value: Any) -> str | None:
    """Return a non-empty string or None."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def parse_product(barcode: str, product: Any) -> ProductRecord:
    """Map an OpenFoodFacts ``product`` object onto a ProductRecord.

    Raises:
        ProductFetchError: If the product object or its name is missing
    """
    if not isinstance(product, dict):
        raise ProductFetchError("Response has no product object", {"barcode": barcode})

    name = product.get("product_name")
    if not isinstance(name, str):
        raise ProductFetchError("Product has no product_name", {"barcode": barcode})

    nutriments = product.get("nutriments")
    if not isinstance(nutriments, dict):
        nutriments = {}

    return ProductRecord(
        barcode=barcode,
        product_name=name,
        brands=_optional_text(product.get("brands")),
        ingredients_text=_optional_text(product.get("ingredients_text")),
        image_url=_optional_text(product.get("image_url")),
        nutriments=Nutrients(**{key: _as_number(nutriments.get(key)) for key in NUTRIENT_UNITS}),
    )


def parse_response(barcode: str, data: Any) -> LookupOutcome:
    """Translate a decoded response body into a terminal LookupOutcome.

    Raises:
        ProductFetchError: If the body is not a well-formed product response
    """
    if not isinstance(data, dict):
        raise ProductFetchError("Response body is not a JSON object", {"barcode": barcode})

    status = data.get("status")
    if status == STATUS_FOUND and not isinstance(status, bool):
        return LookupOutcome.found(parse_product(barcode, data.get("product")))
    if status == STATUS_NOT_FOUND and not isinstance(status, bool):
        return LookupOutcome.not_found(barcode)

    raise ProductFetchError(f"Unexpected status flag: {status!r}", {"barcode": barcode})


class OpenFoodFactsClient:
    """Stateless request/response boundary to the OpenFoodFacts database.

    Each call to :meth:`fetch_product` issues exactly one GET and maps the
    reply to ``FOUND``, ``NOT_FOUND`` or ``TRANSPORT_ERROR``. There is no
    retry, caching or rate limiting; the HTTP client is created lazily and
    reused for connection pooling only.
    """

    def __init__(self, settings: Settings | None = None):
        """Initialize the client.

        Args:
            settings: Application settings (defaults to the cached settings)
        """
        self.settings = settings or get_settings()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.openfoodfacts_base_url,
                headers={"User-Agent": self.settings.openfoodfacts_user_agent},
                timeout=self.settings.openfoodfacts_timeout,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def check_api(self) -> bool:
        """Check OpenFoodFacts connectivity."""
        try:
            client = await self._get_client()
            resp = await client.get("/")
            return resp.status_code < 500
        except httpx.HTTPError:
            return False

    async def fetch_product(self, barcode: str) -> LookupOutcome:
        """Look up a single product by barcode.

        Args:
            barcode: Barcode string; passed through as-is

        Returns:
            A terminal LookupOutcome (found, not found or transport error)
        """
        add_lookup_breadcrumb("fetch_product", {"barcode": barcode})
        path = PRODUCT_PATH.format(barcode=barcode)

        try:
            client = await self._get_client()
            response = await client.get(path)
            response.raise_for_status()
            outcome = parse_response(barcode, response.json())
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"OpenFoodFacts returned {e.response.status_code} for barcode {barcode}"
            )
            add_lookup_breadcrumb("fetch_failed", {"barcode": barcode}, level="warning")
            return LookupOutcome.transport_error(barcode)
        except httpx.HTTPError as e:
            logger.warning(f"OpenFoodFacts request failed for barcode {barcode}: {e!r}")
            add_lookup_breadcrumb("fetch_failed", {"barcode": barcode}, level="warning")
            return LookupOutcome.transport_error(barcode)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"OpenFoodFacts sent a non-JSON body for barcode {barcode}: {e}")
            return LookupOutcome.transport_error(barcode)
        except ProductFetchError as e:
            logger.warning(f"Malformed OpenFoodFacts response for barcode {barcode}: {e.message}")
            return LookupOutcome.transport_error(barcode)

        logger.info(f"Barcode {barcode} resolved to {outcome.status}")
        return outcome
