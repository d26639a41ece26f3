"""Integration test fixtures.

Provides a real OpenFoodFactsClient whose HTTP traffic is served by an
in-process fake of the OpenFoodFacts v0 product endpoint, seeded with
representative catalogue entries.
"""

import re

import httpx
import pytest
import pytest_asyncio

from config.settings import Settings
from products.client import OpenFoodFactsClient
from tests.factories import NUTELLA_BARCODE, make_not_found_payload, make_product_payload

PRODUCT_PATH = re.compile(r"^/api/v0/product/(?P<barcode>[^/]+)\.json$")

# ---------------------------------------------------------------------------
# Seed data -- representative catalogue entries
# ---------------------------------------------------------------------------

SEED_PRODUCTS = {
    NUTELLA_BARCODE: make_product_payload(),
    "5449000000996": make_product_payload(
        "5449000000996",
        product_name="Coca-Cola",
        brands="Coca-Cola",
        ingredients_text=None,
        nutriments={"energy_100g": 180, "carbohydrates_100g": 10.6, "proteins_100g": 0},
    ),
    "7622210449283": make_product_payload(
        "7622210449283",
        product_name="Prince Chocolat",
        image_url=None,
        nutriments={},
    ),
}


class FakeOpenFoodFacts:
    """Serves product lookups from SEED_PRODUCTS; can be switched offline."""

    def __init__(self, products):
        self.products = products
        self.offline = False
        self.failing_status: int | None = None
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.offline:
            raise httpx.ConnectError("Network is unreachable", request=request)
        match = PRODUCT_PATH.match(request.url.path)
        if match is None:
            return httpx.Response(200, text="<html>OpenFoodFacts</html>")
        barcode = match.group("barcode")
        self.requests.append(barcode)
        if self.failing_status is not None:
            return httpx.Response(self.failing_status, text="Service Unavailable")
        payload = self.products.get(barcode) or make_not_found_payload(barcode)
        return httpx.Response(200, json=payload)


@pytest.fixture
def integration_settings():
    return Settings(
        openfoodfacts_base_url="http://openfoodfacts.test",
        sentry_dsn=None,
        posthog_api_key=None,
        enable_telemetry=False,
        enable_camera=False,
        scan_frame_interval=0,
    )


@pytest.fixture
def fake_off():
    return FakeOpenFoodFacts(SEED_PRODUCTS)


@pytest_asyncio.fixture
async def product_client(integration_settings, fake_off):
    client = OpenFoodFactsClient(integration_settings)
    client._client = httpx.AsyncClient(
        base_url=integration_settings.openfoodfacts_base_url,
        transport=httpx.MockTransport(fake_off),
    )
    yield client
    await client.close()
