"""Unit tests for lookup/router.py."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from lookup.coordinator import LookupCoordinator
from products.models import LookupOutcome
from tests.factories import NUTELLA_BARCODE, UNKNOWN_BARCODE, make_product_record
from tests.unit.conftest import override_deps


@pytest.fixture
def coordinator(mock_product_client):
    return LookupCoordinator(mock_product_client)


@pytest.fixture
def app_client(coordinator, mock_settings):
    from config.settings import get_settings
    from core.dependencies import get_capture_session, get_coordinator, get_posthog_client
    from main import app

    with override_deps(
        app,
        {
            get_coordinator: coordinator,
            get_capture_session: None,
            get_posthog_client: None,
            get_settings: mock_settings,
        },
    ):
        yield app


async def _post(app, body):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.post("/api/v1/lookup", json=body)


class TestHandleLookup:
    @pytest.mark.asyncio
    async def test_found(self, app_client, mock_product_client):
        mock_product_client.fetch_product.return_value = LookupOutcome.found(
            make_product_record()
        )

        resp = await _post(app_client, {"barcode": NUTELLA_BARCODE})

        assert resp.status_code == 200
        body = resp.json()
        assert body["outcome"]["status"] == "found"
        assert body["outcome"]["product"]["product_name"] == "Nutella"
        assert body["outcome"]["product"]["nutriments"]["energy_100g"] == 539
        assert body["outcome"]["product"]["nutriments"]["display"] == {
            "energy_100g": "539kcal",
            "proteins_100g": "6.3g",
            "carbohydrates_100g": "unknown",
            "fat_100g": "unknown",
        }
        assert body["barcode"] == NUTELLA_BARCODE
        assert body["scanning"] is False
        mock_product_client.fetch_product.assert_awaited_once_with(NUTELLA_BARCODE)

    @pytest.mark.asyncio
    async def test_not_found_is_200(self, app_client, mock_product_client):
        mock_product_client.fetch_product.return_value = LookupOutcome.not_found(UNKNOWN_BARCODE)

        resp = await _post(app_client, {"barcode": UNKNOWN_BARCODE})

        assert resp.status_code == 200
        assert resp.json()["outcome"]["message"] == "Product not found"

    @pytest.mark.asyncio
    async def test_transport_error_is_200(self, app_client, mock_product_client):
        mock_product_client.fetch_product.return_value = LookupOutcome.transport_error("1")

        resp = await _post(app_client, {"barcode": "1"})

        assert resp.status_code == 200
        assert resp.json()["outcome"]["status"] == "transport_error"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"barcode": ""}, {"barcode": "   "}, {}])
    async def test_empty_barcode_returns_422(self, app_client, coordinator, mock_product_client, body):
        resp = await _post(app_client, body)

        assert resp.status_code == 422
        assert resp.json()["detail"] == "Please enter a barcode number"
        mock_product_client.fetch_product.assert_not_awaited()
        assert coordinator.outcome.status == "idle"

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_500(self, app_client, coordinator):
        with patch.object(
            coordinator, "submit_manual", new_callable=AsyncMock, side_effect=Exception("boom")
        ):
            resp = await _post(app_client, {"barcode": "123"})

        assert resp.status_code == 500


class TestLookupState:
    @pytest.mark.asyncio
    async def test_initial_state(self, app_client):
        async with AsyncClient(
            transport=ASGITransport(app=app_client), base_url="http://test"
        ) as client:
            resp = await client.get("/api/v1/lookup/state")

        assert resp.status_code == 200
        body = resp.json()
        assert body["outcome"]["status"] == "idle"
        assert body["scanning"] is False
        assert body["camera_error"] is None

    @pytest.mark.asyncio
    async def test_state_shows_validation_message(self, app_client):
        await _post(app_client, {"barcode": ""})
        async with AsyncClient(
            transport=ASGITransport(app=app_client), base_url="http://test"
        ) as client:
            resp = await client.get("/api/v1/lookup/state")

        assert resp.json()["validation_message"] == "Please enter a barcode number"
