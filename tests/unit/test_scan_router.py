"""Unit tests for capture/router.py."""

import pytest
from httpx import ASGITransport, AsyncClient

from capture.session import CaptureSession
from tests.factories import FakeCameraBackend, frame_decoder, unavailable_backend
from tests.unit.conftest import override_deps


@pytest.fixture
def make_app(mock_settings):
    from config.settings import get_settings
    from core.dependencies import get_capture_session, get_posthog_client
    from main import app

    def _make(session):
        return override_deps(
            app,
            {
                get_capture_session: session,
                get_posthog_client: None,
                get_settings: mock_settings,
            },
        )

    return _make


async def _post(app, path):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.post(path)


class TestStartScan:
    @pytest.mark.asyncio
    async def test_start(self, make_app):
        session = CaptureSession(FakeCameraBackend(), decoder=frame_decoder, frame_interval=0)
        with make_app(session) as app:
            resp = await _post(app, "/api/v1/scan/start")

        assert resp.status_code == 200
        assert resp.json() == {"scanning": True}
        await session.stop()

    @pytest.mark.asyncio
    async def test_camera_unavailable_returns_503(self, make_app):
        session = CaptureSession(unavailable_backend("permission denied"))
        with make_app(session) as app:
            resp = await _post(app, "/api/v1/scan/start")

        assert resp.status_code == 503
        assert resp.json()["detail"] == "permission denied"
        assert session.active is False

    @pytest.mark.asyncio
    async def test_opencv_load_failure_returns_503(self, make_app):
        backend = FakeCameraBackend(error=ImportError("libGL.so.1: cannot open shared object file"))
        session = CaptureSession(backend)
        with make_app(session) as app:
            resp = await _post(app, "/api/v1/scan/start")

        assert resp.status_code == 503
        assert "libGL.so.1" in resp.json()["detail"]
        assert session.last_error is not None

    @pytest.mark.asyncio
    async def test_camera_disabled_returns_503(self, make_app):
        with make_app(None) as app:
            resp = await _post(app, "/api/v1/scan/start")

        assert resp.status_code == 503
        assert "ENABLE_CAMERA" in resp.json()["detail"]


class TestStopScan:
    @pytest.mark.asyncio
    async def test_stop_releases_camera(self, make_app):
        backend = FakeCameraBackend()
        session = CaptureSession(backend, decoder=frame_decoder, frame_interval=0)
        await session.start()

        with make_app(session) as app:
            resp = await _post(app, "/api/v1/scan/stop")

        assert resp.json() == {"scanning": False}
        assert session.active is False
        assert backend.last_stream.released is True

    @pytest.mark.asyncio
    async def test_stop_when_disabled(self, make_app):
        with make_app(None) as app:
            resp = await _post(app, "/api/v1/scan/stop")

        assert resp.status_code == 200
        assert resp.json() == {"scanning": False}
