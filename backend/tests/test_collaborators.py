import asyncio

import httpx
import pytest

from app.config import settings
from app.core.exceptions import UnavailableError
from app.core.timeouts import resolve_timeout, with_timeout
from app.services.geocoding_service import GeocodingService


def test_resolve_timeout_defaults_and_clamps():
    assert resolve_timeout(None) == settings.OPERATION_TIMEOUT_SECONDS
    assert resolve_timeout(0) == settings.OPERATION_TIMEOUT_SECONDS
    assert resolve_timeout(2.5) == 2.5
    assert resolve_timeout(10_000) == settings.MAX_OPERATION_TIMEOUT_SECONDS


@pytest.mark.asyncio
async def test_with_timeout_returns_result():
    async def quick():
        return 42

    assert await with_timeout(quick(), 1) == 42


@pytest.mark.asyncio
async def test_with_timeout_raises_unavailable():
    with pytest.raises(UnavailableError) as exc_info:
        await with_timeout(asyncio.sleep(1), 0.01, collaborator="storage")

    error = exc_info.value
    assert error.status_code == 503
    assert error.headers["Retry-After"] == str(settings.UNAVAILABLE_RETRY_AFTER_SECONDS)
    assert error.detail["error"]["retryable"] is True
    assert error.error_details == {"collaborator": "storage"}


@pytest.mark.asyncio
async def test_geocoder_disabled(monkeypatch):
    monkeypatch.setattr(settings, "GEOCODER_PROVIDER", "none")
    assert await GeocodingService().geocode("الرباط") is None


@pytest.mark.asyncio
async def test_nominatim_geocoder(monkeypatch):
    monkeypatch.setattr(settings, "GEOCODER_PROVIDER", "nominatim")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["q"] == "شارع محمد الخامس، الرباط"
        return httpx.Response(200, json=[{"lat": "34.0209", "lon": "-6.8416"}])

    service = GeocodingService(transport=httpx.MockTransport(handler))
    assert await service.geocode("شارع محمد الخامس، الرباط") == (34.0209, -6.8416)


@pytest.mark.asyncio
async def test_nominatim_no_result(monkeypatch):
    monkeypatch.setattr(settings, "GEOCODER_PROVIDER", "nominatim")
    service = GeocodingService(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])))
    assert await service.geocode("عنوان غير معروف") is None


@pytest.mark.asyncio
async def test_nominatim_failure_is_unavailable(monkeypatch):
    monkeypatch.setattr(settings, "GEOCODER_PROVIDER", "nominatim")

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    service = GeocodingService(transport=httpx.MockTransport(handler))
    with pytest.raises(UnavailableError):
        await service.geocode("الرباط")


@pytest.mark.asyncio
async def test_nominatim_server_error_is_unavailable(monkeypatch):
    monkeypatch.setattr(settings, "GEOCODER_PROVIDER", "nominatim")
    service = GeocodingService(transport=httpx.MockTransport(lambda request: httpx.Response(502)))
    with pytest.raises(UnavailableError):
        await service.geocode("الرباط")
