import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_settings
from app.config import Settings
from app.main import app
from app.services.generation import cover_image, orchestrator, repositories
from app.services.publishing import instagram_publisher
from tests.helpers.metrics_stub import StubMetrics

API_KEY = "test-api-key"


class _SyncASGIClient:
    """Minimal synchronous wrapper around httpx.AsyncClient for ASGI apps."""

    def __init__(self, app):
        transport = httpx.ASGITransport(app=app)
        self._client = httpx.AsyncClient(transport=transport, base_url="http://testserver")

    def request(self, method: str, url: str, **kwargs):
        return asyncio.run(self._client.request(method, url, **kwargs))

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs):
        return self.request("POST", url, **kwargs)

    def close(self) -> None:
        asyncio.run(self._client.aclose())


@pytest.fixture
def client():
    """Create test client compatible with older/newer httpx releases."""
    try:
        test_client = TestClient(app)
        yield test_client
    except TypeError:
        fallback_client = _SyncASGIClient(app)
        try:
            yield fallback_client
        finally:
            fallback_client.close()
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def api_settings() -> Settings:
    """Settings with inbound auth enabled and no outbound credentials."""
    config = Settings(
        api_key=API_KEY,
        openai_api_key=None,
        database_url=None,
        aws_access_key_id=None,
        aws_secret_access_key=None,
        s3_bucket_name=None,
        screenshotone_api_key=None,
        instagram_user_id=None,
        instagram_access_token=None,
    )
    app.dependency_overrides[get_settings] = lambda: config
    return config


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"x-api-key": API_KEY}


@pytest.fixture
def stub_metrics(monkeypatch) -> StubMetrics:
    stub = StubMetrics()
    for module in (orchestrator, cover_image, repositories, instagram_publisher):
        monkeypatch.setattr(module, "metrics", stub)
    return stub
