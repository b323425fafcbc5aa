import pytest

from app.services.generation.cover_image import CoverImageConfig, CoverImageResolver
from app.services.errors import UpstreamError

FALLBACK = "https://acme.ai/founders.jpg"
HOSTED = "https://startup-dose.s3.us-east-1.amazonaws.com/startup-screenshots/acme-ai-1.png"


def _config(**overrides) -> CoverImageConfig:
    values = {
        "aws_region": "us-east-1",
        "aws_access_key_id": "AKIA123",
        "aws_secret_access_key": "secret",
        "s3_bucket_name": "startup-dose",
        "screenshot_api_key": "shot-key",
    }
    values.update(overrides)
    return CoverImageConfig(**values)


class FakeCapturer:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.urls: list[str] = []

    async def capture(self, website_url: str) -> bytes:
        self.urls.append(website_url)
        if self.error is not None:
            raise self.error
        return b"\x89PNG"


class FakeUploader:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.uploads: list[tuple[bytes, str]] = []

    async def upload_screenshot(self, data: bytes, company_slug: str) -> str:
        self.uploads.append((data, company_slug))
        if self.error is not None:
            raise self.error
        return HOSTED


def _resolver(config, capturer, uploader=None, *, uploader_factory=None):
    return CoverImageResolver(
        config,
        screenshot_factory=lambda _config: capturer,
        uploader_factory=uploader_factory or (lambda _config: uploader),
    )


def test_config_reports_missing_credentials():
    assert _config().missing() == []
    assert _config(s3_bucket_name=None, screenshot_api_key="").missing() == [
        "s3_bucket_name",
        "screenshotone_api_key",
    ]


@pytest.mark.asyncio
async def test_resolve_returns_hosted_url_on_success(stub_metrics):
    capturer, uploader = FakeCapturer(), FakeUploader()
    resolver = _resolver(_config(), capturer, uploader)

    url = await resolver.resolve(website="https://acme.ai", slug="acme-ai", fallback_url=FALLBACK)

    assert url == HOSTED
    assert capturer.urls == ["https://acme.ai"]
    assert uploader.uploads == [(b"\x89PNG", "acme-ai")]
    assert stub_metrics.counted("cover_image.hosted") == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["aws_access_key_id", "s3_bucket_name", "screenshot_api_key"])
async def test_resolve_skips_capture_when_configuration_incomplete(stub_metrics, missing):
    capturer, uploader = FakeCapturer(), FakeUploader()
    resolver = _resolver(_config(**{missing: None}), capturer, uploader)

    url = await resolver.resolve(website="https://acme.ai", slug="acme-ai", fallback_url=FALLBACK)

    assert url == FALLBACK
    assert capturer.urls == []
    assert uploader.uploads == []
    assert stub_metrics.counted("cover_image.skipped") == 1


@pytest.mark.asyncio
async def test_resolve_skips_capture_without_website(stub_metrics):
    capturer = FakeCapturer()
    resolver = _resolver(_config(), capturer, FakeUploader())

    assert await resolver.resolve(website="", slug="acme-ai", fallback_url=FALLBACK) == FALLBACK
    assert capturer.urls == []


@pytest.mark.asyncio
async def test_resolve_falls_back_when_screenshot_fails(stub_metrics):
    uploader = FakeUploader()
    resolver = _resolver(_config(), FakeCapturer(error=UpstreamError("boom")), uploader)

    url = await resolver.resolve(website="https://acme.ai", slug="acme-ai", fallback_url=FALLBACK)

    assert url == FALLBACK
    assert uploader.uploads == []
    assert stub_metrics.increment_calls[-1] == {
        "metric": "cover_image.fallback",
        "value": 1.0,
        "tags": {"step": "screenshot"},
    }


@pytest.mark.asyncio
async def test_resolve_falls_back_when_upload_fails(stub_metrics):
    resolver = _resolver(_config(), FakeCapturer(), FakeUploader(error=UpstreamError("denied")))

    url = await resolver.resolve(website="https://acme.ai", slug="acme-ai", fallback_url=FALLBACK)

    assert url == FALLBACK
    assert stub_metrics.increment_calls[-1]["tags"] == {"step": "upload"}


@pytest.mark.asyncio
async def test_resolve_falls_back_when_storage_client_cannot_be_built(stub_metrics):
    capturer = FakeCapturer()

    def broken_factory(_config):
        raise UpstreamError("Failed to create S3 client")

    resolver = _resolver(_config(), capturer, uploader_factory=broken_factory)
    url = await resolver.resolve(website="https://acme.ai", slug="acme-ai", fallback_url=FALLBACK)

    assert url == FALLBACK
    assert capturer.urls == []
    assert stub_metrics.increment_calls[-1]["tags"] == {"step": "storage_client"}


@pytest.mark.asyncio
async def test_default_screenshot_client_requires_http_client(stub_metrics):
    resolver = CoverImageResolver(_config(), uploader_factory=lambda _config: FakeUploader())

    url = await resolver.resolve(website="https://acme.ai", slug="acme-ai", fallback_url=FALLBACK)

    assert url == FALLBACK
    assert stub_metrics.increment_calls[-1]["tags"] == {"step": "screenshot"}
