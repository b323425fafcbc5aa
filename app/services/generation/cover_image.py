"""Best-effort replacement of the suggested cover image with a hosted screenshot."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

import httpx

from app.clients.s3 import S3Target, S3Uploader
from app.clients.screenshotone import ScreenshotOneClient
from app.config import Settings
from app.observability.metrics import metrics

logger = logging.getLogger(__name__)


class ScreenshotCapturer(Protocol):
    async def capture(self, website_url: str) -> bytes:
        ...


class BlobUploader(Protocol):
    async def upload_screenshot(self, data: bytes, company_slug: str) -> str:
        ...


@dataclass(frozen=True)
class CoverImageConfig:
    """Credentials required before any screenshot is attempted."""

    aws_region: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    s3_bucket_name: str | None = None
    screenshot_api_key: str | None = None
    screenshot_base_url: str = "https://api.screenshotone.com"
    screenshot_timeout_seconds: float = 30.0

    @classmethod
    def from_settings(cls, config: Settings) -> CoverImageConfig:
        return cls(
            aws_region=config.aws_region,
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
            s3_bucket_name=config.s3_bucket_name,
            screenshot_api_key=config.screenshotone_api_key,
            screenshot_base_url=config.screenshotone_base_url,
            screenshot_timeout_seconds=config.screenshot_timeout_seconds,
        )

    def missing(self) -> list[str]:
        required = {
            "aws_region": self.aws_region,
            "aws_access_key_id": self.aws_access_key_id,
            "aws_secret_access_key": self.aws_secret_access_key,
            "s3_bucket_name": self.s3_bucket_name,
            "screenshotone_api_key": self.screenshot_api_key,
        }
        return [name for name, value in required.items() if not value]

    def s3_target(self) -> S3Target:
        return S3Target(
            region=self.aws_region or "",
            access_key_id=self.aws_access_key_id or "",
            secret_access_key=self.aws_secret_access_key or "",
            bucket=self.s3_bucket_name or "",
        )


@dataclass
class _ChainState:
    website: str
    slug: str
    uploader: BlobUploader | None = None
    screenshot: bytes | None = None
    hosted_url: str | None = None


class CoverImageResolver:
    """Runs storage-client -> screenshot -> upload, reverting to the fallback URL on any failure."""

    def __init__(
        self,
        config: CoverImageConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        screenshot_factory: Callable[[CoverImageConfig], ScreenshotCapturer] | None = None,
        uploader_factory: Callable[[CoverImageConfig], BlobUploader] | None = None,
    ) -> None:
        self._config = config
        self._http_client = http_client
        self._screenshot_factory = screenshot_factory or self._default_screenshot_client
        self._uploader_factory = uploader_factory or _default_uploader
        self._steps: tuple[tuple[str, Callable[[_ChainState], Awaitable[None]]], ...] = (
            ("storage_client", self._build_uploader),
            ("screenshot", self._capture),
            ("upload", self._upload),
        )

    async def resolve(self, *, website: str, slug: str, fallback_url: str) -> str:
        missing = self._config.missing()
        if not website:
            missing.append("website")
        if missing:
            logger.warning(
                "cover_image.skipped",
                extra={"slug": slug, "missing": missing},
            )
            metrics.increment("cover_image.skipped")
            return fallback_url

        state = _ChainState(website=website, slug=slug)
        for step_name, step in self._steps:
            try:
                await step(state)
            except Exception as exc:
                logger.error(
                    "cover_image.fallback",
                    extra={"slug": slug, "step": step_name, "error": str(exc)},
                )
                metrics.increment("cover_image.fallback", tags={"step": step_name})
                return fallback_url

        logger.info("cover_image.hosted", extra={"slug": slug, "url": state.hosted_url})
        metrics.increment("cover_image.hosted")
        return state.hosted_url or fallback_url

    async def _build_uploader(self, state: _ChainState) -> None:
        state.uploader = self._uploader_factory(self._config)

    async def _capture(self, state: _ChainState) -> None:
        capturer = self._screenshot_factory(self._config)
        state.screenshot = await capturer.capture(state.website)

    async def _upload(self, state: _ChainState) -> None:
        assert state.uploader is not None and state.screenshot is not None
        state.hosted_url = await state.uploader.upload_screenshot(state.screenshot, state.slug)

    def _default_screenshot_client(self, config: CoverImageConfig) -> ScreenshotCapturer:
        if self._http_client is None:
            raise RuntimeError("An HTTP client is required to capture screenshots.")
        return ScreenshotOneClient(
            config.screenshot_api_key or "",
            http_client=self._http_client,
            base_url=config.screenshot_base_url,
            timeout=config.screenshot_timeout_seconds,
        )


def _default_uploader(config: CoverImageConfig) -> BlobUploader:
    return S3Uploader(config.s3_target())
