"""Client for the ScreenshotOne rendering API."""

from __future__ import annotations

import httpx

from app.services.errors import UpstreamError

DEFAULT_CAPTURE_OPTIONS: dict[str, str] = {
    "full_page": "false",
    "viewport_width": "1280",
    "viewport_height": "720",
    "device_scale_factor": "2",
    "format": "png",
    "block_cookie_banners": "true",
}


class ScreenshotError(UpstreamError):
    """Raised when ScreenshotOne cannot render the page."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message, code="502_SCREENSHOT_UPSTREAM")
        self.status_code = status_code
        self.body = body


class ScreenshotOneClient:
    """Captures above-the-fold PNG screenshots of a website."""

    def __init__(
        self,
        api_key: str,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = "https://api.screenshotone.com",
        timeout: float = 30.0,
    ) -> None:
        if not api_key:
            raise ValueError("SCREENSHOTONE_API_KEY is required to create a ScreenshotOneClient.")
        self._api_key = api_key
        self._http = http_client
        self._endpoint = f"{base_url.rstrip('/')}/take"
        self._timeout = timeout

    async def capture(self, website_url: str) -> bytes:
        params = {"access_key": self._api_key, "url": website_url, **DEFAULT_CAPTURE_OPTIONS}
        try:
            response = await self._http.get(self._endpoint, params=params, timeout=self._timeout)
        except httpx.TimeoutException as exc:
            raise ScreenshotError("ScreenshotOne request timed out.") from exc
        except httpx.HTTPError as exc:
            raise ScreenshotError(f"Failed to call ScreenshotOne API: {exc}") from exc

        if response.status_code != 200:
            body = response.text[:500]
            raise ScreenshotError(
                f"ScreenshotOne API returned status {response.status_code}: {body}",
                status_code=response.status_code,
                body=body,
            )
        if not response.content:
            raise ScreenshotError("ScreenshotOne returned an empty image.", status_code=200)
        return response.content
