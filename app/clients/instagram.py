"""Client for the Instagram Graph API content-publishing endpoints."""

from __future__ import annotations

from typing import Any

import httpx

from app.services.errors import UpstreamError

GRAPH_API_BASE_URL = "https://graph.facebook.com"
DEFAULT_API_VERSION = "v23.0"


class InstagramError(UpstreamError):
    """Base error for Instagram client failures."""

    def __init__(self, message: str, code: str = "502_INSTAGRAM_UPSTREAM") -> None:
        super().__init__(message, code=code)


class InstagramTransportError(InstagramError):
    """Raised when the Graph API cannot be reached."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="502_INSTAGRAM_TRANSPORT")


class InstagramAPIError(InstagramError):
    """Raised when the Graph API answers with an error envelope."""

    def __init__(self, message: str, api_code: int | None = None) -> None:
        super().__init__(f"API error: {message} (code: {api_code})", code="502_INSTAGRAM_API")
        self.api_message = message
        self.api_code = api_code


class InstagramClient:
    """Minimal Graph API client for one Instagram business account."""

    def __init__(
        self,
        user_id: str | None,
        access_token: str | None,
        *,
        http_client: httpx.AsyncClient,
        api_version: str = DEFAULT_API_VERSION,
        base_url: str = GRAPH_API_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        self._user_id = user_id or ""
        self._access_token = access_token or ""
        self._http = http_client
        self._base_url = f"{base_url.rstrip('/')}/{api_version or DEFAULT_API_VERSION}"
        self._timeout = timeout

    def is_configured(self) -> bool:
        return bool(self._user_id and self._access_token)

    async def create_container(self, image_url: str, caption: str) -> str:
        payload = await self._request(
            "POST",
            f"/{self._user_id}/media",
            data={"image_url": image_url, "caption": caption, "access_token": self._access_token},
        )
        container_id = payload.get("id")
        if not container_id:
            raise InstagramError("no container ID returned")
        return str(container_id)

    async def get_container_status(self, container_id: str) -> str:
        payload = await self._request(
            "GET",
            f"/{container_id}",
            params={"fields": "status_code", "access_token": self._access_token},
        )
        return str(payload.get("status_code") or "")

    async def publish_container(self, container_id: str) -> str:
        payload = await self._request(
            "POST",
            f"/{self._user_id}/media_publish",
            data={"creation_id": container_id, "access_token": self._access_token},
        )
        media_id = payload.get("id")
        if not media_id:
            raise InstagramError("no media ID returned")
        return str(media_id)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        data: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(
                method,
                f"{self._base_url}{path}",
                data=data,
                params=params,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise InstagramTransportError(f"failed to send request: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise InstagramError(
                f"failed to parse response (status {response.status_code})"
            ) from exc
        if not isinstance(payload, dict):
            raise InstagramError("failed to parse response: expected a JSON object")

        error = payload.get("error")
        if error:
            if isinstance(error, dict):
                raise InstagramAPIError(str(error.get("message", "unknown error")), error.get("code"))
            raise InstagramAPIError(str(error))
        return payload
