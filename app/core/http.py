"""Shared outbound HTTP client owned by the composition root."""

from __future__ import annotations

import httpx

from app.config import Settings


def build_http_client(config: Settings) -> httpx.AsyncClient:
    """Create the pooled client shared by every provider client; callers must aclose() it."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        limits=httpx.Limits(
            max_connections=config.http_max_connections,
            max_keepalive_connections=config.http_max_keepalive_connections,
            keepalive_expiry=90.0,
        ),
        headers={"User-Agent": f"{config.app_name}/{config.app_version}"},
    )
