"""FastAPI dependencies that assemble per-request pipeline collaborators."""

from __future__ import annotations

import hmac
import logging

import httpx
from fastapi import Depends, Header, HTTPException, Request

from app.clients.instagram import InstagramClient
from app.clients.openai_chat import OpenAIChatCompletionClient
from app.config import Settings, settings
from app.services.errors import ConfigurationError
from app.services.generation.content_generator import StartupContentGenerator
from app.services.generation.cover_image import CoverImageConfig, CoverImageResolver
from app.services.generation.orchestrator import CompanyGenerationOrchestrator
from app.services.generation.repositories import CompanyRepository
from app.services.publishing.instagram_publisher import InstagramPublisher

logger = logging.getLogger(__name__)


def get_settings() -> Settings:
    return settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        raise HTTPException(
            status_code=503,
            detail={"error": "service_unavailable", "message": "HTTP client not initialized"},
        )
    return client


def get_company_repository(request: Request) -> CompanyRepository:
    repository = getattr(request.app.state, "company_repository", None)
    if repository is None:
        raise HTTPException(
            status_code=503,
            detail={"error": "service_unavailable", "message": "Database not initialized"},
        )
    return repository


def require_api_key(
    x_api_key: str | None = Header(default=None),
    config: Settings = Depends(get_settings),
) -> None:
    if not config.api_key:
        logger.error("auth.api_key.not_configured")
        raise HTTPException(
            status_code=401,
            detail={"error": "unauthorized", "message": "API key authentication is not configured"},
        )
    if not x_api_key or not hmac.compare_digest(x_api_key, config.api_key):
        logger.warning("auth.api_key.rejected")
        raise HTTPException(
            status_code=401,
            detail={"error": "unauthorized", "message": "Invalid or missing API key"},
        )


def get_orchestrator(
    config: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    repository: CompanyRepository = Depends(get_company_repository),
) -> CompanyGenerationOrchestrator:
    try:
        completion_client = OpenAIChatCompletionClient(
            config.openai_api_key,
            timeout=config.openai_timeout_seconds,
            http_client=http_client,
        )
    except ConfigurationError as exc:
        logger.error("generation.openai.not_configured")
        raise HTTPException(
            status_code=500,
            detail={"error": "internal_server_error", "message": str(exc)},
        ) from exc
    return CompanyGenerationOrchestrator(
        generator=StartupContentGenerator(completion_client, model=config.openai_model),
        cover_images=CoverImageResolver(
            CoverImageConfig.from_settings(config),
            http_client=http_client,
        ),
        repository=repository,
    )


def get_instagram_publisher(
    config: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> InstagramPublisher:
    client = InstagramClient(
        config.instagram_user_id,
        config.instagram_access_token,
        http_client=http_client,
        api_version=config.instagram_api_version,
    )
    return InstagramPublisher(
        client,
        poll_interval_seconds=config.instagram_poll_interval_seconds,
        max_poll_attempts=config.instagram_max_poll_attempts,
    )
