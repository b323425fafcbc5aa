"""API endpoints for the startup of the day."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import (
    get_company_repository,
    get_instagram_publisher,
    get_orchestrator,
    require_api_key,
)
from app.models.company import CompanyRecord
from app.services.errors import CompanyNotFoundError, PersistenceError, UpstreamError
from app.services.generation.orchestrator import CompanyGenerationOrchestrator
from app.services.generation.repositories import CompanyRepository
from app.services.publishing.captions import build_caption
from app.services.publishing.instagram_publisher import InstagramPublisher, PublishResult

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/companies/latest", response_model=CompanyRecord)
async def get_latest_company(
    repository: CompanyRepository = Depends(get_company_repository),
) -> CompanyRecord:
    """Return the most recently created company."""
    return await _load_latest(repository)


@router.post(
    "/companies/generate",
    response_model=CompanyRecord,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_api_key)],
)
async def generate_company(
    orchestrator: CompanyGenerationOrchestrator = Depends(get_orchestrator),
) -> CompanyRecord:
    """Generate today's startup, host its cover screenshot, and save it."""
    try:
        return await orchestrator.generate_and_store()
    except UpstreamError as exc:
        logger.error("generation.api_error", extra={"code": exc.code})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "bad_gateway", "message": "Failed to generate company from AI"},
        ) from exc
    except PersistenceError as exc:
        logger.error("generation.api_error", extra={"code": exc.code})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "internal_server_error", "message": "Failed to save company to database"},
        ) from exc


@router.post(
    "/companies/latest/instagram",
    response_model=PublishResult,
    response_model_exclude_none=True,
    dependencies=[Depends(require_api_key)],
)
async def publish_latest_company(
    repository: CompanyRepository = Depends(get_company_repository),
    publisher: InstagramPublisher = Depends(get_instagram_publisher),
) -> PublishResult:
    """Post the latest company's cover image with the standard caption."""
    company = await _load_latest(repository)
    caption = build_caption(company.name, company.description, company.appeal, company.website)
    return await publisher.publish(company.cover_image, caption)


async def _load_latest(repository: CompanyRepository) -> CompanyRecord:
    try:
        return await asyncio.to_thread(repository.get_latest)
    except CompanyNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": "no companies found"},
        ) from exc
    except PersistenceError as exc:
        logger.error("companies.latest.error", extra={"code": exc.code})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "internal_server_error", "message": "Failed to retrieve company"},
        ) from exc
