from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_company_repository
from app.config import settings
from app.services.generation.repositories import CompanyRepository

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def health_check():
    """Basic health check endpoint."""
    return {
        "ok": True,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@router.get("/ready")
async def readiness_check(repository: CompanyRepository = Depends(get_company_repository)):
    """Readiness check endpoint that includes database connectivity."""
    db_status = await asyncio.to_thread(repository.ping)

    if not db_status:
        raise HTTPException(status_code=503, detail="Database is not available")

    return {
        "status": "ready",
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected" if settings.database_url else "in-memory",
    }
