"""Generate-and-store pipeline for the startup of the day."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from app.models.company import CompanyRecord, GeneratedCompany
from app.observability.metrics import metrics
from app.services.errors import StartupDoseError, UpstreamError
from app.services.generation.content_generator import StartupContentGenerator
from app.services.generation.cover_image import CoverImageResolver
from app.services.generation.repositories import CompanyRepository
from app.services.generation.text import slugify, strip_protocol

logger = logging.getLogger(__name__)


class CompanyGenerationOrchestrator:
    """Runs generate -> cover image fallback chain -> persist, in that order."""

    def __init__(
        self,
        *,
        generator: StartupContentGenerator,
        cover_images: CoverImageResolver,
        repository: CompanyRepository,
    ) -> None:
        self._generator = generator
        self._cover_images = cover_images
        self._repository = repository

    async def generate_and_store(self) -> CompanyRecord:
        """Create and persist one company; raises UpstreamError or PersistenceError."""
        start = time.perf_counter()
        outcome = "success"
        try:
            generated = await self._generator.generate()
            slug = slugify(generated.name)
            if not slug:
                raise UpstreamError(
                    f"Generated company name {generated.name!r} does not yield a slug.",
                    code="502_INVALID_COMPLETION",
                )

            cover_image = await self._cover_images.resolve(
                website=generated.website,
                slug=slug,
                fallback_url=generated.cover_image,
            )
            fields = build_insert_fields(generated, slug=slug, cover_image=cover_image)
            record = await asyncio.to_thread(self._repository.insert, fields)
        except StartupDoseError as exc:
            outcome = exc.code
            metrics.increment("generation.errors", tags={"code": exc.code})
            logger.error("generation.failed", extra={"code": exc.code, "error": str(exc)})
            raise
        finally:
            metrics.timing(
                "generation.latency_ms",
                (time.perf_counter() - start) * 1000,
                tags={"outcome": outcome},
            )

        metrics.increment("generation.success")
        logger.info(
            "generation.persisted",
            extra={
                "company_id": str(record.id),
                "slug": record.slug,
                "hosted_cover": cover_image != generated.cover_image,
            },
        )
        return record


def build_insert_fields(
    company: GeneratedCompany, *, slug: str, cover_image: str
) -> dict[str, Any]:
    """Sparse insert map: protocol-less website, social links only when present."""
    fields: dict[str, Any] = {
        "name": company.name,
        "slug": slug,
        "website": strip_protocol(company.website),
        "cover_image": cover_image,
        "description": company.description,
        "appeal": company.appeal,
    }
    fields.update(company.social_links())
    return fields
