from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.dependencies import get_instagram_publisher, require_api_key
from app.services.publishing.instagram_publisher import InstagramPublisher, PublishResult

logger = logging.getLogger(__name__)
router = APIRouter()


class PublishRequest(BaseModel):
    image_url: str = Field(min_length=1, description="Publicly reachable image URL.")
    caption: str = Field(default="", description="Caption text; truncated to 2200 characters.")


@router.post(
    "/instagram/publish",
    response_model=PublishResult,
    response_model_exclude_none=True,
    dependencies=[Depends(require_api_key)],
)
async def publish_image(
    payload: PublishRequest,
    publisher: InstagramPublisher = Depends(get_instagram_publisher),
) -> PublishResult:
    """Publish an image post; failures are reported in the body with posted=false."""
    return await publisher.publish(payload.image_url, payload.caption)
