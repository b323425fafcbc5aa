"""Domain models for the startup of the day."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

SOCIAL_FIELDS: tuple[str, ...] = ("twitter", "linkedin", "facebook", "instagram")


class GeneratedCompany(BaseModel):
    """Company payload returned by the completion model."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    website: str
    cover_image: str = Field(min_length=1)
    description: str
    appeal: str
    linkedin: str = ""
    instagram: str = ""
    facebook: str = ""
    twitter: str = ""

    @field_validator("linkedin", "instagram", "facebook", "twitter", mode="before")
    @classmethod
    def _null_social_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    def social_links(self) -> dict[str, str]:
        """Return only the social links the model actually supplied."""
        return {field: getattr(self, field) for field in SOCIAL_FIELDS if getattr(self, field)}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CompanyRecord(BaseModel):
    """Persisted startup of the day."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    description: str
    appeal: str
    website: str
    cover_image: str
    twitter: str | None = None
    linkedin: str | None = None
    facebook: str | None = None
    instagram: str | None = None
    published_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime | None = None
