"""SQLModel mapping for stored company rows."""
# ruff: noqa: UP017

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import Column, DateTime, String, Text, Uuid
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql import expression
from sqlmodel import Field, SQLModel

from app.models.company import CompanyRecord

INSERTABLE_COLUMNS: frozenset[str] = frozenset(
    {
        "name",
        "slug",
        "description",
        "appeal",
        "website",
        "cover_image",
        "twitter",
        "linkedin",
        "facebook",
        "instagram",
        "published_at",
    }
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UtcNow(expression.FunctionElement):
    """Dialect-aware server default that pins timestamps to UTC."""

    type = DateTime(timezone=True)
    inherit_cache = True


@compiles(UtcNow)
def _utc_now_default(
    element, compiler, **kwargs
) -> str:  # pragma: no cover - trivial sql generator
    return "CURRENT_TIMESTAMP"


@compiles(UtcNow, "postgresql")
def _utc_now_default_postgres(
    element, compiler, **kwargs
) -> str:  # pragma: no cover - trivial sql generator
    return "timezone('utc', now())"


class CompanyRow(SQLModel, table=True):
    """ORM model for persisted companies."""

    __tablename__ = "companies"
    __table_args__ = (
        sa.Index("ix_companies_created_at", "created_at"),
    )

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True, nullable=False),
    )
    name: str = Field(sa_column=Column(String(length=255), nullable=False))
    slug: str = Field(sa_column=Column(String(length=255), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    appeal: str = Field(sa_column=Column(Text, nullable=False))
    website: str = Field(sa_column=Column(String(length=512), nullable=False))
    cover_image: str = Field(sa_column=Column(Text, nullable=False))
    twitter: str | None = Field(default=None, sa_column=Column(String(length=512), nullable=True))
    linkedin: str | None = Field(default=None, sa_column=Column(String(length=512), nullable=True))
    facebook: str | None = Field(default=None, sa_column=Column(String(length=512), nullable=True))
    instagram: str | None = Field(default=None, sa_column=Column(String(length=512), nullable=True))
    published_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=UtcNow(),
        ),
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=UtcNow(),
            onupdate=UtcNow(),
        ),
    )

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> CompanyRow:
        """Build a row from a sparse insert map, leaving store-managed columns to defaults."""
        unknown = set(fields) - INSERTABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported company columns: {', '.join(sorted(unknown))}")
        return cls(**dict(fields))

    def to_company_record(self) -> CompanyRecord:
        return CompanyRecord.model_validate(self)
