"""Persistence backends for generated companies."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Protocol
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select

from app.config import settings
from app.models.company import CompanyRecord
from app.models.company_record import INSERTABLE_COLUMNS, CompanyRow
from app.observability.metrics import metrics
from app.services.errors import CompanyNotFoundError, PersistenceError

logger = logging.getLogger(__name__)


class CompanyRepository(Protocol):
    """Persistence contract for companies."""

    def insert(self, fields: Mapping[str, Any]) -> CompanyRecord:
        ...

    def get_latest(self) -> CompanyRecord:
        ...

    def ping(self) -> bool:
        ...


class InMemoryCompanyRepository(CompanyRepository):
    """Thread-safe repository used for API/local development."""

    def __init__(self) -> None:
        self._records: list[CompanyRecord] = []
        self._lock = Lock()

    def insert(self, fields: Mapping[str, Any]) -> CompanyRecord:
        unknown = set(fields) - INSERTABLE_COLUMNS
        if unknown:
            raise PersistenceError(f"Unsupported company columns: {', '.join(sorted(unknown))}")
        now = datetime.now(timezone.utc)
        try:
            record = CompanyRecord(id=uuid4(), created_at=now, updated_at=now, **fields)
        except ValueError as exc:
            raise PersistenceError("Failed to persist company.") from exc
        with self._lock:
            self._records.append(record)
        metrics.increment("generation.persistence.persisted", tags={"repository": "memory"})
        logger.info(
            "generation.persistence.persisted",
            extra={"company_id": str(record.id), "slug": record.slug, "backend": "memory"},
        )
        return record

    def get_latest(self) -> CompanyRecord:
        with self._lock:
            if not self._records:
                raise CompanyNotFoundError()
            return self._records[-1]

    def ping(self) -> bool:
        return True


class SQLCompanyRepository(CompanyRepository):
    """SQLModel-backed repository that persists companies to Postgres/Supabase."""

    def __init__(
        self,
        database_url: str,
        *,
        pool_min_size: int | None = None,
        pool_max_size: int | None = None,
        auto_create_schema: bool = False,
    ) -> None:
        if not database_url:
            raise ValueError("DATABASE_URL is required for SQLCompanyRepository.")

        parsed_url = make_url(database_url)
        sync_url, connect_args, drivername = _coerce_sync_database_url(parsed_url)
        pool_min = max(pool_min_size or settings.db_pool_min_size, 1)
        pool_max = max(pool_max_size or settings.db_pool_max_size, pool_min)
        is_sqlite = drivername.startswith("sqlite")
        engine_kwargs: dict[str, Any] = {
            "echo": settings.debug,
            "connect_args": connect_args,
            "pool_pre_ping": not is_sqlite,
        }
        if not is_sqlite:
            engine_kwargs["pool_size"] = pool_min
            engine_kwargs["max_overflow"] = max(pool_max - pool_min, 0)

        self._engine: Engine = create_engine(sync_url, **engine_kwargs)
        if auto_create_schema:
            SQLModel.metadata.create_all(self._engine)
        self._metrics_tags = {"repository": _resolve_metrics_tag(parsed_url, drivername)}

    def dispose(self) -> None:
        """Close the underlying SQLAlchemy engine."""
        self._engine.dispose()

    def insert(self, fields: Mapping[str, Any]) -> CompanyRecord:
        try:
            row = CompanyRow.from_fields(fields)
        except ValueError as exc:
            raise PersistenceError(str(exc)) from exc
        try:
            with self._session() as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                if row.id is None:
                    raise PersistenceError("Insert succeeded but no company was returned.")
                record = row.to_company_record()
        except IntegrityError as exc:
            logger.warning(
                "generation.persistence.conflict",
                extra={"slug": fields.get("slug"), "backend": self._metrics_tags["repository"]},
            )
            raise PersistenceError(
                "Company violates a table constraint.", code="409_COMPANY_CONFLICT"
            ) from exc
        except SQLAlchemyError as exc:
            logger.exception(
                "generation.persistence.error",
                extra={"slug": fields.get("slug"), "backend": self._metrics_tags["repository"]},
            )
            raise PersistenceError("Failed to persist company.") from exc

        metrics.increment("generation.persistence.persisted", tags=self._metrics_tags)
        logger.info(
            "generation.persistence.persisted",
            extra={
                "company_id": str(record.id),
                "slug": record.slug,
                "backend": self._metrics_tags["repository"],
            },
        )
        return record

    def get_latest(self) -> CompanyRecord:
        try:
            with self._session() as session:
                statement = select(CompanyRow).order_by(CompanyRow.created_at.desc()).limit(1)
                row = session.exec(statement).first()
                if row is None:
                    raise CompanyNotFoundError()
                return row.to_company_record()
        except SQLAlchemyError as exc:
            logger.exception(
                "generation.persistence.error",
                extra={"backend": self._metrics_tags["repository"]},
            )
            raise PersistenceError("Failed to query latest company.") from exc

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.error(f"Database health check failed: {exc}")
            return False

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with Session(self._engine) as session:
            yield session


def _coerce_sync_database_url(url: URL) -> tuple[str, dict[str, Any], str]:
    """Convert async connection strings into sync SQLAlchemy URLs."""
    drivername = url.drivername
    connect_args: dict[str, Any] = {}
    if drivername.endswith("+asyncpg"):
        drivername = drivername.replace("+asyncpg", "+psycopg2")
    elif drivername.endswith("+psycopg"):
        drivername = drivername.replace("+psycopg", "+psycopg2")
    elif drivername.endswith("+aiosqlite"):
        drivername = "sqlite"
    sync_url = url.set(drivername=drivername)
    query = dict(sync_url.query) if sync_url.query else {}
    removed_ssl = query.pop("ssl", None) is not None
    sync_url = sync_url.set(query=query)

    host = (url.host or "").lower()
    if drivername.startswith("postgresql"):
        if "sslmode" not in query and (removed_ssl or "supabase.co" in host):
            connect_args["sslmode"] = "require"
    if drivername.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
    return sync_url.render_as_string(hide_password=False), connect_args, drivername


def _resolve_metrics_tag(url: URL, drivername: str) -> str:
    host = (url.host or "").lower()
    if "supabase.co" in host:
        return "supabase"
    if drivername.startswith("sqlite"):
        return "sqlite"
    return "postgres"


def build_company_repository(
    database_url: str | None = None,
    *,
    auto_create_schema: bool | None = None,
) -> CompanyRepository:
    """Instantiate a CompanyRepository using DATABASE_URL when available."""
    resolved_url = database_url or settings.database_url
    if not resolved_url:
        logger.info("generation.repository.initialized", extra={"backend": "memory"})
        return InMemoryCompanyRepository()
    create_schema = settings.database_auto_create if auto_create_schema is None else auto_create_schema
    try:
        repository = SQLCompanyRepository(
            resolved_url,
            pool_min_size=settings.db_pool_min_size,
            pool_max_size=settings.db_pool_max_size,
            auto_create_schema=create_schema,
        )
        logger.info("generation.repository.initialized", extra={"backend": "database"})
        return repository
    except Exception:
        logger.exception("generation.repository.init_failed", extra={"backend": "database"})
        raise
