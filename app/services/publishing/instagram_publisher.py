"""Create -> poll -> publish state machine for Instagram image posts."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Final

from pydantic import BaseModel

from app.clients.instagram import InstagramClient, InstagramError
from app.observability.metrics import metrics
from app.services.errors import CancellationError
from app.services.publishing.captions import truncate_caption

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS: Final[float] = 2.0
DEFAULT_MAX_POLL_ATTEMPTS: Final[int] = 15


class ContainerStatus(str, Enum):
    """Processing status reported by the Graph API for a media container."""

    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    FINISHED = "FINISHED"
    ERROR = "ERROR"
    EXPIRED = "EXPIRED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: str) -> ContainerStatus:
        try:
            return cls((raw or "").strip().upper())
        except ValueError:
            return cls.UNKNOWN


class PublishState(str, Enum):
    CREATED = "created"
    POLLING = "polling"
    FINISHED = "finished"
    PUBLISHED = "published"
    ERROR = "error"
    EXPIRED = "expired"
    ABANDONED = "abandoned"
    CANCELLED = "cancelled"


TERMINAL_STATES: Final[frozenset[PublishState]] = frozenset(
    {
        PublishState.PUBLISHED,
        PublishState.ERROR,
        PublishState.EXPIRED,
        PublishState.ABANDONED,
        PublishState.CANCELLED,
    }
)

_ALLOWED_TRANSITIONS: Final[dict[PublishState, frozenset[PublishState]]] = {
    PublishState.CREATED: frozenset({PublishState.POLLING, PublishState.ERROR}),
    PublishState.POLLING: frozenset(
        {
            PublishState.POLLING,
            PublishState.FINISHED,
            PublishState.ERROR,
            PublishState.EXPIRED,
            PublishState.ABANDONED,
            PublishState.CANCELLED,
        }
    ),
    PublishState.FINISHED: frozenset({PublishState.PUBLISHED, PublishState.ERROR}),
}


@dataclass
class MediaPublishJob:
    """In-flight state of one publish call; never shared between calls."""

    container_id: str | None = None
    status: ContainerStatus = ContainerStatus.CREATED
    state: PublishState = PublishState.CREATED
    attempts: int = 0
    media_id: str | None = None
    error: str | None = None

    def transition(self, target: PublishState) -> None:
        allowed = _ALLOWED_TRANSITIONS.get(self.state, frozenset())
        if target not in allowed:
            raise ValueError(f"Illegal publish transition {self.state.value} -> {target.value}")
        self.state = target

    def record_status(self, status: ContainerStatus) -> None:
        """Apply one poll result; unrecognized statuses keep the job polling."""
        self.attempts += 1
        self.status = status
        if status is ContainerStatus.FINISHED:
            self.transition(PublishState.FINISHED)
        elif status is ContainerStatus.ERROR:
            self.transition(PublishState.ERROR)
        elif status is ContainerStatus.EXPIRED:
            self.transition(PublishState.EXPIRED)
        else:
            self.transition(PublishState.POLLING)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


class PublishResult(BaseModel):
    media_id: str | None = None
    posted: bool
    error: str | None = None


class InstagramPublisher:
    """Publishes an already-hosted image; failures are reported, never raised."""

    def __init__(
        self,
        client: InstagramClient,
        *,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_poll_attempts: int = DEFAULT_MAX_POLL_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        if max_poll_attempts < 1:
            raise ValueError("max_poll_attempts must be a positive integer.")
        self._client = client
        self._poll_interval = poll_interval_seconds
        self._max_attempts = max_poll_attempts
        self._sleep = sleep or asyncio.sleep

    async def publish(
        self,
        image_url: str,
        caption: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> PublishResult:
        if not self._client.is_configured():
            return PublishResult(posted=False, error="Instagram client not configured")

        job = MediaPublishJob()
        start = time.perf_counter()
        try:
            await self._run(job, image_url, caption, cancel_event)
        finally:
            metrics.timing(
                "instagram.publish.latency_ms",
                (time.perf_counter() - start) * 1000,
                tags={"state": job.state.value},
            )

        if job.state is PublishState.PUBLISHED:
            metrics.increment("instagram.publish.success")
            logger.info(
                "instagram.publish.posted",
                extra={"container_id": job.container_id, "media_id": job.media_id},
            )
            return PublishResult(media_id=job.media_id, posted=True)

        metrics.increment("instagram.publish.failed", tags={"state": job.state.value})
        logger.warning(
            "instagram.publish.failed",
            extra={
                "container_id": job.container_id,
                "state": job.state.value,
                "attempts": job.attempts,
                "error": job.error,
            },
        )
        return PublishResult(posted=False, error=job.error)

    async def _run(
        self,
        job: MediaPublishJob,
        image_url: str,
        caption: str,
        cancel_event: asyncio.Event | None,
    ) -> None:
        try:
            job.container_id = await self._client.create_container(
                image_url, truncate_caption(caption)
            )
        except InstagramError as exc:
            job.transition(PublishState.ERROR)
            job.error = f"failed to create media container: {exc}"
            return
        logger.info("instagram.container.created", extra={"container_id": job.container_id})

        job.transition(PublishState.POLLING)
        try:
            await self._poll_until_terminal(job, cancel_event)
        except CancellationError as exc:
            job.transition(PublishState.CANCELLED)
            job.error = f"publish cancelled: {exc}"
            return
        except InstagramError as exc:
            job.transition(PublishState.ERROR)
            job.error = f"container not ready: {exc}"
            return
        if job.state is not PublishState.FINISHED:
            return

        try:
            job.media_id = await self._client.publish_container(job.container_id)
        except InstagramError as exc:
            job.transition(PublishState.ERROR)
            job.error = f"failed to publish: {exc}"
            return
        job.transition(PublishState.PUBLISHED)

    async def _poll_until_terminal(
        self, job: MediaPublishJob, cancel_event: asyncio.Event | None
    ) -> None:
        assert job.container_id is not None
        for attempt in range(1, self._max_attempts + 1):
            _raise_if_cancelled(cancel_event, attempt)
            await self._sleep(self._poll_interval)
            _raise_if_cancelled(cancel_event, attempt)

            raw_status = await self._client.get_container_status(job.container_id)
            status = ContainerStatus.parse(raw_status)
            job.record_status(status)
            if status is ContainerStatus.UNKNOWN:
                logger.warning(
                    "instagram.poll.unrecognized_status",
                    extra={"status": raw_status, "attempt": attempt, "max_attempts": self._max_attempts},
                )
            else:
                logger.info(
                    "instagram.poll",
                    extra={"status": status.value, "attempt": attempt, "max_attempts": self._max_attempts},
                )

            if job.state is PublishState.FINISHED:
                return
            if job.state is PublishState.ERROR:
                job.error = "container not ready: container processing failed"
                return
            if job.state is PublishState.EXPIRED:
                job.error = "container not ready: container expired"
                return

        job.transition(PublishState.ABANDONED)
        job.error = f"container not ready: container not ready after {self._max_attempts} attempts"


def _raise_if_cancelled(cancel_event: asyncio.Event | None, attempt: int) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise CancellationError(f"caller cancelled before poll attempt {attempt}")
