"""Counters, timings and gauges for the generation and publishing pipelines.

Every data point is logged as a ``startup_dose.metric`` event; when
``METRICS_BACKEND=statsd`` it is also forwarded to a StatsD daemon.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any, Final

from statsd import StatsClient

from app.config import Settings, settings

logger = logging.getLogger("app.metrics")

METRIC_EVENT: Final[str] = "startup_dose.metric"
_SAMPLE_RESOLUTION: Final[int] = 1_000_000


class MetricsReporter:
    """Structured-log metrics with an optional StatsD fan-out."""

    def __init__(self, config: Settings | None = None) -> None:
        config = config or settings
        self._enabled = not config.metrics_disable
        self._namespace = (config.metrics_namespace or "startup_dose").strip(".")
        self._backend = (config.metrics_backend or "stdout").lower()
        self._sample_rate = min(max(config.metrics_sample_rate, 0.0), 1.0)
        self._statsd = self._connect_statsd(config) if self._enabled else None

    def increment(
        self, metric: str, value: float = 1.0, *, tags: dict[str, Any] | None = None
    ) -> None:
        self._record("counter", metric, value, tags)

    def timing(self, metric: str, value_ms: float, *, tags: dict[str, Any] | None = None) -> None:
        self._record("timing", metric, value_ms, tags)

    def gauge(self, metric: str, value: float, *, tags: dict[str, Any] | None = None) -> None:
        self._record("gauge", metric, value, tags)

    def _connect_statsd(self, config: Settings) -> StatsClient | None:
        if self._backend != "statsd":
            return None
        try:
            return StatsClient(
                host=config.metrics_statsd_host,
                port=config.metrics_statsd_port,
                prefix="",
            )
        except OSError as exc:
            self._warn_backend("statsd.init", exc)
            return None

    def _record(
        self, kind: str, metric: str, value: float | None, tags: dict[str, Any] | None
    ) -> None:
        if not self._enabled or value is None:
            return
        # Gauges are never sampled.
        rate = 1.0 if kind == "gauge" else self._sample_rate
        if rate < 1.0 and secrets.randbelow(_SAMPLE_RESOLUTION) / _SAMPLE_RESOLUTION > rate:
            return

        name = self._qualify(metric)
        payload: dict[str, Any] = {
            "metric": name,
            "value": round(float(value), 4),
            "type": kind,
            "tags": dict(tags or {}),
        }
        if rate < 1.0:
            payload["sample_rate"] = round(rate, 4)
        logger.info(METRIC_EVENT, extra={"metrics": payload})

        if self._statsd is not None:
            self._forward(kind, name, value, rate)

    def _forward(self, kind: str, name: str, value: float, rate: float) -> None:
        try:
            if kind == "gauge":
                self._statsd.gauge(name, value)
            elif kind == "timing":
                self._statsd.timing(name, value, rate=rate)
            else:
                self._statsd.incr(name, value, rate=rate)
        except OSError as exc:
            self._warn_backend(name, exc)

    def _qualify(self, metric: str) -> str:
        name = (metric or "").strip()
        if not name:
            return self._namespace
        if name.startswith(f"{self._namespace}."):
            return name
        return f"{self._namespace}.{name}"

    def _warn_backend(self, metric: str, exc: Exception) -> None:
        logger.warning(
            "metrics.backend_error",
            extra={"metric": metric, "backend": self._backend, "error": type(exc).__name__},
        )


metrics = MetricsReporter()
