"""Optimization telemetry — in-memory record of which stage served each request.

Cost observability only: nothing here feeds back into request handling.

Usage:
    telemetry = OptimizationTelemetry()
    telemetry.record("synonyms", SourceTag.LOCAL, token_estimate=12, tokens_saved=40, response_ms=1.2)
    telemetry.summary()["cache_hit_rate"]
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable

from redigir.models import SourceTag

logger = logging.getLogger("redigir.telemetry")

MAX_METRICS = 10_000


@dataclass
class OptimizationMetric:
    """Single served request."""
    operation: str
    source: SourceTag
    token_estimate: int = 0
    tokens_saved: int = 0
    cache_hit: bool = False
    response_ms: float = 0.0
    timestamp: float = 0.0


@dataclass
class OptimizationTelemetry:
    max_metrics: int = MAX_METRICS
    clock: Callable[[], float] = time.time
    _metrics: list[OptimizationMetric] = field(default_factory=list)
    _lock: RLock = field(default_factory=RLock)

    def record(
        self,
        operation: str,
        source: SourceTag,
        token_estimate: int = 0,
        tokens_saved: int = 0,
        response_ms: float = 0.0,
    ) -> OptimizationMetric:
        metric = OptimizationMetric(
            operation=operation,
            source=source,
            token_estimate=token_estimate,
            tokens_saved=tokens_saved,
            cache_hit=source == SourceTag.CACHE,
            response_ms=response_ms,
            timestamp=self.clock(),
        )
        with self._lock:
            self._metrics.append(metric)
            if len(self._metrics) > self.max_metrics:
                del self._metrics[: len(self._metrics) - self.max_metrics]
        return metric

    @property
    def metrics(self) -> list[OptimizationMetric]:
        with self._lock:
            return list(self._metrics)

    def summary(self) -> dict[str, Any]:
        """Request count, cache-hit rate, tokens saved, avg response time, per-source counts."""
        with self._lock:
            total = len(self._metrics)
            by_source: dict[str, int] = {tag.value: 0 for tag in SourceTag}
            for m in self._metrics:
                by_source[m.source.value] += 1
            hits = by_source[SourceTag.CACHE.value]
            return {
                "requests": total,
                "cache_hit_rate": hits / total if total else 0.0,
                "tokens_saved": sum(m.tokens_saved for m in self._metrics),
                "avg_response_ms": sum(m.response_ms for m in self._metrics) / total if total else 0.0,
                "by_source": by_source,
            }

    def prune(self, max_age_seconds: float) -> int:
        """Drop metrics older than ``max_age_seconds``. Returns how many were removed."""
        cutoff = self.clock() - max_age_seconds
        with self._lock:
            before = len(self._metrics)
            self._metrics = [m for m in self._metrics if m.timestamp >= cutoff]
            removed = before - len(self._metrics)
        if removed:
            logger.debug(f"Pruned {removed} telemetry metrics")
        return removed

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()
