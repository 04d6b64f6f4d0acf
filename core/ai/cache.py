"""Cached access to generated insights with freshness windows."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Mapping

from config import Settings, get_settings
from core.ai.insights import Insight, InsightBatch, InsightError, generate_insights, utcnow
from core.models import Transaction
from core.storage import KeyValueStore, PersistentValue, Replace

logger = logging.getLogger(__name__)

FRESH_FOR = timedelta(hours=1)
MAX_AGE = timedelta(hours=24)

__all__ = ["InsightCache", "InsightService"]


def _encode_batch(batch: InsightBatch | None) -> dict[str, Any] | None:
    return batch.to_payload() if batch is not None else None


def _decode_batch(data: Any) -> InsightBatch | None:
    return InsightBatch.from_payload(data) if data is not None else None


class InsightCache:
    """Persists the latest insight batch; entries older than ``max_age`` are dropped."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = "ai_insights",
        clock: Callable[[], datetime] = utcnow,
        max_age: timedelta = MAX_AGE,
    ) -> None:
        self._entry: PersistentValue[InsightBatch | None] = PersistentValue(
            store, key, None, encode=_encode_batch, decode=_decode_batch
        )
        self._clock = clock
        self.max_age = max_age

    def load(self) -> InsightBatch | None:
        batch = self._entry.value
        if batch is None:
            return None
        if self._clock() - batch.generated_at > self.max_age:
            logger.info("Discarding expired insights", extra={"generated_at": batch.generated_at.isoformat()})
            self.clear()
            return None
        return batch

    def save(self, batch: InsightBatch) -> None:
        self._entry.set(Replace(batch))

    def clear(self) -> None:
        self._entry.remove()


class InsightService:
    """Serves insights, reusing a recent batch instead of calling the model again."""

    def __init__(
        self,
        cache: InsightCache,
        *,
        generator: Callable[[Iterable[Transaction | Mapping[str, Any]]], InsightBatch] = generate_insights,
        clock: Callable[[], datetime] = utcnow,
        fresh_for: timedelta = FRESH_FOR,
    ) -> None:
        self.cache = cache
        self._generator = generator
        self._clock = clock
        self.fresh_for = fresh_for
        self.error: str | None = None
        self.loading = False

        cached = cache.load()
        self.insights: list[Insight] | None = cached.insights if cached else None
        self.last_generated: datetime | None = cached.generated_at if cached else None

    @classmethod
    def from_settings(cls, store: KeyValueStore, settings: Settings | None = None) -> "InsightService":
        settings = settings or get_settings()
        cache = InsightCache(store, max_age=timedelta(seconds=settings.insights_max_age_seconds))
        return cls(cache, fresh_for=timedelta(seconds=settings.insights_fresh_seconds))

    @property
    def has_insights(self) -> bool:
        return bool(self.insights)

    def get_insights(
        self,
        transactions: Iterable[Transaction | Mapping[str, Any]],
        *,
        force_refresh: bool = False,
    ) -> list[Insight]:
        """Return cached insights younger than ``fresh_for`` or generate new ones.

        Generation failures are recorded in ``error`` and re-raised.
        """

        if not force_refresh and self.insights is not None and self.last_generated is not None:
            if self._clock() - self.last_generated < self.fresh_for:
                logger.info("Using cached insights")
                return self.insights

        self.loading = True
        self.error = None
        try:
            batch = self._generator(transactions)
        except InsightError as exc:
            self.error = str(exc)
            raise
        finally:
            self.loading = False

        self.insights = batch.insights
        self.last_generated = batch.generated_at
        self.cache.save(batch)
        return batch.insights

    def clear(self) -> None:
        self.insights = None
        self.last_generated = None
        self.error = None
        self.cache.clear()
