"""Cache entry and statistics models."""

from __future__ import annotations

import json
import time
from typing import Any

from pydantic import BaseModel, Field, computed_field

# Seconds of recency credited per hit when ranking eviction candidates
HIT_WEIGHT_SECONDS = 1.0


def payload_size(data: Any) -> int:
    """UTF-8 byte length of the serialised payload."""
    if isinstance(data, str):
        text = data
    else:
        text = json.dumps(data, separators=(",", ":"), default=str)
    return len(text.encode("utf-8"))


class CacheEntry(BaseModel):
    """A cached AI response plus its bookkeeping."""

    key: str
    data: Any = None
    created_at: float = Field(default_factory=time.time)
    ttl_seconds: float = 3600
    expires_at: float = 0.0
    hit_count: int = 0
    size_bytes: int = 0

    @classmethod
    def create(
        cls,
        key: str,
        data: Any,
        ttl_seconds: float,
        now: float | None = None,
    ) -> CacheEntry:
        created = time.time() if now is None else now
        return cls(
            key=key,
            data=data,
            created_at=created,
            ttl_seconds=ttl_seconds,
            expires_at=created + ttl_seconds,
            size_bytes=payload_size(data),
        )

    def is_expired(self, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return current >= self.expires_at

    @property
    def eviction_score(self) -> float:
        """Lower scores are evicted first: old, rarely-hit entries go first."""
        return self.created_at + self.hit_count * HIT_WEIGHT_SECONDS


class EntrySummary(BaseModel):
    key: str
    size_bytes: int
    hit_count: int
    expires_in_ms: float
    age_ms: float


class CacheStats(BaseModel):
    """Aggregate cache statistics."""

    hits: int = 0
    misses: int = 0
    size_bytes: int = 0
    entries: int = 0
    avg_latency_ms: float = 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hit_rate(self) -> float:
        """Percentage of lookups that were hits."""
        total = self.hits + self.misses
        return self.hits / total * 100 if total > 0 else 0.0

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)
