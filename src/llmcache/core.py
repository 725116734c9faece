"""Top-level entry point: LLMGateway, the cache + metrics composition root."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from llmcache.cache.manager import ResponseCache
from llmcache.config.loader import load_settings
from llmcache.config.schema import Settings
from llmcache.metrics.alerts import log_alert
from llmcache.metrics.collector import MetricsCollector
from llmcache.types import Completion, GatewayResult

logger = logging.getLogger(__name__)

ProviderCall = Callable[[], Awaitable[Completion]]


class LLMGateway:
    """Owns one ResponseCache and one MetricsCollector for the process.

    Every AI call goes through ``call()``: look up the cache, run the provider
    call on a miss, store the result and record a metric sample either way.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: ResponseCache | None = None,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings or load_settings()
        self._cache = cache or ResponseCache(self._settings.cache, clock=clock)
        if metrics is None:
            metrics = MetricsCollector(self._settings.metrics, clock=clock)
            metrics.on_alert(log_alert)
        self._metrics = metrics

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    async def start(self, strict: bool = False) -> None:
        await self._cache.start(strict=strict)
        await self._metrics.start()

    async def close(self) -> None:
        await self._metrics.close()
        await self._cache.close()

    async def __aenter__(self) -> LLMGateway:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def call(
        self,
        provider: str,
        model: str,
        operation: str,
        fn: ProviderCall,
        prompt: str,
        params: Any = None,
        ttl_seconds: float | None = None,
    ) -> GatewayResult:
        """Serve from cache or run ``fn``, recording a metric sample.

        ``ttl_seconds`` defaults to the operation's cache strategy; 0 skips
        the cache for this call. Exceptions from ``fn`` are recorded as a
        failed sample and re-raised.
        """
        ttl = self._settings.cache.ttl_for(operation) if ttl_seconds is None else ttl_seconds
        use_cache = self._settings.cache.enabled and ttl > 0
        key = self._cache.generate_key(operation, prompt, params) if use_cache else None
        started = time.perf_counter()

        if key is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                logger.debug("Cache hit for %s (%s/%s)", key, provider, model)
                latency = _elapsed_ms(started)
                self._metrics.record_request(provider, model, operation, latency, True, True)
                return GatewayResult(
                    data=cached,
                    provider=provider,
                    model=model,
                    operation=operation,
                    latency_ms=latency,
                    cached=True,
                    cache_key=key,
                )

        try:
            completion = await fn()
        except Exception as exc:
            self._metrics.record_request(
                provider,
                model,
                operation,
                _elapsed_ms(started),
                False,
                False,
                error=str(exc) or type(exc).__name__,
            )
            raise

        latency = _elapsed_ms(started)
        if key is not None:
            await self._cache.set(key, completion.data, ttl)
        self._metrics.record_request(
            provider, model, operation, latency, True, False, tokens=completion.tokens
        )
        return GatewayResult(
            data=completion.data,
            provider=provider,
            model=model,
            operation=operation,
            latency_ms=latency,
            cached=False,
            cache_key=key,
            tokens=completion.tokens,
        )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
