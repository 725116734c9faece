"""Concurrency — periodic background tasks."""

from llmcache.concurrency.periodic import PeriodicTask

__all__ = ["PeriodicTask"]
