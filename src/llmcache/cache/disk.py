"""L2 disk mirror — one JSON file per cache entry."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from llmcache.cache.stats import CacheEntry

logger = logging.getLogger(__name__)

_DEFAULT_CACHE_DIR = Path("./cache/llm")
_SUFFIX = ".json"


class DiskMirror:
    """Best-effort shadow copies of cache entries as ``<key>.json`` files.

    All methods are blocking and swallow I/O errors after logging them, except
    ``ensure_directory`` which lets the caller decide. The async cache runs
    them in worker threads.
    """

    def __init__(self, directory: Path | str | None = None) -> None:
        self._dir = Path(directory) if directory is not None else _DEFAULT_CACHE_DIR

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, key: str) -> Path:
        return self._dir / f"{key}{_SUFFIX}"

    def ensure_directory(self) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)

    def read(self, key: str) -> CacheEntry | None:
        """Load one entry. Missing files return None; corrupt files are removed."""
        path = self.path_for(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Failed to read cache file %s: %s", path, e)
            return None
        except UnicodeDecodeError as e:
            logger.warning("Corrupt cache file %s, removing: %s", path, e.reason)
            self._unlink(path)
            return None
        try:
            return CacheEntry.model_validate_json(text)
        except ValidationError as e:
            logger.warning("Corrupt cache file %s, removing: %s", path, e.errors()[0]["msg"])
            self._unlink(path)
            return None

    def write(self, entry: CacheEntry) -> bool:
        """Write an entry atomically (temp file + rename)."""
        path = self.path_for(entry.key)
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            payload = entry.model_dump_json()
        except ValueError as e:
            logger.error("Cache entry %s is not JSON-serialisable: %s", entry.key, e)
            return False
        try:
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            logger.error("Failed to persist cache entry %s: %s", entry.key, e)
            self._unlink(tmp)
            return False
        return True

    def delete(self, key: str) -> bool:
        return self._unlink(self.path_for(key))

    def load_all(self, now: float) -> list[CacheEntry]:
        """Return live entries, deleting expired files and skipping corrupt ones."""
        live: list[CacheEntry] = []
        for path in self._files():
            try:
                entry = CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, ValidationError) as e:
                logger.error("Failed to load cache file %s: %s", path.name, e)
                continue
            if entry.is_expired(now):
                self._unlink(path)
                continue
            live.append(entry)
        return live

    def iter_entries(self) -> Iterator[CacheEntry]:
        """Yield every parseable entry, expired or not."""
        for path in self._files():
            try:
                yield CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, ValidationError) as e:
                logger.debug("Skipping unreadable cache file %s: %s", path.name, e)

    def purge_expired(self, now: float) -> int:
        removed = 0
        for entry in self.iter_entries():
            if entry.is_expired(now) and self.delete(entry.key):
                removed += 1
        return removed

    def clear(self) -> int:
        removed = 0
        for path in self._files():
            if self._unlink(path):
                removed += 1
        return removed

    def _files(self) -> list[Path]:
        try:
            return sorted(self._dir.glob(f"*{_SUFFIX}"))
        except OSError as e:
            logger.error("Failed to list cache directory %s: %s", self._dir, e)
            return []

    @staticmethod
    def _unlink(path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Failed to delete cache file %s: %s", path, e)
            return False
        return True
