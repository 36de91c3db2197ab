# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Cached policy storage for ManUp.

This module implements the persistence layer for the last successfully
fetched policy document and the time it was fetched. The engine reads it
on every non-stale check and falls back to it when a fetch fails.

Key Features:

- CacheStore protocol so hosts can plug in their own key-value storage
- JSON file store with atomic writes (.part file then rename)
- In-memory store for tests and embedded use
- Corrupted files are backed up and treated as a cache miss
- Reads and writes are serialized with a lock, so a reader never observes
  a half-written record

Staleness:

A record is fresh only while its age is under one day AND at most the
configured window in hours. A record exactly at the window boundary is
still fresh; a record older than a day is stale whatever the window.

Example:
    File-backed cache:
        ```python
        from pathlib import Path
        from manup.cache import FileCacheStore

        cache = FileCacheStore(Path("state/manup_cache.json"))
        if cache.is_stale(24, now):
            ...
        cache.write(text, fetched_at=now)
        record = cache.read()
        ```

"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
import json
from pathlib import Path
import threading
from typing import Any, Protocol

from manup import __version__
from manup.exceptions import CacheError
from manup.logging import Logger, get_global_logger

SCHEMA_VERSION = "1"
MAX_CACHE_AGE = timedelta(days=1)


@dataclass(frozen=True)
class CacheRecord:
    """Last fetched policy text and when it was fetched.

    Attributes:
        text: Raw policy JSON text exactly as fetched.
        fetched_at: Timezone-aware fetch timestamp (UTC).
    """

    text: str
    fetched_at: datetime


def is_record_stale(
    fetched_at: datetime, now: datetime, window_hours: float
) -> bool:
    """Decide whether a record fetched at 'fetched_at' is stale at 'now'.

    Fresh requires both: age < 1 day and age <= window_hours.
    """
    age = now - fetched_at
    fresh = age < MAX_CACHE_AGE and age <= timedelta(hours=window_hours)
    return not fresh


class CacheStore(Protocol):
    """Protocol for cached policy storage."""

    def read(self) -> CacheRecord | None:
        """Return the cached record, or None if there is none."""
        ...

    def write(self, text: str, fetched_at: datetime) -> None:
        """Replace the cached record."""
        ...

    def is_stale(self, window_hours: float, now: datetime) -> bool:
        """True if there is no record or it is older than the window."""
        ...


class MemoryCacheStore:
    """CacheStore that keeps the record in memory only."""

    def __init__(self, record: CacheRecord | None = None) -> None:
        self._record = record
        self._lock = threading.Lock()

    def read(self) -> CacheRecord | None:
        with self._lock:
            return self._record

    def write(self, text: str, fetched_at: datetime) -> None:
        with self._lock:
            self._record = CacheRecord(text=text, fetched_at=fetched_at)

    def is_stale(self, window_hours: float, now: datetime) -> bool:
        record = self.read()
        if record is None:
            return True
        return is_record_stale(record.fetched_at, now, window_hours)


class FileCacheStore:
    """CacheStore backed by a JSON file.

    File layout:
        {
          "metadata": {"manup_version": "...", "schema_version": "1",
                       "last_updated": "..."},
          "policy": {"text": "<raw JSON>", "fetched_at": "<ISO 8601>"}
        }

    Attributes:
        cache_file: Path to the JSON cache file.

    """

    def __init__(self, cache_file: Path, logger: Logger | None = None) -> None:
        """Initialize the store.

        Args:
            cache_file: Path to the JSON cache file. Created on first write.
            logger: Logger for corruption warnings. Defaults to the global
                logger at call time.

        """
        self.cache_file = cache_file
        self._logger = logger
        self._lock = threading.Lock()

    @property
    def logger(self) -> Logger:
        return self._logger if self._logger is not None else get_global_logger()

    def load(self) -> CacheRecord | None:
        """Load the record from disk.

        Returns:
            The record, or None if the file doesn't exist.

        Raises:
            CacheError: If the file is corrupted. The corrupted file is moved
                to a .backup sibling first, so the next load is a clean miss.

        """
        with self._lock:
            try:
                data = load_cache_file(self.cache_file)
            except FileNotFoundError:
                return None
            except (json.JSONDecodeError, UnicodeDecodeError) as err:
                backup = self._backup()
                raise CacheError(
                    f"Corrupted cache file backed up to {backup}"
                ) from err

            try:
                return _record_from_dict(data)
            except (KeyError, TypeError, ValueError) as err:
                backup = self._backup()
                raise CacheError(
                    f"Malformed cache record backed up to {backup}: {err}"
                ) from err

    def _backup(self) -> Path:
        backup = self.cache_file.with_suffix(self.cache_file.suffix + ".backup")
        self.cache_file.replace(backup)
        return backup

    def read(self) -> CacheRecord | None:
        try:
            return self.load()
        except CacheError as err:
            self.logger.warning("CACHE", f"{err}; treating as no cache")
            return None

    def write(self, text: str, fetched_at: datetime) -> None:
        data = {
            "metadata": {
                "manup_version": __version__,
                "schema_version": SCHEMA_VERSION,
                "last_updated": datetime.now(UTC).isoformat(),
            },
            "policy": {
                "text": text,
                "fetched_at": fetched_at.isoformat(),
            },
        }
        with self._lock:
            save_cache_file(data, self.cache_file)
        self.logger.verbose("CACHE", f"Saved policy to {self.cache_file}")

    def is_stale(self, window_hours: float, now: datetime) -> bool:
        record = self.read()
        if record is None:
            return True
        return is_record_stale(record.fetched_at, now, window_hours)


def _record_from_dict(data: dict[str, Any]) -> CacheRecord:
    policy = data["policy"]
    text = policy["text"]
    if not isinstance(text, str):
        raise TypeError(f"policy.text must be a string, got {type(text).__name__}")
    fetched_at = datetime.fromisoformat(policy["fetched_at"])
    if fetched_at.tzinfo is None:
        fetched_at = fetched_at.replace(tzinfo=UTC)
    return CacheRecord(text=text, fetched_at=fetched_at)


def load_cache_file(cache_file: Path) -> dict[str, Any]:
    """Load the cache file as a dict.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        json.JSONDecodeError: If the file contains invalid JSON.

    """
    with open(cache_file, encoding="utf-8") as f:
        return json.load(f)


def save_cache_file(data: dict[str, Any], cache_file: Path) -> None:
    """Write the cache file atomically.

    Writes to <name>.part and renames over the target, so readers see
    either the old file or the complete new one.

    Note:
        - Uses 2-space indentation and sorted keys
        - Adds trailing newline

    """
    cache_file.parent.mkdir(parents=True, exist_ok=True)
    tmp = cache_file.with_suffix(cache_file.suffix + ".part")

    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)
        f.write("\n")

    tmp.replace(cache_file)
