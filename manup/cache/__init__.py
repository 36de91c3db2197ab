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

Keeps the last successfully fetched policy text and its fetch timestamp
between application runs, so the gate can work offline and skip fetching
while the cache is fresh.

Public API:

- CacheStore: Protocol the engine depends on
- CacheRecord: Cached text plus fetch timestamp
- FileCacheStore: JSON file implementation (atomic writes)
- MemoryCacheStore: In-memory implementation
- is_record_stale: Staleness rule (under 1 day AND within the window)

Example:
    from pathlib import Path
    from manup.cache import FileCacheStore

    cache = FileCacheStore(Path("state/manup_cache.json"))
    record = cache.read()
    if record:
        print(record.fetched_at)

"""

from .store import (
    CacheRecord,
    CacheStore,
    FileCacheStore,
    MemoryCacheStore,
    is_record_stale,
)

__all__ = [
    "CacheRecord",
    "CacheStore",
    "FileCacheStore",
    "MemoryCacheStore",
    "is_record_stale",
]
