"""Input/Output operations for ManUp.

This module provides the network side of the gate: fetching the remote
policy document with retries and a timeout, reporting failures as values
rather than exceptions.

Modules:

fetch : module
    HTTP(S) policy fetch with retries, timeout and typed failures.

Public API:

HttpFetcher : class
    requests-based Fetcher implementation.
FetchResult : dataclass
    Fetched text, or the NetworkError that prevented it.
Fetcher : Protocol
    Interface the engine depends on.

Example:
    from manup.io import HttpFetcher

    result = HttpFetcher(timeout=10).fetch("https://example.com/manup.json")
    print(result.ok)

"""

from .fetch import Fetcher, FetchResult, HttpFetcher, make_session

__all__ = ["Fetcher", "FetchResult", "HttpFetcher", "make_session"]
