"""
Policy document fetching for ManUp.

This module retrieves the policy JSON text from the gate's config URL. A
fetch never raises on transport problems: the result carries a typed
NetworkError instead, so the engine can fall back to the cached policy
deterministically.

Key Features:

- **Retry Logic with Exponential Backoff** - Retries transient failures
  (429, 500, 502, 503, 504) via urllib3.util.Retry before giving up.
- **Per-request Timeout** - A fetch that stalls is abandoned after
  'timeout' seconds, so a check cycle can never hang in the downloading
  state.
- **No-cache Request Headers** - Asks intermediaries for a fresh copy; the
  gate does its own caching.

Classes:

- FetchResult: text on success, NetworkError on failure.
- Fetcher: Protocol the engine depends on.
- HttpFetcher: requests-based implementation.

Example:
    >>> from manup.io import HttpFetcher
    >>> result = HttpFetcher(timeout=10).fetch("https://example.com/manup.json")
    >>> if result.ok:
    ...     print(result.text)
    ... else:
    ...     print(f"fetch failed: {result.error}")

Notes:
- User-Agent identifies ManUp to help with debugging/support
- The response body is decoded with the charset the server declares,
  falling back to UTF-8
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from manup import __version__
from manup.exceptions import NetworkError
from manup.logging import Logger, get_global_logger

DEFAULT_TIMEOUT = 30


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one fetch.

    Attributes:
        text: Response body on success, None on failure.
        error: The failure, None on success.
    """

    text: str | None = None
    error: NetworkError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


class Fetcher(Protocol):
    """Protocol for policy fetchers."""

    def fetch(self, url: str) -> FetchResult:
        """Retrieve policy text from 'url'.

        Must not raise on transport errors; return them in the result.
        """
        ...


def make_session(retries: int = 3) -> requests.Session:
    """
    Create a requests.Session with sane retry/backoff defaults.

    - Retries on common transient status codes.
    - Applies exponential backoff.
    - Sets a helpful User-Agent to avoid being blocked.
    """
    s = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    s.headers.update(
        {
            "User-Agent": f"manup/{__version__}",
            "Accept": "application/json",
            "Cache-Control": "no-cache",
        }
    )
    s.mount("http://", HTTPAdapter(max_retries=retry))
    s.mount("https://", HTTPAdapter(max_retries=retry))
    return s


class HttpFetcher:
    """Fetcher that GETs the policy over HTTP(S).

    Attributes:
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.timeout = timeout
        self._session = session
        self._logger = logger

    @property
    def logger(self) -> Logger:
        return self._logger if self._logger is not None else get_global_logger()

    def fetch(self, url: str) -> FetchResult:
        """GET 'url' and return its body as text.

        Args:
            url: Policy document URL.

        Returns:
            FetchResult with the body, or with a NetworkError describing an
                empty URL, HTTP error status, timeout or connection failure.

        """
        if not url:
            return FetchResult(error=NetworkError("No config URL configured"))

        self.logger.verbose("HTTP", f"GET {url}")
        session = self._session if self._session is not None else make_session()
        try:
            resp = session.get(url, timeout=self.timeout, allow_redirects=True)
            try:
                resp.raise_for_status()
            except requests.HTTPError:
                return FetchResult(
                    error=NetworkError(
                        f"fetch failed for {url}: {resp.status_code} {resp.reason}"
                    )
                )
            if resp.encoding is None:
                resp.encoding = "utf-8"
            text = resp.text
        except requests.exceptions.Timeout as err:
            return FetchResult(
                error=NetworkError(f"fetch timed out after {self.timeout}s: {err}")
            )
        except requests.exceptions.RequestException as err:
            return FetchResult(error=NetworkError(f"fetch failed for {url}: {err}"))
        finally:
            if self._session is None:
                session.close()

        self.logger.verbose("HTTP", f"Response: {resp.status_code} {resp.reason}")
        self.logger.debug("HTTP", f"Body: {text[:200]}")
        return FetchResult(text=text)
