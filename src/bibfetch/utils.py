"""Shared infrastructure for bibfetch.

Includes registry endpoints, DOI URL helpers, per-service rate limiting and
the pooled HTTP client used by every worker thread.
"""

from __future__ import annotations

import threading
import time
from typing import Any

import httpx

from bibfetch._version import __version__

# ------------- Constants -------------

DOI_RESOLVER = "https://doi.org"
ARXIV_API = "http://export.arxiv.org/api/query"

BIBTEX_ACCEPT = "text/bibliography; style=bibtex"
ATOM_ACCEPT = "application/atom+xml"

USER_AGENT = f"bibfetch/{__version__}"
DEFAULT_TIMEOUT = 20.0
DEFAULT_MAX_WORKERS = 8
FALLBACK_REQ_PER_MIN = 30


# ------------- DOI Utilities -------------


def doi_url(doi: str) -> str:
    """Convert a DOI to its resolver URL."""
    return f"{DOI_RESOLVER}/{doi}"


def arxiv_query_params(arxiv_id: str) -> dict[str, str]:
    """Query parameters selecting a single arXiv paper."""
    return {"id_list": arxiv_id}


# ------------- Rate Limiting -------------


class RateLimiter:
    """Sliding one-minute request budget shared by worker threads.

    Each call reserves the next free slot while holding the lock and sleeps
    after releasing it, so threads queued behind a throttled request can
    reserve their own slots instead of waiting for the lock.
    """

    WINDOW = 60.0

    def __init__(self, req_per_min: int) -> None:
        self.req_per_min = max(req_per_min, 1)
        self.lock = threading.Lock()
        self.timestamps: list[float] = []

    def reserve(self) -> float:
        """Claim a request slot and return how long to wait until it opens."""
        with self.lock:
            now = time.monotonic()
            self.timestamps = [t for t in self.timestamps if now - t < self.WINDOW]
            slot = now
            if len(self.timestamps) >= self.req_per_min:
                slot = max(now, self.timestamps[-self.req_per_min] + self.WINDOW)
            self.timestamps.append(slot)
            return slot - now

    def wait(self) -> None:
        """Sleep until this thread's slot in the budget opens."""
        delay = self.reserve()
        if delay > 0:
            time.sleep(delay)


class RateLimiterRegistry:
    """One RateLimiter per registry service, created on first use.

    DOI lookups and arXiv queries go to different hosts with different
    usage policies, so each gets its own budget.
    """

    DEFAULT_LIMITS = {
        "doi": 120,  # doi.org content negotiation: generous
        "arxiv": 20,  # arXiv API asks for roughly one request every 3 s
    }

    def __init__(self, limits: dict[str, int] | None = None) -> None:
        """Initialize the registry with optional custom limits.

        Args:
            limits: Optional dict of service name to requests per minute.
                   Overrides DEFAULT_LIMITS for specified services.
        """
        self._limits = {**self.DEFAULT_LIMITS, **(limits or {})}
        self._limiters: dict[str, RateLimiter] = {}
        self._lock = threading.Lock()

    def get(self, service: str) -> RateLimiter:
        """Return the limiter for ``service`` ('doi', 'arxiv' or any other name)."""
        with self._lock:
            if service not in self._limiters:
                self._limiters[service] = RateLimiter(self._limits.get(service, FALLBACK_REQ_PER_MIN))
            return self._limiters[service]

    def wait(self, service: str) -> None:
        """Block the calling thread until ``service`` may be contacted."""
        self.get(service).wait()


# ------------- HTTP Client -------------


class HttpClient:
    """Pooled HTTP client with per-service rate limiting.

    One instance is shared by all worker threads. Requests are issued once;
    failures surface as ``httpx.HTTPError`` for the caller to map.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
        rate_limiter: RateLimiterRegistry | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            rate_limiter: Per-service rate limiter registry
            transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        """
        self.client = httpx.Client(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": user_agent},
            follow_redirects=True,
            transport=transport,
        )
        self.rate_limiter = rate_limiter or RateLimiterRegistry()

    def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        accept: str | None = None,
        service: str = "doi",
    ) -> httpx.Response:
        """Issue a GET request after waiting on the service's rate limiter.

        Args:
            url: Request URL
            params: Query parameters
            accept: Accept header value
            service: Service name for rate limiting ('doi' or 'arxiv')
        """
        self.rate_limiter.wait(service)
        headers = {"Accept": accept} if accept else {}
        return self.client.get(url, params=params, headers=headers)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
