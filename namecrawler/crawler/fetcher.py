"""
Autocomplete fetcher with per-request timeouts and an optional retry policy.
"""

import asyncio
import aiohttp
import logging
import time
from typing import Optional, Dict, List, Union
from dataclasses import dataclass, field
from datetime import datetime, timezone
from aiohttp import ClientSession, ClientTimeout, ClientError

from .parser import SuggestionParser


# Status recorded when no HTTP response was received at all
UNKNOWN_STATUS = "Unknown"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


@dataclass
class FetchResult:
    """Outcome of a single autocomplete query."""
    query: str
    status: Union[int, str]
    results: List[str] = field(default_factory=list)
    elapsed_ms: Optional[float] = None
    error: Optional[str] = None
    attempts: int = 1
    timestamp: str = field(default_factory=utc_timestamp)

    @property
    def ok(self) -> bool:
        return self.error is None


class SuggestionFetcher:
    """
    Queries an autocomplete endpoint, one term per request.

    Failures (transport errors, timeouts, non-2xx statuses) never raise out of
    ``fetch``; they come back as a FetchResult with an empty result list and
    an error message.
    """

    def __init__(self, base_url: str, query_param: str = "query",
                 extra_params: Optional[Dict[str, str]] = None,
                 user_agent: str = "NameDiscoveryCrawler/1.0",
                 request_timeout: float = 10.0, max_retries: int = 0,
                 retry_backoff: float = 1.0, parser: Optional[SuggestionParser] = None):
        self.base_url = base_url
        self.query_param = query_param
        self.extra_params = dict(extra_params or {})
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.parser = parser or SuggestionParser()

        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'retries': 0,
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent, 'Accept': 'application/json'}

            # One request in flight at a time
            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(limit=1)
            )
            self.logger.info("SuggestionFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("SuggestionFetcher session closed")

    def build_params(self, term: str) -> Dict[str, str]:
        params = dict(self.extra_params)
        params[self.query_param] = term
        return params

    async def fetch(self, term: str) -> FetchResult:
        """
        Query the endpoint for a single term.

        Args:
            term: The search term to submit

        Returns:
            FetchResult with suggestions and latency, or failure details
        """
        if self.session is None:
            await self.start()

        attempts = 0
        result = None
        while attempts <= self.max_retries:
            if attempts:
                self.stats['retries'] += 1
                self.logger.info(f"Retrying \"{term}\" ({attempts}/{self.max_retries})")
                await asyncio.sleep(self.retry_backoff)

            attempts += 1
            result = await self._attempt(term)
            result.attempts = attempts
            if result.ok:
                self.stats['successful_requests'] += 1
                return result

        self.stats['failed_requests'] += 1
        return result

    async def _attempt(self, term: str) -> FetchResult:
        """Issue one HTTP request for a term."""
        self.stats['total_requests'] += 1
        start_time = time.perf_counter()

        try:
            async with self.session.get(self.base_url, params=self.build_params(term)) as response:
                body = await response.read()
                elapsed_ms = (time.perf_counter() - start_time) * 1000

                if not 200 <= response.status < 300:
                    self.logger.warning(f"HTTP {response.status} fetching \"{term}\"")
                    return FetchResult(
                        query=term,
                        status=response.status,
                        error=f"HTTP {response.status}"
                    )

                suggestions = self.parser.parse(body)
                self.logger.debug(f"Fetched \"{term}\": {response.status} "
                                  f"({len(suggestions)} suggestions, {elapsed_ms:.2f} ms)")
                return FetchResult(
                    query=term,
                    status=response.status,
                    results=suggestions,
                    elapsed_ms=elapsed_ms
                )

        except asyncio.TimeoutError:
            error_msg = "Request timeout"
            self.logger.warning(f"Timeout fetching \"{term}\"")

        except ClientError as e:
            error_msg = f"Client error: {e}"
            self.logger.warning(f"Client error fetching \"{term}\": {e}")

        return FetchResult(query=term, status=UNKNOWN_STATUS, error=error_msg)

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
