"""
Endpoint prober for locating the autocomplete API under a base URL.
"""

import asyncio
import aiohttp
import logging
import time
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from dataclasses import dataclass, field
from aiohttp import ClientTimeout, ClientError

from .fetcher import UNKNOWN_STATUS, utc_timestamp


@dataclass
class ProbeResult:
    """Outcome of probing one candidate path."""
    path: str
    url: str
    status: Union[int, str]
    time_elapsed: float
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return isinstance(self.status, int) and 200 <= self.status < 300

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'url': self.url,
            'status': self.status,
            'timeElapsed': round(self.time_elapsed, 2),
            'ok': self.ok,
            'error': self.error,
        }


@dataclass
class ProbeReport:
    """All probe results for a base URL."""
    base_url: str
    results: List[ProbeResult] = field(default_factory=list)
    total_time_ms: float = 0.0
    timestamp: str = field(default_factory=utc_timestamp)

    @property
    def successful(self) -> List[ProbeResult]:
        return [result for result in self.results if result.ok]

    def to_dict(self) -> Dict[str, Any]:
        by_status: Dict[str, List[str]] = defaultdict(list)
        for result in self.results:
            by_status[str(result.status)].append(result.path)

        return {
            'metadata': {
                'baseUrl': self.base_url,
                'totalRequests': len(self.results),
                'totalTimeElapsed': round(self.total_time_ms, 2),
                'testDate': self.timestamp,
            },
            'successfulEndpoints': [result.to_dict() for result in self.successful],
            'endpointsByStatusCode': dict(by_status),
            'responses': [result.to_dict() for result in self.results],
        }


class EndpointProber:
    """
    Probes every ``{base_url}/{version}/{endpoint}`` combination with a
    sample query, sequentially and with a fixed delay between requests.
    """

    def __init__(self, base_url: str, versions: List[str], endpoints: List[str],
                 query_param: str = "query", sample_query: str = "a",
                 delay: float = 0.5, request_timeout: float = 5.0,
                 user_agent: str = "NameDiscoveryCrawler/1.0",
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.base_url = base_url.rstrip('/')
        self.versions = versions
        self.endpoints = endpoints
        self.query_param = query_param
        self.sample_query = sample_query
        self.delay = delay
        self.request_timeout = request_timeout
        self.user_agent = user_agent
        self._sleep = sleep
        self.logger = logging.getLogger(__name__)

    def candidate_paths(self) -> List[str]:
        return [f"{version}/{endpoint}" for version in self.versions for endpoint in self.endpoints]

    async def probe(self) -> ProbeReport:
        """Probe all candidate paths and return the report."""
        report = ProbeReport(base_url=self.base_url)
        start_time = time.perf_counter()

        self.logger.info(f"Probing {len(self.candidate_paths())} candidate endpoints on {self.base_url}")
        timeout = ClientTimeout(total=self.request_timeout)
        async with aiohttp.ClientSession(timeout=timeout,
                                         headers={'User-Agent': self.user_agent}) as session:
            for path in self.candidate_paths():
                result = await self._probe_path(session, path)
                report.results.append(result)
                await self._sleep(self.delay)

        report.total_time_ms = (time.perf_counter() - start_time) * 1000

        for result in report.successful:
            self.logger.info(f"Found valid endpoint: GET {result.url}")
        self.logger.info(f"Probe complete: {len(report.successful)}/{len(report.results)} endpoints responded 2xx")
        return report

    async def _probe_path(self, session: aiohttp.ClientSession, path: str) -> ProbeResult:
        url = f"{self.base_url}/{path}"
        start_time = time.perf_counter()

        try:
            async with session.get(url, params={self.query_param: self.sample_query}) as response:
                await response.read()
                elapsed = (time.perf_counter() - start_time) * 1000
                self.logger.debug(f"GET {url}: {response.status}")
                return ProbeResult(path=path, url=url, status=response.status, time_elapsed=elapsed)

        except asyncio.TimeoutError:
            error_msg = "Request timeout"
        except ClientError as e:
            error_msg = f"Client error: {e}"

        self.logger.warning(f"Probe of {url} failed: {error_msg}")
        return ProbeResult(
            path=path,
            url=url,
            status=UNKNOWN_STATUS,
            time_elapsed=(time.perf_counter() - start_time) * 1000,
            error=error_msg
        )
