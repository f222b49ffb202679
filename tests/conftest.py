import string
from typing import Dict, Iterable, List, Optional

import pytest

from namecrawler.crawler.fetcher import FetchResult, UNKNOWN_STATUS
from namecrawler.utils.config import CrawlerConfig


class FakeFetcher:
    """In-memory stand-in for SuggestionFetcher driven by a suggestion graph."""

    def __init__(self, graph: Optional[Dict[str, List[str]]] = None,
                 failures: Iterable[str] = (), latency_ms: float = 5.0):
        self.graph = graph or {}
        self.failures = set(failures)
        self.latency_ms = latency_ms
        self.calls: List[str] = []

    async def fetch(self, term: str) -> FetchResult:
        self.calls.append(term)
        if term in self.failures:
            return FetchResult(query=term, status=UNKNOWN_STATUS, error="Client error: simulated")
        return FetchResult(query=term, status=200, results=list(self.graph.get(term, [])),
                           elapsed_ms=self.latency_ms)


class RecordingSleep:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


def make_config(**overrides) -> CrawlerConfig:
    values = {
        'base_url': 'http://autocomplete.test/v1/autocomplete',
        'delay': 0.0,
    }
    values.update(overrides)
    return CrawlerConfig(**values)


@pytest.fixture
def alphabet() -> List[str]:
    return list(string.ascii_lowercase)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
