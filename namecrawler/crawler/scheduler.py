"""
Crawler scheduler that drives the breadth-first name discovery traversal.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from dataclasses import dataclass, field

from .name_frontier import NameFrontier, Admission
from .fetcher import SuggestionFetcher, FetchResult, utc_timestamp
from ..utils.config import CrawlerConfig
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class QueryRecord:
    """One logged observation of a single query's outcome."""
    query: str
    status: Union[int, str]
    time_taken: Union[float, str]
    timestamp: str
    results: List[str]
    attempts: int = 1
    error: Optional[str] = None

    @classmethod
    def from_fetch(cls, result: FetchResult) -> 'QueryRecord':
        time_taken = round(result.elapsed_ms, 2) if result.ok and result.elapsed_ms is not None \
            else NOT_AVAILABLE
        return cls(
            query=result.query,
            status=result.status,
            time_taken=time_taken,
            timestamp=result.timestamp,
            results=list(result.results) if result.ok else [],
            attempts=result.attempts,
            error=result.error,
        )

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'query': self.query,
            'status': self.status,
            'timeTaken': self.time_taken,
            'timestamp': self.timestamp,
            'results': list(self.results),
            'attempts': self.attempts,
            'error': self.error,
        }


@dataclass
class CrawlerState:
    """Mutable state owned by a single traversal."""
    frontier: NameFrontier
    start_time: float = field(default_factory=time.perf_counter)
    records: List[QueryRecord] = field(default_factory=list)
    response_times: List[float] = field(default_factory=list)
    request_count: int = 0
    failed_requests: int = 0

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.start_time) * 1000


@dataclass
class RunSummary:
    """Aggregate outcome of a crawl, serialized once at the end of the run."""
    total_requests: int
    total_time_ms: float
    avg_response_time: float
    min_response_time: Union[float, str]
    max_response_time: Union[float, str]
    failed_requests: int
    dropped_names: int
    queue_ceiling: int
    queries: List[QueryRecord]
    extracted_names: List[str]
    timestamp: str = field(default_factory=utc_timestamp)

    @property
    def truncated(self) -> bool:
        """True when the queue ceiling kept some discovered names from being explored."""
        return self.dropped_names > 0

    @classmethod
    def from_state(cls, state: CrawlerState) -> 'RunSummary':
        times = state.response_times
        return cls(
            total_requests=state.request_count,
            total_time_ms=round(state.elapsed_ms, 2),
            avg_response_time=round(sum(times) / len(times), 2) if times else 0,
            min_response_time=round(min(times), 2) if times else NOT_AVAILABLE,
            max_response_time=round(max(times), 2) if times else NOT_AVAILABLE,
            failed_requests=state.failed_requests,
            dropped_names=state.frontier.dropped_count,
            queue_ceiling=state.frontier.max_queue_size,
            queries=list(state.records),
            extracted_names=list(state.frontier.discovered),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'metadata': {
                'totalRequests': self.total_requests,
                'totalTimeTaken': self.total_time_ms,
                'avgResponseTime': self.avg_response_time,
                'minResponseTime': self.min_response_time,
                'maxResponseTime': self.max_response_time,
                'failedRequests': self.failed_requests,
                'droppedNames': self.dropped_names,
                'truncated': self.truncated,
                'queueCeiling': self.queue_ceiling,
                'timestamp': self.timestamp,
            },
            'queries': [record.to_dict() for record in self.queries],
            'extractedNames': list(self.extracted_names),
        }


class NameCrawler:
    """
    Breadth-first crawler over an autocomplete service.

    Each dequeued term is queried once; every new name in the response is
    recorded and, room permitting, queued as a later query. A fixed delay is
    awaited after every query. The run ends when the queue is empty.
    """

    def __init__(self, config: CrawlerConfig, fetcher: Optional[Any] = None,
                 monitor: Optional[CrawlerMonitor] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.config = config
        self.monitor = monitor
        self.logger = get_crawler_logger(__name__)
        self._sleep = sleep

        # An injected fetcher is owned by the caller
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or SuggestionFetcher(
            base_url=config.base_url,
            query_param=config.query_param,
            extra_params=config.extra_params,
            user_agent=config.user_agent,
            request_timeout=config.request_timeout,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff,
        )

        self.is_running = False
        self.state: Optional[CrawlerState] = None

    async def run(self) -> RunSummary:
        """Run the traversal to completion and return its summary."""
        if self.is_running:
            raise RuntimeError("Crawler is already running")

        state = CrawlerState(
            frontier=NameFrontier(self.config.seed_queries, self.config.max_queue_size)
        )
        self.state = state
        self.is_running = True

        self.logger.info(f"Starting extraction from {self.config.base_url} "
                         f"with {len(state.frontier)} seed queries")
        try:
            while self.is_running and not state.frontier.is_empty():
                query = state.frontier.next_query()
                await self._process_query(state, query)
                await self._sleep(self.config.delay)
        finally:
            self.is_running = False
            if self._owns_fetcher:
                await self.fetcher.close()

        if not state.frontier.is_empty():
            self.logger.warning(f"Crawl stopped with {len(state.frontier)} queries still queued")

        summary = RunSummary.from_state(state)
        self._log_final_stats(summary)
        return summary

    async def _process_query(self, state: CrawlerState, query: str):
        """Query one term and fold the outcome into the traversal state."""
        self.logger.log_query_event(logging.INFO, query, f"Querying: \"{query}\"")

        result = await self.fetcher.fetch(query)
        state.request_count += 1

        record = QueryRecord.from_fetch(result)
        state.records.append(record)

        if record.failed:
            state.failed_requests += 1
            self.logger.log_query_event(logging.ERROR, query,
                                        f"Error fetching \"{query}\": {result.error}")
            if self.monitor:
                self.monitor.record_failure(query, record.status)
            return

        state.response_times.append(result.elapsed_ms)
        if self.monitor:
            self.monitor.record_query(query, result.elapsed_ms / 1000)

        for name in record.results:
            admission = state.frontier.discover(name)
            if admission is Admission.SEEN:
                continue

            self.logger.log_name_found(name, query)
            if self.monitor:
                self.monitor.record_name_found(name)
                if admission is Admission.DROPPED:
                    self.monitor.record_name_dropped(name)

        if self.monitor:
            self.monitor.update_queue_size(len(state.frontier))

    def stop(self):
        """Ask the traversal to stop after the query in flight."""
        if self.is_running:
            self.logger.info("Stopping crawler...")
        self.is_running = False

    def _log_final_stats(self, summary: RunSummary):
        self.logger.info("=== EXTRACTION COMPLETED ===")
        self.logger.log_crawler_stat('total_requests', summary.total_requests)
        self.logger.log_crawler_stat('avg_response_time_ms', summary.avg_response_time)
        self.logger.log_crawler_stat('min_response_time_ms', summary.min_response_time)
        self.logger.log_crawler_stat('max_response_time_ms', summary.max_response_time)
        self.logger.log_crawler_stat('total_time_ms', summary.total_time_ms)
        self.logger.log_crawler_stat('failed_requests', summary.failed_requests)
        self.logger.log_crawler_stat('names_extracted', len(summary.extracted_names))
        if summary.truncated:
            self.logger.warning(f"Queue ceiling of {summary.queue_ceiling} reached: "
                                f"{summary.dropped_names} discovered names were not explored")
        if hasattr(self.fetcher, 'get_stats'):
            self.logger.info(f"Fetcher stats: {self.fetcher.get_stats()}")
        if self.monitor:
            self.logger.info(f"Monitor summary: {self.monitor.get_summary()}")
