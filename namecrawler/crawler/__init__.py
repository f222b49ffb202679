"""
Name discovery crawler core components.
"""

from .name_frontier import NameFrontier, Admission
from .fetcher import SuggestionFetcher, FetchResult, UNKNOWN_STATUS
from .parser import SuggestionParser
from .scheduler import NameCrawler, CrawlerState, QueryRecord, RunSummary
from .prober import EndpointProber, ProbeReport, ProbeResult

__all__ = [
    'NameFrontier', 'Admission',
    'SuggestionFetcher', 'FetchResult', 'UNKNOWN_STATUS',
    'SuggestionParser',
    'NameCrawler', 'CrawlerState', 'QueryRecord', 'RunSummary',
    'EndpointProber', 'ProbeReport', 'ProbeResult',
]
