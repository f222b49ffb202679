"""
Output storage and reporting for the name discovery crawler.
"""

from .summary_store import SummaryStore, StorageError
from .report import render_markdown

__all__ = ['SummaryStore', 'StorageError', 'render_markdown']
