"""
Markdown rendering of a saved run summary.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


METADATA_ROWS = [
    ('totalRequests', 'Total requests'),
    ('failedRequests', 'Failed requests'),
    ('avgResponseTime', 'Average response time (ms)'),
    ('minResponseTime', 'Fastest response time (ms)'),
    ('maxResponseTime', 'Slowest response time (ms)'),
    ('totalTimeTaken', 'Total execution time (ms)'),
    ('queueCeiling', 'Queue ceiling'),
    ('droppedNames', 'Names not explored (queue full)'),
    ('timestamp', 'Run finished'),
]


def _escape(value: Any) -> str:
    return str(value).replace('|', '\\|')


def render_markdown(summary: Dict[str, Any], generated_at: Optional[str] = None) -> str:
    """
    Render a run summary document as Markdown.

    Args:
        summary: Decoded summary JSON with ``metadata``, ``queries`` and
            ``extractedNames`` fields
        generated_at: Timestamp for the header; defaults to now (UTC)

    Returns:
        Markdown text
    """
    metadata = summary.get('metadata') or {}
    queries: List[Dict[str, Any]] = summary.get('queries') or []
    names: List[str] = summary.get('extractedNames') or []
    generated_at = generated_at or datetime.now(timezone.utc).isoformat()

    lines = ["# Name Extraction Report", "", f"*Generated on: {generated_at}*", ""]

    lines += ["## Overview", "", "| Metric | Value |", "| ------ | ----- |"]
    for key, label in METADATA_ROWS:
        if key in metadata:
            lines.append(f"| {label} | {_escape(metadata[key])} |")
    lines.append(f"| Names extracted | {len(names)} |")
    lines.append("")

    if metadata.get('droppedNames'):
        lines += [
            f"> **Truncated:** the queue reached its ceiling of {metadata.get('queueCeiling')} "
            f"and {metadata['droppedNames']} discovered names were never queried. "
            f"The name list below is a partial enumeration.",
            "",
        ]

    statuses = Counter(str(query.get('status')) for query in queries)
    if statuses:
        lines += ["## Responses by Status", "", "| Status | Count |", "| ------ | ----- |"]
        for status, count in sorted(statuses.items()):
            lines.append(f"| {_escape(status)} | {count} |")
        lines.append("")

    failed = [query for query in queries if query.get('error') or query.get('timeTaken') == 'N/A']
    lines += ["## Failed Queries", ""]
    if failed:
        lines += ["| Query | Status | Error |", "| ----- | ------ | ----- |"]
        for query in failed:
            lines.append(f"| `{_escape(query.get('query'))}` | {_escape(query.get('status'))} "
                         f"| {_escape(query.get('error') or '')} |")
    else:
        lines.append("None.")
    lines.append("")

    lines += ["## Discovered Names", "", f"{len(names)} names in discovery order.", ""]
    lines += [f"- {name}" for name in names]

    return "\n".join(lines).rstrip() + "\n"
