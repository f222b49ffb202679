import json

import pytest

from namecrawler.crawler.scheduler import QueryRecord, RunSummary
from namecrawler.storage.report import render_markdown
from namecrawler.storage.summary_store import SummaryStore, StorageError


@pytest.fixture
def summary():
    return RunSummary(
        total_requests=3,
        total_time_ms=1520.5,
        avg_response_time=20.0,
        min_response_time=10.0,
        max_response_time=30.0,
        failed_requests=1,
        dropped_names=0,
        queue_ceiling=1000,
        queries=[
            QueryRecord('a', 200, 10.0, '2025-03-24T01:35:10Z', ['amy', 'ana']),
            QueryRecord('b', 'Unknown', 'N/A', '2025-03-24T01:35:11Z', [],
                        error='Client error: connection refused'),
            QueryRecord('amy', 200, 30.0, '2025-03-24T01:35:12Z', []),
        ],
        extracted_names=['amy', 'ana'],
    )


def test_save_and_load_round_trip(tmp_path, summary):
    store = SummaryStore()
    path = store.save(tmp_path / 'out' / 'names.json', summary)

    raw = path.read_text(encoding='utf-8')
    assert raw.startswith('{\n  "metadata"')
    assert store.load(path) == json.loads(raw) == summary.to_dict()


def test_save_plain_mapping(tmp_path):
    path = SummaryStore().save(tmp_path / 'plain.json', {'names': ['zoë']})
    assert 'zoë' in path.read_text(encoding='utf-8')


def test_lone_surrogate_survives_save(tmp_path):
    store = SummaryStore()
    path = store.save(tmp_path / 'names.json', {'extractedNames': ['\ud800x', 'zoë']})

    assert store.load(path) == {'extractedNames': ['\ud800x', 'zoë']}


def test_write_failure_is_fatal(tmp_path, summary):
    with pytest.raises(StorageError):
        SummaryStore().save(tmp_path, summary)


def test_load_errors(tmp_path):
    store = SummaryStore()
    with pytest.raises(StorageError):
        store.load(tmp_path / 'missing.json')

    broken = tmp_path / 'broken.json'
    broken.write_text('{not json')
    with pytest.raises(StorageError):
        store.load(broken)

    listing = tmp_path / 'list.json'
    listing.write_text('[]')
    with pytest.raises(StorageError):
        store.load(listing)


def test_markdown_report(summary):
    markdown = render_markdown(summary.to_dict(), generated_at='2025-03-24T02:00:00Z')

    assert markdown.startswith('# Name Extraction Report\n')
    assert '*Generated on: 2025-03-24T02:00:00Z*' in markdown
    assert '| Total requests | 3 |' in markdown
    assert '| Failed requests | 1 |' in markdown
    assert '| Names extracted | 2 |' in markdown
    assert '| `b` | Unknown | Client error: connection refused |' in markdown
    assert '| 200 | 2 |' in markdown
    assert markdown.rstrip().endswith('- amy\n- ana')
    assert 'Truncated' not in markdown


def test_markdown_report_flags_truncation(summary):
    data = summary.to_dict()
    data['metadata']['droppedNames'] = 7

    markdown = render_markdown(data)

    assert '**Truncated:**' in markdown
    assert '7 discovered names were never queried' in markdown


def test_markdown_report_without_failures():
    markdown = render_markdown({'metadata': {}, 'queries': [], 'extractedNames': []})

    assert '## Failed Queries\n\nNone.' in markdown
    assert '0 names in discovery order.' in markdown
