import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from namecrawler.crawler.fetcher import SuggestionFetcher, UNKNOWN_STATUS
from namecrawler.crawler.scheduler import NameCrawler
from tests.conftest import make_config


@pytest.fixture
async def autocomplete_server():
    state = {'flaky_calls': 0, 'params': []}

    async def autocomplete(request):
        state['params'].append(dict(request.query))
        query = request.query.get('query', '')

        if query == 'a':
            return web.json_response({'version': 'v1', 'count': 2, 'results': ['amy', 'ana']})
        if query == 'bad':
            return web.json_response({'detail': 'boom'}, status=500)
        if query == 'limited':
            return web.json_response({'detail': 'Too many requests'}, status=429)
        if query == 'slow':
            await asyncio.sleep(1)
            return web.json_response({'results': ['late']})
        if query == 'flaky':
            state['flaky_calls'] += 1
            if state['flaky_calls'] == 1:
                return web.Response(status=503)
            return web.json_response({'results': ['fixed']})
        if query == 'text':
            return web.Response(text='not json')
        if query == 'binary':
            return web.Response(body=b'{"results": ["\xff"]}', content_type='application/json')
        return web.json_response({'count': 0})

    app = web.Application()
    app.router.add_get('/v1/autocomplete', autocomplete)
    server = TestServer(app)
    await server.start_server()
    server.state = state
    yield server
    await server.close()


def endpoint(server):
    return str(server.make_url('/v1/autocomplete'))


@pytest.mark.asyncio
async def test_successful_query(autocomplete_server):
    async with SuggestionFetcher(endpoint(autocomplete_server)) as fetcher:
        result = await fetcher.fetch('a')

    assert result.ok
    assert result.status == 200
    assert result.results == ['amy', 'ana']
    assert result.elapsed_ms is not None and result.elapsed_ms >= 0
    assert result.attempts == 1


@pytest.mark.asyncio
async def test_missing_results_field_is_not_a_failure(autocomplete_server):
    async with SuggestionFetcher(endpoint(autocomplete_server)) as fetcher:
        empty = await fetcher.fetch('zzz')
        text = await fetcher.fetch('text')

    assert empty.ok and empty.results == []
    assert text.ok and text.results == []


@pytest.mark.asyncio
async def test_non_2xx_is_a_failure_with_http_status(autocomplete_server):
    async with SuggestionFetcher(endpoint(autocomplete_server)) as fetcher:
        server_error = await fetcher.fetch('bad')
        throttled = await fetcher.fetch('limited')

    assert not server_error.ok
    assert server_error.status == 500
    assert server_error.results == []
    assert server_error.elapsed_ms is None
    assert throttled.status == 429
    assert fetcher.get_stats()['failed_requests'] == 2


@pytest.mark.asyncio
async def test_timeout_is_a_failure(autocomplete_server):
    async with SuggestionFetcher(endpoint(autocomplete_server), request_timeout=0.1) as fetcher:
        result = await fetcher.fetch('slow')

    assert not result.ok
    assert result.status == UNKNOWN_STATUS
    assert result.error == 'Request timeout'
    assert result.results == []


@pytest.mark.asyncio
async def test_connection_error_is_a_failure():
    server = TestServer(web.Application())
    await server.start_server()
    url = str(server.make_url('/v1/autocomplete'))
    await server.close()

    async with SuggestionFetcher(url, request_timeout=2) as fetcher:
        result = await fetcher.fetch('a')

    assert not result.ok
    assert result.status == UNKNOWN_STATUS
    assert result.error.startswith('Client error')


@pytest.mark.asyncio
async def test_no_retry_by_default(autocomplete_server):
    async with SuggestionFetcher(endpoint(autocomplete_server)) as fetcher:
        result = await fetcher.fetch('flaky')

    assert not result.ok
    assert result.status == 503
    assert result.attempts == 1
    assert autocomplete_server.state['flaky_calls'] == 1


@pytest.mark.asyncio
async def test_retry_policy_recovers_transient_failure(autocomplete_server):
    async with SuggestionFetcher(endpoint(autocomplete_server), max_retries=2,
                                 retry_backoff=0) as fetcher:
        result = await fetcher.fetch('flaky')

    assert result.ok
    assert result.results == ['fixed']
    assert result.attempts == 2
    stats = fetcher.get_stats()
    assert stats['retries'] == 1
    assert stats['total_requests'] == 2
    assert stats['successful_requests'] == 1


@pytest.mark.asyncio
async def test_retries_exhausted(autocomplete_server):
    async with SuggestionFetcher(endpoint(autocomplete_server), max_retries=2,
                                 retry_backoff=0) as fetcher:
        result = await fetcher.fetch('bad')

    assert not result.ok
    assert result.attempts == 3
    assert fetcher.get_stats()['failed_requests'] == 1


@pytest.mark.asyncio
async def test_extra_params_are_sent(autocomplete_server):
    async with SuggestionFetcher(endpoint(autocomplete_server),
                                 extra_params={'category': 'advanced'}) as fetcher:
        await fetcher.fetch('a')

    assert autocomplete_server.state['params'] == [{'category': 'advanced', 'query': 'a'}]


@pytest.mark.asyncio
async def test_custom_query_param():
    seen = []

    async def handler(request):
        seen.append(dict(request.query))
        return web.json_response({'results': []})

    app = web.Application()
    app.router.add_get('/suggest', handler)
    server = TestServer(app)
    await server.start_server()
    try:
        async with SuggestionFetcher(str(server.make_url('/suggest')), query_param='q') as fetcher:
            await fetcher.fetch('jo')
    finally:
        await server.close()

    assert seen == [{'q': 'jo'}]


@pytest.mark.asyncio
async def test_undecodable_body_yields_no_suggestions(autocomplete_server):
    async with SuggestionFetcher(endpoint(autocomplete_server)) as fetcher:
        result = await fetcher.fetch('binary')

    assert result.ok
    assert result.status == 200
    assert result.results == []


@pytest.mark.asyncio
async def test_crawl_continues_past_undecodable_body(autocomplete_server):
    config = make_config(base_url=endpoint(autocomplete_server), seed_queries=['binary', 'a'])

    summary = await NameCrawler(config).run()

    assert [record.query for record in summary.queries] == ['binary', 'a', 'amy', 'ana']
    assert summary.failed_requests == 0
    assert summary.extracted_names == ['amy', 'ana']
