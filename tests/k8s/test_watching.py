import asyncio
import json

import aiohttp.web
import pytest

from kubebind._cogs.clients.errors import APIError, APIForbiddenError
from kubebind._cogs.clients.watching import ChangeEvent, EventType, WatchStream

STREAM_WITH_NORMAL_EVENTS = [
    {'type': 'ADDED', 'object': {'metadata': {'name': 'q1'}, 'spec': 'a'}},
    {'type': 'MODIFIED', 'object': {'metadata': {'name': 'q1'}, 'spec': 'b'}},
    {'type': 'DELETED', 'object': {'metadata': {'name': 'q1'}, 'spec': 'c'}},
]


def make_stream(events):
    return '\n'.join(json.dumps(event) for event in events) + '\n'


async def collect(stream):
    return [event async for event in stream]


async def test_watching_with_all_parameters(
        resp_mocker, aresponses, hostname, conn, namespace):

    stream_mock = resp_mocker(return_value=aresponses.Response(text=''))
    url = '/api/v1/watch/namespaces/ns/resourcequotas'
    aresponses.add(hostname, url, 'get', stream_mock)

    stream = await conn.resource_quotas(namespace).watch('a=b', 'c!=d', '123')
    async with stream:
        events = await collect(stream)

    assert events == []
    assert stream_mock.called
    assert stream_mock.call_count == 1

    request = stream_mock.call_args_list[0][0][0]  # [callidx][args/kwargs][argidx]
    assert dict(request.query) == {'resourceVersion': '123', 'labels': 'a=b', 'fields': 'c!=d'}


@pytest.mark.parametrize('label_selector, field_selector, resource_version, query', [
    pytest.param(None, None, None, {}, id='all-none'),
    pytest.param('', '', '', {}, id='all-empty'),
    pytest.param('a=b', None, None, {'labels': 'a=b'}, id='labels-only'),
    pytest.param(None, 'c!=d', None, {'fields': 'c!=d'}, id='fields-only'),
    pytest.param(None, None, '123', {'resourceVersion': '123'}, id='version-only'),
    pytest.param('a=b', '', '123', {'resourceVersion': '123', 'labels': 'a=b'}, id='no-fields'),
    pytest.param({'a': 'b', 'x': 'y'}, None, None, {'labels': 'a=b,x=y'}, id='mapping'),
])
async def test_watching_omits_empty_parameters(
        resp_mocker, aresponses, hostname, conn, namespace,
        label_selector, field_selector, resource_version, query):

    stream_mock = resp_mocker(return_value=aresponses.Response(text=''))
    url = '/api/v1/watch/namespaces/ns/resourcequotas'
    aresponses.add(hostname, url, 'get', stream_mock)

    stream = await conn.resource_quotas(namespace).watch(
        label_selector=label_selector,
        field_selector=field_selector,
        resource_version=resource_version,
    )
    async with stream:
        await collect(stream)

    assert stream_mock.call_count == 1
    request = stream_mock.call_args_list[0][0][0]  # [callidx][args/kwargs][argidx]
    assert dict(request.query) == query


async def test_watching_with_server_timeout(
        resp_mocker, aresponses, hostname, conn, namespace, settings):

    settings.watching.server_timeout = 30
    stream_mock = resp_mocker(return_value=aresponses.Response(text=''))
    url = '/api/v1/watch/namespaces/ns/resourcequotas?timeoutSeconds=30'
    aresponses.add(hostname, url, 'get', stream_mock, match_querystring=True)

    stream = await conn.resource_quotas(namespace).watch()
    async with stream:
        await collect(stream)

    assert stream_mock.call_count == 1


async def test_events_are_delivered_in_order(
        aresponses, hostname, conn, namespace):

    aresponses.add(hostname, '/api/v1/watch/namespaces/ns/resourcequotas', 'get',
                   aresponses.Response(text=make_stream(STREAM_WITH_NORMAL_EVENTS)))

    stream = await conn.resource_quotas(namespace).watch()
    async with stream:
        events = await collect(stream)

    assert len(events) == 3
    assert all(isinstance(event, ChangeEvent) for event in events)
    assert [event.type for event in events] == [EventType.ADDED, EventType.MODIFIED, EventType.DELETED]
    assert [event.object['spec'] for event in events] == ['a', 'b', 'c']
    assert not any(event.is_error for event in events)
    assert stream.closed


async def test_error_events_are_delivered_as_events(
        aresponses, hostname, conn, namespace):

    status = {'apiVersion': 'v1', 'kind': 'Status', 'code': 410, 'reason': 'Expired'}
    aresponses.add(hostname, '/api/v1/watch/namespaces/ns/resourcequotas', 'get',
                   aresponses.Response(text=make_stream([{'type': 'ERROR', 'object': status}])))

    stream = await conn.resource_quotas(namespace).watch(resource_version='1')
    async with stream:
        events = await collect(stream)

    assert len(events) == 1
    assert events[0].is_error
    assert events[0].object == status


async def test_unknown_event_types_are_ignored(
        aresponses, hostname, conn, namespace, caplog):

    events = [{'type': 'BOOKMARK', 'object': {}}] + STREAM_WITH_NORMAL_EVENTS[:1]
    aresponses.add(hostname, '/api/v1/watch/namespaces/ns/resourcequotas', 'get',
                   aresponses.Response(text=make_stream(events)))

    stream = await conn.resource_quotas(namespace).watch()
    async with stream:
        events = await collect(stream)

    assert [event.type for event in events] == [EventType.ADDED]
    assert "Ignoring an unsupported event type" in caplog.text


async def test_undecodable_lines_end_the_stream_with_an_error_event(
        aresponses, hostname, conn, namespace):

    text = make_stream(STREAM_WITH_NORMAL_EVENTS[:1]) + 'BAD JSON!\n' + make_stream(STREAM_WITH_NORMAL_EVENTS[1:])
    aresponses.add(hostname, '/api/v1/watch/namespaces/ns/resourcequotas', 'get',
                   aresponses.Response(text=text))

    stream = await conn.resource_quotas(namespace).watch()
    async with stream:
        events = await collect(stream)

    assert [event.type for event in events] == [EventType.ADDED, EventType.ERROR]
    assert events[-1].object['kind'] == 'Status'
    assert events[-1].object['reason'] == 'StreamError'
    assert stream.closed


async def test_opening_errors_are_raised_immediately(
        aresponses, hostname, conn, namespace):

    status = {'apiVersion': 'v1', 'kind': 'Status', 'code': 403, 'reason': 'Forbidden'}
    aresponses.add(hostname, '/api/v1/watch/namespaces/ns/resourcequotas', 'get',
                   aiohttp.web.json_response(status, status=403))

    with pytest.raises(APIForbiddenError) as e:
        await conn.resource_quotas(namespace).watch()
    assert e.value.reason == 'Forbidden'


@pytest.mark.parametrize('status', [400, 404, 500, 666])
async def test_raises_api_errors(
        aresponses, hostname, conn, namespace, status):

    aresponses.add(hostname, '/api/v1/watch/namespaces/ns/resourcequotas', 'get',
                   aresponses.Response(status=status))

    with pytest.raises(APIError) as e:
        await conn.resource_quotas(namespace).watch()
    assert e.value.status == status


async def test_closing_stops_the_iteration(
        aresponses, hostname, conn, namespace):

    aresponses.add(hostname, '/api/v1/watch/namespaces/ns/resourcequotas', 'get',
                   aresponses.Response(text=make_stream(STREAM_WITH_NORMAL_EVENTS)))

    stream = await conn.resource_quotas(namespace).watch()
    async with stream:
        events = []
        async for event in stream:
            events.append(event)
            stream.close()

    assert len(events) == 1
    assert stream.closed


async def test_closing_is_idempotent(
        aresponses, hostname, conn, namespace):

    aresponses.add(hostname, '/api/v1/watch/namespaces/ns/resourcequotas', 'get',
                   aresponses.Response(text=''))

    stream = await conn.resource_quotas(namespace).watch()
    stream.close()
    stream.close()
    async with stream:
        events = await collect(stream)

    assert events == []
    assert stream.closed


async def test_closing_the_connection_closes_the_streams(
        aresponses, hostname, conn, namespace, endless_stream):

    aresponses.add(hostname, '/api/v1/watch/namespaces/ns/resourcequotas', 'get',
                   endless_stream(make_stream(STREAM_WITH_NORMAL_EVENTS)))

    stream = await conn.resource_quotas(namespace).watch()
    assert not stream.closed
    assert len(conn.context.responses) == 1
    response = conn.context.responses[0]
    assert not response.closed

    await conn.close()
    assert response.closed
    assert not conn.context.responses


async def test_transport_failures_become_error_events(mocker, resource, namespace):

    content = mocker.Mock()
    content.iter_chunked.side_effect = lambda *_: _failing_chunks()
    response = mocker.Mock(content=content)
    stream = WatchStream(response, resource=resource, namespace=namespace)

    events = await collect(stream)

    assert [event.type for event in events] == [EventType.ADDED, EventType.ERROR]
    assert 'ServerDisconnectedError' in events[-1].object['message']
    assert stream.closed
    assert response.close.called


async def test_transport_failures_after_closing_are_not_errors(mocker, resource, namespace):

    content = mocker.Mock()
    content.iter_chunked.side_effect = lambda *_: _failing_chunks()
    response = mocker.Mock(content=content)
    stream = WatchStream(response, resource=resource, namespace=namespace)

    events = []
    async for event in stream:
        events.append(event)
        stream.close()

    assert [event.type for event in events] == [EventType.ADDED]


async def _failing_chunks():
    yield (json.dumps(STREAM_WITH_NORMAL_EVENTS[0]) + '\n').encode('utf-8')
    await asyncio.sleep(0)
    raise aiohttp.ServerDisconnectedError()
