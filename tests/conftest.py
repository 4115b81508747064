import asyncio
import io
import json
import logging
import sys
from unittest.mock import AsyncMock, MagicMock

import aiohttp.web
import aresponses as aresponses_module
import pytest

from kubebind._cogs.clients.auth import APIContext
from kubebind._cogs.clients.connection import Connection
from kubebind._cogs.configs.configuration import ClientSettings
from kubebind._cogs.helpers.loggers import TextFormatter, configure
from kubebind._cogs.structs.credentials import ConnectionInfo
from kubebind._cogs.structs.references import RESOURCE_QUOTAS, Resource


@pytest.fixture()
def hostname():
    """ A fake hostname to be used in all aiohttp/aresponses tests. """
    return 'fake-host'


@pytest.fixture()
async def aresponses():
    """ The fake API server: every host is resolved to it while the fixture is active. """
    async with aresponses_module.ResponsesMockServer() as server:
        yield server


@pytest.fixture()
def settings():
    return ClientSettings()


@pytest.fixture()
def logger():
    return logging.getLogger('kubebind.tests')


@pytest.fixture()
def resource():
    return RESOURCE_QUOTAS


@pytest.fixture()
def custom_resource():
    return Resource('kubebind.dev', 'v1', 'kubebindexamples', kind='KubebindExample', namespaced=True)


@pytest.fixture()
def cluster_resource():
    return Resource('kubebind.dev', 'v1', 'clusterkubebindexamples', namespaced=False)


@pytest.fixture()
def namespace():
    return 'ns'


@pytest.fixture()
def info(hostname):
    return ConnectionInfo(server=f'https://{hostname}')


#
# Mocks for Kubernetes API clients (aiohttp-based fake server).
#
# 1. No external calls must be made under any circumstances.
#    The unit-tests must be fully isolated from the environment.
# 2. The context is created within the test's event loop, and is closed
#    before the fake server is stopped.
#

@pytest.fixture()
async def context(info, aresponses):
    context = APIContext(info)
    try:
        yield context
    finally:
        await context.close()


@pytest.fixture()
def conn(context, settings, logger):
    return Connection(context=context, settings=settings, logger=logger)


@pytest.fixture()
async def endless_stream(aresponses):
    """
    A factory of server-side callbacks that send the text but never finish the response.

    The client sees the response as open (not fully buffered) until it closes it.
    The callbacks are released at the end of the test, before the fake server stops.
    """
    released = asyncio.Event()

    def stream_maker(text=''):
        async def stream_effect(request):
            response = aiohttp.web.StreamResponse()
            await response.prepare(request)
            await response.write(text.encode('utf-8'))
            await released.wait()
            return response
        return stream_effect

    try:
        yield stream_maker
    finally:
        released.set()


@pytest.fixture()
def resp_mocker(aresponses):
    """
    A factory of server-side callbacks for `aresponses` with mocking/spying.

    The value of the fixture is a function, which return a coroutine mock.
    That coroutine mock should be passed to `aresponses.add` as a response
    callback function. When called, it calls the mock defined by the function's
    arguments (specifically, return_value or side_effects).

    The difference from passing the responses directly to `aresponses.add`
    is that it is possible to assert on whether the response was handled
    by that callback at all (i.e. HTTP URL & method matched), especially
    if there are multiple responses registered.

    Sample usage::

        def test_me(resp_mocker):
            response = aiohttp.web.json_response({'a': 'b'})
            callback = resp_mocker(return_value=response)
            aresponses.add(hostname, '/path/', 'get', callback)
            do_something()
            assert callback.called
            assert callback.call_count == 1
    """
    def resp_maker(*args, **kwargs):
        actual_response = MagicMock(*args, **kwargs)

        async def resp_mock_effect(request):

            # The request's content can be read inside of the handler only. We preserve
            # the data into a conventional field, so that they could be asserted later.
            text = await request.text()
            try:
                request.data = json.loads(text) if text else None
            except json.JSONDecodeError:
                request.data = text

            # Get a response/error as it was intended (via return_value/side_effect).
            response = actual_response()
            return response

        return AsyncMock(side_effect=resp_mock_effect)
    return resp_maker


#
# Helpers for the logging checks.
#

@pytest.fixture()
def restore_logging():
    """ Undo the changes to the global loggers done by the tests (e.g. by `configure()`). """
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    states = {name: (logging.getLogger(name).propagate, list(logging.getLogger(name).handlers))
              for name in ['asyncio', 'aiohttp']}
    try:
        yield
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)
        for name, (propagate, name_handlers) in states.items():
            logging.getLogger(name).propagate = propagate
            logging.getLogger(name).handlers[:] = name_handlers


@pytest.fixture()
def logstream(caplog, restore_logging):
    """ Prefixing is done at the final output. We have to intercept it. """

    logger = logging.getLogger()

    # Setup all log levels of sub-libraries. A side-effect: the handlers are also added.
    configure(verbose=True)

    # Remove any stream handlers added in the step above. But keep the caplog's handlers.
    for handler in list(logger.handlers):
        if isinstance(handler, logging.StreamHandler) and handler.stream is sys.stderr:
            logger.removeHandler(handler)

    # Inject our stream-intercepting handler.
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    formatter = TextFormatter('prefix %(message)s', prefixing=True)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    try:
        with caplog.at_level(logging.DEBUG):
            yield stream
    finally:
        logger.removeHandler(handler)
