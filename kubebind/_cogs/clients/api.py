"""
The request builder: single-shot HTTP calls and streams against K8s API.

Every function makes exactly one attempt. There are no retries here:
the errors are escalated to the callers immediately, either as the transport
errors of ``aiohttp`` or as the API errors of :mod:`errors`.

The verb functions (`get`, `post`, `put`, `delete`) return the JSON-decoded
response bodies. `open_stream` returns the response itself, unread.
"""
import asyncio
import json
from typing import Any, AsyncIterator, Optional

import aiohttp

from kubebind._cogs.clients import auth, errors
from kubebind._cogs.configs import configuration
from kubebind._cogs.helpers import typedefs


async def request(
        method: str,
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[typedefs.Headers] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> aiohttp.ClientResponse:
    """
    Make one request and check it for API errors, but do not read the body.
    """
    full_url = url if '://' in url else f"{context.server.rstrip('/')}/{url.lstrip('/')}"
    if timeout is None:
        timeout = aiohttp.ClientTimeout(
            total=settings.networking.request_timeout,
            sock_connect=settings.networking.connect_timeout,
        )

    try:
        response = await context.session.request(
            method=method,
            url=full_url,
            json=payload,
            headers=headers,
            timeout=timeout,
        )
        await errors.check_response(response)
    except (aiohttp.ClientConnectionError, errors.APIError, asyncio.TimeoutError) as e:
        logger.debug(f"Request failed: {method.upper()} {full_url} -> {e!r}")
        raise
    return response


async def read_json(
        response: aiohttp.ClientResponse,
        *,
        allow_empty: bool = False,
) -> Any:
    async with response:
        if allow_empty and not await response.read():
            return None
        # The empty-tolerant responses are also tolerant to their (often absent) content types.
        return await response.json(content_type=None if allow_empty else 'application/json')


async def get(url: str, **kwargs: Any) -> Any:
    return await read_json(await request('get', url, **kwargs))


async def post(url: str, **kwargs: Any) -> Any:
    return await read_json(await request('post', url, **kwargs))


async def put(url: str, **kwargs: Any) -> Any:
    return await read_json(await request('put', url, **kwargs))


async def delete(url: str, **kwargs: Any) -> Any:
    # The deletion responses can be empty with some servers & proxies.
    return await read_json(await request('delete', url, **kwargs), allow_empty=True)


async def open_stream(
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        headers: Optional[typedefs.Headers] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> aiohttp.ClientResponse:
    """
    Open a long-lived streaming response, but do not read it yet.

    The opening errors (connection or API errors) are raised here and now.
    The response is registered in the context, so that it is closed
    when the context is closed, even if the caller forgets to close it.
    """
    response = await request(
        'get', url,
        headers=headers,
        timeout=timeout,
        context=context,
        settings=settings,
        logger=logger,
    )
    context.add_response(response)
    return response


async def iter_jsonlines(
        content: aiohttp.StreamReader,
        chunk_size: int = 1024 * 1024,
) -> AsyncIterator[bytes]:
    """
    Split the response's content into non-empty lines, as they arrive.

    ``async for line in response.content`` is not used: aiohttp limits
    the line length to its buffer's high-watermark (128 KB by default),
    while the objects in the watch-streams (e.g. secrets) can take megabytes.
    Here, the lines are unlimited, and only the unfinished tail is buffered.
    """
    tail = b''
    async for chunk in content.iter_chunked(chunk_size):
        *lines, tail = (tail + chunk).split(b'\n')
        for line in lines:
            if line:
                yield line
    if tail:
        yield tail


def parse_jsonline(line: bytes) -> Any:
    # Both decoding errors are ValueErrors: json.JSONDecodeError & UnicodeDecodeError.
    return json.loads(line.decode('utf-8'))
