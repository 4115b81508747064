"""
Watching and streaming watch-events.

A watch is opened once per call: the HTTP request is made and checked
for errors immediately, so that the failures to open the stream are raised
to the caller directly. Once opened, the stream is consumed lazily
by iterating over a `WatchStream` -- event by event, as the server sends them.

The stream is not restarted on disconnects, and the resource version is not
tracked here. To continue watching, the caller opens a new stream starting
from the last resource version it has seen. Similarly, there is no re-listing
on "410 Gone": it is delivered as an ERROR event like any other error.

The events are delivered in the server's order, with no reordering,
no deduplication, no buffering beyond the current chunk of the response.
"""
import asyncio
import dataclasses
import enum
import logging
from typing import Any, AsyncGenerator, Dict, Generic, Optional, TypeVar, Union

import aiohttp

from kubebind._cogs.clients import api, auth
from kubebind._cogs.configs import configuration
from kubebind._cogs.helpers import typedefs
from kubebind._cogs.structs import bodies, references, selectors

logger = logging.getLogger(__name__)

BodyT = TypeVar('BodyT')


class EventType(str, enum.Enum):
    ADDED = 'ADDED'
    MODIFIED = 'MODIFIED'
    DELETED = 'DELETED'
    ERROR = 'ERROR'


@dataclasses.dataclass(frozen=True)
class ChangeEvent(Generic[BodyT]):
    """
    A single notification from the watch-stream.

    For ERROR events, the object is a ``Status``-like error payload
    (`bodies.RawError`) instead of a resource object.
    """
    type: EventType
    object: Union[BodyT, bodies.RawError]

    @property
    def is_error(self) -> bool:
        return self.type is EventType.ERROR


class WatchStream(Generic[BodyT]):
    """
    A cancellable lazy sequence of change events of one open watch-request.

    Usage::

        async with await client.watch(resource_version=rv) as stream:
            async for event in stream:
                ...

    The stream ends when it is closed by the caller (`close`), when the server
    closes the response (e.g. due to its timeout), or after a terminal error
    in the stream (delivered as the last ERROR event). It cannot be restarted.

    Closing is idempotent and does not affect other streams or requests
    of the same connection, even if done from another task while iterating.
    """

    def __init__(
            self,
            response: aiohttp.ClientResponse,
            *,
            resource: references.Resource,
            namespace: references.Namespace,
            logger: typedefs.Logger = logger,
    ) -> None:
        super().__init__()
        self._response = response
        self._resource = resource
        self._namespace = namespace
        self._logger = logger
        self._closed = False
        self._iterator: Optional[AsyncGenerator[ChangeEvent[BodyT], None]] = None

    def __repr__(self) -> str:
        where = f'in {self._namespace!r}' if self._namespace is not None else 'cluster-wide'
        state = 'closed' if self.closed else 'open'
        return f'<{self.__class__.__name__} for {self._resource!r} {where}: {state}>'

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._response.close()

    async def __aenter__(self) -> "WatchStream[BodyT]":
        return self

    async def __aexit__(self, *_: Any) -> None:
        self.close()

    def __aiter__(self) -> "WatchStream[BodyT]":
        return self

    async def __anext__(self) -> ChangeEvent[BodyT]:
        if self._closed:
            if self._iterator is not None:
                await self._iterator.aclose()
            raise StopAsyncIteration
        if self._iterator is None:
            self._iterator = self._iter_events()
        return await self._iterator.__anext__()

    async def _iter_events(self) -> AsyncGenerator[ChangeEvent[BodyT], None]:
        try:
            async for line in api.iter_jsonlines(self._response.content):
                try:
                    raw_input = api.parse_jsonline(line)
                    raw_type = raw_input['type']
                    raw_object = raw_input['object']
                except (ValueError, TypeError, KeyError) as e:  # incl. JSON & Unicode errors
                    yield ChangeEvent(EventType.ERROR, make_stream_error(e))
                    return

                try:
                    event_type = EventType(raw_type)
                except ValueError:
                    self._logger.warning(f"Ignoring an unsupported event type: {raw_input!r}")
                    continue

                yield ChangeEvent(event_type, raw_object)

        except (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError) as e:
            # Closing the response from the outside breaks the reading. This is not an error.
            if not self._closed:
                yield ChangeEvent(EventType.ERROR, make_stream_error(e))
        finally:
            self.close()


def make_stream_error(exc: BaseException) -> bodies.RawError:
    """ Simulate the server's ``Status`` payload for the client-side stream failures. """
    return bodies.RawError(
        apiVersion='v1',
        kind='Status',
        status='Failure',
        reason='StreamError',
        message=f"The watch-stream has failed: {exc!r}",
    )


async def open_watch(
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        label_selector: selectors.SelectorLike = None,
        field_selector: selectors.SelectorLike = None,
        resource_version: Optional[str] = None,
        logger: typedefs.Logger = logger,
) -> WatchStream[bodies.RawBody]:
    """
    Open a watch-stream for the objects of a specific resource type.

    All filters are optional. The empty ones are omitted from the request:
    the empty selectors mean "everything", the empty resource version means
    "from now on" (the server's choice of the starting point).
    """
    label_selector = selectors.as_selector(label_selector)
    field_selector = selectors.as_selector(field_selector)

    params: Dict[str, str] = {}
    if resource_version:
        params['resourceVersion'] = resource_version
    if label_selector:
        params[settings.selectors.label_param] = str(label_selector)
    if field_selector:
        params[settings.selectors.field_param] = str(field_selector)
    if settings.watching.server_timeout is not None:
        params['timeoutSeconds'] = str(int(settings.watching.server_timeout))

    connect_timeout = (
        settings.watching.connect_timeout if settings.watching.connect_timeout is not None else
        settings.networking.connect_timeout if settings.networking.connect_timeout is not None else
        settings.networking.request_timeout
    )

    url = resource.get_url(
        namespace=namespace,
        default_namespace=context.default_namespace,
        prefix='watch',
        params=params,
    )
    response = await api.open_stream(
        url=url,
        context=context,
        settings=settings,
        logger=logger,
        timeout=aiohttp.ClientTimeout(
            total=settings.watching.client_timeout,
            sock_connect=connect_timeout,
        ),
    )
    return WatchStream(response, resource=resource, namespace=namespace, logger=logger)
