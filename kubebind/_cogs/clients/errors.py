"""
Errors of the resource clients.

There are two kinds of them:

* `InvalidArgumentError` is raised locally for the calls that are guaranteed
  to be rejected or misaddressed by the server (e.g. a deletion with no name,
  which would address the whole collection). No request is made in that case.
* `APIError` and its descendants are raised for the server's error responses.
  They carry the HTTP status and the server's ``Status`` payload (if any).

The exceptions of ``aiohttp`` never leak from the API calls as the API errors,
but are kept as their causes for the stack traces. The networking errors
(connectivity, SSL, timeouts) are not API errors: they are escalated as is.

Nothing is retried or recovered here: every error goes to the caller.
"""
import collections.abc
import json
from typing import Any, Dict, Optional, Type

import aiohttp

from kubebind._cogs.structs import bodies


class InvalidArgumentError(ValueError):
    """ A call rejected locally, before any request is made. """


class APIError(Exception):
    """
    An error response of the API server.

    The fields are taken from the server's ``Status`` payload and are ``None``
    if there was no payload, or it was not JSON, or it was not a ``Status``.
    Only the HTTP status is always known.
    """

    def __init__(
            self,
            payload: Optional[bodies.RawError],
            *,
            status: int,
    ) -> None:
        super().__init__(payload.get('message') if payload else None, payload)
        self.status = status
        self.payload = payload

    def __str__(self) -> str:
        return self.message or f"HTTP {self.status}"

    @property
    def code(self) -> Optional[int]:
        return self._get('code')

    @property
    def reason(self) -> Optional[str]:
        return self._get('reason')

    @property
    def message(self) -> Optional[str]:
        return self._get('message')

    @property
    def details(self) -> Optional[bodies.RawStatusDetails]:
        return self._get('details')

    def _get(self, key: str) -> Optional[Any]:
        return self.payload.get(key) if self.payload else None


class APIClientError(APIError):
    """ The request was rejected (HTTP 4xx). """


class APIServerError(APIError):
    """ The server failed to process the request (HTTP 5xx). """


class APIUnauthorizedError(APIClientError):
    pass


class APIForbiddenError(APIClientError):
    pass


class APINotFoundError(APIClientError):
    pass


class APIConflictError(APIClientError):
    """
    The object already exists (on creation), or it was modified since
    the version the caller has seen (on update). Re-read it and decide.
    """


SPECIFIC_ERRORS: Dict[int, Type[APIError]] = {
    401: APIUnauthorizedError,
    403: APIForbiddenError,
    404: APINotFoundError,
    409: APIConflictError,
}


def get_error_class(status: int) -> Type[APIError]:
    if status in SPECIFIC_ERRORS:
        return SPECIFIC_ERRORS[status]
    elif 400 <= status < 500:
        return APIClientError
    elif 500 <= status < 600:
        return APIServerError
    else:
        return APIError


async def read_status(response: aiohttp.ClientResponse) -> Optional[bodies.RawError]:
    """ Read the ``Status`` payload of an error response, if it is there. """
    try:
        payload = await response.json()
    except (json.JSONDecodeError, aiohttp.ContentTypeError, aiohttp.ClientConnectionError):
        return None

    # Other payloads are not exposed in the errors: they might contain sensitive information.
    if isinstance(payload, collections.abc.Mapping) and payload.get('kind') == 'Status':
        return payload  # type: ignore
    return None


async def check_response(
        response: aiohttp.ClientResponse,
) -> None:
    """
    Raise an `APIError` (or a more specific one) for the error responses.
    """
    if response.status < 400:
        return

    # The payload must be read before raise_for_status(), which releases the response.
    payload = await read_status(response)
    cls = get_error_class(response.status)
    try:
        response.raise_for_status()
    except aiohttp.ClientResponseError as e:
        raise cls(payload, status=response.status) from e
