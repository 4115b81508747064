"""
All configuration flags, options, settings to fine-tune the API clients.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

The settings are created once per connection and shared by all namespacers
and namespaced clients made from that connection. They can be changed
at runtime: every request reads the current values when it is made.

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults).
"""
import dataclasses
from typing import Optional


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout for the whole request/response cycle of single-shot API calls.
    Watch-streams are not affected; see `WatchingSettings.client_timeout`.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout for the connection establishing (incl. SSL handshakes) only.
    If not set, only the total timeout is used.
    """


@dataclasses.dataclass
class WatchingSettings:

    server_timeout: Optional[float] = None
    """
    The maximum duration of one streaming request, as asked from the server.
    If ``None``, then obey the server-side timeouts (they seem to be random).
    """

    client_timeout: Optional[float] = None
    """
    An HTTP/HTTPS session timeout to use in watch requests.
    If ``None``, the stream lives until closed by either side.
    """

    connect_timeout: Optional[float] = None
    """
    An HTTP/HTTPS connection timeout to use in watch requests.
    If ``None``, the networking connect/request timeouts are used instead.
    """


@dataclasses.dataclass
class SelectorSettings:
    """
    Names of the query parameters carrying the selectors.

    The defaults are the short legacy names. Modern API servers expect
    ``labelSelector`` & ``fieldSelector`` and silently ignore the legacy ones.
    """

    label_param: str = 'labels'
    field_param: str = 'fields'


@dataclasses.dataclass
class ClientSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    watching: WatchingSettings = dataclasses.field(default_factory=WatchingSettings)
    selectors: SelectorSettings = dataclasses.field(default_factory=SelectorSettings)
