"""
The credentials and connection flags of one API endpoint.

They are collected by the logins (:mod:`kubebind._cogs.clients.logins`)
and turned into an aiohttp session by :mod:`kubebind._cogs.clients.auth`.
Only what a plain HTTP client can use is supported: the server's URL,
the TLS verification settings, the client certificates, the basic auth,
the ``Authorization`` header's scheme & token. No auth-providers or plugins.
"""
import dataclasses
from typing import Optional, Union


class LoginError(Exception):
    """ Raised when the credentials cannot be found or used. """


@dataclasses.dataclass(frozen=True)
class ConnectionInfo:
    """
    A single endpoint with specific credentials and connection flags to use.
    """
    server: str  # e.g. "https://localhost:443"
    ca_path: Optional[str] = None
    ca_data: Optional[Union[str, bytes]] = None
    insecure: Optional[bool] = None
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: Optional[str] = None  # RFC-7235/5.1: e.g. Bearer, Basic, Digest, etc.
    token: Optional[str] = None
    certificate_path: Optional[str] = None
    certificate_data: Optional[Union[str, bytes]] = None
    private_key_path: Optional[str] = None
    private_key_data: Optional[Union[str, bytes]] = None
    default_namespace: Optional[str] = None  # used for the empty namespaces in the clients.
