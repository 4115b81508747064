"""
The transport context: an aiohttp session made from the connection info.

The session carries all the credentials: the TLS settings & client certificates
(in its connector), the bearer tokens or schemes (in its default headers),
the username & password (as its basic auth). The API calls only add the URLs.
"""
import base64
import contextlib
import ssl
import tempfile
from typing import Dict, List, Optional, Union

import aiohttp

from kubebind._cogs.helpers import versions
from kubebind._cogs.structs import credentials


class APIContext:
    """
    A container for an aiohttp session and the environment info.

    The context is the shared transport handle of a connection: all namespacers
    and namespaced clients made from one connection use the same context,
    and so the same session and the same connection pool.

    It is created and owned by the caller (usually via `Connection`),
    and is passed explicitly to every API call. There are no global contexts.

    The session supports concurrent independent requests from multiple tasks
    of the same event loop; nothing else is shared or locked here.
    """

    session: aiohttp.ClientSession

    # For URL building.
    server: str
    default_namespace: Optional[str]

    # The open long-lived responses, i.e. the watch-streams.
    responses: List[aiohttp.ClientResponse]

    def __init__(
            self,
            info: credentials.ConnectionInfo,
            *,
            session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__()
        self.session = session if session is not None else make_session(info)
        self.session.headers.setdefault('User-Agent', versions.get_user_agent())
        self.server = info.server
        self.default_namespace = info.default_namespace
        self.responses = []

    def add_response(self, response: aiohttp.ClientResponse) -> None:
        # Forget the responses closed since the last time, remember the new one.
        self.responses[:] = [r for r in self.responses if not r.closed]
        if not response.closed:
            self.responses.append(response)

    async def close(self) -> None:
        # The streams go first: the session does not close the responses it has issued.
        while self.responses:
            self.responses.pop().close()
        await self.session.close()


def make_session(info: credentials.ConnectionInfo) -> aiohttp.ClientSession:
    return aiohttp.ClientSession(
        connector=aiohttp.TCPConnector(limit=0, ssl=make_ssl_context(info)),
        headers=make_auth_headers(info),
        auth=aiohttp.BasicAuth(info.username, info.password)
        if info.username and info.password else None,
    )


def make_auth_headers(info: credentials.ConnectionInfo) -> Dict[str, str]:
    if info.scheme and info.token:
        return {'Authorization': f'{info.scheme} {info.token}'}
    elif info.scheme:
        return {'Authorization': info.scheme}
    elif info.token:
        return {'Authorization': f'Bearer {info.token}'}
    else:
        return {}


def make_ssl_context(info: credentials.ConnectionInfo) -> ssl.SSLContext:
    context = ssl.create_default_context(
        purpose=ssl.Purpose.SERVER_AUTH,
        cafile=info.ca_path,
        cadata=decode_to_pem(info.ca_data) if info.ca_data is not None else None,
    )

    # The embedded certificates & keys can be loaded only from files.
    # The temporary files are not created unless needed: the filesystem can be read-only.
    with contextlib.ExitStack() as stack:
        cert_path = info.certificate_path or _dump_pem(stack, info.certificate_data)
        pkey_path = info.private_key_path or _dump_pem(stack, info.private_key_data)
        if cert_path and pkey_path:
            context.load_cert_chain(certfile=cert_path, keyfile=pkey_path)

    if info.insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _dump_pem(stack: contextlib.ExitStack, data: Optional[Union[str, bytes]]) -> Optional[str]:
    if not data:
        return None
    file = stack.enter_context(tempfile.NamedTemporaryFile(buffering=0))
    file.write(decode_to_pem(data).encode('ascii'))
    return file.name


def decode_to_pem(data: Union[str, bytes]) -> str:
    """ Accept both PEM and base64-encoded PEM, as in the kubeconfigs. """
    if isinstance(data, str) and data.startswith('-----BEGIN '):
        return data
    elif isinstance(data, bytes) and data.startswith(b'-----BEGIN '):
        return data.decode('ascii')
    else:
        return base64.b64decode(data).decode('ascii')
