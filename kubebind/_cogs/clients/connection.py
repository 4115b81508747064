"""
The top-level connection object with one namespacer per resource kind.

The connection owns the transport context (an aiohttp session) and the settings.
It is created explicitly by the caller and is passed around as a value;
there are no global or implicit connections anywhere in the library.

Usage::

    async with kubebind.Connection.from_kubeconfig() as conn:
        quotas = conn.resource_quotas('my-namespace')
        quota = await quotas.get('compute-resources')
        quota['spec']['hard']['pods'] = '20'
        quota = await quotas.update(quota)

The connection must be created inside a running event loop (it makes a session).
"""
import logging
from typing import Any, Optional

import aiohttp

from kubebind._cogs.clients import auth, logins, namespaced
from kubebind._cogs.configs import configuration
from kubebind._cogs.helpers import typedefs
from kubebind._cogs.structs import bodies, credentials, references

logger = logging.getLogger(__name__)

# Kinds with no specific payload types are served as raw bodies & lists.
RawNamespacer = namespaced.Namespacer[bodies.RawBody, bodies.RawList]


class Connection:

    def __init__(
            self,
            info: Optional[credentials.ConnectionInfo] = None,
            *,
            context: Optional[auth.APIContext] = None,
            session: Optional[aiohttp.ClientSession] = None,
            settings: Optional[configuration.ClientSettings] = None,
            logger: typedefs.Logger = logger,
    ) -> None:
        super().__init__()
        if context is None and info is None:
            raise TypeError("Either the connection info or an API context is required.")
        if context is None and info is not None:
            context = auth.APIContext(info, session=session)
        assert context is not None  # for type-checking
        self.context = context
        self.settings = settings if settings is not None else configuration.ClientSettings()
        self.logger = logger

        self.resource_quotas = namespaced.Namespacer[bodies.ResourceQuota, bodies.ResourceQuotaList](
            context=self.context, settings=self.settings, logger=self.logger,
            resource=references.RESOURCE_QUOTAS,
        )
        self.limit_ranges = self.namespaced(references.LIMIT_RANGES)
        self.config_maps = self.namespaced(references.CONFIG_MAPS)
        self.secrets = self.namespaced(references.SECRETS)
        self.pods = self.namespaced(references.PODS)
        self.services = self.namespaced(references.SERVICES)
        self.service_accounts = self.namespaced(references.SERVICE_ACCOUNTS)
        self.replication_controllers = self.namespaced(references.REPLICATION_CONTROLLERS)
        self.events = self.namespaced(references.EVENTS)

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} to {self.context.server!r}>'

    @classmethod
    def from_kubeconfig(
            cls,
            kubeconfig: Optional[str] = None,
            *,
            context: Optional[str] = None,
            **kwargs: Any,
    ) -> "Connection":
        info = logins.login_with_kubeconfig(kubeconfig, context=context)
        if info is None:
            raise credentials.LoginError("No kubeconfig is found.")
        return cls(info, **kwargs)

    @classmethod
    def from_service_account(cls, **kwargs: Any) -> "Connection":
        info = logins.login_with_service_account()
        if info is None:
            raise credentials.LoginError("No service account is found.")
        return cls(info, **kwargs)

    @classmethod
    def login(
            cls,
            kubeconfig: Optional[str] = None,
            *,
            context: Optional[str] = None,
            **kwargs: Any,
    ) -> "Connection":
        return cls(logins.login(kubeconfig, context=context), **kwargs)

    def namespaced(self, resource: references.Resource) -> RawNamespacer:
        """ Make a namespacer for any namespaced resource, incl. the custom ones. """
        return namespaced.Namespacer(
            context=self.context,
            settings=self.settings,
            resource=resource,
            logger=self.logger,
        )

    async def close(self) -> None:
        await self.context.close()

    async def __aenter__(self) -> "Connection":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
