"""
The main kubebind module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from kubebind._cogs.clients.connection import (
    Connection,
)
from kubebind._cogs.clients.namespaced import (
    Namespacer,
    NamespacedClient,
)
from kubebind._cogs.clients.watching import (
    WatchStream,
    ChangeEvent,
    EventType,
)
from kubebind._cogs.clients.errors import (
    InvalidArgumentError,
    APIError,
    APIClientError,
    APIServerError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
)
from kubebind._cogs.clients.logins import (
    login,
    login_with_kubeconfig,
    login_with_service_account,
)
from kubebind._cogs.configs.configuration import (
    ClientSettings,
    NetworkingSettings,
    WatchingSettings,
    SelectorSettings,
)
from kubebind._cogs.helpers.loggers import (
    LogFormat,
    ObjectLogger,
    configure as configure_logging,
)
from kubebind._cogs.helpers.typedefs import (
    Logger,
)
from kubebind._cogs.helpers.versions import (
    version as __version__,
)
from kubebind._cogs.structs.bodies import (
    RawBody,
    RawList,
    RawMeta,
    RawError,
    Labels,
    Annotations,
    ResourceQuota,
    ResourceQuotaList,
    ResourceQuotaSpec,
    ResourceQuotaStatus,
)
from kubebind._cogs.structs.credentials import (
    LoginError,
    ConnectionInfo,
)
from kubebind._cogs.structs.references import (
    Resource,
    RESOURCE_QUOTAS,
    LIMIT_RANGES,
    CONFIG_MAPS,
    SECRETS,
    PODS,
    SERVICES,
    SERVICE_ACCOUNTS,
    REPLICATION_CONTROLLERS,
    EVENTS,
)
from kubebind._cogs.structs.selectors import (
    Operator,
    Requirement,
    Selector,
)

__all__ = [
    'Connection',
    'Namespacer',
    'NamespacedClient',
    'WatchStream',
    'ChangeEvent',
    'EventType',
    'InvalidArgumentError',
    'APIError',
    'APIClientError',
    'APIServerError',
    'APIUnauthorizedError',
    'APIForbiddenError',
    'APINotFoundError',
    'APIConflictError',
    'login',
    'login_with_kubeconfig',
    'login_with_service_account',
    'ClientSettings',
    'NetworkingSettings',
    'WatchingSettings',
    'SelectorSettings',
    'LogFormat',
    'ObjectLogger',
    'configure_logging',
    'Logger',
    'RawBody',
    'RawList',
    'RawMeta',
    'RawError',
    'Labels',
    'Annotations',
    'ResourceQuota',
    'ResourceQuotaList',
    'ResourceQuotaSpec',
    'ResourceQuotaStatus',
    'LoginError',
    'ConnectionInfo',
    'Resource',
    'RESOURCE_QUOTAS',
    'LIMIT_RANGES',
    'CONFIG_MAPS',
    'SECRETS',
    'PODS',
    'SERVICES',
    'SERVICE_ACCOUNTS',
    'REPLICATION_CONTROLLERS',
    'EVENTS',
    'Operator',
    'Requirement',
    'Selector',
]
