"""
References to the resource kinds, and the URLs of their API endpoints.

Only the API group, the API version, and the plural name address a kind
in K8s API; the others (kind, scope) are informational or used for validation.
"""
import dataclasses
import urllib.parse
from typing import NewType, Optional

from kubebind._cogs.helpers import typedefs

# A namespace name as used in the URLs, distinct from other strings for type-checking.
NamespaceName = NewType('NamespaceName', str)

# `None` addresses all namespaces (the cluster-wide URLs);
# an empty string is the connection's default namespace (see `Resource.get_url`).
Namespace = Optional[NamespaceName]

# Used for the empty namespaces when the connection has no default namespace.
DEFAULT_NAMESPACE = NamespaceName('default')


@dataclasses.dataclass(frozen=True, repr=False)
class Resource:
    """
    A built-in or custom resource kind, as addressed in K8s API.

    The resources are equal if their API group, version & plural are equal.
    """

    group: str
    """ The API group: e.g. ``"apps"``, or ``""`` for the core API. """

    version: str
    """ The API version: e.g. ``"v1"``, ``"v1beta1"``. """

    plural: str
    """ The lowercase plural name, as in URLs: e.g. ``"resourcequotas"``. """

    kind: Optional[str] = dataclasses.field(default=None, compare=False)
    """ The kind, as in the objects' bodies: e.g. ``"ResourceQuota"``. """

    namespaced: Optional[bool] = dataclasses.field(default=None, compare=False)
    """ Whether the objects live in namespaces (``True``) or in the cluster (``False``). """

    def __repr__(self) -> str:
        return '.'.join(part for part in (self.plural, self.version, self.group) if part)

    @property
    def api_version(self) -> str:
        return f'{self.group}/{self.version}' if self.group else self.version

    @property
    def api_root(self) -> str:
        # The core API is the only one outside of the groups' root.
        return '/api/v1' if not self.group and self.version == 'v1' else f'/apis/{self.api_version}'

    def get_url(
            self,
            *,
            server: Optional[str] = None,
            namespace: Namespace = None,
            default_namespace: Optional[str] = None,
            name: Optional[str] = None,
            prefix: Optional[str] = None,
            params: Optional[typedefs.Params] = None,
    ) -> str:
        """
        Build a URL of the resource's endpoint: of a list, or of a named object.

        ``namespace=None`` makes a cluster-wide URL; it is the only option
        for the cluster-scoped resources. An empty namespace means the default
        one: as given (e.g. the connection's one), or ``"default"`` if none.

        The prefix goes after the API version (e.g. ``"watch"`` for the legacy
        watch-endpoints). The params go to the query, URL-encoded.
        """
        if not self.namespaced and namespace is not None:
            raise ValueError("Specific namespaces are not supported for cluster-scoped resources.")
        if self.namespaced and namespace is None and name is not None:
            raise ValueError("Specific namespaces are required for specific namespaced resources.")

        segments = [self.api_root]
        if prefix:
            segments.append(prefix)
        if namespace is not None:
            segments.extend(['namespaces', namespace or default_namespace or DEFAULT_NAMESPACE])
        segments.append(self.plural)
        if name:
            segments.append(name)

        url = '/'.join(segments)
        if params:
            url += '?' + urllib.parse.urlencode(params, encoding='utf-8')
        return url if server is None else f"{server.rstrip('/')}{url}"


#
# Pre-declared core kinds. Any other namespaced kind can be declared the same way
# and used via `Connection.namespaced()`.
#

RESOURCE_QUOTAS = Resource('', 'v1', 'resourcequotas', kind='ResourceQuota', namespaced=True)
LIMIT_RANGES = Resource('', 'v1', 'limitranges', kind='LimitRange', namespaced=True)
CONFIG_MAPS = Resource('', 'v1', 'configmaps', kind='ConfigMap', namespaced=True)
SECRETS = Resource('', 'v1', 'secrets', kind='Secret', namespaced=True)
PODS = Resource('', 'v1', 'pods', kind='Pod', namespaced=True)
SERVICES = Resource('', 'v1', 'services', kind='Service', namespaced=True)
SERVICE_ACCOUNTS = Resource('', 'v1', 'serviceaccounts', kind='ServiceAccount', namespaced=True)
REPLICATION_CONTROLLERS = Resource('', 'v1', 'replicationcontrollers',
                                   kind='ReplicationController', namespaced=True)
EVENTS = Resource('', 'v1', 'events', kind='Event', namespaced=True)

KNOWN_RESOURCES = [
    RESOURCE_QUOTAS,
    LIMIT_RANGES,
    CONFIG_MAPS,
    SECRETS,
    PODS,
    SERVICES,
    SERVICE_ACCOUNTS,
    REPLICATION_CONTROLLERS,
    EVENTS,
]


def find_resource(name: str) -> Resource:
    """
    Find a pre-declared resource by its plural name or kind, case-insensitively.

    Raises `LookupError` if nothing matches.
    """
    for resource in KNOWN_RESOURCES:
        if name.lower() in {resource.plural, (resource.kind or '').lower()}:
            return resource
    raise LookupError(f"Unknown resource: {name!r}")
