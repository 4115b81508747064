"""
Typed access to one resource kind within one namespace.

This is the generic binding that every namespaced resource kind uses:
instead of a near-identical hand-written client per kind, there is one client
parameterized by the resource reference (for the URLs) and by the payload types
of the individual objects and of their lists (for type-checking only).

Every operation is a single request (or a single stream for watching).
Nothing is cached or remembered between the calls; the only local checks
are those where the request is guaranteed to be invalid or misaddressed.

.. seealso::
    :class:`kubebind.Connection` for the namespacers of the known kinds.
"""
import logging
from typing import Any, Generic, Mapping, Optional, TypeVar, cast

from kubebind._cogs.clients import api, auth, errors, watching
from kubebind._cogs.configs import configuration
from kubebind._cogs.helpers import typedefs
from kubebind._cogs.structs import bodies, references, selectors

logger = logging.getLogger(__name__)

BodyT = TypeVar('BodyT')
ListT = TypeVar('ListT')


class NamespacedClient(Generic[BodyT, ListT]):
    """
    The CRUD & watch operations for a resource kind in a namespace.

    The namespace can be empty: it then means the connection's default one
    (as resolved when the URLs are built, not here).
    """

    def __init__(
            self,
            *,
            context: auth.APIContext,
            settings: configuration.ClientSettings,
            resource: references.Resource,
            namespace: str,
            logger: typedefs.Logger = logger,
    ) -> None:
        super().__init__()
        self.context = context
        self.settings = settings
        self.resource = resource
        self.namespace = references.NamespaceName(namespace)
        self.logger = logger

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} for {self.resource!r} in {self.namespace!r}>'

    def get_url(self, name: Optional[str] = None, **kwargs: Any) -> str:
        return self.resource.get_url(
            namespace=self.namespace,
            default_namespace=self.context.default_namespace,
            name=name or None,
            **kwargs,
        )

    async def list(
            self,
            selector: selectors.SelectorLike = None,
    ) -> ListT:
        """
        List the objects that match the label selector (all if it is empty).
        """
        label_selector = selectors.as_selector(selector)
        params = {self.settings.selectors.label_param: str(label_selector)} if label_selector else {}
        where = f" with labels {str(label_selector)!r}" if label_selector else ""
        self.logger.debug(f"Listing {self.resource!r} in {self.namespace!r}{where}.")
        rsp: bodies.RawList = await api.get(
            url=self.get_url(params=params),
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )

        # Individual items are often served without the kind & version: add them from the list.
        for item in rsp.get('items') or []:
            if 'kind' in rsp:
                kind = rsp['kind']
                item.setdefault('kind', kind[:-4] if kind[-4:] == 'List' else kind)
            if 'apiVersion' in rsp:
                item.setdefault('apiVersion', rsp['apiVersion'])

        return cast(ListT, rsp)

    async def get(self, name: str) -> BodyT:
        """
        Get one object by its name.
        """
        if not name:
            raise errors.InvalidArgumentError("name is required parameter to get")

        self.logger.debug(f"Getting {self.resource!r} {name!r} in {self.namespace!r}.")
        rsp = await api.get(
            url=self.get_url(name),
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )
        return cast(BodyT, rsp)

    async def delete(self, name: str) -> None:
        """
        Delete one object by its name.

        Deleting an absent object is an error (as reported by the server).
        """
        # The collection's URL means "delete them all", which is not what is asked for.
        if not name:
            raise errors.InvalidArgumentError("name is required parameter to delete")

        self.logger.debug(f"Deleting {self.resource!r} {name!r} in {self.namespace!r}.")
        await api.delete(
            url=self.get_url(name),
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )

    async def create(self, body: BodyT) -> BodyT:
        """
        Create an object. Return the server's representation of the created object.

        The server assigns the resource version, the uid, the defaults, etc.
        The original body is neither modified nor retained.
        """
        name = bodies.get_name(cast(Mapping[str, Any], body))
        self.logger.debug(f"Creating {self.resource!r} {name!r} in {self.namespace!r}.")
        rsp = await api.post(
            url=self.get_url(),
            payload=body,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )
        return cast(BodyT, rsp)

    async def update(self, body: BodyT) -> BodyT:
        """
        Replace an object. Return the server's representation of the updated object.

        The object must carry the resource version as it was last seen.
        If the object was modified since then, the server rejects the update
        with `APIConflictError`: re-read it and decide what to do; there is
        no merging or retrying here.
        """
        raw_body = cast(Mapping[str, Any], body)
        if not bodies.get_resource_version(raw_body):
            raise errors.InvalidArgumentError(
                f"invalid update object, missing resource version: {body!r}")

        # The collection's URL does not accept replacements.
        name = bodies.get_name(raw_body)
        if not name:
            raise errors.InvalidArgumentError(f"invalid update object, missing name: {body!r}")

        self.logger.debug(f"Updating {self.resource!r} {name!r} in {self.namespace!r} "
                          f"from version {bodies.get_resource_version(raw_body)!r}.")
        rsp = await api.put(
            url=self.get_url(name),
            payload=body,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )
        return cast(BodyT, rsp)

    async def watch(
            self,
            label_selector: selectors.SelectorLike = None,
            field_selector: selectors.SelectorLike = None,
            resource_version: Optional[str] = None,
    ) -> watching.WatchStream[BodyT]:
        """
        Open a watch-stream of the changes, starting from the resource version.

        An empty resource version means "from now on". The stream is returned
        open, but is read lazily as it is iterated; see `WatchStream`.
        """
        self.logger.debug(f"Watching {self.resource!r} in {self.namespace!r} "
                          f"since {resource_version or 'now'}.")
        stream = await watching.open_watch(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=self.namespace,
            label_selector=label_selector,
            field_selector=field_selector,
            resource_version=resource_version,
            logger=self.logger,
        )
        return cast(watching.WatchStream[BodyT], stream)


class Namespacer(Generic[BodyT, ListT]):
    """
    A factory of namespaced clients for one resource kind.

    Calling it with a namespace makes a new client sharing the same connection.
    No I/O is done and nothing is validated: any string goes, even an empty one.
    """

    def __init__(
            self,
            *,
            context: auth.APIContext,
            settings: configuration.ClientSettings,
            resource: references.Resource,
            logger: typedefs.Logger = logger,
    ) -> None:
        super().__init__()
        if not resource.namespaced:
            raise TypeError(f"Only namespaced resources can be used with namespaces: {resource!r}")
        self.context = context
        self.settings = settings
        self.resource = resource
        self.logger = logger

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} for {self.resource!r}>'

    def __call__(self, namespace: str) -> NamespacedClient[BodyT, ListT]:
        return NamespacedClient(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=namespace,
            logger=self.logger,
        )
