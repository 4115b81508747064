"""
All the structures coming from/to the Kubernetes API.

The usage of these classes is spread over the codebase, so they are extracted
into a separate module of such type definitions.

For strict type-checking, they are detailed to the per-field level
(e.g. `TypedDict` instead of just ``Mapping[Any, Any]``) --
as used by the clients. The users can use arbitrary fields at runtime,
which are not declared in the type definitions at type-checking time.

The objects are plain dicts as JSON-decoded from the API responses.
There is no codec: "decoding into a target type" is a type-level cast only.
"""
from typing import Any, List, Mapping, Optional, Union

from typing_extensions import Literal, TypedDict

Labels = Mapping[str, str]
Annotations = Mapping[str, str]

#
# Everything marked "raw" is a plain unwrapped unprocessed data as JSON-decoded
# from Kubernetes API, usually as retrieved in watching or fetching API calls.
# All non-used payload falls into `Any`, and is not type-checked.
#

RawInputType = Literal['ADDED', 'MODIFIED', 'DELETED', 'ERROR']


class RawMeta(TypedDict, total=False):
    uid: str
    name: str
    namespace: str
    labels: Labels
    annotations: Annotations
    finalizers: List[str]
    resourceVersion: str
    deletionTimestamp: str
    creationTimestamp: str
    selfLink: str


class RawBody(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    spec: Mapping[str, Any]
    status: Mapping[str, Any]


class RawListMeta(TypedDict, total=False):
    resourceVersion: str
    selfLink: str
    # Present only when the server truncates the list. The continuation is never followed.
    remainingItemCount: int


class RawList(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawListMeta
    items: List[RawBody]


class RawStatusCause(TypedDict, total=False):
    field: str
    reason: str
    message: str


class RawStatusDetails(TypedDict, total=False):
    name: str
    group: str
    kind: str
    uid: str
    retryAfterSeconds: int
    causes: List[RawStatusCause]


# The `Status` payload: in the error responses, and in the stream for type==ERROR.
class RawError(TypedDict, total=False):
    apiVersion: str     # usually: Literal['v1']
    kind: str           # usually: Literal['Status']
    metadata: Mapping[Any, Any]
    code: int
    reason: str
    status: str
    message: str
    details: RawStatusDetails


# As received from the stream before any processing.
class RawInput(TypedDict, total=True):
    type: RawInputType
    object: Union[RawBody, RawError]


#
# The per-kind payloads. Only the fields of interest are declared.
# Semantics of these fields are the server's business, not the clients'.
#

ResourceQuantities = Mapping[str, str]  # e.g. {"pods": "10", "requests.cpu": "4"}


class ResourceQuotaSpec(TypedDict, total=False):
    hard: ResourceQuantities
    scopes: List[str]


class ResourceQuotaStatus(TypedDict, total=False):
    hard: ResourceQuantities
    used: ResourceQuantities


class ResourceQuota(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    spec: ResourceQuotaSpec
    status: ResourceQuotaStatus


class ResourceQuotaList(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawListMeta
    items: List[ResourceQuota]


def get_name(body: Mapping[str, Any]) -> Optional[str]:
    return (body.get('metadata') or {}).get('name')


def get_namespace(body: Mapping[str, Any]) -> Optional[str]:
    return (body.get('metadata') or {}).get('namespace')


def get_resource_version(body: Mapping[str, Any]) -> Optional[str]:
    return (body.get('metadata') or {}).get('resourceVersion')
