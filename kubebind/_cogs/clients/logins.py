"""
Rudimentary logins from the well-known sources of credentials.

Only the static credentials are supported: tokens, certificates, passwords.
The auth-providers are not called and the exec-plugins are not executed;
their last issued tokens are used as they are (if present in the kubeconfig).

.. seealso::
    :mod:`credentials`.
"""
import os
from typing import Any, Dict, List, Optional

import yaml

from kubebind._cogs.structs import credentials

# As per https://kubernetes.io/docs/tasks/run-application/access-api-from-pod/
SERVICE_ACCOUNT_TOKEN_PATH = '/var/run/secrets/kubernetes.io/serviceaccount/token'
SERVICE_ACCOUNT_NAMESPACE_PATH = '/var/run/secrets/kubernetes.io/serviceaccount/namespace'
SERVICE_ACCOUNT_CA_PATH = '/var/run/secrets/kubernetes.io/serviceaccount/ca.crt'
SERVICE_ACCOUNT_SERVER = 'https://kubernetes.default.svc'

DEFAULT_KUBECONFIG = '~/.kube/config'

# The named sections of a kubeconfig, and the keys of the named items' payloads.
KUBECONFIG_SECTIONS = {'contexts': 'context', 'clusters': 'cluster', 'users': 'user'}


def _read_stripped(path: str) -> Optional[str]:
    if not os.path.exists(path):
        return None
    with open(path, encoding='utf-8') as f:
        return f.read().strip() or None


def has_service_account() -> bool:
    return os.path.exists(SERVICE_ACCOUNT_TOKEN_PATH)


def login_with_service_account() -> Optional[credentials.ConnectionInfo]:
    """
    Get the credentials of the pod's service account, if running in a cluster.

    The token is used as it is now: if it is rotated later, a new login is needed.
    """
    token = _read_stripped(SERVICE_ACCOUNT_TOKEN_PATH)
    if token is None:
        return None
    namespace = _read_stripped(SERVICE_ACCOUNT_NAMESPACE_PATH)
    has_ca = os.path.exists(SERVICE_ACCOUNT_CA_PATH)
    return credentials.ConnectionInfo(
        server=SERVICE_ACCOUNT_SERVER,
        ca_path=SERVICE_ACCOUNT_CA_PATH if has_ca else None,
        token=token,
        default_namespace=namespace,
    )


def has_kubeconfig() -> bool:
    env_var_set = bool(os.environ.get('KUBECONFIG'))
    return env_var_set or os.path.exists(os.path.expanduser(DEFAULT_KUBECONFIG))


def _find_kubeconfigs(kubeconfig: Optional[str]) -> List[str]:
    # As per https://kubernetes.io/docs/concepts/configuration/organize-cluster-access-kubeconfig/
    kubeconfig = kubeconfig or os.environ.get('KUBECONFIG')
    if not kubeconfig and os.path.exists(os.path.expanduser(DEFAULT_KUBECONFIG)):
        kubeconfig = DEFAULT_KUBECONFIG
    paths = (kubeconfig or '').split(os.pathsep)
    return [os.path.expanduser(path.strip()) for path in paths if path.strip()]


def _merge_kubeconfigs(paths: List[str]) -> Dict[str, Any]:
    """
    Merge several kubeconfig files into one: the first definition of anything wins.

    An absent or unparseable file is an error, as with kubectl.
    """
    merged: Dict[str, Any] = {'current-context': None}
    merged.update({section: {} for section in KUBECONFIG_SECTIONS})
    for path in paths:
        with open(path, encoding='utf-8') as f:
            config = yaml.safe_load(f.read()) or {}

        if merged['current-context'] is None:
            merged['current-context'] = config.get('current-context')
        for section, payload_key in KUBECONFIG_SECTIONS.items():
            for item in config.get(section) or []:
                merged[section].setdefault(item['name'], item.get(payload_key) or {})
    return merged


def login_with_kubeconfig(
        kubeconfig: Optional[str] = None,
        *,
        context: Optional[str] = None,
) -> Optional[credentials.ConnectionInfo]:
    """
    Get the credentials from the kubeconfig files, if there are any.

    The files are taken from the explicit argument, or from ``$KUBECONFIG``,
    or from ``~/.kube/config`` -- in that order of preference.
    Several files can be separated by the OS's path separator.

    The context is the explicitly given one, or the files' current context.
    """
    paths = _find_kubeconfigs(kubeconfig)
    if not paths:
        return None

    config = _merge_kubeconfigs(paths)
    context_name = context if context is not None else config['current-context']
    if context_name is None:
        raise credentials.LoginError('Current context is not set in kubeconfigs.')
    if context_name not in config['contexts']:
        raise credentials.LoginError(f'Context {context_name!r} is not found in kubeconfigs.')

    ctx = config['contexts'][context_name]
    cluster = config['clusters'].get(ctx.get('cluster'), {})
    user = config['users'].get(ctx.get('user'), {})
    provider = user.get('auth-provider') or {}
    return credentials.ConnectionInfo(
        server=cluster.get('server'),
        ca_path=cluster.get('certificate-authority'),
        ca_data=cluster.get('certificate-authority-data'),
        insecure=cluster.get('insecure-skip-tls-verify'),
        certificate_path=user.get('client-certificate'),
        certificate_data=user.get('client-certificate-data'),
        private_key_path=user.get('client-key'),
        private_key_data=user.get('client-key-data'),
        username=user.get('username'),
        password=user.get('password'),
        token=user.get('token') or (provider.get('config') or {}).get('access-token'),
        default_namespace=ctx.get('namespace'),
    )


def login(
        kubeconfig: Optional[str] = None,
        *,
        context: Optional[str] = None,
) -> credentials.ConnectionInfo:
    """
    Find the credentials in the environment: explicit or implied.

    An explicitly given kubeconfig or context always wins. Otherwise,
    the in-cluster service account is preferred over the local kubeconfigs.
    """
    info: Optional[credentials.ConnectionInfo] = None
    if kubeconfig is None and context is None and has_service_account():
        info = login_with_service_account()
    if info is None and (kubeconfig is not None or has_kubeconfig()):
        info = login_with_kubeconfig(kubeconfig, context=context)
    if info is None:
        raise credentials.LoginError("Cannot find any credentials: "
                                     "neither a service account nor a kubeconfig.")
    return info
