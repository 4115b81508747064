import asyncio
import functools
import json
from typing import Any, Awaitable, Callable, Optional, TextIO, TypeVar, cast

import click
import yaml

from kubebind._cogs.clients import connection, errors, namespaced
from kubebind._cogs.helpers import loggers
from kubebind._cogs.structs import bodies, credentials, references

_T = TypeVar('_T')


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


class ResourceParamType(click.ParamType):
    name = 'resource'

    def convert(self, value: Any, param: Any, ctx: Any) -> references.Resource:
        if isinstance(value, references.Resource):
            return value
        try:
            return references.find_resource(value)
        except LookupError as e:
            self.fail(str(e), param, ctx)


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='full')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.FULL,
                log_prefix: Optional[bool] = False,
                log_refkey: Optional[str] = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


def client_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator for the target of all commands: a resource kind in a namespace."""
    fn = click.option('-o', '--output', type=click.Choice(['yaml', 'json']), default='yaml')(fn)
    fn = click.option('--kubeconfig', type=click.Path(dir_okay=False), default=None)(fn)
    fn = click.option('-n', '--namespace', type=str, default='')(fn)
    fn = click.argument('resource', type=ResourceParamType())(fn)
    return fn


def run(
        fn: Callable[[namespaced.NamespacedClient[Any, Any]], Awaitable[_T]],
        *,
        resource: references.Resource,
        namespace: str,
        kubeconfig: Optional[str],
) -> _T:
    """
    Run one operation against a freshly made connection, and close it afterwards.

    The known errors are reported as CLI errors (short messages, non-zero exit code),
    all other errors are escalated with the full stack traces.
    """
    async def _run() -> _T:
        async with connection.Connection.login(kubeconfig) as conn:
            client = conn.namespaced(resource)(namespace)
            return await fn(client)

    try:
        return asyncio.run(_run())
    except (errors.APIError, errors.InvalidArgumentError, credentials.LoginError) as e:
        raise click.ClickException(f"{e.__class__.__name__}: {e}")


def echo(data: Any, *, output: str, multidoc: bool = False) -> None:
    # For the streams: one JSON document per line, or YAML documents with separators.
    if output == 'json':
        click.echo(json.dumps(data) if multidoc else json.dumps(data, indent=2))
    else:
        text = yaml.safe_dump(data, sort_keys=False).rstrip('\n')
        click.echo(f'---\n{text}' if multidoc else text)


def load(file: TextIO) -> bodies.RawBody:
    # YAML is a superset of JSON, so both are accepted.
    data = yaml.safe_load(file)
    if not isinstance(data, dict):
        raise click.BadParameter("The object must be a mapping.", param_hint='-f/--filename')
    return cast(bodies.RawBody, data)


@click.version_option(prog_name='kubebind')
@click.group(name='kubebind', context_settings=dict(
    auto_envvar_prefix='KUBEBIND',
))
def main() -> None:
    pass


@main.command(name='list')
@logging_options
@client_options
@click.option('-l', '--selector', type=str, default=None)
def list_(
        resource: references.Resource,
        namespace: str,
        kubeconfig: Optional[str],
        output: str,
        selector: Optional[str],
) -> None:
    """ List the objects in a namespace, optionally filtered by labels. """
    result = run(lambda client: client.list(selector),
                 resource=resource, namespace=namespace, kubeconfig=kubeconfig)
    echo(result, output=output)


@main.command()
@logging_options
@client_options
@click.argument('name', type=str)
def get(
        resource: references.Resource,
        namespace: str,
        kubeconfig: Optional[str],
        output: str,
        name: str,
) -> None:
    """ Get one object by its name. """
    result = run(lambda client: client.get(name),
                 resource=resource, namespace=namespace, kubeconfig=kubeconfig)
    echo(result, output=output)


@main.command()
@logging_options
@client_options
@click.option('-f', '--filename', 'file', type=click.File('r'), required=True)
def create(
        resource: references.Resource,
        namespace: str,
        kubeconfig: Optional[str],
        output: str,
        file: TextIO,
) -> None:
    """ Create an object from a YAML/JSON file. """
    body = load(file)
    result = run(lambda client: client.create(body),
                 resource=resource, namespace=namespace, kubeconfig=kubeconfig)
    loggers.ObjectLogger(body=result).info("Created.")
    echo(result, output=output)


@main.command()
@logging_options
@client_options
@click.option('-f', '--filename', 'file', type=click.File('r'), required=True)
def update(
        resource: references.Resource,
        namespace: str,
        kubeconfig: Optional[str],
        output: str,
        file: TextIO,
) -> None:
    """ Replace an object from a YAML/JSON file; it must have a resource version. """
    body = load(file)
    result = run(lambda client: client.update(body),
                 resource=resource, namespace=namespace, kubeconfig=kubeconfig)
    loggers.ObjectLogger(body=result).info("Updated.")
    echo(result, output=output)


@main.command()
@logging_options
@client_options
@click.argument('name', type=str)
def delete(
        resource: references.Resource,
        namespace: str,
        kubeconfig: Optional[str],
        output: str,
        name: str,
) -> None:
    """ Delete one object by its name. """
    run(lambda client: client.delete(name),
        resource=resource, namespace=namespace, kubeconfig=kubeconfig)
    meta = bodies.RawMeta(name=name, namespace=namespace) if namespace else bodies.RawMeta(name=name)
    loggers.ObjectLogger(body=bodies.RawBody(metadata=meta)).info("Deleted.")


@main.command()
@logging_options
@client_options
@click.option('-l', '--selector', type=str, default=None)
@click.option('--field-selector', type=str, default=None)
@click.option('--resource-version', type=str, default=None)
def watch(
        resource: references.Resource,
        namespace: str,
        kubeconfig: Optional[str],
        output: str,
        selector: Optional[str],
        field_selector: Optional[str],
        resource_version: Optional[str],
) -> None:
    """ Print the changes as they happen, until the stream ends or is interrupted. """

    async def _watch(client: namespaced.NamespacedClient[Any, Any]) -> None:
        stream = await client.watch(
            label_selector=selector,
            field_selector=field_selector,
            resource_version=resource_version,
        )
        async with stream:
            async for event in stream:
                echo({'type': event.type.value, 'object': event.object}, output=output, multidoc=True)

    run(_watch, resource=resource, namespace=namespace, kubeconfig=kubeconfig)
