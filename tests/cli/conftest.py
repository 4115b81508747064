import functools

import click.testing
import pytest

from kubebind._cogs.structs.credentials import ConnectionInfo
from kubebind.cli import main


@pytest.fixture(autouse=True)
def _restore_logging(restore_logging):
    pass


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner):
    return functools.partial(runner.invoke, main)


@pytest.fixture()
def login(mocker, hostname):
    info = ConnectionInfo(server=f'https://{hostname}', default_namespace='home')
    return mocker.patch('kubebind._cogs.clients.logins.login', return_value=info)
