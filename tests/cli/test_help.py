import pytest


def test_help_in_root(invoke):
    result = invoke(['--help'])
    assert result.exit_code == 0
    for command in ['list', 'get', 'create', 'update', 'delete', 'watch']:
        assert command in result.output


@pytest.mark.parametrize('command', ['list', 'get', 'create', 'update', 'delete', 'watch'])
def test_help_in_subcommands(invoke, command):
    result = invoke([command, '--help'])
    assert result.exit_code == 0
    assert '--namespace' in result.output
    assert '--kubeconfig' in result.output
    assert '--output' in result.output
    assert '--log-format' in result.output
    assert '--verbose' in result.output


def test_unknown_resource_is_rejected(invoke, login):
    result = invoke(['list', 'kubebindexamples'])
    assert result.exit_code == 2
    assert "Unknown resource" in result.output
    assert not login.called
