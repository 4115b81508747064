import pytest

from kubebind._cogs.structs.bodies import get_name, get_namespace, get_resource_version


@pytest.mark.parametrize('body, name, namespace, version', [
    ({}, None, None, None),
    ({'metadata': {}}, None, None, None),
    ({'metadata': None}, None, None, None),
    ({'metadata': {'name': 'n', 'namespace': 'ns', 'resourceVersion': '1'}}, 'n', 'ns', '1'),
])
def test_identifiers(body, name, namespace, version):
    assert get_name(body) == name
    assert get_namespace(body) == namespace
    assert get_resource_version(body) == version
