import dataclasses

from kubebind._cogs.configs.configuration import ClientSettings, NetworkingSettings, \
                                                SelectorSettings, WatchingSettings


async def test_declared_public_interface_and_promised_defaults():
    settings = ClientSettings()
    assert settings.networking.request_timeout == 5 * 60
    assert settings.networking.connect_timeout is None
    assert settings.watching.server_timeout is None
    assert settings.watching.client_timeout is None
    assert settings.watching.connect_timeout is None
    assert settings.selectors.label_param == 'labels'
    assert settings.selectors.field_param == 'fields'


def test_groups_are_not_shared_between_instances():
    settings1 = ClientSettings()
    settings2 = ClientSettings()
    settings1.selectors.label_param = 'labelSelector'
    assert settings2.selectors.label_param == 'labels'
    assert settings1.networking is not settings2.networking
    assert settings1.watching is not settings2.watching


def test_groups_can_be_replaced():
    settings = ClientSettings(
        networking=NetworkingSettings(request_timeout=10),
        watching=WatchingSettings(server_timeout=60),
        selectors=SelectorSettings(label_param='labelSelector', field_param='fieldSelector'),
    )
    assert dataclasses.asdict(settings) == {
        'networking': {'request_timeout': 10, 'connect_timeout': None},
        'watching': {'server_timeout': 60, 'client_timeout': None, 'connect_timeout': None},
        'selectors': {'label_param': 'labelSelector', 'field_param': 'fieldSelector'},
    }
