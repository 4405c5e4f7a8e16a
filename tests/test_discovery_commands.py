import mbus
from mbus.node import MessagePublisher, ServicePublisher


def test_topic_list(fake, capsys):

    fake.topics = ['/zeta', '/alpha', '/chatter']
    mbus.commands.topic_list(node_factory=fake)

    out, err = capsys.readouterr()

    # Node order is preserved; the command does not sort.
    assert out == '/zeta\n/alpha\n/chatter\n'
    assert err == ''
    assert fake.names() == ['topic_list', 'close']


def test_list_idempotence(fake, capsys):

    fake.topics = ['/a', '/b']
    fake.services = ['/s']

    mbus.commands.topic_list(node_factory=fake)
    first, err = capsys.readouterr()
    mbus.commands.topic_list(node_factory=fake)
    second, err = capsys.readouterr()
    assert first == second

    mbus.commands.service_list(node_factory=fake)
    first, err = capsys.readouterr()
    mbus.commands.service_list(node_factory=fake)
    second, err = capsys.readouterr()
    assert first == second == '/s\n'

    # One node per invocation.
    assert fake.constructed == 4


def test_topic_info_invalid(fake, capsys):

    for topic in (None, ''):
        mbus.commands.topic_info(topic, node_factory=fake)
        out, err = capsys.readouterr()
        assert out == ''
        assert err == 'Invalid topic. Topic must not be empty.\n'

    assert fake.calls == []
    assert fake.constructed == 0


def test_topic_info_empty(fake, capsys):

    mbus.commands.topic_info('/nobody', node_factory=fake)
    out, err = capsys.readouterr()

    assert out == 'No publishers on topic [/nobody]\n'
    assert 'Publishers [' not in out
    assert err == ''


def test_topic_info(fake, capsys):

    publishers = list()
    publishers.append(MessagePublisher('tcp://10.0.0.1:10139', 'mbus.msgs.StringMsg'))
    publishers.append(MessagePublisher('tcp://10.0.0.2:10140', 'mbus.msgs.StringMsg'))
    fake.publishers['/chatter'] = publishers

    mbus.commands.topic_info('/chatter', node_factory=fake)
    out, err = capsys.readouterr()
    lines = out.splitlines()

    assert lines[0] == 'Publishers [Address, Message Type]:'
    assert lines[1:] == [
        '  tcp://10.0.0.1:10139, mbus.msgs.StringMsg',
        '  tcp://10.0.0.2:10140, mbus.msgs.StringMsg',
    ]
    assert len(lines) - 1 == len(publishers)


def test_topic_info_passthrough(fake, capsys):
    """ Names are handed to the node exactly as given. """

    mbus.commands.topic_info('  /spaced ', node_factory=fake)
    capsys.readouterr()

    assert fake.calls[0] == ('topic_info', '  /spaced ')


def test_service_info_invalid(fake, capsys):

    for service in (None, ''):
        mbus.commands.service_info(service, node_factory=fake)
        out, err = capsys.readouterr()
        assert out == ''
        assert err == 'Invalid service. Service must not be empty.\n'

    assert fake.calls == []


def test_service_info_empty(fake, capsys):

    mbus.commands.service_info('/echo', node_factory=fake)
    out, err = capsys.readouterr()

    assert out == 'No service providers on service [/echo]\n'
    assert err == ''


def test_service_info(fake, capsys):

    provider = ServicePublisher('tcp://10.0.0.1:10079', 'mbus.msgs.StringMsg', 'mbus.msgs.Int32')
    fake.providers['/echo'] = [provider]

    mbus.commands.service_info('/echo', node_factory=fake)
    out, err = capsys.readouterr()

    assert out.splitlines() == [
        'Service providers [Address, Request Message Type, Response Message Type]:',
        '  tcp://10.0.0.1:10079, mbus.msgs.StringMsg, mbus.msgs.Int32',
    ]


def test_invalid_environment(capsys, monkeypatch):
    """ The default node reads its settings from the environment; a bad
        value is reported, not raised.
    """

    monkeypatch.setenv('MBUS_DISCOVERY_PORT', 'many')

    mbus.commands.topic_list()
    out, err = capsys.readouterr()
    assert out == ''
    assert err == "MBUS_DISCOVERY_PORT must be an integer, not 'many'\n"

    mbus.commands.service_info('/echo')
    out, err = capsys.readouterr()
    assert err == "MBUS_DISCOVERY_PORT must be an integer, not 'many'\n"


def test_version():

    version = mbus.version()
    parts = version.split('.')

    assert len(parts) == 3
    for part in parts:
        assert part.isdigit()

    assert version == mbus.__version__


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
