import mbus
from mbus import msgs


def test_null_arguments(fake, capsys):

    expected = (
        ((None, 'StringMsg', 'data: "x"'), 'Topic name is null'),
        (('/t', None, 'data: "x"'), 'Message type is null'),
        (('/t', 'StringMsg', None), 'Message data is null'),
        (('', 'StringMsg', 'data: "x"'), 'Invalid topic. Topic must not be empty.'),
    )

    for arguments, message in expected:
        mbus.commands.topic_pub(*arguments, node_factory=fake, delay=0)
        out, err = capsys.readouterr()
        assert out == ''
        assert err == message + '\n'

    assert fake.calls == []
    assert fake.constructed == 0


def test_factory_failure(fake, capsys):

    mbus.commands.topic_pub('/t', 'NoSuchType', 'data: "x"', node_factory=fake, delay=0)
    out, err = capsys.readouterr()
    assert err == 'Unable to create message of type[NoSuchType] with data[data: "x"].\n'

    mbus.commands.topic_pub('/t', 'StringMsg', 'bogus: 1', node_factory=fake, delay=0)
    out, err = capsys.readouterr()
    assert err == 'Unable to create message of type[StringMsg] with data[bogus: 1].\n'

    # No advertise, no publish.
    assert fake.calls == []


def test_advertise_failure(fake, capsys):

    fake.advertise_ok = False
    slept = list()

    mbus.commands.topic_pub('/t', 'StringMsg', 'data: "x"', node_factory=fake, delay=0.8, sleep=slept.append)
    out, err = capsys.readouterr()

    assert err == 'Unable to publish on topic[/t] with message type[StringMsg].\n'
    assert fake.names() == ['advertise', 'close']
    assert slept == []


def test_order(fake, capsys):

    def sleep(seconds):
        fake.calls.append(('sleep', seconds))

    mbus.commands.topic_pub('/t', 'StringMsg', 'data: "x"', node_factory=fake, delay=0.8, sleep=sleep)
    out, err = capsys.readouterr()

    assert out == ''
    assert err == ''
    assert fake.names() == ['advertise', 'sleep', 'publish', 'close']
    assert fake.calls[1] == ('sleep', 0.8)

    published = fake.calls[2][2]
    assert isinstance(published, msgs.types.StringMsg)
    assert published.data == 'x'


def test_alias_resolution(fake, capsys):
    """ The topic is advertised under the canonical type name, not the
        alias the caller used.
    """

    mbus.commands.topic_pub('/t', 'StringMsg', 'data: "x"', node_factory=fake, delay=0)
    capsys.readouterr()

    assert fake.calls[0] == ('advertise', '/t', 'mbus.msgs.StringMsg')


def test_default_delay(fake, capsys, monkeypatch):

    monkeypatch.setenv('MBUS_PUB_DELAY', '0.25')
    slept = list()

    mbus.commands.topic_pub('/t', 'Int32', 'data: 5', node_factory=fake, sleep=slept.append)
    capsys.readouterr()

    assert slept == [0.25]


def test_invalid_environment(fake, capsys, monkeypatch):

    monkeypatch.setenv('MBUS_PUB_DELAY', 'soon')

    mbus.commands.topic_pub('/t', 'StringMsg', 'data: "x"', node_factory=fake)
    out, err = capsys.readouterr()

    assert err == "MBUS_PUB_DELAY must be a number, not 'soon'\n"
    assert fake.calls == []
    assert fake.constructed == 0


def test_publish_failure(fake, capsys):

    fake.publish_ok = False

    mbus.commands.topic_pub('/t', 'Int32', 'data: 5', node_factory=fake, delay=0)
    out, err = capsys.readouterr()

    assert err == 'Unable to publish on topic[/t].\n'

    # Exactly one attempt.
    assert fake.names().count('publish') == 1


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
