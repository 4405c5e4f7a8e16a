import threading
import time

import mbus
from mbus import msgs


def test_invalid_topic(fake, capsys):

    for topic in (None, ''):
        mbus.commands.topic_echo(topic, 0.1, node_factory=fake)
        out, err = capsys.readouterr()
        assert out == ''
        assert err == 'Invalid topic. Topic must not be empty.\n'

    assert fake.calls == []


def test_non_finite_duration(fake, capsys):

    slept = list()

    for duration in (float('inf'), float('-inf'), float('nan')):
        mbus.commands.topic_echo('/t', duration, node_factory=fake, sleep=slept.append)
        out, err = capsys.readouterr()
        assert out == ''
        assert err == 'Invalid duration[%s]. Duration must be a finite number of seconds.\n' % (duration)

    assert slept == []
    assert fake.calls == []
    assert fake.constructed == 0


def test_subscribe_failure(fake, capsys):

    fake.subscribe_ok = False
    slept = list()

    begin = time.time()
    mbus.commands.topic_echo('/t', 5, node_factory=fake, sleep=slept.append)
    elapsed = time.time() - begin
    out, err = capsys.readouterr()

    assert err == 'Unable to subscribe to topic[/t].\n'
    assert slept == []
    assert elapsed < 1
    assert fake.names() == ['subscribe', 'close']


def test_duration(fake, capsys):

    fake.deliver.append(msgs.new('StringMsg', 'data: "one"'))
    fake.deliver.append(msgs.new('StringMsg', 'data: "two"'))

    begin = time.time()
    mbus.commands.topic_echo('/t', 0.5, node_factory=fake)
    elapsed = time.time() - begin
    out, err = capsys.readouterr()

    assert elapsed >= 0.45
    assert elapsed < 0.7
    assert out == 'data: "one"\ndata: "two"\n'
    assert err == ''


def test_duration_without_messages(fake, capsys):

    begin = time.time()
    mbus.commands.topic_echo('/t', 0.5, node_factory=fake)
    elapsed = time.time() - begin
    out, err = capsys.readouterr()

    assert elapsed >= 0.45
    assert elapsed < 0.7
    assert out == ''


def test_truncated_milliseconds(fake, capsys):

    slept = list()
    mbus.commands.topic_echo('/t', 1.2345, node_factory=fake, sleep=slept.append)
    mbus.commands.topic_echo('/t', 0, node_factory=fake, sleep=slept.append)

    assert slept == [1.234, 0]


def test_nested_rendering(fake, capsys):

    fake.deliver.append(msgs.new('Pose', 'name: "arm" position { x: 1.5 }'))

    mbus.commands.topic_echo('/pose', 0, node_factory=fake, sleep=lambda seconds: None)
    out, err = capsys.readouterr()

    assert out == 'name: "arm"\nposition {\n  x: 1.5\n}\n'


def test_forever(fake, capsys):
    """ A negative duration waits until the token is cancelled, even if no
        message ever arrives.
    """

    token = mbus.shutdown.Token()
    thread = threading.Thread(target=mbus.commands.topic_echo, args=('/t', -1), kwargs=dict(node_factory=fake, token=token))
    thread.daemon = True
    thread.start()

    time.sleep(0.3)
    assert thread.is_alive() == True
    assert 'close' not in fake.names()

    token.cancel()
    thread.join(1)

    assert thread.is_alive() == False
    assert fake.names() == ['subscribe', 'close']


def test_independent_tokens(fake, capsys):

    first = mbus.shutdown.Token()
    second = mbus.shutdown.Token()

    threads = list()
    for token in (first, second):
        thread = threading.Thread(target=mbus.commands.topic_echo, args=('/t', -1), kwargs=dict(node_factory=type(fake)(), token=token))
        thread.daemon = True
        thread.start()
        threads.append(thread)

    first.cancel()
    threads[0].join(1)

    assert threads[0].is_alive() == False
    assert threads[1].is_alive() == True

    second.cancel()
    threads[1].join(1)
    assert threads[1].is_alive() == False


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
