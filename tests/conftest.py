import pytest

import mbus
from mbus import msgs


class FakePublisher(mbus.node.Publisher):
    """ Publisher handle that records into the owning :class:`FakeNode`. """

    def __init__(self, node, topic, msg_type):
        self.node = node
        self.topic = topic
        self.msg_type = msg_type

    def publish(self, message):
        self.node.calls.append(('publish', self.topic, message))
        return self.node.publish_ok


class FakeNode(mbus.Node):
    """ A node with canned answers. Every call is appended to :attr:`calls`
        as a tuple, the method name first, so tests can check what was
        called and in what order.
    """

    def __init__(self):
        self.calls = list()
        self.topics = list()
        self.publishers = dict()
        self.services = list()
        self.providers = dict()
        self.advertise_ok = True
        self.publish_ok = True
        self.subscribe_ok = True
        self.deliver = list()
        self.reply = (True, True)
        self.reply_message = None
        self.constructed = 0

    def __call__(self):
        # The node doubles as its own factory.
        self.constructed += 1
        return self

    def names(self):
        return [call[0] for call in self.calls]

    def topic_list(self):
        self.calls.append(('topic_list',))
        return list(self.topics)

    def topic_info(self, topic):
        self.calls.append(('topic_info', topic))
        return list(self.publishers.get(topic, ()))

    def service_list(self):
        self.calls.append(('service_list',))
        return list(self.services)

    def service_info(self, service):
        self.calls.append(('service_info', service))
        return list(self.providers.get(service, ()))

    def advertise(self, topic, msg_type):
        self.calls.append(('advertise', topic, msg_type))
        if self.advertise_ok:
            return FakePublisher(self, topic, msg_type)
        return None

    def subscribe(self, topic, callback):
        self.calls.append(('subscribe', topic))
        if not self.subscribe_ok:
            return False
        for message in self.deliver:
            callback(message)
        return True

    def request(self, service, request, timeout, response):
        self.calls.append(('request', service, request, timeout, response))
        if self.reply_message is not None:
            msgs.fill(response, self.reply_message)
        return self.reply

    def close(self):
        self.calls.append(('close',))


@pytest.fixture
def fake():
    return FakeNode()


@pytest.fixture
def settings():
    environ = dict()
    environ['MBUS_DISCOVERY_WAIT'] = '0'
    return mbus.config.Settings(environ)


@pytest.fixture
def discovery(settings):
    """ Discovery limited to this process, so that tests never depend on
        broadcast traffic.
    """

    instance = mbus.transport.discovery.Discovery(settings, network=False)
    yield instance
    instance.stop()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
