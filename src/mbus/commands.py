""" The command implementations behind the ``mbus`` command-line tool. Each
    function is a complete, one-shot invocation: it validates its arguments,
    constructs its own node, does its work, writes the outcome to standard
    output or standard error, and closes the node.

    Commands report rather than raise. Missing arguments, messages that
    cannot be built, and topics that cannot be advertised all result in a
    single diagnostic line on standard error; empty discovery results,
    failed service calls, and timeouts are ordinary outcomes.

    Every command accepts a *node_factory*, a callable returning a
    :class:`mbus.node.Node`; the default constructs a
    :class:`mbus.transport.ZmqNode`. The commands that wait also accept the
    callables and values they wait with, so that the waits can be shortened
    or observed.
"""

import enum
import logging
import math
import sys
import time

from . import config
from . import msgs
from . import release
from . import shutdown
from . import transport

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    """ The result of a service request. A call that received no reply in
        time is distinct from one whose provider reported failure.
    """

    SUCCESS = 'success'
    FAILURE = 'failure'
    TIMED_OUT = 'timed out'

    @classmethod
    def from_flags(cls, executed, result):
        """ Map the (executed, result) pair returned by
            :func:`mbus.node.Node.request` to an :class:`Outcome`. A call that
            was not executed timed out, regardless of *result*.
        """

        if not executed:
            return cls.TIMED_OUT
        if result:
            return cls.SUCCESS
        return cls.FAILURE


# end of class Outcome



def _node(node_factory):
    """ Return a new node, or None if the default node cannot be configured
        from the environment; the reason has already been reported.
    """

    if node_factory is not None:
        return node_factory()

    try:
        return transport.ZmqNode()
    except config.ConfigError as e:
        _error(str(e))
        return None


def _error(text):
    print(text, file=sys.stderr)


def _valid_name(name):
    return name is not None and name != ''


def topic_list(node_factory=None):
    """ Print the name of every known topic, one per line. """

    node = _node(node_factory)
    if node is None:
        return

    with node:
        for topic in node.topic_list():
            print(topic)


def topic_info(topic, node_factory=None):
    """ Print the publishers known for *topic*. """

    if not _valid_name(topic):
        _error('Invalid topic. Topic must not be empty.')
        return

    node = _node(node_factory)
    if node is None:
        return

    with node:
        publishers = node.topic_info(topic)

    if publishers:
        print('Publishers [Address, Message Type]:')
        for publisher in publishers:
            print('  ' + ', '.join((publisher.address, publisher.msg_type)))
    else:
        print('No publishers on topic [%s]' % (topic))


def service_list(node_factory=None):
    """ Print the name of every known service, one per line. """

    node = _node(node_factory)
    if node is None:
        return

    with node:
        for service in node.service_list():
            print(service)


def service_info(service, node_factory=None):
    """ Print the providers known for *service*. """

    if not _valid_name(service):
        _error('Invalid service. Service must not be empty.')
        return

    node = _node(node_factory)
    if node is None:
        return

    with node:
        providers = node.service_info(service)

    if providers:
        print('Service providers [Address, Request Message Type, Response Message Type]:')
        for provider in providers:
            print('  ' + ', '.join((provider.address, provider.req_type, provider.rep_type)))
    else:
        print('No service providers on service [%s]' % (service))


def topic_pub(topic, msg_type, msg_data, node_factory=None, delay=None, sleep=time.sleep):
    """ Publish a single message of type *msg_type* on *topic*, initialized
        from the text *msg_data*.

        The topic is advertised under the message's canonical type name,
        whatever alias the caller used. After advertising, the command waits
        *delay* seconds (by default the configured publish delay) before
        publishing, giving subscribers that are already running a chance to
        discover the new publisher and connect. Nothing confirms that any
        subscriber actually connected; a subscriber that takes longer than
        the delay misses the message.
    """

    if topic is None:
        _error('Topic name is null')
        return

    if msg_type is None:
        _error('Message type is null')
        return

    if msg_data is None:
        _error('Message data is null')
        return

    if topic == '':
        _error('Invalid topic. Topic must not be empty.')
        return

    try:
        message = msgs.new(msg_type, msg_data)
    except msgs.FactoryError as e:
        logger.debug('%s', e)
        _error('Unable to create message of type[%s] with data[%s].' % (msg_type, msg_data))
        return

    if delay is None:
        try:
            delay = config.get().pub_delay
        except config.ConfigError as e:
            _error(str(e))
            return

    node = _node(node_factory)
    if node is None:
        return

    with node:
        publisher = node.advertise(topic, msgs.type_name(message))

        if publisher is None:
            _error('Unable to publish on topic[%s] with message type[%s].' % (topic, msg_type))
            return

        sleep(delay)

        if not publisher.publish(message):
            _error('Unable to publish on topic[%s].' % (topic))


def service_req(service, req_type, rep_type, timeout, req_data, node_factory=None):
    """ Call *service* once with a request of type *req_type* built from the
        text *req_data*, waiting at most *timeout* milliseconds for a reply
        of type *rep_type*.

        Exactly one of three things is printed: the reply on standard
        output, 'Service call failed' on standard output if the provider
        reported failure, or 'Service call timed out' on standard error if
        no reply arrived in time. The matching :class:`Outcome` is returned;
        None is returned if the call was never made.
    """

    if service is None:
        _error('Service name is null')
        return

    if req_type is None:
        _error('Request type is null')
        return

    if rep_type is None:
        _error('Response type is null')
        return

    if timeout is None:
        _error('Timeout is null')
        return

    if req_data is None:
        _error('Request data is null')
        return

    if service == '':
        _error('Invalid service. Service must not be empty.')
        return

    try:
        request = msgs.new(req_type, req_data)
    except msgs.FactoryError as e:
        logger.debug('%s', e)
        _error('Unable to create request of type[%s] with data[%s].' % (req_type, req_data))
        return

    # The response has to exist before the call is issued; the node fills
    # it in place when the reply arrives.

    try:
        response = msgs.new(rep_type)
    except msgs.FactoryError as e:
        logger.debug('%s', e)
        _error('Unable to create response of type[%s].' % (rep_type))
        return

    node = _node(node_factory)
    if node is None:
        return

    with node:
        executed, result = node.request(service, request, timeout, response)

    outcome = Outcome.from_flags(executed, result)

    if outcome is Outcome.TIMED_OUT:
        _error('Service call timed out')
    elif outcome is Outcome.SUCCESS:
        print(msgs.debug_string(response).rstrip('\n'))
    else:
        print('Service call failed')

    return outcome


def topic_echo(topic, duration, node_factory=None, token=None, sleep=time.sleep):
    """ Print every message received on *topic*. If *duration* is zero or
        more, return after that many seconds (truncated to whole
        milliseconds); otherwise keep printing until *token* is cancelled.
        The default token is the process-wide one cancelled by SIGINT and
        SIGTERM. An infinite or NaN *duration* is rejected.
    """

    if not _valid_name(topic):
        _error('Invalid topic. Topic must not be empty.')
        return

    if not math.isfinite(duration):
        _error('Invalid duration[%s]. Duration must be a finite number of seconds.' % (duration))
        return

    node = _node(node_factory)
    if node is None:
        return

    with node:
        if not node.subscribe(topic, _echo):
            _error('Unable to subscribe to topic[%s].' % (topic))
            return

        if duration >= 0:
            milliseconds = int(duration * 1000)
            sleep(milliseconds / 1000.0)
            return

        shutdown.wait_for_shutdown(token)


def _echo(message):
    """ Subscription callback for :func:`topic_echo`. """

    try:
        text = msgs.debug_string(message)
    except Exception:
        logger.exception('unable to render %r', message)
        return

    print(text.rstrip('\n'), flush=True)


def msg_list():
    """ Print the canonical name of every registered message type. """

    for name in msgs.types_list():
        print(name)


def version():
    """ Return the mbus release as a dotted major.minor.patch string. """

    return release.string()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
