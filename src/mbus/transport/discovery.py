""" Discovery of topic publishers and service providers. Every process keeps
    one :class:`Discovery` instance per partition; nodes in the same process
    share it, which means they see each other's advertisements immediately.
    Other processes are found with UDP broadcasts on the discovery port:

    * a new :class:`Discovery` instance broadcasts a QUERY;
    * any process with advertisements answers a QUERY with an ADV message
      describing everything it offers, and repeats the ADV as a heartbeat;
    * a process that stops offering anything broadcasts a BYE.

    Remote advertisements that are not refreshed by a heartbeat expire. The
    view of the bus is therefore eventually consistent: a publisher that
    appeared a moment ago may not be known yet.
"""

import atexit
import logging
import socket
import threading
import time
import uuid

from .. import config
from .. import json
from ..node import MessagePublisher, ServicePublisher

logger = logging.getLogger(__name__)

ADVERTISE = 'ADV'
BYE = 'BYE'
QUERY = 'QUERY'

protocol_version = 1


class Discovery:
    """ The shared view of the bus for one partition. The *settings* are a
        :class:`mbus.config.Settings` instance; if *network* is False no
        broadcast socket is opened, and only advertisements made within this
        process are visible.
    """

    timeout = 0.25

    def __init__(self, settings, network=True):

        self.partition = settings.partition
        self.port = settings.discovery_port
        self.initial_wait = settings.discovery_wait
        self.uuid = uuid.uuid4().hex

        self.condition = threading.Condition()
        self.topics = dict()
        self.services = dict()
        self.remote = dict()
        self.listeners = list()
        self.announced = False

        self.shutdown = False
        self.socket = None
        self.thread = None
        self.started = time.monotonic()

        if network:
            self.socket = _open(self.port)

        if self.socket is not None:
            self._send(QUERY)
            self.thread = threading.Thread(target=self.run)
            self.thread.daemon = True
            self.thread.start()


    def advertise_topic(self, owner, topic, address, msg_type):
        """ Record that *owner* (a node identifier) publishes *topic* with
            messages of type *msg_type*. Returns False if the owner already
            advertises that topic with a different type.
        """

        key = (owner, topic)

        with self.condition:
            existing = self.topics.get(key)
            if existing is not None:
                return existing.msg_type == msg_type

            self.topics[key] = MessagePublisher(address, msg_type)

        self._changed(announce=True)
        return True


    def advertise_service(self, owner, service, address, req_type, rep_type):
        """ Record that *owner* provides *service*. Returns False if the owner
            already provides it.
        """

        key = (owner, service)

        with self.condition:
            if key in self.services:
                return False

            self.services[key] = ServicePublisher(address, req_type, rep_type)

        self._changed(announce=True)
        return True


    def withdraw(self, owner):
        """ Remove every advertisement made by *owner*. """

        with self.condition:
            topics = [key for key in self.topics if key[0] == owner]
            services = [key for key in self.services if key[0] == owner]

            for key in topics:
                del self.topics[key]
            for key in services:
                del self.services[key]

        if topics or services:
            self._changed(announce=True)


    def topic_list(self):
        names = list()

        with self.condition:
            for owner, topic in self.topics:
                names.append(topic)
            for seen, topics, services in self.remote.values():
                for topic, address, msg_type in topics:
                    names.append(topic)

        return _unique(names)


    def topic_info(self, topic):
        found = list()

        with self.condition:
            for key, publisher in self.topics.items():
                if key[1] == topic:
                    found.append(publisher)
            for seen, topics, services in self.remote.values():
                for name, address, msg_type in topics:
                    if name == topic:
                        found.append(MessagePublisher(address, msg_type))

        return _unique(found)


    def service_list(self):
        names = list()

        with self.condition:
            for owner, service in self.services:
                names.append(service)
            for seen, topics, services in self.remote.values():
                for service, address, req_type, rep_type in services:
                    names.append(service)

        return _unique(names)


    def service_info(self, service):
        found = list()

        with self.condition:
            for key, provider in self.services.items():
                if key[1] == service:
                    found.append(provider)
            for seen, topics, services in self.remote.values():
                for name, address, req_type, rep_type in services:
                    if name == service:
                        found.append(ServicePublisher(address, req_type, rep_type))

        return _unique(found)


    def wait_ready(self):
        """ Block until the initial discovery window has passed, so that
            peers answering our QUERY have had a chance to be heard. This
            only ever blocks for the first queries made in a process.
        """

        if self.socket is None:
            return

        remaining = self.started + self.initial_wait - time.monotonic()
        if remaining > 0:
            time.sleep(remaining)


    def wait_for(self, predicate, timeout):
        """ Block until *predicate*, called with no arguments, returns a true
            value, or until *timeout* seconds elapse. The predicate is
            re-evaluated every time the view of the bus changes. Returns the
            last value returned by the predicate.
        """

        with self.condition:
            return self.condition.wait_for(predicate, timeout)


    def watch(self, callback):
        """ Invoke *callback* with no arguments whenever the view changes. """

        with self.condition:
            self.listeners.append(callback)


    def unwatch(self, callback):

        with self.condition:
            try:
                self.listeners.remove(callback)
            except ValueError:
                pass


    def _changed(self, announce=False):

        with self.condition:
            self.condition.notify_all()
            listeners = list(self.listeners)

        for callback in listeners:
            try:
                callback()
            except Exception:
                logger.exception('discovery listener failed')

        if announce and self.socket is not None:
            self._announce()


    def _announce(self):

        with self.condition:
            topics = list()
            for (owner, topic), publisher in self.topics.items():
                topics.append((topic, publisher.address, publisher.msg_type))

            services = list()
            for (owner, service), provider in self.services.items():
                services.append((service, provider.address, provider.req_type, provider.rep_type))

        if topics or services:
            self._send(ADVERTISE, topics=_unique(topics), services=_unique(services))
            self.announced = True
        elif self.announced:
            self._send(BYE)
            self.announced = False


    def _send(self, op, **fields):

        message = dict(fields)
        message['v'] = protocol_version
        message['op'] = op
        message['process'] = self.uuid
        message['partition'] = self.partition

        data = json.dumps(message)

        try:
            self.socket.sendto(data, ('255.255.255.255', self.port))
        except OSError as e:
            logger.debug('discovery broadcast failed: %s', e)
        except AttributeError:
            # The socket was closed out from under us during shutdown.
            pass


    def _incoming(self, data):

        try:
            message = json.loads(data)
        except json.DecodeError:
            logger.debug('ignoring malformed discovery datagram')
            return

        if not isinstance(message, dict):
            return

        if message.get('v') != protocol_version:
            return

        if message.get('partition') != self.partition:
            return

        process = message.get('process')
        if process is None or process == self.uuid:
            return

        op = message.get('op')

        if op == QUERY:
            self._announce()
            return

        if op == BYE:
            with self.condition:
                removed = self.remote.pop(process, None)
            if removed is not None:
                self._changed()
            return

        if op != ADVERTISE:
            return

        try:
            topics = [tuple(entry) for entry in message.get('topics', ())]
            services = [tuple(entry) for entry in message.get('services', ())]
            for entry in topics:
                if len(entry) != 3:
                    raise ValueError('bad topic entry')
            for entry in services:
                if len(entry) != 4:
                    raise ValueError('bad service entry')
        except (TypeError, ValueError):
            logger.debug('ignoring malformed advertisement from %s', process)
            return

        with self.condition:
            previous = self.remote.get(process)
            self.remote[process] = (time.monotonic(), topics, services)

        if previous is None or previous[1] != topics or previous[2] != services:
            self._changed()


    def _expire(self, now):

        expired = list()

        with self.condition:
            for process, entry in self.remote.items():
                if entry[0] + config.expiration < now:
                    expired.append(process)

            for process in expired:
                del self.remote[process]

        if expired:
            self._changed()


    def run(self):

        next_heartbeat = time.monotonic() + config.heartbeat_interval

        while self.shutdown == False:
            now = time.monotonic()

            if now >= next_heartbeat:
                next_heartbeat = now + config.heartbeat_interval
                if self.announced:
                    self._announce()
                self._expire(now)

            try:
                data, address = self.socket.recvfrom(65535)
            except socket.timeout:
                continue
            except (OSError, AttributeError):
                if self.shutdown == False:
                    logger.exception('discovery socket failed')
                break

            self._incoming(data)


    def stop(self):

        if self.shutdown:
            return

        self.shutdown = True

        if self.socket is None:
            return

        if self.announced:
            self._send(BYE)

        sock = self.socket
        self.socket = None
        sock.close()


# end of class Discovery



def _open(port):
    """ Return a UDP socket bound to the discovery *port*, or None if the
        socket cannot be created; discovery is then limited to this process.
    """

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    # Every process on the host binds the same port; SO_REUSEPORT is what
    # allows that on platforms where SO_REUSEADDR alone is not enough.

    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
    except (AttributeError, OSError):
        pass

    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.bind(('', port))
    except OSError as e:
        logger.warning('discovery limited to this process, cannot bind UDP port %d: %s', port, e)
        sock.close()
        return None

    sock.settimeout(Discovery.timeout)
    return sock


def _unique(sequence):
    """ Remove duplicates from *sequence*, preserving the original order. """

    seen = set()
    unique = list()

    for item in sequence:
        if item in seen:
            continue
        seen.add(item)
        unique.append(item)

    return unique



_instances = dict()
_instances_lock = threading.Lock()


def get(settings):
    """ Factory function for a :class:`Discovery` instance. All nodes in a
        process that share a partition and discovery port share the same
        instance.
    """

    key = (settings.partition, settings.discovery_port)

    with _instances_lock:
        try:
            instance = _instances[key]
        except KeyError:
            instance = Discovery(settings)
            _instances[key] = instance

    return instance


def shutdown():

    with _instances_lock:
        instances = list(_instances.values())
        _instances.clear()

    for instance in instances:
        instance.stop()


atexit.register(shutdown)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
