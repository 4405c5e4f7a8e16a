"""The ZeroMQ implementation of :class:`mbus.node.Node`."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from .. import config
from .. import msgs
from ..node import MessagePublisher, Node, Publisher, ServicePublisher
from . import discovery as discovery_module
from . import publish
from . import request as request_module
from .base import TransportPortError

logger = logging.getLogger(__name__)


class ZmqPublisher(Publisher):
    """Publisher handle bound to one topic and one message type."""

    def __init__(self, server: publish.Server, topic: str, msg_type: str):
        self.server = server
        self.topic = topic
        self.msg_type = msg_type

    def publish(self, message) -> bool:
        try:
            name = msgs.type_name(message)
        except msgs.FactoryError as e:
            logger.error("cannot publish on %s: %s", self.topic, e)
            return False

        if name != self.msg_type:
            logger.error("topic %s is advertised as %s, not %s", self.topic, self.msg_type, name)
            return False

        return self.server.send(self.topic, message)


class ZmqNode(Node):
    """A node whose sockets are created on first use.

    *settings* default to the current environment; *discovery* defaults to
    the process-wide :class:`mbus.transport.discovery.Discovery` for the
    configured partition.
    """

    def __init__(self, settings: Optional[config.Settings] = None, discovery=None):
        if settings is None:
            settings = config.get()
        if discovery is None:
            discovery = discovery_module.get(settings)

        self.settings = settings
        self.discovery = discovery
        self.id = uuid.uuid4().hex

        self._lock = threading.Lock()
        self._publisher: Optional[publish.Server] = None
        self._subscriber: Optional[publish.Subscriber] = None
        self._server: Optional[request_module.Server] = None
        self._clients: Dict[str, request_module.Client] = {}
        self._closed = False

    # --- discovery ---

    def topic_list(self) -> List[str]:
        self.discovery.wait_ready()
        return self.discovery.topic_list()

    def topic_info(self, topic: str) -> List[MessagePublisher]:
        self.discovery.wait_ready()
        return self.discovery.topic_info(topic)

    def service_list(self) -> List[str]:
        self.discovery.wait_ready()
        return self.discovery.service_list()

    def service_info(self, service: str) -> List[ServicePublisher]:
        self.discovery.wait_ready()
        return self.discovery.service_info(service)

    # --- publish/subscribe ---

    def advertise(self, topic: str, msg_type: str) -> Optional[Publisher]:
        try:
            server = self._publish_server()
        except TransportPortError as e:
            logger.error("cannot advertise %s: %s", topic, e)
            return None

        if not self.discovery.advertise_topic(self.id, topic, server.address, msg_type):
            logger.error("topic %s is already advertised by this node with another type", topic)
            return None

        return ZmqPublisher(server, topic, msg_type)

    def subscribe(self, topic: str, callback: Callable) -> bool:
        with self._lock:
            if self._closed:
                return False
            if self._subscriber is None:
                self._subscriber = publish.Subscriber(self.discovery)
            subscriber = self._subscriber

        return subscriber.subscribe(topic, callback)

    # --- request/response ---

    def request(self, service: str, request, timeout: int, response) -> Tuple[bool, bool]:
        deadline = time.monotonic() + timeout / 1000.0
        req_type = msgs.type_name(request)
        rep_type = msgs.type_name(response)

        def provider():
            for candidate in self.discovery.service_info(service):
                if candidate.req_type == req_type and candidate.rep_type == rep_type:
                    return candidate
            return None

        found = self.discovery.wait_for(provider, _remaining(deadline))
        if found is None:
            logger.debug("no provider of %s [%s, %s] found in time", service, req_type, rep_type)
            return False, False

        client = self._client(found.address)
        pending = client.send(service, request, rep_type)
        reply = pending.wait(_remaining(deadline))

        if reply is None:
            client.forget(pending)
            return False, False

        if reply.result:
            try:
                msgs.fill(response, msgs.decode(reply.rep_type, reply.payload))
            except msgs.FactoryError as e:
                logger.error("unusable reply from %s: %s", service, e)
                return True, False

        return True, reply.result

    def advertise_service(self, service: str, handler: Callable, req_type: str, rep_type: str) -> bool:
        try:
            req_type = msgs.type_name(msgs.resolve(req_type))
            rep_type = msgs.type_name(msgs.resolve(rep_type))
        except msgs.FactoryError as e:
            logger.error("cannot advertise service %s: %s", service, e)
            return False

        try:
            server = self._request_server()
        except TransportPortError as e:
            logger.error("cannot advertise service %s: %s", service, e)
            return False

        if service in server.services:
            return False

        server.add(service, handler, req_type, rep_type)

        if not self.discovery.advertise_service(self.id, service, server.address, req_type, rep_type):
            del server.services[service]
            return False

        return True

    # --- lifecycle ---

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True

            closing = [self._subscriber, self._publisher, self._server]
            closing.extend(self._clients.values())
            self._clients.clear()

        self.discovery.withdraw(self.id)

        for resource in closing:
            if resource is not None:
                resource.close()

    def _publish_server(self) -> publish.Server:
        with self._lock:
            if self._publisher is None:
                self._publisher = publish.Server(self.settings.ip)
            return self._publisher

    def _request_server(self) -> request_module.Server:
        with self._lock:
            if self._server is None:
                self._server = request_module.Server(self.settings.ip)
            return self._server

    def _client(self, address: str) -> request_module.Client:
        with self._lock:
            client = self._clients.get(address)
            if client is None:
                client = request_module.Client(address)
                self._clients[address] = client
            return client


def _remaining(deadline: float) -> float:
    return max(0.0, deadline - time.monotonic())
