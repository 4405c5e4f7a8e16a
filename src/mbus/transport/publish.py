"""ZeroMQ publish/subscribe transport."""

from __future__ import annotations

import atexit
import logging
import queue
import threading
from typing import Callable, Dict, List, Set

import zmq

from .. import msgs
from .base import ProtocolError, TransportPortError
from .framing import from_pub_frames, to_pub_frames, topic_prefix

logger = logging.getLogger(__name__)

minimum_port = 10139
maximum_port = 13679
zmq_context = zmq.Context()

# Milliseconds.
linger = 1000


def bind_any(socket: zmq.Socket, address: str) -> int:
    """Bind *socket* to the first available port in the default range."""

    for port in range(minimum_port, maximum_port + 1):
        try:
            socket.bind(f"tcp://{address}:{port}")
        except zmq.ZMQError:
            continue
        return port

    raise TransportPortError(
        f"no ports available in range {minimum_port}:{maximum_port}"
    )


class Server:
    """PUB server.

    ZeroMQ sockets are not thread-safe; :func:`send` may be called from any
    thread, so outgoing messages are queued and handed to the background
    thread that owns the socket.
    """

    def __init__(self, address: str):
        self.socket = zmq_context.socket(zmq.PUB)
        # Give queued messages a bounded chance to reach subscribers when the
        # process exits right after publishing.
        self.socket.setsockopt(zmq.LINGER, linger)
        self.port = bind_any(self.socket, address)
        self.address = f"tcp://{address}:{self.port}"

        self._queue = queue.SimpleQueue()

        internal = f"inproc://publish.Server:signal:{id(self)}"
        self._sig_rx = zmq_context.socket(zmq.PAIR)
        self._sig_rx.bind(internal)
        self._sig_tx = zmq_context.socket(zmq.PAIR)
        self._sig_tx.connect(internal)
        self._sig_lock = threading.Lock()

        self.shutdown = False
        self.thread = threading.Thread(target=self.run, daemon=True)
        self.thread.start()

    def send(self, topic: str, message) -> bool:
        """Queue *message* for publication on *topic*."""

        if self.shutdown:
            return False

        frames = to_pub_frames(topic, msgs.type_name(message), msgs.encode(message))
        self._queue.put(frames)
        self._signal()
        return True

    def _signal(self) -> None:
        # The PAIR socket is shared by every thread calling send().
        with self._sig_lock:
            self._sig_tx.send(b"")

    def _send_one(self) -> None:
        self._sig_rx.recv(flags=zmq.NOBLOCK)

        try:
            frames = self._queue.get(block=False)
        except queue.Empty:
            return

        if frames is None:
            return

        self.socket.send_multipart(frames)

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self._sig_rx, zmq.POLLIN)

        while not self.shutdown:
            for active, _flag in poller.poll(10000):
                if active == self._sig_rx:
                    try:
                        self._send_one()
                    except Exception:
                        logger.exception("publish failed")

        # Flush anything queued before shutdown was requested.
        while True:
            try:
                frames = self._queue.get(block=False)
            except queue.Empty:
                break
            if frames is not None:
                self.socket.send_multipart(frames)

        self.socket.close()
        self._sig_rx.close()

    def close(self) -> None:
        if self.shutdown:
            return

        self.shutdown = True
        self._queue.put(None)
        self._signal()
        self.thread.join(1)
        self._sig_tx.close()


class Subscriber:
    """SUB client.

    One SUB socket receives every topic this node subscribes to; it connects
    to each publisher address discovery reports for those topics. Like
    :class:`Server`, all socket operations happen on the background thread,
    other threads only queue requests for it.
    """

    def __init__(self, discovery):
        self.discovery = discovery
        self.callbacks: Dict[str, List[Callable]] = {}
        self.connected: Set[str] = set()
        self.lock = threading.Lock()

        self.socket = zmq_context.socket(zmq.SUB)
        self.socket.setsockopt(zmq.LINGER, 0)

        self._queue = queue.SimpleQueue()

        internal = f"inproc://publish.Subscriber:signal:{id(self)}"
        self._sig_rx = zmq_context.socket(zmq.PAIR)
        self._sig_rx.bind(internal)
        self._sig_tx = zmq_context.socket(zmq.PAIR)
        self._sig_tx.connect(internal)
        self._sig_lock = threading.Lock()

        self.shutdown = False
        self.thread = threading.Thread(target=self.run, daemon=True)
        self.thread.start()

        self.discovery.watch(self.refresh)

    def subscribe(self, topic: str, callback: Callable) -> bool:
        if self.shutdown:
            return False

        with self.lock:
            first = topic not in self.callbacks
            self.callbacks.setdefault(topic, []).append(callback)

        if first:
            self._command(("subscribe", topic))

        self.refresh()
        return True

    def refresh(self) -> None:
        """Connect to any newly discovered publishers of our topics."""

        with self.lock:
            topics = list(self.callbacks)

        addresses = []
        for topic in topics:
            for publisher in self.discovery.topic_info(topic):
                addresses.append(publisher.address)

        for address in addresses:
            if address not in self.connected:
                self._command(("connect", address))

    def _command(self, command) -> None:
        if self.shutdown:
            return

        self._queue.put(command)
        with self._sig_lock:
            self._sig_tx.send(b"")

    def _handle_command(self) -> None:
        self._sig_rx.recv(flags=zmq.NOBLOCK)

        try:
            command = self._queue.get(block=False)
        except queue.Empty:
            return

        if command is None:
            return

        action, argument = command

        if action == "subscribe":
            self.socket.setsockopt(zmq.SUBSCRIBE, topic_prefix(argument))
        elif action == "connect" and argument not in self.connected:
            logger.debug("connecting to publisher %s", argument)
            self.socket.connect(argument)
            self.connected.add(argument)

    def _handle_incoming(self, parts) -> None:
        try:
            publication = from_pub_frames(parts)
            message = msgs.decode(publication.msg_type, publication.payload)
        except (ProtocolError, msgs.FactoryError, UnicodeDecodeError) as e:
            logger.warning("discarding message: %s", e)
            return

        with self.lock:
            callbacks = list(self.callbacks.get(publication.topic, ()))

        for callback in callbacks:
            try:
                callback(message)
            except Exception:
                logger.exception("subscriber callback failed on %s", publication.topic)

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._sig_rx, zmq.POLLIN)

        while not self.shutdown:
            for active, _flag in poller.poll(10000):
                try:
                    if active == self._sig_rx:
                        self._handle_command()
                    elif active == self.socket:
                        self._handle_incoming(self.socket.recv_multipart())
                except Exception:
                    logger.exception("subscriber failed")

        self.socket.close()
        self._sig_rx.close()

    def close(self) -> None:
        if self.shutdown:
            return

        self.discovery.unwatch(self.refresh)
        self.shutdown = True
        self._queue.put(None)
        with self._sig_lock:
            self._sig_tx.send(b"")
        self.thread.join(1)
        self._sig_tx.close()


def _cleanup() -> None:
    # Closes any socket still open and waits out its linger period, so a
    # message published just before exit is not silently dropped.
    try:
        zmq_context.destroy(linger=linger)
    except zmq.ZMQError:
        logger.debug("unable to terminate the publish context", exc_info=True)


atexit.register(_cleanup)
