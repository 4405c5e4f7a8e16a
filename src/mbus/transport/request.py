"""ZeroMQ request/response transport.

Clients issue requests from a DEALER socket; the node hosting a service
answers from a ROUTER socket. Replies are correlated with the original
request by an identification number unique within the process.
"""

from __future__ import annotations

import concurrent.futures
import itertools
import logging
import queue
import threading
from typing import Callable, Dict, NamedTuple, Optional

import zmq

from .. import msgs
from .base import ProtocolError
from .framing import (
    Reply,
    from_reply_frames,
    from_request_frames,
    to_reply_frames,
    to_request_frames,
)
from .publish import bind_any

logger = logging.getLogger(__name__)

zmq_context = zmq.Context()


class PendingRequest:
    """Client-side helper that provides REP synchronization."""

    def __init__(self, id: bytes, frames):
        self.id = id
        self.frames = frames
        self.response: Optional[Reply] = None
        self.rep_event = threading.Event()

    def wait(self, timeout: Optional[float]) -> Optional[Reply]:
        """Block until the reply arrives or *timeout* seconds pass. The
        reply is returned; it is None if the request is still pending.
        """

        self.rep_event.wait(timeout)
        return self.response

    def _complete(self, response: Reply) -> None:
        self.response = response
        self.rep_event.set()


class Client:
    """Issue requests via a ZeroMQ DEALER socket and receive responses.
    Maintains a persistent connection to a single server *address*.
    """

    def __init__(self, address: str):
        self.address = address

        identity = f"request.Client.{id(self)}".encode()

        self.socket = zmq_context.socket(zmq.DEALER)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.identity = identity
        self.socket.connect(address)

        self._outbox = queue.SimpleQueue()

        internal = f"inproc://request.Client:signal:{id(self)}"
        self._signal_rx = zmq_context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = zmq_context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)
        self._signal_lock = threading.Lock()

        self._pending: Dict[bytes, PendingRequest] = {}
        self.shutdown = False
        self._thread = threading.Thread(target=self.run, daemon=True)
        self._thread.start()

    def _handle_incoming(self, parts) -> None:
        try:
            reply = from_reply_frames(parts)
        except (ProtocolError, UnicodeDecodeError) as e:
            logger.warning("discarding reply from %s: %s", self.address, e)
            return

        pending = self._pending.pop(reply.id, None)
        if pending is None:
            # The original caller gave up on this request.
            return

        pending._complete(reply)

    def _handle_outgoing(self) -> None:
        # Clear one signal and send one request.
        self._signal_rx.recv(flags=zmq.NOBLOCK)

        try:
            pending = self._outbox.get(block=False)
        except queue.Empty:
            return

        if pending is None:
            return

        self._pending[pending.id] = pending
        self.socket.send_multipart(pending.frames)

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        while not self.shutdown:
            for active, _flag in poller.poll(10000):
                try:
                    if active == self._signal_rx:
                        self._handle_outgoing()
                    elif active == self.socket:
                        self._handle_incoming(self.socket.recv_multipart())
                except Exception:
                    logger.exception("request client failed")

        self.socket.close()
        self._signal_rx.close()

    def send(self, service: str, request, rep_type: str) -> PendingRequest:
        """Queue *request* for *service*; the caller decides how long to
        wait on the returned :class:`PendingRequest`.
        """

        id = _id_next()
        frames = to_request_frames(id, service, msgs.type_name(request), rep_type, msgs.encode(request))
        pending = PendingRequest(id, frames)

        self._outbox.put(pending)
        with self._signal_lock:
            self._signal_tx.send(b"")

        return pending

    def forget(self, pending: PendingRequest) -> None:
        """Stop tracking a request whose caller is no longer waiting."""

        self._pending.pop(pending.id, None)

    def close(self) -> None:
        if self.shutdown:
            return

        self.shutdown = True
        self._outbox.put(None)
        with self._signal_lock:
            self._signal_tx.send(b"")
        self._thread.join(1)
        self._signal_tx.close()


class Service(NamedTuple):
    handler: Callable
    req_type: str
    rep_type: str


class Server:
    """Receive requests via a ZeroMQ ROUTER socket, respond to them.

    Handlers run on a pool of worker threads so that one slow service does
    not hold up the others; replies are queued back to the thread that owns
    the socket.
    """

    worker_count = 8

    def __init__(self, address: str):
        self.socket = zmq_context.socket(zmq.ROUTER)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.port = bind_any(self.socket, address)
        self.address = f"tcp://{address}:{self.port}"

        self.services: Dict[str, Service] = {}

        self._responses = queue.SimpleQueue()

        internal = f"inproc://request.Server:signal:{id(self)}"
        self._signal_rx = zmq_context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = zmq_context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)
        self._signal_lock = threading.Lock()

        self.shutdown = False
        self.workers = concurrent.futures.ThreadPoolExecutor(max_workers=self.worker_count)
        self.thread = threading.Thread(target=self.run, daemon=True)
        self.thread.start()

    def add(self, service: str, handler: Callable, req_type: str, rep_type: str) -> None:
        self.services[service] = Service(handler, req_type, rep_type)

    def send(self, frames) -> None:
        self._responses.put(frames)
        with self._signal_lock:
            self._signal_tx.send(b"")

    def _rep_outgoing(self) -> None:
        self._signal_rx.recv(flags=zmq.NOBLOCK)

        try:
            frames = self._responses.get(block=False)
        except queue.Empty:
            return

        if frames is None:
            return

        self.socket.send_multipart(frames)

    def _req_incoming(self, parts) -> None:
        try:
            call = from_request_frames(parts)
        except (ProtocolError, UnicodeDecodeError) as e:
            logger.warning("discarding request: %s", e)
            return

        service = self.services.get(call.service)
        response = None
        result = False

        if service is None:
            logger.warning("request for unknown service %s", call.service)
        elif call.req_type != service.req_type or call.rep_type != service.rep_type:
            logger.warning(
                "request for %s with types [%s, %s], expected [%s, %s]",
                call.service, call.req_type, call.rep_type, service.req_type, service.rep_type,
            )
        else:
            try:
                request = msgs.decode(call.req_type, call.payload)
                response, result = service.handler(request)
            except Exception:
                logger.exception("service %s failed", call.service)
                response = None
                result = False

        if response is None:
            payload = b""
        else:
            payload = msgs.encode(response)

        self.send(to_reply_frames(call.ident, call.id, bool(result), call.rep_type, payload))

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        while not self.shutdown:
            for active, _flag in poller.poll(10000):
                try:
                    if active == self._signal_rx:
                        self._rep_outgoing()
                    elif active == self.socket:
                        parts = tuple(self.socket.recv_multipart())
                        self.workers.submit(self._req_incoming, parts)
                except Exception:
                    logger.exception("request server failed")

        self.socket.close()
        self._signal_rx.close()

    def close(self) -> None:
        if self.shutdown:
            return

        self.shutdown = True
        self.workers.shutdown(wait=False)
        self.send(None)
        self.thread.join(1)
        self._signal_tx.close()


_id_min = 0
_id_max = 0xFFFFFFFF
_id_lock = threading.Lock()
_id_ticker = itertools.count(_id_min)


def _id_next() -> bytes:
    """Return the next request identification number."""

    global _id_ticker

    with _id_lock:
        id = next(_id_ticker)

        if id >= _id_max:
            _id_ticker = itertools.count(_id_min)

    return b"%08x" % (id)
