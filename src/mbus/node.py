""" The node interface. A node is the single handle a command uses to talk
    to the message bus: discovery queries, advertising and publishing,
    subscribing, and issuing requests. :class:`mbus.transport.ZmqNode` is
    the implementation used by the command-line tools; tests substitute
    their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, NamedTuple, Optional, Tuple


class MessagePublisher(NamedTuple):
    """ One publisher of a topic, as seen by discovery. """

    address: str
    msg_type: str


class ServicePublisher(NamedTuple):
    """ One provider of a service, as seen by discovery. """

    address: str
    req_type: str
    rep_type: str


class Publisher(ABC):
    """ Handle returned by :func:`Node.advertise`. """

    topic: str
    msg_type: str

    @abstractmethod
    def publish(self, message) -> bool:
        """Send *message* to every current subscriber of the topic."""


class Node(ABC):
    """ Minimal contract for a message bus node. """

    @abstractmethod
    def topic_list(self) -> List[str]:
        """Names of every topic with at least one known publisher."""

    @abstractmethod
    def topic_info(self, topic: str) -> List[MessagePublisher]:
        """Publishers currently known for *topic*."""

    @abstractmethod
    def service_list(self) -> List[str]:
        """Names of every service with at least one known provider."""

    @abstractmethod
    def service_info(self, service: str) -> List[ServicePublisher]:
        """Providers currently known for *service*."""

    @abstractmethod
    def advertise(self, topic: str, msg_type: str) -> Optional[Publisher]:
        """Announce this node as a publisher of *topic*.

        Returns None if the topic cannot be advertised, for example because
        this node already advertises it with a different message type.
        """

    @abstractmethod
    def subscribe(self, topic: str, callback: Callable) -> bool:
        """Invoke *callback* with every message received on *topic*."""

    @abstractmethod
    def request(self, service: str, request, timeout: int, response) -> Tuple[bool, bool]:
        """Call *service*, waiting at most *timeout* milliseconds.

        The *response* message is filled in place. Returns the pair
        (executed, result): whether a reply arrived in time, and if so
        whether the provider reported success.
        """

    def advertise_service(self, service: str, handler: Callable, req_type: str, rep_type: str) -> bool:
        """Offer *service*; *handler* receives the request message and
        returns a (response, result) pair. Returns False if the service
        cannot be offered; nodes that cannot host services always do.
        """

        return False

    def close(self) -> None:
        """Release any resources held by the node."""

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
