"""Transport layer: the ZeroMQ-backed node and its discovery."""

from .base import (
    TransportError,
    TransportPortError,
    ProtocolError,
)

from . import discovery
from . import framing
from . import publish
from . import request

from .node import ZmqNode, ZmqPublisher
