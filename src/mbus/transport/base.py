"""Transport-agnostic exceptions and constants shared by the ZeroMQ
implementation.
"""

from __future__ import annotations


# This is the version of the mbus on-the-wire protocol implemented here,
# identified by a single byte at the start of every multipart message.

version = b'1'


class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportPortError(TransportError):
    """No suitable port could be bound or connected."""


class ProtocolError(TransportError):
    """A peer sent something that does not follow the mbus protocol."""
