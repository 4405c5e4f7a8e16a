""" Python implementation of the mbus command-line tools: discovery of
    topics and services, publishing and echoing messages, and issuing
    service requests, all on top of a ZeroMQ-backed node.
"""

# Utility components.

from . import json
from . import config
from . import release
from . import shutdown

__version__ = release.string()

# Submodules used by multiple other components.

from . import msgs
from . import node
from . import transport

# Primary public-facing interfaces.

from . import commands
from .commands import Outcome, version
from .node import MessagePublisher, Node, ServicePublisher


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
