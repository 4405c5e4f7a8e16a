""" Runtime settings for mbus nodes and commands. Everything here is read
    from the environment; there is no configuration file. A fresh
    :class:`Settings` instance reflects the environment at the time it is
    created, which is normally when a node is constructed.
"""

import os


default_partition = ''
default_discovery_port = 11319
default_ip = '127.0.0.1'
default_discovery_wait = 0.5
default_pub_delay = 0.8

heartbeat_interval = 1
expiration = 3


class ConfigError(ValueError):
    """ An environment variable holds a value that cannot be used. """
    pass


class Settings:
    """ A snapshot of the environment-driven settings.

        :ivar partition: Discovery partition; nodes ignore peers announcing
            any other partition.
        :ivar discovery_port: UDP port used for broadcast discovery.
        :ivar ip: Address local sockets bind to, and advertise to peers.
        :ivar discovery_wait: Seconds a new node listens for peers before
            answering its first discovery query.
        :ivar pub_delay: Seconds the publish command waits between advertising
            a topic and publishing on it.
        :ivar verbose: True if debug logging was requested.
    """

    def __init__(self, environ=None):

        if environ is None:
            environ = os.environ

        self.partition = environ.get('MBUS_PARTITION', default_partition)
        self.discovery_port = _integer(environ, 'MBUS_DISCOVERY_PORT', default_discovery_port)
        self.ip = environ.get('MBUS_IP', default_ip) or default_ip
        self.discovery_wait = _number(environ, 'MBUS_DISCOVERY_WAIT', default_discovery_wait)
        self.pub_delay = _number(environ, 'MBUS_PUB_DELAY', default_pub_delay)

        verbose = environ.get('MBUS_VERBOSE', '')
        self.verbose = verbose.lower() in ('1', 'true', 'yes', 'on')


    def __repr__(self):
        return 'Settings(partition=%r, discovery_port=%d, ip=%r)' % (self.partition, self.discovery_port, self.ip)


# end of class Settings



def get(environ=None):
    """ Return a new :class:`Settings` instance for the current environment.
    """

    return Settings(environ)


def _integer(environ, name, default):

    try:
        value = environ[name]
    except KeyError:
        return default

    try:
        return int(value)
    except ValueError:
        raise ConfigError('%s must be an integer, not %r' % (name, value))


def _number(environ, name, default):

    try:
        value = environ[name]
    except KeyError:
        return default

    try:
        value = float(value)
    except ValueError:
        raise ConfigError('%s must be a number, not %r' % (name, value))

    if value < 0:
        raise ConfigError('%s must not be negative: %r' % (name, value))

    return value


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
