""" The ``mbus`` command-line tool. Each sub-command maps onto one function
    in :mod:`mbus.commands`; options default to None so that a missing
    option reaches the command, which reports it by name.

    Examples::

        mbus topic-list
        mbus topic-info -t /chatter
        mbus topic-pub -t /chatter -m StringMsg -p 'data: "hello"'
        mbus topic-echo -t /chatter -d 5
        mbus service-list
        mbus service-info -s /echo
        mbus service-req -s /echo --reqtype StringMsg --reptype StringMsg \\
            --timeout 1000 -r 'data: "ping"'
"""

import argparse
import logging
import sys

from . import commands
from . import config
from . import shutdown


def parser():
    """ Return the :class:`argparse.ArgumentParser` for the tool. """

    top = argparse.ArgumentParser(
        prog='mbus',
        description='Inspect and interact with topics and services on the message bus.',
    )
    top.add_argument(
        '--version', action='version',
        version='%(prog)s ' + commands.version(),
    )
    top.add_argument(
        '-v', '--verbose', action='store_true',
        help='Log debugging information to standard error',
    )

    sub = top.add_subparsers(dest='command', metavar='command')
    sub.required = True

    sub.add_parser('topic-list', help='List all known topics')

    info = sub.add_parser('topic-info', help='Describe the publishers of a topic')
    info.add_argument('-t', '--topic', help='Topic name')

    sub.add_parser('service-list', help='List all known services')

    info = sub.add_parser('service-info', help='Describe the providers of a service')
    info.add_argument('-s', '--service', help='Service name')

    pub = sub.add_parser('topic-pub', help='Publish one message on a topic')
    pub.add_argument('-t', '--topic', help='Topic name')
    pub.add_argument('-m', '--msgtype', help='Message type, for example StringMsg')
    pub.add_argument('-p', '--msg', help='Message content, for example \'data: "hello"\'')

    req = sub.add_parser('service-req', help='Call a service and print the response')
    req.add_argument('-s', '--service', help='Service name')
    req.add_argument('--reqtype', help='Request message type')
    req.add_argument('--reptype', help='Response message type')
    req.add_argument('--timeout', type=int, help='Milliseconds to wait for the response')
    req.add_argument('-r', '--req', help='Request message content')

    echo = sub.add_parser('topic-echo', help='Print the messages received on a topic')
    echo.add_argument('-t', '--topic', help='Topic name')
    echo.add_argument(
        '-d', '--duration', type=float, default=-1,
        help='Seconds to listen; negative means until interrupted (default)',
    )

    sub.add_parser('msg-list', help='List the available message types')

    return top


def main(argv=None):

    arguments = parser().parse_args(argv)

    try:
        settings = config.get()
    except config.ConfigError as e:
        print(e, file=sys.stderr)
        return 1

    if arguments.verbose or settings.verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    command = arguments.command

    if command == 'topic-list':
        commands.topic_list()
    elif command == 'topic-info':
        commands.topic_info(arguments.topic)
    elif command == 'service-list':
        commands.service_list()
    elif command == 'service-info':
        commands.service_info(arguments.service)
    elif command == 'topic-pub':
        commands.topic_pub(arguments.topic, arguments.msgtype, arguments.msg)
    elif command == 'service-req':
        commands.service_req(
            arguments.service, arguments.reqtype, arguments.reptype,
            arguments.timeout, arguments.req,
        )
    elif command == 'topic-echo':
        shutdown.install()
        commands.topic_echo(arguments.topic, arguments.duration)
    elif command == 'msg-list':
        commands.msg_list()

    return 0


if __name__ == '__main__':
    sys.exit(main())


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
