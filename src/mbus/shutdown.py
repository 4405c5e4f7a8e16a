""" Cancellation for commands that block indefinitely. A :class:`Token`
    is handed to whatever needs to wait; cancelling the token releases every
    waiter. The process-wide token is cancelled by SIGINT or SIGTERM once
    :func:`install` has been called.
"""

import signal
import threading


class Token:
    """ A one-shot cancellation signal. Once cancelled, a token stays
        cancelled; create a new one for a new wait.
    """

    def __init__(self):
        self.event = threading.Event()


    def cancel(self):
        self.event.set()


    def cancelled(self):
        return self.event.is_set()


    def wait(self, timeout=None):
        """ Block until the token is cancelled, or until *timeout* seconds
            elapse. Returns True if the token was cancelled.
        """

        return self.event.wait(timeout)


# end of class Token



process = Token()
_installed = False


def install(signals=(signal.SIGINT, signal.SIGTERM)):
    """ Arrange for the process-wide token to be cancelled when any of the
        requested *signals* is delivered. This must be called from the main
        thread; repeated calls are a no-op.
    """

    global _installed

    if _installed:
        return

    for signum in signals:
        signal.signal(signum, _handler)

    _installed = True


def _handler(signum, frame):
    process.cancel()


def wait_for_shutdown(token=None):
    """ Block the calling thread until *token* is cancelled. If no token is
        specified, wait on the process-wide token.
    """

    if token is None:
        token = process

    token.wait()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
