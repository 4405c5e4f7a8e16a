import threading
import time

import mbus


def test_token():

    token = mbus.shutdown.Token()
    assert token.cancelled() == False
    assert token.wait(0.01) == False

    token.cancel()
    assert token.cancelled() == True
    assert token.wait(0.01) == True

    # Cancelling twice is harmless.
    token.cancel()
    assert token.cancelled() == True


def test_wait_for_shutdown():

    token = mbus.shutdown.Token()
    released = threading.Event()

    def waiter():
        mbus.shutdown.wait_for_shutdown(token)
        released.set()

    thread = threading.Thread(target=waiter)
    thread.daemon = True
    thread.start()

    time.sleep(0.1)
    assert released.is_set() == False

    begin = time.time()
    token.cancel()
    assert released.wait(1) == True
    assert time.time() - begin < 0.5


def test_wait_after_cancel():

    token = mbus.shutdown.Token()
    token.cancel()

    begin = time.time()
    mbus.shutdown.wait_for_shutdown(token)
    assert time.time() - begin < 0.1


def test_handler(monkeypatch):

    token = mbus.shutdown.Token()
    monkeypatch.setattr(mbus.shutdown, 'process', token)

    mbus.shutdown._handler(2, None)
    assert token.cancelled() == True


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
