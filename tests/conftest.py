"""Shared fixtures: stub transports standing in for the message bus."""

from pathlib import Path

import pytest
from dbus_next.signature import SignatureTree

from dbusdemo.bus.transport import Reply
from dbusdemo.config import DemoConfig, save_config
from dbusdemo.notify.models import NotificationRequest


class StubTransport:
    """In-memory transport with a hand-cranked event loop.

    Replies to async calls and ``call_soon`` tasks are queued and only run
    when :meth:`run_pending` is called, like a main loop iteration.
    """

    def __init__(self, reply=None, error=None, reentrant=False):
        self.reply = reply
        self.error = error
        self.reentrant = reentrant
        self.calls = []
        self.timeouts = []
        self.closed = False
        self._replies = []
        self._soon = []

    def call_sync(self, call, timeout_ms=None):
        self._record(call, timeout_ms)
        if self.error is not None:
            raise self.error
        return self.reply

    def call_async(self, call, callback, timeout_ms=None):
        self._record(call, timeout_ms)
        if self.reentrant:
            callback(self.reply, self.error)
        else:
            self._replies.append(callback)

    def call_soon(self, fn):
        self._soon.append(fn)

    def run_pending(self):
        while self._soon or self._replies:
            if self._soon:
                self._soon.pop(0)()
            else:
                self._replies.pop(0)(self.reply, self.error)

    def wait(self, pending):
        self.run_pending()

    def close(self):
        self.closed = True

    def _record(self, call, timeout_ms):
        # Conformant peer: refuses bodies that do not match their signature
        SignatureTree(call.signature).verify(list(call.body))
        self.calls.append(call)
        self.timeouts.append(timeout_ms)


@pytest.fixture
def notify_reply():
    return Reply("u", (42,))


@pytest.fixture
def stub_transport(notify_reply):
    return StubTransport(reply=notify_reply)


@pytest.fixture
def hello_request():
    return NotificationRequest(
        app_name="app_name",
        replaces_id=-1,
        icon="",
        summary="D-Bus Notification",
        body="Hello World Message",
        actions=[],
        hints={"urgency": 1},
        expire_timeout=-1,
    )


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / "config.yaml"
    save_config(DemoConfig(), path)
    return path


@pytest.fixture
def transport_factory():
    """Build stub transports with custom replies or failures."""
    return StubTransport
