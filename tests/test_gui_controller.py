"""Tests for the demo window's button actions."""

import pytest

from dbusdemo.bus.errors import TransportFailure
from dbusdemo.bus.transport import Reply
from dbusdemo.config import DemoConfig
from dbusdemo.gui.app import DemoController
from dbusdemo.notify.models import NotificationResult

APP_XML = """<node>
  <interface name="org.freedesktop.DBus.Introspectable">
    <method name="Introspect">
      <arg type="s" name="xml_data" direction="out"/>
    </method>
  </interface>
</node>
"""


@pytest.fixture
def status_lines():
    return []


def make_controller(transport, status_lines, unique_name=":1.42", config=None):
    return DemoController(
        config or DemoConfig(),
        transport,
        lambda: unique_name,
        status=status_lines.append,
    )


class TestIntrospectButtons:
    """Test the synchronous and asynchronous introspection buttons."""

    def test_sync_targets_own_object(self, transport_factory, status_lines):
        transport = transport_factory(reply=Reply("s", (APP_XML,)))
        controller = make_controller(transport, status_lines)

        result = controller.introspect_sync()

        assert result is not None
        call = transport.calls[0]
        assert call.destination == ":1.42"
        assert call.path == "/org/gtk/example"
        assert status_lines == ["/org/gtk/example: 1 interfaces"]

    def test_async_reports_on_completion(self, transport_factory, status_lines):
        transport = transport_factory(reply=Reply("s", (APP_XML,)))
        controller = make_controller(transport, status_lines)

        pending = controller.introspect_async()

        assert pending is not None
        assert status_lines == []

        transport.run_pending()

        assert status_lines == ["/org/gtk/example: 1 interfaces"]

    def test_not_registered(self, transport_factory, status_lines):
        transport = transport_factory(reply=Reply("s", (APP_XML,)))
        controller = make_controller(transport, status_lines, unique_name=None)

        assert controller.introspect_sync() is None
        assert controller.introspect_async() is None
        assert transport.calls == []

    def test_sync_failure_is_reported(self, transport_factory, status_lines):
        transport = transport_factory(error=TransportFailure("no reply"))
        controller = make_controller(transport, status_lines)

        assert controller.introspect_sync() is None
        assert status_lines == ["Synchronous introspection failed: no reply"]


class TestNotificationButton:
    """Test the notification button."""

    def test_sends_default_notification(self, transport_factory, status_lines):
        transport = transport_factory(reply=Reply("u", (42,)))
        controller = make_controller(transport, status_lines)

        pending = controller.notify()
        transport.run_pending()

        assert pending.result() == NotificationResult(id=42)
        assert status_lines == ["Notification id 42"]

        body = transport.calls[0].body
        assert body[0] == "app_name"
        assert body[3] == "D-Bus Notification"
        assert body[4] == "Hello World Message"
        assert body[6]["urgency"].value == 1

    def test_failure_is_reported(self, transport_factory, status_lines):
        transport = transport_factory(error=TransportFailure("daemon gone"))
        controller = make_controller(transport, status_lines)

        controller.notify()
        transport.run_pending()

        assert status_lines == ["Notification failed: daemon gone"]

    def test_invalid_defaults_are_reported(self, transport_factory, status_lines):
        config = DemoConfig()
        config.notification.summary = "bad\x00summary"
        transport = transport_factory(reply=Reply("u", (42,)))
        controller = make_controller(transport, status_lines, config=config)

        assert controller.notify() is None
        assert transport.calls == []
        assert status_lines[0].startswith("Notification failed")


class TestBlockingIntrospection:
    """Test that a blocking introspection cannot be re-entered."""

    def test_click_during_wait_is_ignored(self, transport_factory, status_lines):
        transport = transport_factory(reply=Reply("s", (APP_XML,)))
        busy = []
        controller = make_controller(transport, status_lines)
        controller.busy = busy.append
        nested = []
        call_sync = transport.call_sync

        def click_again_while_waiting(call, timeout_ms=None):
            # The nested main loop dispatches another click before the reply
            nested.append(controller.introspect_sync())
            return call_sync(call, timeout_ms)

        transport.call_sync = click_again_while_waiting

        result = controller.introspect_sync()

        assert result is not None
        assert nested == [None]
        assert len(transport.calls) == 1
        assert busy == [True, False]

    def test_guard_released_after_failure(self, transport_factory, status_lines):
        transport = transport_factory(error=TransportFailure("no reply"))
        busy = []
        controller = make_controller(transport, status_lines)
        controller.busy = busy.append

        assert controller.introspect_sync() is None
        transport.error = None
        transport.reply = Reply("s", (APP_XML,))

        assert controller.introspect_sync() is not None
        assert len(transport.calls) == 2
        assert busy == [True, False, True, False]
