"""Tests for object introspection."""

import pytest

from dbusdemo.bus.caller import SendMode
from dbusdemo.bus.errors import InvalidRequest, ProtocolError, TransportFailure
from dbusdemo.bus.introspect import (
    INTROSPECTABLE_INTERFACE,
    IntrospectionResult,
    Introspector,
)
from dbusdemo.bus.transport import Reply

APP_XML = """<!DOCTYPE node PUBLIC "-//freedesktop//DTD D-BUS Object Introspection 1.0//EN"
 "http://www.freedesktop.org/standards/dbus/1.0/introspect.dtd">
<node>
  <interface name="org.freedesktop.DBus.Introspectable">
    <method name="Introspect">
      <arg type="s" name="xml_data" direction="out"/>
    </method>
  </interface>
  <interface name="org.gtk.Application">
    <method name="Activate">
      <arg type="a{sv}" name="platform_data" direction="in"/>
    </method>
    <signal name="Changed"/>
    <property type="b" name="Busy" access="read"/>
  </interface>
  <node name="window"/>
</node>
"""


@pytest.fixture
def xml_transport(transport_factory):
    return transport_factory(reply=Reply("s", (APP_XML,)))


class TestIntrospector:
    """Test Introspect calls."""

    def test_sync_introspection(self, xml_transport):
        result = Introspector(xml_transport).introspect(":1.42", "/org/gtk/example")

        assert result.xml == APP_XML
        assert result.destination == ":1.42"
        call = xml_transport.calls[0]
        assert call.interface == INTROSPECTABLE_INTERFACE
        assert call.member == "Introspect"
        assert call.signature == ""
        assert call.body == ()

    def test_async_introspection(self, xml_transport):
        outcomes = []

        pending = Introspector(xml_transport).introspect(
            ":1.42", "/org/gtk/example", mode=SendMode.ASYNC, callback=outcomes.append
        )
        assert outcomes == []

        xml_transport.run_pending()

        assert len(outcomes) == 1
        assert outcomes[0].xml == APP_XML
        assert pending.result() is outcomes[0]

    def test_wrong_reply_signature(self, transport_factory):
        transport = transport_factory(reply=Reply("i", (1,)))

        with pytest.raises(ProtocolError):
            Introspector(transport).introspect(":1.42", "/")

    def test_transport_failure(self, transport_factory):
        transport = transport_factory(error=TransportFailure("no such object"))

        with pytest.raises(TransportFailure):
            Introspector(transport).introspect(":1.42", "/")

    @pytest.mark.parametrize(
        "destination,path",
        [("not a name", "/"), (":1.42", "relative/path"), (":1.42", "/trailing/")],
    )
    def test_invalid_address(self, xml_transport, destination, path):
        """Test malformed addresses are refused without a call."""
        with pytest.raises(InvalidRequest):
            Introspector(xml_transport).introspect(destination, path)

        assert xml_transport.calls == []


class TestIntrospectionResult:
    """Test parsing of introspection XML."""

    def test_interfaces(self):
        result = IntrospectionResult(":1.42", "/org/gtk/example", APP_XML)

        summaries = {iface.name: iface for iface in result.interfaces()}

        assert set(summaries) == {"org.freedesktop.DBus.Introspectable", "org.gtk.Application"}
        app = summaries["org.gtk.Application"]
        assert (app.methods, app.signals, app.properties) == (1, 1, 1)

    def test_children(self):
        result = IntrospectionResult(":1.42", "/org/gtk/example", APP_XML)

        assert result.children() == ["window"]

    @pytest.mark.parametrize("xml", ["<interface/>", "not xml at all"])
    def test_invalid_xml(self, xml):
        result = IntrospectionResult(":1.42", "/", xml)

        with pytest.raises(ProtocolError):
            result.interfaces()
