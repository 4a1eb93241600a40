"""Introspection of remote bus objects."""

import typing as t
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from dbus_next.errors import InvalidIntrospectionError
from dbus_next.introspection import Node

from .caller import MethodCaller, Outcome, SendMode
from .errors import ProtocolError
from .pending import PendingCall
from .transport import MethodCall, Reply

INTROSPECTABLE_INTERFACE = "org.freedesktop.DBus.Introspectable"
INTROSPECT_METHOD = "Introspect"
INTROSPECT_REPLY_SIGNATURE = "s"


@dataclass(frozen=True)
class InterfaceSummary:
    """Member counts of one introspected interface."""

    name: str
    methods: int
    signals: int
    properties: int


@dataclass(frozen=True)
class IntrospectionResult:
    """XML description returned by an object."""

    destination: str
    path: str
    xml: str

    def parse(self) -> Node:
        """Parse the XML into a dbus-next node tree.

        Raises:
            ProtocolError: If the XML is not valid introspection data
        """
        try:
            return Node.parse(self.xml)
        except (InvalidIntrospectionError, ET.ParseError) as e:
            raise ProtocolError(f"Invalid introspection data from {self.destination}: {e}") from e

    def interfaces(self) -> t.List[InterfaceSummary]:
        node = self.parse()
        return [
            InterfaceSummary(
                name=iface.name,
                methods=len(iface.methods),
                signals=len(iface.signals),
                properties=len(iface.properties),
            )
            for iface in node.interfaces
        ]

    def children(self) -> t.List[str]:
        """Names of the child nodes below the introspected path."""
        return [child.name for child in self.parse().nodes if child.name]


def introspect_call(destination: str, path: str) -> MethodCall:
    return MethodCall(
        destination=destination,
        path=path,
        interface=INTROSPECTABLE_INTERFACE,
        member=INTROSPECT_METHOD,
    )


class Introspector(MethodCaller):
    """Calls org.freedesktop.DBus.Introspectable.Introspect."""

    def introspect(
        self,
        destination: str,
        path: str,
        mode: SendMode = SendMode.SYNC,
        callback: t.Optional[t.Callable[[Outcome], None]] = None,
    ) -> t.Union[IntrospectionResult, PendingCall[IntrospectionResult]]:
        """Fetch the introspection XML of ``path`` on ``destination``.

        Args:
            destination: Bus name owning the object
            path: Object path to introspect
            mode: Block for the reply or return a pending handle
            callback: Called once with the result or failure (async only)

        Returns:
            IntrospectionResult in sync mode, PendingCall in async mode
        """
        call = introspect_call(destination, path)

        def parse(reply: Reply) -> IntrospectionResult:
            return IntrospectionResult(destination=destination, path=path, xml=reply.body[0])

        if mode is SendMode.SYNC:
            return self._call_sync(call, INTROSPECT_REPLY_SIGNATURE, parse)
        return self._call_async(call, INTROSPECT_REPLY_SIGNATURE, parse, callback)
