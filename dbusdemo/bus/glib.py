"""Transport running on the GLib main loop via dbus-next."""

import typing as t

from dbus_next.constants import BusType, MessageType
from dbus_next.message import Message
from tenacity import RetryError, retry, stop_after_attempt, wait_exponential

from ..util.logging import get_logger
from .errors import CallTimeout, TransportFailure
from .transport import MethodCall, Reply, ReplyCallback

logger = get_logger(__name__)

BUS_TYPES = {
    "session": BusType.SESSION,
    "system": BusType.SYSTEM,
}


def _load_glib():
    """Import GLib and the GLib flavoured message bus lazily."""
    try:
        import gi
        gi.require_version("GLib", "2.0")
        from gi.repository import GLib
        from dbus_next.glib import MessageBus
    except (ImportError, ValueError) as e:
        raise TransportFailure(
            f"GLib bindings not available: {e}. "
            "Install them with: sudo apt-get install python3-gi"
        ) from e
    return GLib, MessageBus


class GLibTransport:
    """Session or system bus connection driven by the GLib main loop.

    The connection is opened on first use. Opening it is retried with
    exponential backoff; method calls themselves are sent exactly once.
    Completion callbacks run on the thread that iterates the default main
    context, which for the GUI is the GTK main thread.

    ``call_sync`` waits in a nested main loop on the default context, so
    GTK keeps dispatching input while it blocks. Callers that must not be
    re-entered during a blocking call have to guard against it themselves;
    the demo window makes its buttons insensitive for the duration.
    """

    def __init__(
        self,
        bus_type: str = "session",
        bus_address: t.Optional[str] = None,
        connect_attempts: int = 3,
    ) -> None:
        """Initialize the transport.

        Args:
            bus_type: "session" or "system"
            bus_address: Explicit bus address, overrides ``bus_type``
            connect_attempts: How many times to try opening the connection
        """
        if bus_type not in BUS_TYPES:
            raise ValueError(f"Unknown bus type: {bus_type}")
        self.bus_type = bus_type
        self.bus_address = bus_address
        self.connect_attempts = max(1, connect_attempts)
        self._GLib, self._MessageBus = _load_glib()
        self._bus = None

    def _connect_once(self):
        bus = self._MessageBus(bus_address=self.bus_address, bus_type=BUS_TYPES[self.bus_type])
        return bus.connect_sync()

    def connect(self):
        """Open the bus connection if it is not open yet.

        Returns:
            The connected dbus-next message bus

        Raises:
            TransportFailure: If every connection attempt failed
        """
        if self._bus is not None:
            return self._bus

        connect = retry(
            stop=stop_after_attempt(self.connect_attempts),
            wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        )(self._connect_once)

        target = self.bus_address or f"{self.bus_type} bus"
        try:
            logger.debug(f"Connecting to {target}")
            self._bus = connect()
        except RetryError as e:
            cause = e.last_attempt.exception()
            logger.error(f"Could not connect to {target}: {cause}")
            raise TransportFailure(f"Could not connect to {target}: {cause}") from cause

        logger.info(f"Connected to {target} as {self._bus.unique_name}")
        return self._bus

    def call_async(
        self,
        call: MethodCall,
        callback: ReplyCallback,
        timeout_ms: t.Optional[int] = None,
    ) -> None:
        bus = self.connect()
        GLib = self._GLib

        message = Message(
            destination=call.destination,
            path=call.path,
            interface=call.interface,
            member=call.member,
            signature=call.signature,
            body=list(call.body),
        )

        state: t.Dict[str, t.Any] = {"done": False, "timeout_source": None}

        def finish(reply: t.Optional[Reply], error: t.Optional[TransportFailure]) -> None:
            if state["done"]:
                return
            state["done"] = True
            if state["timeout_source"] is not None:
                GLib.source_remove(state["timeout_source"])
                state["timeout_source"] = None
            callback(reply, error)

        def on_reply(reply: t.Optional[Message], err: t.Optional[Exception]) -> None:
            if err is not None:
                finish(None, TransportFailure(str(err)))
            elif reply is None:
                finish(None, TransportFailure(f"No reply to {call.display_name}"))
            elif reply.message_type == MessageType.ERROR:
                detail = reply.body[0] if reply.body else "error reply"
                finish(None, TransportFailure(str(detail), error_name=reply.error_name))
            else:
                finish(Reply(reply.signature, tuple(reply.body)), None)

        def on_timeout() -> bool:
            state["timeout_source"] = None
            finish(None, CallTimeout(f"No reply to {call.display_name} within {timeout_ms} ms"))
            return GLib.SOURCE_REMOVE

        if timeout_ms is not None:
            state["timeout_source"] = GLib.timeout_add(timeout_ms, on_timeout)

        try:
            bus.call(message, on_reply)
        except Exception as e:
            # dbus-next raises plain exceptions for a closed connection
            finish(None, TransportFailure(f"Could not send {call.display_name}: {e}"))

    def call_sync(self, call: MethodCall, timeout_ms: t.Optional[int] = None) -> Reply:
        loop = self._GLib.MainLoop()
        outcome: t.Dict[str, t.Any] = {}

        def on_done(reply: t.Optional[Reply], error: t.Optional[TransportFailure]) -> None:
            outcome["reply"] = reply
            outcome["error"] = error
            loop.quit()

        self.call_async(call, on_done, timeout_ms)
        if not outcome:
            loop.run()

        if outcome["error"] is not None:
            raise outcome["error"]
        return outcome["reply"]

    def call_soon(self, fn: t.Callable[[], None]) -> None:
        GLib = self._GLib

        def run_once() -> bool:
            fn()
            return GLib.SOURCE_REMOVE

        GLib.idle_add(run_once)

    def wait(self, pending) -> None:
        """Iterate the main loop until ``pending`` resolves.

        Used by the command line, which has no loop of its own.
        """
        if pending.done():
            return
        loop = self._GLib.MainLoop()
        pending.add_done_callback(lambda _: loop.quit())
        loop.run()

    def close(self) -> None:
        if self._bus is not None:
            logger.debug("Disconnecting from bus")
            self._bus.disconnect()
            self._bus = None
