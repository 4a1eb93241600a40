"""Main GTK4 GUI application."""

import sys
import typing as t

from ..bus.caller import SendMode
from ..bus.errors import BusCallError, InvalidRequest
from ..bus.introspect import IntrospectionResult, Introspector
from ..bus.pending import PendingCall
from ..bus.transport import Transport
from ..config import DemoConfig, get_config
from ..notify.models import NotificationResult
from ..notify.sender import NotificationSender
from ..util.logging import get_logger, setup_logging

logger = get_logger(__name__)

WINDOW_TITLE = "D-Bus GTK4 Demo"
SYNC_LABEL = "Synchronous D-Bus Connection"
ASYNC_LABEL = "Asynchronous D-Bus Connection"
NOTIFY_LABEL = "D-Bus Notification"

GTK_INSTALL_HINT = "sudo apt-get install python3-gi python3-gi-cairo gir1.2-gtk-4.0"


class DemoController:
    """Button actions of the demo window, independent of the toolkit.

    Every handler reports failures through ``status`` and the log; none of
    them lets a bus error escape into the main loop.
    """

    def __init__(
        self,
        config: DemoConfig,
        transport: Transport,
        unique_name: t.Callable[[], t.Optional[str]],
        status: t.Optional[t.Callable[[str], None]] = None,
        busy: t.Optional[t.Callable[[bool], None]] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            config: Application configuration
            transport: Transport shared by all buttons
            unique_name: Returns the application's own bus name
            status: Receives one line of text for the status label
            busy: Told when a blocking call starts and ends
        """
        self.config = config
        self.transport = transport
        self.unique_name = unique_name
        self.status = status or (lambda text: None)
        self.busy = busy or (lambda flag: None)
        self._blocking = False
        self.introspector = Introspector(transport, config.bus.call_timeout_ms)
        self.sender = NotificationSender(transport, config.bus.call_timeout_ms)

    def _target(self) -> t.Optional[str]:
        name = self.unique_name()
        logger.info(f"dbus_name = {name}")
        if not name:
            self.status("Application is not registered on the bus")
        return name

    def _show_introspection(self, result: IntrospectionResult) -> None:
        logger.debug(result.xml)
        try:
            names = [iface.name for iface in result.interfaces()]
        except BusCallError as e:
            self._show_failure("Introspection", e)
            return
        logger.info(f"{result.path} implements {', '.join(names) or 'no interfaces'}")
        self.status(f"{result.path}: {len(names)} interfaces")

    def _show_failure(self, action: str, error: BusCallError) -> None:
        logger.error(f"{action} failed: {error}")
        self.status(f"{action} failed: {error}")

    def introspect_sync(self) -> t.Optional[IntrospectionResult]:
        """Introspect the application object, blocking until the reply.

        The wait iterates the main loop, so input can arrive meanwhile. A
        second click while the first call is outstanding is ignored.
        """
        if self._blocking:
            logger.debug("Synchronous introspection already in progress")
            return None
        logger.info("Synchronous D-Bus connection")
        destination = self._target()
        if not destination:
            return None
        self._blocking = True
        self.busy(True)
        try:
            result = self.introspector.introspect(destination, self.config.object_path)
        except BusCallError as e:
            self._show_failure("Synchronous introspection", e)
            return None
        finally:
            self._blocking = False
            self.busy(False)
        self._show_introspection(result)
        return result

    def introspect_async(self) -> t.Optional[PendingCall[IntrospectionResult]]:
        """Introspect the application object without blocking the loop."""
        logger.info("Asynchronous D-Bus connection")
        destination = self._target()
        if not destination:
            return None

        def on_done(outcome: t.Union[IntrospectionResult, BusCallError]) -> None:
            logger.info("async callback function invoked")
            if isinstance(outcome, BusCallError):
                self._show_failure("Asynchronous introspection", outcome)
            else:
                self._show_introspection(outcome)

        try:
            return self.introspector.introspect(
                destination, self.config.object_path, mode=SendMode.ASYNC, callback=on_done
            )
        except InvalidRequest as e:
            self._show_failure("Asynchronous introspection", e)
            return None

    def notify(self) -> t.Optional[PendingCall[NotificationResult]]:
        """Send the configured notification without blocking the loop."""
        logger.info("Notify")

        def on_done(outcome: t.Union[NotificationResult, BusCallError]) -> None:
            if isinstance(outcome, BusCallError):
                self._show_failure("Notification", outcome)
            else:
                self.status(f"Notification id {outcome.id}")

        try:
            request = self.config.notification.to_request()
            return self.sender.notify(request, mode=SendMode.ASYNC, callback=on_done)
        except InvalidRequest as e:
            self._show_failure("Notification", e)
            return None


def build_window(app, controller: DemoController):
    """Create and present the demo window for ``app``."""
    from gi.repository import Gtk

    window = Gtk.ApplicationWindow(application=app)
    window.set_title(WINDOW_TITLE)
    window.set_default_size(500, 200)

    box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=1)
    window.set_child(box)

    for label, handler in (
        (SYNC_LABEL, controller.introspect_sync),
        (ASYNC_LABEL, controller.introspect_async),
        (NOTIFY_LABEL, controller.notify),
    ):
        button = Gtk.Button(label=label)
        button.connect("clicked", lambda _button, action=handler: action())
        box.append(button)

    status = Gtk.Label(label="")
    status.set_wrap(True)
    box.append(status)
    controller.status = status.set_text
    controller.busy = lambda flag: box.set_sensitive(not flag)

    window.present()
    return window


def main(config: t.Optional[DemoConfig] = None, argv: t.Optional[t.List[str]] = None) -> int:
    """Main entry point for GUI application."""
    try:
        import gi
        gi.require_version("Gtk", "4.0")
        from gi.repository import Gio, Gtk
    except (ImportError, ValueError) as e:
        logger.error(f"GTK4 GUI dependencies not available: {e}")
        logger.error(f"Install GTK4 dependencies to use the GUI: {GTK_INSTALL_HINT}")
        return 1

    from ..bus.glib import GLibTransport

    if config is None:
        config = get_config()
        setup_logging(config.log_level, config.log_file)

    transport = GLibTransport(
        bus_type=config.bus.bus_type,
        bus_address=config.bus.address,
        connect_attempts=config.bus.connect_attempts,
    )
    app = Gtk.Application(application_id=config.application_id, flags=Gio.ApplicationFlags.DEFAULT_FLAGS)

    def own_unique_name() -> t.Optional[str]:
        connection = app.get_dbus_connection()
        return connection.get_unique_name() if connection is not None else None

    def on_activate(application) -> None:
        controller = DemoController(config, transport, own_unique_name)
        build_window(application, controller)

    app.connect("activate", on_activate)
    app.connect("shutdown", lambda _app: transport.close())

    return app.run(argv if argv is not None else sys.argv[:1])


if __name__ == "__main__":
    sys.exit(main())
