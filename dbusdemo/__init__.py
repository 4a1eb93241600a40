"""
DBusDemo - GTK4 desktop demo for session bus calls.

Three small interactions with the D-Bus session bus:
- Synchronous introspection of the application's own object
- Asynchronous introspection completed on the GLib main loop
- Desktop notifications via org.freedesktop.Notifications
"""

__version__ = "0.1.0"
__author__ = "DBusDemo Contributors"
