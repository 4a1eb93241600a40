"""Transport interface between method callers and the message bus."""

import typing as t
from dataclasses import dataclass, field

from dbus_next.errors import InvalidSignatureError, SignatureBodyMismatchError
from dbus_next.signature import SignatureTree
from dbus_next.validators import (
    is_bus_name_valid,
    is_interface_name_valid,
    is_member_name_valid,
    is_object_path_valid,
)

from .errors import InvalidRequest, TransportFailure


@dataclass(frozen=True)
class MethodCall:
    """A fully addressed method call ready to be handed to a transport."""

    destination: str
    path: str
    interface: str
    member: str
    signature: str = ""
    body: t.Tuple[t.Any, ...] = field(default_factory=tuple)

    def validate(self) -> None:
        """Check addressing and body against the bus naming rules.

        Raises:
            InvalidRequest: If any name is malformed or the body does not
                match the signature
        """
        if not is_bus_name_valid(self.destination):
            raise InvalidRequest(f"Invalid bus name: {self.destination!r}")
        if not is_object_path_valid(self.path):
            raise InvalidRequest(f"Invalid object path: {self.path!r}")
        if not is_interface_name_valid(self.interface):
            raise InvalidRequest(f"Invalid interface name: {self.interface!r}")
        if not is_member_name_valid(self.member):
            raise InvalidRequest(f"Invalid member name: {self.member!r}")

        try:
            SignatureTree(self.signature).verify(list(self.body))
        except InvalidSignatureError as e:
            raise InvalidRequest(f"Invalid signature {self.signature!r}: {e}") from e
        except SignatureBodyMismatchError as e:
            raise InvalidRequest(f"Body does not match signature {self.signature!r}: {e}") from e

    @property
    def display_name(self) -> str:
        """Short human-readable form used in log lines."""
        return f"{self.destination} {self.path} {self.interface}.{self.member}"


@dataclass(frozen=True)
class Reply:
    """Body of a successful method return."""

    signature: str
    body: t.Tuple[t.Any, ...]


ReplyCallback = t.Callable[[t.Optional[Reply], t.Optional[TransportFailure]], None]


class Transport(t.Protocol):
    """Blocking and non-blocking method call primitives.

    Implementations own the connection. Every call is issued exactly once;
    any retry policy for establishing the connection lives here, never in
    the callers.
    """

    def call_sync(self, call: MethodCall, timeout_ms: t.Optional[int] = None) -> Reply:
        """Issue ``call`` and block until the reply arrives.

        Raises:
            TransportFailure: On connection errors, error replies or timeout
        """
        ...

    def call_async(
        self,
        call: MethodCall,
        callback: ReplyCallback,
        timeout_ms: t.Optional[int] = None,
    ) -> None:
        """Issue ``call`` and return at once.

        ``callback`` is invoked exactly once on the loop thread, with either
        a reply or a failure.
        """
        ...

    def call_soon(self, fn: t.Callable[[], None]) -> None:
        """Run ``fn`` on the next loop iteration."""
        ...

    def wait(self, pending: t.Any) -> None:
        """Drive the loop until ``pending`` resolves, for callers without a loop."""
        ...

    def close(self) -> None:
        """Release the connection."""
        ...
