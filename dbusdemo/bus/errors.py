"""Error taxonomy for bus method calls."""

from typing import Optional


class BusCallError(Exception):
    """Base class for every failure of a bus method call."""
    pass


class InvalidRequest(BusCallError):
    """Request rejected before anything was sent."""
    pass


class TransportFailure(BusCallError):
    """Connection or call-level failure reported by the transport."""

    def __init__(self, message: str, error_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.error_name = error_name

    def __str__(self) -> str:
        message = super().__str__()
        if self.error_name:
            return f"{self.error_name}: {message}"
        return message


class CallTimeout(TransportFailure):
    """No reply arrived before the call timeout expired."""
    pass


class ProtocolError(BusCallError):
    """Reply does not match the expected reply signature."""
    pass


class Cancelled(BusCallError):
    """Pending call was cancelled before it completed."""
    pass
