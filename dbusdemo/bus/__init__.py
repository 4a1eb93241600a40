"""Bus access module initialization."""

from .caller import MethodCaller, SendMode
from .errors import (
    BusCallError,
    CallTimeout,
    Cancelled,
    InvalidRequest,
    ProtocolError,
    TransportFailure,
)
from .introspect import InterfaceSummary, IntrospectionResult, Introspector
from .pending import CallState, PendingCall
from .transport import MethodCall, Reply, Transport

__all__ = [
    # caller
    "MethodCaller",
    "SendMode",
    # errors
    "BusCallError",
    "CallTimeout",
    "Cancelled",
    "InvalidRequest",
    "ProtocolError",
    "TransportFailure",
    # introspect
    "InterfaceSummary",
    "IntrospectionResult",
    "Introspector",
    # pending
    "CallState",
    "PendingCall",
    # transport
    "MethodCall",
    "Reply",
    "Transport",
]
