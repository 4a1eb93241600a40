"""Shared blocking and non-blocking dispatch of bus method calls."""

import enum
import typing as t

from ..util.logging import get_logger
from .errors import BusCallError, ProtocolError, TransportFailure
from .pending import PendingCall
from .transport import MethodCall, Reply, Transport

logger = get_logger(__name__)

T = t.TypeVar("T")

Outcome = t.Union[T, BusCallError]


class SendMode(enum.Enum):
    """How a call waits for its reply."""

    SYNC = "sync"
    ASYNC = "async"


class MethodCaller:
    """Issue method calls through an injected transport.

    Subclasses describe one remote method and how to parse its reply; this
    class owns the Sync/Async plumbing. One invocation issues exactly one
    outbound call and never retries.
    """

    def __init__(self, transport: Transport, timeout_ms: t.Optional[int] = None) -> None:
        """Initialize the caller.

        Args:
            transport: Transport that delivers the calls
            timeout_ms: Reply timeout in milliseconds, None waits indefinitely
        """
        if timeout_ms is not None and timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive or None, got {timeout_ms}")
        self.transport = transport
        self.timeout_ms = timeout_ms

    def _call_sync(
        self,
        call: MethodCall,
        expected_signature: str,
        parse: t.Callable[[Reply], T],
    ) -> T:
        call.validate()
        logger.debug(f"Calling {call.display_name} (sync)")
        try:
            reply = self.transport.call_sync(call, self.timeout_ms)
        except TransportFailure as e:
            logger.error(f"Call {call.display_name} failed: {e}")
            raise
        return self._parse_reply(call, reply, expected_signature, parse)

    def _call_async(
        self,
        call: MethodCall,
        expected_signature: str,
        parse: t.Callable[[Reply], T],
        callback: t.Optional[t.Callable[[Outcome], None]] = None,
    ) -> PendingCall[T]:
        call.validate()
        pending: PendingCall[T] = PendingCall(call.display_name)
        if callback is not None:
            pending.add_done_callback(lambda p: callback(p.outcome()))

        dispatching = True

        def settle(reply: t.Optional[Reply], error: t.Optional[BusCallError]) -> None:
            if error is not None:
                logger.error(f"Call {call.display_name} failed: {error}")
                pending.set_exception(error)
                return
            try:
                pending.set_result(self._parse_reply(call, reply, expected_signature, parse))
            except ProtocolError as e:
                pending.set_exception(e)

        def on_reply(reply: t.Optional[Reply], error: t.Optional[TransportFailure]) -> None:
            if dispatching:
                # Completion must never reach the caller before send() returns
                self.transport.call_soon(lambda: settle(reply, error))
            else:
                settle(reply, error)

        logger.debug(f"Calling {call.display_name} (async)")
        pending.mark_sent()
        try:
            self.transport.call_async(call, on_reply, self.timeout_ms)
        except TransportFailure as e:
            on_reply(None, e)
        finally:
            dispatching = False
        return pending

    def _parse_reply(
        self,
        call: MethodCall,
        reply: t.Optional[Reply],
        expected_signature: str,
        parse: t.Callable[[Reply], T],
    ) -> T:
        if reply is None:
            raise ProtocolError(f"Call {call.display_name} completed without a reply")
        if reply.signature != expected_signature:
            raise ProtocolError(
                f"Call {call.display_name} returned signature {reply.signature!r}, "
                f"expected {expected_signature!r}"
            )
        return parse(reply)
