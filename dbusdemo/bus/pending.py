"""Single-shot handle for calls completed on the event loop."""

import enum
import typing as t

from ..util.logging import get_logger
from .errors import BusCallError, Cancelled

logger = get_logger(__name__)

T = t.TypeVar("T")


class CallState(enum.Enum):
    """Lifecycle of one outbound call."""

    IDLE = "idle"
    SENT = "sent"
    COMPLETED = "completed"
    FAILED = "failed"


class PendingCall(t.Generic[T]):
    """Outcome of a non-blocking call, resolved exactly once.

    The state only moves forward: ``IDLE -> SENT -> COMPLETED | FAILED``.
    Once terminal, further resolutions are ignored, which is how a reply
    arriving after :meth:`cancel` or after a timeout gets dropped.
    """

    def __init__(self, description: str = "") -> None:
        self.description = description
        self._state = CallState.IDLE
        self._result: t.Optional[T] = None
        self._error: t.Optional[BusCallError] = None
        self._callbacks: t.List[t.Callable[["PendingCall[T]"], None]] = []

    def __repr__(self) -> str:
        return f"<PendingCall {self.description or '?'} {self._state.value}>"

    @property
    def state(self) -> CallState:
        return self._state

    def done(self) -> bool:
        """Return True once the call reached a terminal state."""
        return self._state in (CallState.COMPLETED, CallState.FAILED)

    def result(self) -> T:
        """Return the call result or raise its failure.

        Raises:
            RuntimeError: If the call has not completed yet
            BusCallError: The failure the call resolved with
        """
        if not self.done():
            raise RuntimeError(f"Call {self.description} is still {self._state.value}")
        if self._error is not None:
            raise self._error
        return t.cast(T, self._result)

    def exception(self) -> t.Optional[BusCallError]:
        """Return the failure, or None if the call succeeded."""
        if not self.done():
            raise RuntimeError(f"Call {self.description} is still {self._state.value}")
        return self._error

    def outcome(self) -> t.Union[T, BusCallError]:
        """Return either the result or the failure, without raising it."""
        if not self.done():
            raise RuntimeError(f"Call {self.description} is still {self._state.value}")
        if self._error is not None:
            return self._error
        return t.cast(T, self._result)

    def add_done_callback(self, fn: t.Callable[["PendingCall[T]"], None]) -> None:
        """Register ``fn`` to run once with this handle when it resolves."""
        if self.done():
            fn(self)
        else:
            self._callbacks.append(fn)

    def cancel(self) -> bool:
        """Resolve the call with :class:`Cancelled` if it is still open.

        Done callbacks registered so far, including the completion callback
        passed to ``send``, run once with the :class:`Cancelled` failure in
        place of the result. Nothing is sent to the peer: the transport keeps
        waiting, and its reply or timeout is dropped when it arrives.

        Returns:
            True if the call was cancelled, False if it had already completed
        """
        if self.done():
            return False
        self.set_exception(Cancelled(f"Call {self.description} was cancelled"))
        return True

    def mark_sent(self) -> None:
        if self._state is not CallState.IDLE:
            raise RuntimeError(f"Call {self.description} was already sent")
        self._state = CallState.SENT

    def set_result(self, result: T) -> None:
        if self.done():
            logger.debug(f"Dropping late result for {self.description}")
            return
        self._result = result
        self._state = CallState.COMPLETED
        self._run_callbacks()

    def set_exception(self, error: BusCallError) -> None:
        if self.done():
            logger.debug(f"Dropping late failure for {self.description}: {error}")
            return
        self._error = error
        self._state = CallState.FAILED
        self._run_callbacks()

    def _run_callbacks(self) -> None:
        callbacks, self._callbacks = self._callbacks, []
        for fn in callbacks:
            fn(self)
