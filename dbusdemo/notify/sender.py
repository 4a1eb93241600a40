"""Delivery of notification payloads to the notification daemon."""

import typing as t

from ..bus.caller import MethodCaller, Outcome, SendMode
from ..bus.pending import PendingCall
from ..bus.transport import Reply
from ..util.logging import get_logger
from .models import NotificationRequest, NotificationResult
from .payload import NOTIFY_REPLY_SIGNATURE, SerializedPayload, build

logger = get_logger(__name__)


def _parse_notify_reply(reply: Reply) -> NotificationResult:
    return NotificationResult(id=int(reply.body[0]))


class NotificationSender(MethodCaller):
    """Sends Notify calls through an injected transport."""

    def send(
        self,
        payload: SerializedPayload,
        mode: SendMode = SendMode.SYNC,
        callback: t.Optional[t.Callable[[Outcome], None]] = None,
    ) -> t.Union[NotificationResult, PendingCall[NotificationResult]]:
        """Deliver a serialized Notify payload.

        In sync mode this blocks until the daemon replies. In async mode it
        returns a pending handle at once; ``callback`` then receives exactly
        one outcome, never before this method has returned.

        Args:
            payload: Output of :func:`dbusdemo.notify.payload.build`
            mode: SendMode.SYNC or SendMode.ASYNC
            callback: Receives the NotificationResult or the failure (async only)

        Returns:
            NotificationResult in sync mode, PendingCall in async mode

        Raises:
            TransportFailure: Sync call failed or timed out
            ProtocolError: Sync reply was not a single uint32
        """
        call = payload.as_call()
        if mode is SendMode.SYNC:
            result = self._call_sync(call, NOTIFY_REPLY_SIGNATURE, _parse_notify_reply)
            logger.info(f"Notification {result.id} shown")
            return result

        def log_outcome(pending: PendingCall[NotificationResult]) -> None:
            outcome = pending.outcome()
            if isinstance(outcome, NotificationResult):
                logger.info(f"Notification {outcome.id} shown")

        pending = self._call_async(call, NOTIFY_REPLY_SIGNATURE, _parse_notify_reply)
        pending.add_done_callback(log_outcome)
        if callback is not None:
            pending.add_done_callback(lambda p: callback(p.outcome()))
        return pending

    def notify(
        self,
        request: NotificationRequest,
        mode: SendMode = SendMode.SYNC,
        callback: t.Optional[t.Callable[[Outcome], None]] = None,
    ) -> t.Union[NotificationResult, PendingCall[NotificationResult]]:
        """Build and send ``request`` in one step."""
        return self.send(build(request), mode=mode, callback=callback)
