from __future__ import annotations

from typing import Any, Iterable
from uuid import UUID
import uuid

from rental_booking.core.common.constants import NotificationKind
from rental_booking.core.middlewares import logger
from rental_booking.utils.collaborators import Notifier
from rental_booking.utils.event_publisher import publish_notification_event


class SqsNotifier:
    """Hands notifications to the delivery service through the events queue."""

    async def notify(
        self, recipient_id: UUID, kind: NotificationKind, payload: dict[str, Any]
    ) -> None:
        await publish_notification_event(
            {
                "event_type": "NOTIFICATION_REQUESTED",
                "kind": kind.value,
                "recipient_id": str(recipient_id),
                "payload": payload,
            },
            deduplication_id=uuid.uuid4().hex,
        )


async def dispatch_notification(
    notifier: Notifier,
    recipients: Iterable[UUID],
    kind: NotificationKind,
    payload: dict[str, Any],
) -> int:
    """Fire-and-forget delivery: failures are logged, never raised.

    Returns the number of recipients the notifier accepted.
    """
    delivered = 0
    for recipient_id in recipients:
        try:
            await notifier.notify(recipient_id, kind, payload)
            delivered += 1
        except Exception as exc:
            logger.warning(
                "Notification %s to %s failed: %s", kind.value, recipient_id, exc
            )
    return delivered
