"""Notification Repository - Outbox for workflow domain events

The engine's events land here as PENDING outbox documents. Rendering and
delivering them (email, in-app) is done by a separate dispatcher.
"""
from typing import Iterable, List, Optional
from pymongo.collection import Collection

from .mongo_client import get_collection
from ..config.settings import settings
from ..domain.models import DomainEvent, NotificationOutbox
from ..utils.idgen import generate_notification_id
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class NotificationOutboxRepository:
    """Notifier backed by the notification_outbox collection"""

    def __init__(self, collection: Optional[Collection] = None):
        self._outbox: Collection = (
            collection if collection is not None
            else get_collection(settings.notification_outbox_collection)
        )

    @staticmethod
    def build_notification(event: DomainEvent) -> NotificationOutbox:
        return NotificationOutbox(
            notification_id=generate_notification_id(),
            event_id=event.event_id,
            event_type=event.type,
            request_id=event.request_id,
            tenant_id=event.tenant_id,
            actor=event.actor,
            payload=dict(event.payload),
            event_timestamp=event.timestamp,
            created_at=utc_now()
        )

    def enqueue(self, event: DomainEvent) -> NotificationOutbox:
        """Create a notification in outbox"""
        notification = self.build_notification(event)
        doc = notification.model_dump()
        doc["_id"] = notification.notification_id

        self._outbox.insert_one(doc)
        logger.info(
            f"Enqueued notification: {event.type.value}",
            extra={"request_id": event.request_id, "tenant_id": event.tenant_id, "event_type": event.type}
        )
        return notification

    def enqueue_many(self, events: Iterable[DomainEvent]) -> List[NotificationOutbox]:
        """Create multiple notifications, preserving event order"""
        notifications = [self.build_notification(e) for e in events]
        if not notifications:
            return []

        docs = []
        for notification in notifications:
            doc = notification.model_dump()
            doc["_id"] = notification.notification_id
            docs.append(doc)

        self._outbox.insert_many(docs, ordered=True)
        logger.info(f"Enqueued {len(notifications)} notifications")
        return notifications

