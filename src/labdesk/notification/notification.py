"""Notification aggregate: a notice addressed to one user.

Notifications are created by event handlers in reaction to quote, order and
preparation events. Delivery (push, e-mail) is outside this system; a
notification here is simply the stored record the user's inbox reads from.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.fields import Boolean, DateTime, Identifier, String, Text

from labdesk.domain import labdesk
from labdesk.notification.events import NotificationCreated, NotificationRead

DEFAULT_TTL_DAYS = 30


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationType(Enum):
    QUOTE_NEW = "quote_new"
    QUOTE_VENDOR_APPROVED = "quote_vendor_approved"
    QUOTE_VENDOR_REJECTED = "quote_vendor_rejected"
    QUOTE_ADMIN_APPROVED = "quote_admin_approved"
    QUOTE_ADMIN_REJECTED = "quote_admin_rejected"
    QUOTE_CONVERTED = "quote_converted"
    ORDER_NEW = "order_new"
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_PREPARING = "order_preparing"
    ORDER_READY = "order_ready"
    ORDER_DISPATCHED = "order_dispatched"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELLED = "order_cancelled"
    ORDER_REASSIGNED = "order_reassigned"


class NotificationPriority(Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class RelatedEntityType(Enum):
    QUOTE = "quote"
    ORDER = "order"
    CUSTOMER = "customer"
    PRODUCT = "product"


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@labdesk.aggregate
class Notification:
    user_id = Identifier(required=True)
    user_role = String(max_length=20)
    notification_type = String(required=True, choices=NotificationType)
    title = String(required=True, max_length=200)
    message = Text(required=True)
    related_entity_type = String(choices=RelatedEntityType)
    related_entity_id = Identifier()
    related_entity_number = String(max_length=20)
    read = Boolean(default=False)
    read_at = DateTime()
    priority = String(choices=NotificationPriority, default=NotificationPriority.NORMAL.value)
    action_url = String(max_length=500)
    created_at = DateTime()
    expires_at = DateTime()

    @classmethod
    def create(
        cls,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        related_entity_type: str | None = None,
        related_entity_id: str | None = None,
        related_entity_number: str | None = None,
        priority: str = NotificationPriority.NORMAL.value,
        action_url: str | None = None,
        user_role: str | None = None,
        ttl_days: int | None = DEFAULT_TTL_DAYS,
    ):
        now = datetime.now(UTC)
        notification = cls(
            user_id=user_id,
            user_role=user_role,
            notification_type=notification_type,
            title=title,
            message=message,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
            related_entity_number=related_entity_number,
            priority=priority,
            action_url=action_url,
            read=False,
            created_at=now,
            expires_at=now + timedelta(days=ttl_days) if ttl_days else None,
        )
        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                user_id=user_id,
                notification_type=notification_type,
                priority=priority,
                related_entity_id=related_entity_id or "",
                created_at=now,
            )
        )
        return notification

    def mark_read(self) -> bool:
        """Mark as read. Returns ``False`` if it already was."""
        if self.read:
            return False
        now = datetime.now(UTC)
        self.read = True
        self.read_at = now
        self.raise_(
            NotificationRead(
                notification_id=str(self.id),
                user_id=self.user_id,
                read_at=now,
            )
        )
        return True

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or datetime.now(UTC))
