"""Notification domain events."""

from protean.fields import DateTime, Identifier, String

from labdesk.domain import labdesk


@labdesk.event(part_of="Notification")
class NotificationCreated:
    __version__ = 1

    notification_id = Identifier(required=True)
    user_id = Identifier(required=True)
    notification_type = String(required=True)
    priority = String(required=True)
    related_entity_id = String()
    created_at = DateTime(required=True)


@labdesk.event(part_of="Notification")
class NotificationRead:
    __version__ = 1

    notification_id = Identifier(required=True)
    user_id = Identifier(required=True)
    read_at = DateTime(required=True)
