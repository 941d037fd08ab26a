"""Tests for the Notification aggregate."""

from datetime import UTC, datetime, timedelta

from labdesk.notification.events import NotificationCreated, NotificationRead
from labdesk.notification.notification import Notification, NotificationPriority, NotificationType


def _make_notification(**overrides):
    defaults = {
        "user_id": "rep-1",
        "notification_type": NotificationType.QUOTE_NEW.value,
        "title": "New quote request",
        "message": "Laboratorio Andes requested quote QUO-2410-0001",
        "related_entity_type": "quote",
        "related_entity_id": "quote-1",
        "related_entity_number": "QUO-2410-0001",
    }
    defaults.update(overrides)
    return Notification.create(**defaults)


class TestNotificationCreation:
    def test_defaults(self):
        notification = _make_notification()
        assert notification.read is False
        assert notification.read_at is None
        assert notification.priority == NotificationPriority.NORMAL.value
        assert notification.expires_at - notification.created_at == timedelta(days=30)
        assert isinstance(notification._events[-1], NotificationCreated)

    def test_without_expiry(self):
        notification = _make_notification(ttl_days=None)
        assert notification.expires_at is None
        assert notification.is_expired() is False


class TestMarkRead:
    def test_mark_read(self):
        notification = _make_notification()
        notification._events.clear()
        assert notification.mark_read() is True
        assert notification.read is True
        assert notification.read_at is not None
        assert isinstance(notification._events[-1], NotificationRead)

    def test_mark_read_is_idempotent(self):
        notification = _make_notification()
        notification.mark_read()
        notification._events.clear()
        assert notification.mark_read() is False
        assert notification._events == []


class TestExpiry:
    def test_expired_after_ttl(self):
        notification = _make_notification(ttl_days=1)
        assert notification.is_expired(datetime.now(UTC) + timedelta(days=2)) is True
        assert notification.is_expired() is False
