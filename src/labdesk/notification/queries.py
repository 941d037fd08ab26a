"""Read-side helpers for a user's notification inbox."""

from datetime import UTC, datetime

from protean.utils.globals import current_domain

from labdesk.notification.notification import Notification


def notifications_for(user_id: str, unread_only: bool = False, limit: int = 50) -> list[Notification]:
    """Unexpired notifications for ``user_id``, newest first."""
    repo = current_domain.repository_for(Notification)
    filters = {"user_id": user_id}
    if unread_only:
        filters["read"] = False
    now = datetime.now(UTC)

    items = [n for n in repo._dao.query.filter(**filters).all().items if not n.is_expired(now)]
    items.sort(key=lambda n: n.created_at, reverse=True)
    return items[:limit]


def unread_count(user_id: str) -> int:
    return len(notifications_for(user_id, unread_only=True, limit=10_000))
