"""Shared helpers for notification event handlers.

Notification creation is fire-and-forget: any failure is logged and
swallowed so the state transition that triggered it is never affected.
"""

import structlog
from protean.utils.globals import current_domain

from labdesk.access import ELEVATED_ROLES, WAREHOUSE_ROLE
from labdesk.directory import get_directory
from labdesk.notification.notification import Notification, NotificationPriority

logger = structlog.get_logger(__name__)


def notify_user(
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
) -> str | None:
    """Create one notification for ``user_id``.

    Returns:
        The notification id, or ``None`` if there was no recipient or the
        notification could not be stored.
    """
    if not user_id:
        logger.debug("Notification skipped: no recipient", notification_type=notification_type)
        return None

    try:
        notification = Notification.create(
            user_id=user_id,
            notification_type=notification_type,
            title=title,
            message=message,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
            related_entity_number=related_entity_number,
            priority=priority,
            action_url=action_url,
            user_role=user_role,
        )
        current_domain.repository_for(Notification).add(notification)
    except Exception:
        logger.error(
            "Failed to create notification",
            user_id=user_id,
            notification_type=notification_type,
            related_entity_id=related_entity_id,
            exc_info=True,
        )
        return None

    logger.debug(
        "Notification created",
        notification_id=str(notification.id),
        user_id=user_id,
        notification_type=notification_type,
    )
    return str(notification.id)


def notify_role(roles, notification_type: str, title: str, message: str, **kwargs) -> list[str]:
    """Create the same notification for every active member holding one of ``roles``."""
    try:
        members = get_directory().list_active(*roles)
    except Exception:
        logger.error("Failed to list notification recipients", roles=sorted(roles), exc_info=True)
        return []

    created = []
    for member in members:
        notification_id = notify_user(
            member.user_id,
            notification_type,
            title,
            message,
            user_role=member.role,
            **kwargs,
        )
        if notification_id:
            created.append(notification_id)
    return created


def notify_administrators(notification_type: str, title: str, message: str, **kwargs) -> list[str]:
    return notify_role(ELEVATED_ROLES, notification_type, title, message, **kwargs)


def notify_warehouse(notification_type: str, title: str, message: str, **kwargs) -> list[str]:
    return notify_role({WAREHOUSE_ROLE}, notification_type, title, message, **kwargs)
