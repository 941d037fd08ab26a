"""Marking notifications as read."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from labdesk.domain import labdesk
from labdesk.errors import Forbidden
from labdesk.notification.notification import Notification


@labdesk.command(part_of="Notification")
class MarkNotificationRead:
    notification_id = Identifier(required=True)
    actor_id = Identifier(required=True)


@labdesk.command(part_of="Notification")
class MarkAllNotificationsRead:
    actor_id = Identifier(required=True)


@labdesk.command_handler(part_of=Notification)
class NotificationReadingHandler:
    @handle(MarkNotificationRead)
    def mark_read(self, command):
        repo = current_domain.repository_for(Notification)
        notification = repo.get(command.notification_id)
        if notification.user_id != command.actor_id:
            raise Forbidden({"actor": ["Notifications can only be marked read by their recipient"]})
        if notification.mark_read():
            repo.add(notification)

    @handle(MarkAllNotificationsRead)
    def mark_all_read(self, command):
        repo = current_domain.repository_for(Notification)
        unread = repo._dao.query.filter(user_id=command.actor_id, read=False).all().items
        for notification in unread:
            notification.mark_read()
            repo.add(notification)
        return len(unread)
