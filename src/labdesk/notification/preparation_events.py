"""Notifications for warehouse preparation events."""

from protean.utils.mixins import handle

from labdesk.access import WAREHOUSE_ROLE
from labdesk.domain import labdesk
from labdesk.notification.helpers import notify_administrators, notify_user
from labdesk.notification.notification import (
    Notification,
    NotificationPriority,
    NotificationType,
    RelatedEntityType,
)
from labdesk.preparation.events import (
    PreparationAssigned,
    PreparationCancelled,
    PreparationCompleted,
    PreparationReassigned,
)
from labdesk.preparation.preparation import AssignmentMode


def _preparation_url(order_id) -> str:
    return f"/warehouse/preparations/{order_id}"


@labdesk.event_handler(part_of=Notification, stream_category="labdesk::order_preparation")
class PreparationEventsHandler:
    @handle(PreparationAssigned)
    def on_preparation_assigned(self, event: PreparationAssigned) -> None:
        # Operators who open a preparation themselves need no notice
        if event.assignment_mode == AssignmentMode.SELF.value:
            return
        notify_user(
            event.assigned_to,
            NotificationType.ORDER_NEW.value,
            "Order assigned to you",
            f"Order {event.order_number} ({event.total_items} item(s), about "
            f"{event.estimated_minutes} min) is waiting for preparation",
            related_entity_type=RelatedEntityType.ORDER.value,
            related_entity_id=str(event.order_id),
            related_entity_number=event.order_number,
            priority=NotificationPriority.HIGH.value,
            action_url=_preparation_url(event.order_id),
            user_role=WAREHOUSE_ROLE,
        )

    @handle(PreparationReassigned)
    def on_preparation_reassigned(self, event: PreparationReassigned) -> None:
        notify_user(
            event.assigned_to,
            NotificationType.ORDER_NEW.value,
            "Order reassigned to you",
            f"Order {event.order_number} ({event.total_items} item(s)) was reassigned to you",
            related_entity_type=RelatedEntityType.ORDER.value,
            related_entity_id=str(event.order_id),
            related_entity_number=event.order_number,
            priority=NotificationPriority.HIGH.value,
            action_url=_preparation_url(event.order_id),
            user_role=WAREHOUSE_ROLE,
        )
        if event.previous_assignee and event.previous_assignee != event.assigned_to:
            notify_user(
                event.previous_assignee,
                NotificationType.ORDER_REASSIGNED.value,
                "Order reassigned",
                f"Order {event.order_number} was reassigned to {event.assigned_to_name or event.assigned_to}",
                related_entity_type=RelatedEntityType.ORDER.value,
                related_entity_id=str(event.order_id),
                related_entity_number=event.order_number,
                user_role=WAREHOUSE_ROLE,
            )

    @handle(PreparationCompleted)
    def on_preparation_completed(self, event: PreparationCompleted) -> None:
        notify_administrators(
            NotificationType.ORDER_READY.value,
            "Order ready for dispatch",
            f"All {event.total_items} item(s) of order {event.order_number} are prepared",
            related_entity_type=RelatedEntityType.ORDER.value,
            related_entity_id=str(event.order_id),
            related_entity_number=event.order_number,
            action_url=_preparation_url(event.order_id),
        )

    @handle(PreparationCancelled)
    def on_preparation_cancelled(self, event: PreparationCancelled) -> None:
        reason = f": {event.reason}" if event.reason else ""
        notify_user(
            event.assigned_to,
            NotificationType.ORDER_CANCELLED.value,
            "Preparation cancelled",
            f"Order {event.order_number} was cancelled{reason}; stop preparing it",
            related_entity_type=RelatedEntityType.ORDER.value,
            related_entity_id=str(event.order_id),
            related_entity_number=event.order_number,
            priority=NotificationPriority.HIGH.value,
            action_url=_preparation_url(event.order_id),
            user_role=WAREHOUSE_ROLE,
        )
