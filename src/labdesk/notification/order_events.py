"""Notifications for order events.

Customers hear about each status their order reaches; a failed automatic
assignment is broadcast to every warehouse operator.
"""

import structlog
from protean.utils.mixins import handle

from labdesk.domain import labdesk
from labdesk.notification.helpers import notify_user, notify_warehouse
from labdesk.notification.notification import (
    Notification,
    NotificationPriority,
    NotificationType,
    RelatedEntityType,
)
from labdesk.order.events import OrderCancelled, OrderStatusChanged, WarehouseAssignmentFailed
from labdesk.order.order import OrderStatus

logger = structlog.get_logger(__name__)

# Cancellation is announced from OrderCancelled, which carries the reason
_STATUS_NOTICES = {
    OrderStatus.CONFIRMED.value: (NotificationType.ORDER_CONFIRMED, "Order confirmed", "has been confirmed"),
    OrderStatus.PROCESSING.value: (NotificationType.ORDER_PREPARING, "Order in preparation", "is being prepared"),
    OrderStatus.SHIPPED.value: (NotificationType.ORDER_DISPATCHED, "Order dispatched", "has been dispatched"),
    OrderStatus.DELIVERED.value: (NotificationType.ORDER_DELIVERED, "Order delivered", "was delivered"),
}


@labdesk.event_handler(part_of=Notification, stream_category="labdesk::order")
class OrderEventsHandler:
    @handle(OrderStatusChanged)
    def on_status_changed(self, event: OrderStatusChanged) -> None:
        notice = _STATUS_NOTICES.get(event.status)
        if notice is None:
            return
        notification_type, title, verb = notice
        notify_user(
            event.user_id,
            notification_type.value,
            title,
            f"Your order {event.order_number} {verb}",
            related_entity_type=RelatedEntityType.ORDER.value,
            related_entity_id=str(event.order_id),
            related_entity_number=event.order_number,
            action_url=f"/orders/{event.order_id}",
        )

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        reason = f": {event.reason}" if event.reason else ""
        notify_user(
            event.user_id,
            NotificationType.ORDER_CANCELLED.value,
            "Order cancelled",
            f"Your order {event.order_number} was cancelled{reason}",
            related_entity_type=RelatedEntityType.ORDER.value,
            related_entity_id=str(event.order_id),
            related_entity_number=event.order_number,
            priority=NotificationPriority.HIGH.value,
            action_url=f"/orders/{event.order_id}",
        )

    @handle(WarehouseAssignmentFailed)
    def on_assignment_failed(self, event: WarehouseAssignmentFailed) -> None:
        created = notify_warehouse(
            NotificationType.ORDER_NEW.value,
            "Unassigned order",
            f"Order {event.order_number} ({event.item_count} item(s)) could not be assigned automatically; "
            "please pick it up",
            related_entity_type=RelatedEntityType.ORDER.value,
            related_entity_id=str(event.order_id),
            related_entity_number=event.order_number,
            priority=NotificationPriority.URGENT.value,
            action_url=f"/warehouse/preparations/{event.order_id}",
        )
        logger.info(
            "Unassigned order broadcast to warehouse",
            order_id=str(event.order_id),
            recipients=len(created),
        )
