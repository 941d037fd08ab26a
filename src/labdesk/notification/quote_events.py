"""Notifications for quote review events.

    QuoteRequested       → assigned sales representative
    QuoteVendorApproved  → administrators, customer
    QuoteVendorRejected  → customer
    QuoteAdminApproved   → sales representative, customer
    QuoteAdminRejected   → sales representative, customer
    QuoteConverted       → sales representative, administrators, customer
"""

import structlog
from protean.utils.mixins import handle

from labdesk.access import Role
from labdesk.domain import labdesk
from labdesk.notification.helpers import notify_administrators, notify_user
from labdesk.notification.notification import (
    Notification,
    NotificationPriority,
    NotificationType,
    RelatedEntityType,
)
from labdesk.quote.events import (
    QuoteAdminApproved,
    QuoteAdminRejected,
    QuoteConverted,
    QuoteRequested,
    QuoteVendorApproved,
    QuoteVendorRejected,
)

logger = structlog.get_logger(__name__)

_QUOTE = RelatedEntityType.QUOTE.value
_ORDER = RelatedEntityType.ORDER.value


def _quote_url(quote_id) -> str:
    return f"/quotes/{quote_id}"


def _order_url(order_id) -> str:
    return f"/orders/{order_id}"


@labdesk.event_handler(part_of=Notification, stream_category="labdesk::quote")
class QuoteEventsHandler:
    @handle(QuoteRequested)
    def on_quote_requested(self, event: QuoteRequested) -> None:
        if not event.assigned_sales_rep:
            logger.info("Quote has no sales representative to notify", quote_id=str(event.quote_id))
            return
        notify_user(
            event.assigned_sales_rep,
            NotificationType.QUOTE_NEW.value,
            "New quote request",
            f"{event.customer_name} requested quote {event.quote_number} with {event.item_count} item(s)",
            related_entity_type=_QUOTE,
            related_entity_id=str(event.quote_id),
            related_entity_number=event.quote_number,
            priority=NotificationPriority.HIGH.value,
            action_url=_quote_url(event.quote_id),
            user_role=Role.VENDEDOR.value,
        )

    @handle(QuoteVendorApproved)
    def on_vendor_approved(self, event: QuoteVendorApproved) -> None:
        notify_administrators(
            NotificationType.QUOTE_VENDOR_APPROVED.value,
            "Quote awaiting final approval",
            f"Quote {event.quote_number} for {event.customer_name} was approved by "
            f"{event.approved_by_name or event.approved_by}",
            related_entity_type=_QUOTE,
            related_entity_id=str(event.quote_id),
            related_entity_number=event.quote_number,
            priority=NotificationPriority.HIGH.value,
            action_url=_quote_url(event.quote_id),
        )
        notify_user(
            event.user_id,
            NotificationType.QUOTE_VENDOR_APPROVED.value,
            "Your quote is under final review",
            f"Quote {event.quote_number} was approved by your sales representative",
            related_entity_type=_QUOTE,
            related_entity_id=str(event.quote_id),
            related_entity_number=event.quote_number,
            action_url=_quote_url(event.quote_id),
        )

    @handle(QuoteVendorRejected)
    def on_vendor_rejected(self, event: QuoteVendorRejected) -> None:
        reason = f": {event.rejection_reason}" if event.rejection_reason else ""
        notify_user(
            event.user_id,
            NotificationType.QUOTE_VENDOR_REJECTED.value,
            "Quote rejected",
            f"Quote {event.quote_number} was rejected{reason}",
            related_entity_type=_QUOTE,
            related_entity_id=str(event.quote_id),
            related_entity_number=event.quote_number,
            action_url=_quote_url(event.quote_id),
        )

    @handle(QuoteAdminApproved)
    def on_admin_approved(self, event: QuoteAdminApproved) -> None:
        notify_user(
            event.assigned_sales_rep,
            NotificationType.QUOTE_ADMIN_APPROVED.value,
            "Quote approved",
            f"Quote {event.quote_number} received final approval",
            related_entity_type=_QUOTE,
            related_entity_id=str(event.quote_id),
            related_entity_number=event.quote_number,
            action_url=_quote_url(event.quote_id),
            user_role=Role.VENDEDOR.value,
        )
        notify_user(
            event.user_id,
            NotificationType.QUOTE_ADMIN_APPROVED.value,
            "Your quote is ready",
            f"Quote {event.quote_number} is approved and can be converted into an order",
            related_entity_type=_QUOTE,
            related_entity_id=str(event.quote_id),
            related_entity_number=event.quote_number,
            priority=NotificationPriority.HIGH.value,
            action_url=_quote_url(event.quote_id),
        )

    @handle(QuoteAdminRejected)
    def on_admin_rejected(self, event: QuoteAdminRejected) -> None:
        reason = f": {event.rejection_reason}" if event.rejection_reason else ""
        for recipient, role in ((event.assigned_sales_rep, Role.VENDEDOR.value), (event.user_id, None)):
            notify_user(
                recipient,
                NotificationType.QUOTE_ADMIN_REJECTED.value,
                "Quote rejected",
                f"Quote {event.quote_number} was rejected in final review{reason}",
                related_entity_type=_QUOTE,
                related_entity_id=str(event.quote_id),
                related_entity_number=event.quote_number,
                action_url=_quote_url(event.quote_id),
                user_role=role,
            )

    @handle(QuoteConverted)
    def on_quote_converted(self, event: QuoteConverted) -> None:
        notify_user(
            event.assigned_sales_rep,
            NotificationType.QUOTE_CONVERTED.value,
            "Quote converted",
            f"Quote {event.quote_number} became order {event.order_number}",
            related_entity_type=_ORDER,
            related_entity_id=str(event.order_id),
            related_entity_number=event.order_number,
            action_url=_order_url(event.order_id),
            user_role=Role.VENDEDOR.value,
        )
        notify_administrators(
            NotificationType.ORDER_NEW.value,
            "New order",
            f"Order {event.order_number} was created from quote {event.quote_number} for {event.customer_name}",
            related_entity_type=_ORDER,
            related_entity_id=str(event.order_id),
            related_entity_number=event.order_number,
            priority=NotificationPriority.HIGH.value,
            action_url=_order_url(event.order_id),
        )
        notify_user(
            event.user_id,
            NotificationType.ORDER_NEW.value,
            "Order created",
            f"Your order {event.order_number} was created from quote {event.quote_number}",
            related_entity_type=_ORDER,
            related_entity_id=str(event.order_id),
            related_entity_number=event.order_number,
            action_url=_order_url(event.order_id),
        )
