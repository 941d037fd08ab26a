"""Quote → order conversion: the one cross-aggregate workflow.

In one unit of work the handler builds the order from the quote, marks the
quote ``convertida`` and asks the assignment engine for an operator. When
assignment fails the order and quote stay converted; the order records the
failure and every warehouse operator is notified instead.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from labdesk.access import actor_from, authorize
from labdesk.assignment.engine import assign
from labdesk.domain import labdesk
from labdesk.errors import describe
from labdesk.order.creation import next_order_number
from labdesk.order.order import Order, ShippingMethod
from labdesk.preparation.opening import preparation_items_from
from labdesk.preparation.preparation import AssignmentMode, OrderPreparation
from labdesk.quote.quote import Quote

logger = structlog.get_logger(__name__)


@labdesk.command(part_of="Quote")
class ConvertQuoteToOrder:
    """Turn an approved quote into an order using the customer's checkout details."""

    quote_id = Identifier(required=True)
    payment_method = String(max_length=20)
    shipping_address = Text()  # JSON dict
    shipping_method = String(max_length=50)
    customer_notes = Text()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


def order_items_from(quote: Quote) -> list[dict]:
    return [
        {
            "product_id": item.product_id,
            "product_name": item.product_name,
            "product_code": item.product_code,
            "quantity": item.quantity,
            "unit_price": item.unit_price or 0.0,
            "subtotal": item.subtotal or 0.0,
            "discount": item.discount or 0.0,
            "notes": item.notes,
        }
        for item in quote.items
    ]


@labdesk.command_handler(part_of=Quote)
class QuoteConversionHandler:
    @handle(ConvertQuoteToOrder)
    def convert(self, command):
        actor = actor_from(command)
        quote_repo = current_domain.repository_for(Quote)
        quote = quote_repo.get(command.quote_id)
        authorize(actor, "quote:convert", quote)
        quote.assert_convertible()

        order = Order.create(
            order_number=next_order_number(),
            customer_name=quote.customer_name,
            customer_email=quote.customer_email,
            items_data=order_items_from(quote),
            subtotal=quote.subtotal if quote.subtotal is not None else quote.total,
            total=quote.total,
            discount=quote.discount or 0.0,
            tax=quote.tax or 0.0,
            user_id=quote.user_id,
            customer_phone=quote.customer_phone,
            organization=quote.organization,
            tax_id=quote.tax_id,
            payment_method=command.payment_method,
            shipping_address=json.loads(command.shipping_address) if command.shipping_address else None,
            shipping_method=command.shipping_method or ShippingMethod.STANDARD.value,
            customer_notes=command.customer_notes,
            quote_id=str(quote.id),
            quote_number=quote.quote_number,
            assigned_sales_rep=quote.assigned_sales_rep,
            created_by=actor.user_id,
        )
        quote.mark_converted(actor, str(order.id), order.order_number)

        self._assign_warehouse(order)

        current_domain.repository_for(Order).add(order)
        quote_repo.add(quote)

        logger.info(
            "Quote converted to order",
            quote_id=command.quote_id,
            order_id=str(order.id),
            order_number=order.order_number,
        )
        return str(order.id)

    def _assign_warehouse(self, order: Order) -> None:
        """Create an auto-assigned preparation, or record the failure on the order."""
        try:
            chosen = assign(len(order.items or []))
            prep = OrderPreparation.create(
                order_id=str(order.id),
                order_number=order.order_number,
                items_data=preparation_items_from(order),
                assigned_to=chosen.user_id,
                assigned_to_name=chosen.user_name,
                assignment_mode=AssignmentMode.AUTO.value,
            )
        except Exception as exc:
            logger.warning(
                "Automatic warehouse assignment failed; falling back to broadcast",
                order_id=str(order.id),
                error=describe(exc),
            )
            order.record_assignment_failure(describe(exc))
            return

        current_domain.repository_for(OrderPreparation).add(prep)
