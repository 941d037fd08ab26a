"""Order creation from direct checkout: command and handler.

Orders converted from quotes are built by the quote conversion handler; both
paths go through :meth:`Order.create` and share the number generator.
"""

import json

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from labdesk.access import actor_from, authorize
from labdesk.domain import labdesk
from labdesk.order.order import Order
from labdesk.sequence import ORDER_PREFIX, next_unique_number

logger = structlog.get_logger(__name__)


@labdesk.command(part_of="Order")
class PlaceOrder:
    """Place an order directly from checkout."""

    customer_name = String(required=True, max_length=200)
    customer_email = String(required=True, max_length=254)
    items = Text(required=True)  # JSON list of order item dicts
    subtotal = Float(required=True, min_value=0.0)
    total = Float(required=True)
    discount = Float(min_value=0.0, default=0.0)
    tax = Float(min_value=0.0, default=0.0)
    shipping_cost = Float(min_value=0.0, default=0.0)
    user_id = Identifier()
    customer_phone = String(max_length=50)
    organization = String(max_length=200)
    tax_id = String(max_length=50)
    payment_method = String(max_length=20)
    shipping_address = Text()  # JSON dict
    shipping_method = String(max_length=50)
    customer_notes = Text()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


def order_number_taken(candidate: str) -> bool:
    repo = current_domain.repository_for(Order)
    return bool(repo._dao.query.filter(order_number=candidate).all().items)


def next_order_number() -> str:
    return next_unique_number(ORDER_PREFIX, order_number_taken)


@labdesk.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        actor = actor_from(command)
        authorize(actor, "order:place")

        user_id = command.user_id or (actor.user_id if actor.is_customer else None)
        order = Order.create(
            order_number=next_order_number(),
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            items_data=json.loads(command.items),
            subtotal=command.subtotal,
            total=command.total,
            discount=command.discount or 0.0,
            tax=command.tax or 0.0,
            shipping_cost=command.shipping_cost or 0.0,
            user_id=user_id,
            customer_phone=command.customer_phone,
            organization=command.organization,
            tax_id=command.tax_id,
            payment_method=command.payment_method,
            shipping_address=json.loads(command.shipping_address) if command.shipping_address else None,
            shipping_method=command.shipping_method,
            customer_notes=command.customer_notes,
            created_by=actor.user_id,
        )
        current_domain.repository_for(Order).add(order)

        logger.info("Order placed", order_id=str(order.id), order_number=order.order_number, total=order.total)
        return str(order.id)
