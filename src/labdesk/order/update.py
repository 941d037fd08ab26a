"""Order updates: field patches and customer delivery confirmation.

Rules, checked in this order:
    * ``confirm_delivery`` is reserved to the ordering customer
    * customers may only patch orders they placed
    * warehouse operators may only send ``{status: procesando}``
    * ``status: entregado`` without ``confirm_delivery`` is refused

Any other actor may patch any subset of the remaining fields.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from labdesk.access import actor_from, authorize
from labdesk.domain import labdesk
from labdesk.errors import Forbidden
from labdesk.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@labdesk.command(part_of="Order")
class UpdateOrder:
    order_id = Identifier(required=True)
    status = String(max_length=20)
    payment_status = String(max_length=20)
    payment_method = String(max_length=20)
    tracking_number = String(max_length=100)
    shipping_method = String(max_length=50)
    internal_notes = Text()
    customer_notes = Text()
    confirm_delivery = Boolean(default=False)
    origin = String(max_length=255)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


_WAREHOUSE_FORBIDDEN_FIELDS = (
    "payment_status",
    "payment_method",
    "tracking_number",
    "shipping_method",
    "internal_notes",
    "customer_notes",
)


@labdesk.command_handler(part_of=Order)
class UpdateOrderHandler:
    @handle(UpdateOrder)
    def update_order(self, command):
        actor = actor_from(command)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if command.confirm_delivery:
            authorize(actor, "order:confirm_delivery", order)
            if order.confirm_delivery(actor.user_id, origin=command.origin):
                repo.add(order)
                logger.info("Delivery confirmed", order_id=command.order_id, customer=actor.user_id)
            return

        authorize(actor, "order:update", order)

        if actor.is_warehouse:
            extra = [name for name in _WAREHOUSE_FORBIDDEN_FIELDS if getattr(command, name) is not None]
            if extra or command.status != OrderStatus.PROCESSING.value:
                raise Forbidden({"actor": ["Warehouse staff may only move orders to procesando"]})

        order.apply_update(
            actor.user_id,
            origin=command.origin,
            status=command.status,
            payment_status=command.payment_status,
            payment_method=command.payment_method,
            tracking_number=command.tracking_number,
            shipping_method=command.shipping_method,
            internal_notes=command.internal_notes,
            customer_notes=command.customer_notes,
        )
        repo.add(order)
        logger.info("Order updated", order_id=command.order_id, status=order.status, updated_by=actor.user_id)
