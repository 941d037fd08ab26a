"""Order cancellation: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from labdesk.access import actor_from, authorize
from labdesk.domain import labdesk
from labdesk.order.order import Order

logger = structlog.get_logger(__name__)


@labdesk.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = Text()
    origin = String(max_length=255)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


@labdesk.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        actor = actor_from(command)
        authorize(actor, "order:cancel")
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(actor.user_id, reason=command.reason, origin=command.origin)
        repo.add(order)
        logger.info("Order cancelled", order_id=command.order_id, cancelled_by=actor.user_id)
