"""Dispatch: a prepared order leaves the warehouse and the order ships."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from labdesk.access import actor_from, authorize
from labdesk.domain import labdesk
from labdesk.order.order import Order
from labdesk.preparation.preparation import OrderPreparation

logger = structlog.get_logger(__name__)


@labdesk.command(part_of="OrderPreparation")
class DispatchOrder:
    order_id = Identifier(required=True)
    carrier = String(max_length=100)
    tracking_number = String(max_length=100)
    notes = Text()
    origin = String(max_length=255)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


@labdesk.command_handler(part_of=OrderPreparation)
class DispatchHandler:
    @handle(DispatchOrder)
    def dispatch(self, command):
        actor = actor_from(command)
        authorize(actor, "preparation:dispatch")

        repo = current_domain.repository_for(OrderPreparation)
        prep = repo.get(command.order_id)
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)

        prep.dispatch(
            actor.user_id,
            dispatched_by_name=actor.display_name,
            carrier=command.carrier,
            tracking_number=command.tracking_number,
            notes=command.notes,
        )
        order.mark_shipped(command.tracking_number, actor_id=actor.user_id, origin=command.origin)

        repo.add(prep)
        order_repo.add(order)
        logger.info(
            "Order dispatched",
            order_id=command.order_id,
            carrier=command.carrier,
            tracking_number=command.tracking_number,
        )
