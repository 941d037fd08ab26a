"""Opening a preparation for a confirmed order.

A warehouse operator who opens a preparation takes it themselves; anyone
else (an administrator) gets the least-loaded operator from the engine.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from labdesk.access import actor_from, authorize
from labdesk.assignment.engine import assign
from labdesk.domain import labdesk
from labdesk.errors import InvalidState
from labdesk.order.order import Order, OrderStatus
from labdesk.preparation.preparation import AssignmentMode, OrderPreparation, PreparationStatus

logger = structlog.get_logger(__name__)

_PREPARABLE_ORDER_STATUSES = {OrderStatus.CONFIRMED.value, OrderStatus.PROCESSING.value}


@labdesk.command(part_of="OrderPreparation")
class OpenPreparation:
    order_id = Identifier(required=True)
    origin = String(max_length=255)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


def preparation_items_from(order: Order) -> list[dict]:
    return [
        {
            "product_id": item.product_id,
            "product_name": item.product_name,
            "product_code": item.product_code,
            "quantity": item.quantity,
        }
        for item in order.items
    ]


@labdesk.command_handler(part_of=OrderPreparation)
class OpenPreparationHandler:
    @handle(OpenPreparation)
    def open_preparation(self, command):
        actor = actor_from(command)
        authorize(actor, "preparation:open")

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)
        if order.status not in _PREPARABLE_ORDER_STATUSES:
            raise InvalidState({"status": [f"Order must be confirmado or procesando to prepare, it is {order.status}"]})

        repo = current_domain.repository_for(OrderPreparation)
        try:
            existing = repo.get(command.order_id)
        except ObjectNotFoundError:
            existing = None
        if existing is not None and existing.status != PreparationStatus.PENDING.value:
            raise InvalidState({"preparation": [f"Order already has a preparation in {existing.status}"]})

        if actor.is_warehouse:
            assignee, assignee_name, mode = actor.user_id, actor.display_name, AssignmentMode.SELF.value
        else:
            chosen = assign(len(order.items or []))
            assignee, assignee_name, mode = chosen.user_id, chosen.user_name, AssignmentMode.AUTO.value

        if existing is not None:
            prep = existing
            prep.assign(assignee, assignee_name, mode)
        else:
            prep = OrderPreparation.create(
                order_id=str(order.id),
                order_number=order.order_number,
                items_data=preparation_items_from(order),
                assigned_to=assignee,
                assigned_to_name=assignee_name,
                assignment_mode=mode,
            )

        order.mark_processing(actor.user_id, origin=command.origin)
        repo.add(prep)
        order_repo.add(order)

        logger.info("Preparation opened", order_id=command.order_id, assigned_to=assignee, mode=mode)
        return assignee
