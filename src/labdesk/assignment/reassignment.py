"""Preparation reassignment: manual override or a fresh automatic pick."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from labdesk.access import WAREHOUSE_ROLE, actor_from, authorize
from labdesk.assignment.engine import assign
from labdesk.directory import get_directory
from labdesk.domain import labdesk
from labdesk.errors import InvalidState, NotFound, Unprocessable
from labdesk.order.order import Order
from labdesk.preparation.preparation import AssignmentMode, OrderPreparation

logger = structlog.get_logger(__name__)


@labdesk.command(part_of="OrderPreparation")
class ReassignPreparation:
    """Move an order's preparation to another warehouse operator.

    Either ``assign_to`` names the operator, or ``auto_assign`` asks the
    engine to pick the least-loaded one.
    """

    order_id = Identifier(required=True)
    assign_to = Identifier()
    auto_assign = Boolean(default=False)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


@labdesk.command_handler(part_of=OrderPreparation)
class ReassignPreparationHandler:
    @handle(ReassignPreparation)
    def reassign(self, command):
        actor = actor_from(command)
        authorize(actor, "preparation:reassign")

        if not command.assign_to and not command.auto_assign:
            raise Unprocessable({"assign_to": ["Provide an operator or request automatic assignment"]})

        try:
            current_domain.repository_for(Order).get(command.order_id)
        except ObjectNotFoundError:
            raise NotFound({"order_id": [f"Order {command.order_id} not found"]}) from None

        repo = current_domain.repository_for(OrderPreparation)
        try:
            prep = repo.get(command.order_id)
        except ObjectNotFoundError:
            raise InvalidState({"preparation": ["No preparation exists for this order"]}) from None

        if command.auto_assign:
            chosen = assign(prep.total_items)
            target_id, target_name, mode = chosen.user_id, chosen.user_name, AssignmentMode.AUTO.value
        else:
            member = get_directory().get(command.assign_to)
            if member is None:
                raise NotFound({"assign_to": [f"User {command.assign_to} not found"]})
            if member.role != WAREHOUSE_ROLE:
                raise Unprocessable({"assign_to": [f"User {command.assign_to} is not a warehouse operator"]})
            target_id, target_name, mode = member.user_id, member.name, AssignmentMode.MANUAL.value

        previous = prep.assigned_to
        prep.reassign(target_id, target_name, mode, reassigned_by=actor.user_id)
        repo.add(prep)

        logger.info(
            "Preparation reassigned",
            order_id=command.order_id,
            previous_assignee=previous,
            assigned_to=target_id,
            mode=mode,
        )
        return target_id
