"""Preparation reactions to order events.

A cancelled order frees its warehouse preparation so that it stops counting
towards the operator's load and leaves the queue.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from labdesk.domain import labdesk
from labdesk.order.events import OrderCancelled
from labdesk.preparation.preparation import _CANCELLABLE_STATUSES, OrderPreparation, PreparationStatus

logger = structlog.get_logger(__name__)


@labdesk.event_handler(part_of=OrderPreparation, stream_category="labdesk::order")
class OrderCancellationHandler:
    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        repo = current_domain.repository_for(OrderPreparation)

        results = repo._dao.query.filter(order_id=str(event.order_id)).all()
        if not results or not results.items:
            logger.info("No preparation to close for cancelled order", order_id=str(event.order_id))
            return

        prep = results.first
        if PreparationStatus(prep.status) not in _CANCELLABLE_STATUSES:
            logger.warning(
                "Preparation left as is for cancelled order",
                order_id=str(event.order_id),
                status=prep.status,
            )
            return

        prep.cancel(reason=event.reason)
        repo.add(prep)
        logger.info(
            "Preparation cancelled with its order",
            order_id=str(event.order_id),
            released_operator=prep.assigned_to,
        )
