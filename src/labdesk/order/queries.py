"""Order read side."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from labdesk.errors import NotFound
from labdesk.order.order import Order


def order_for(order_id: str) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise NotFound({"order_id": [f"Order {order_id} does not exist"]}) from None
