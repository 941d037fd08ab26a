"""Warehouse read side: the preparation queue and workload statistics."""

from collections import Counter

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from labdesk.assignment.engine import load_snapshot, suggest_rebalancing
from labdesk.errors import NotFound
from labdesk.preparation.preparation import ACTIVE_STATUSES, OrderPreparation, PreparationStatus


def preparation_for(order_id: str) -> OrderPreparation:
    try:
        return current_domain.repository_for(OrderPreparation).get(order_id)
    except ObjectNotFoundError:
        raise NotFound({"order_id": [f"No preparation for order {order_id}"]}) from None


def warehouse_queue(operator_id: str | None = None) -> list[OrderPreparation]:
    """Open preparations, oldest first, optionally limited to one operator."""
    filters = {"status__in": list(ACTIVE_STATUSES) + [PreparationStatus.PREPARED.value]}
    if operator_id:
        filters["assigned_to"] = operator_id

    repo = current_domain.repository_for(OrderPreparation)
    items = repo._dao.query.filter(**filters).all().items
    return sorted(items, key=lambda prep: prep.created_at)


def warehouse_stats() -> dict:
    """Operator workloads, the rebalancing hint and preparation counters."""
    loads = load_snapshot()
    rebalancing = suggest_rebalancing(loads)

    preparations = current_domain.repository_for(OrderPreparation)._dao.query.all().items
    by_status = Counter(prep.status for prep in preparations)
    durations = [prep.duration_minutes for prep in preparations if prep.duration_minutes is not None]

    return {
        "operators": [
            {
                "user_id": load.user_id,
                "user_name": load.user_name,
                "active_orders": load.active_orders,
                "total_items": load.total_items,
                "estimated_minutes": load.estimated_minutes,
                "average_items_per_order": round(load.average_items_per_order, 2),
                "load_score": round(load.load_score, 2),
            }
            for load in loads
        ],
        "total_active_orders": sum(load.active_orders for load in loads),
        "total_active_items": sum(load.total_items for load in loads),
        "average_load_score": round(sum(load.load_score for load in loads) / len(loads), 2) if loads else 0.0,
        "needs_rebalancing": rebalancing.needs_rebalancing,
        "rebalancing_suggestion": rebalancing.suggestion,
        "preparations_by_status": {status.value: by_status.get(status.value, 0) for status in PreparationStatus},
        "average_preparation_minutes": round(sum(durations) / len(durations), 1) if durations else None,
    }
