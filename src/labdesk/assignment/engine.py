"""Warehouse assignment engine: least-loaded operator selection.

An operator's load is computed from the preparations currently assigned to
them that are not finished (``pendiente``, ``asignado``, ``en_preparacion``):

    load_score = 0.4 × active_orders + 0.6 × total_items

where ``total_items`` is the number of lines across those preparations. The
operator with the lowest score wins; ties go to whoever the staff directory
lists first.
"""

from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from labdesk.access import WAREHOUSE_ROLE
from labdesk.directory import get_directory
from labdesk.directory.port import StaffMember
from labdesk.errors import Unavailable
from labdesk.preparation.preparation import ACTIVE_STATUSES, OrderPreparation, estimate_minutes

logger = structlog.get_logger(__name__)

ORDER_WEIGHT = 0.4
ITEM_WEIGHT = 0.6
REBALANCE_THRESHOLD = 0.5


@dataclass(frozen=True)
class OperatorLoad:
    user_id: str
    user_name: str
    active_orders: int
    total_items: int
    estimated_minutes: int
    average_items_per_order: float
    load_score: float


@dataclass(frozen=True)
class Assignment:
    """Result of :func:`assign`."""

    user_id: str
    user_name: str
    reason: str
    load: OperatorLoad


@dataclass(frozen=True)
class RebalancingSuggestion:
    needs_rebalancing: bool
    suggestion: str
    most_loaded: OperatorLoad | None = None
    least_loaded: OperatorLoad | None = None


def load_score(active_orders: int, total_items: int) -> float:
    return ORDER_WEIGHT * active_orders + ITEM_WEIGHT * total_items


def list_eligible_operators() -> list[StaffMember]:
    """Active accounts holding the warehouse role, in directory order."""
    return get_directory().list_active(WAREHOUSE_ROLE)


def active_preparations(operator_id: str) -> list[OrderPreparation]:
    repo = current_domain.repository_for(OrderPreparation)
    return repo._dao.query.filter(assigned_to=operator_id, status__in=list(ACTIVE_STATUSES)).all().items


def compute_load(operator_id: str, operator_name: str = "") -> OperatorLoad:
    preparations = active_preparations(operator_id)
    active_orders = len(preparations)
    line_counts = [len(prep.items or []) for prep in preparations]
    total_items = sum(line_counts)

    return OperatorLoad(
        user_id=operator_id,
        user_name=operator_name or operator_id,
        active_orders=active_orders,
        total_items=total_items,
        estimated_minutes=sum(estimate_minutes(count) for count in line_counts),
        average_items_per_order=total_items / active_orders if active_orders else 0.0,
        load_score=load_score(active_orders, total_items),
    )


def load_snapshot(operators: list[StaffMember] | None = None) -> list[OperatorLoad]:
    """Loads for every eligible operator, in listing order."""
    if operators is None:
        operators = list_eligible_operators()
    return [compute_load(op.user_id, op.name) for op in operators]


def rank(loads: list[OperatorLoad]) -> list[OperatorLoad]:
    """Least loaded first. ``sorted`` is stable, so equal scores keep listing order."""
    return sorted(loads, key=lambda load: load.load_score)


def assign(item_count: int) -> Assignment:
    """Pick the least-loaded warehouse operator for an order of ``item_count`` lines.

    Raises:
        Unavailable: no active warehouse operator exists.
    """
    loads = load_snapshot()
    if not loads:
        logger.warning("No warehouse operators available for assignment", item_count=item_count)
        raise Unavailable({"assigned_to": ["No active warehouse operators available"]})

    chosen = rank(loads)[0]
    reason = (
        f"Least loaded operator: {chosen.active_orders} active orders, "
        f"{chosen.total_items} items, load score {chosen.load_score:.1f}"
    )
    logger.info(
        "Warehouse operator selected",
        operator_id=chosen.user_id,
        load_score=chosen.load_score,
        candidates=len(loads),
        item_count=item_count,
    )
    return Assignment(user_id=chosen.user_id, user_name=chosen.user_name, reason=reason, load=chosen)


def suggest_rebalancing(loads: list[OperatorLoad] | None = None) -> RebalancingSuggestion:
    """Flag imbalance when the spread of load scores exceeds half the maximum."""
    if loads is None:
        loads = load_snapshot()

    if len(loads) < 2:
        return RebalancingSuggestion(
            needs_rebalancing=False,
            suggestion="Not enough operators to rebalance",
        )

    ranked = rank(loads)
    least, most = ranked[0], ranked[-1]
    needs = (most.load_score - least.load_score) > REBALANCE_THRESHOLD * most.load_score

    if needs:
        suggestion = (
            f"Consider moving orders from {most.user_name} (score {most.load_score:.1f}) "
            f"to {least.user_name} (score {least.load_score:.1f})"
        )
    else:
        suggestion = "Workload is balanced"

    return RebalancingSuggestion(
        needs_rebalancing=needs,
        suggestion=suggestion,
        most_loaded=most,
        least_loaded=least,
    )
