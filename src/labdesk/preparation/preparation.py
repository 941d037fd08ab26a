"""OrderPreparation aggregate: the warehouse pick record for one order.

Keyed by the order id, so an order has at most one preparation. Items mirror
the order lines; progress is derived from how many of them are flagged as
prepared.

State Machine:
    pendiente → asignado → en_preparacion → preparado → despachado
    preparado → en_preparacion (a progress report un-prepares an item)
    reassignment resets en_preparacion → asignado
    any state before despachado → cancelado (the order was cancelled)
"""

import math
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text

from labdesk.domain import labdesk
from labdesk.errors import InvalidState, Unprocessable
from labdesk.preparation.events import (
    OrderDispatched,
    PreparationAssigned,
    PreparationCancelled,
    PreparationCompleted,
    PreparationProgressRecorded,
    PreparationReassigned,
)

MINUTES_PER_ITEM = 2
MINUTES_PER_ORDER = 5


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PreparationStatus(Enum):
    PENDING = "pendiente"
    ASSIGNED = "asignado"
    IN_PROGRESS = "en_preparacion"
    PREPARED = "preparado"
    DISPATCHED = "despachado"
    CANCELLED = "cancelado"


class AssignmentMode(Enum):
    AUTO = "auto"
    MANUAL = "manual"
    SELF = "self"


# Statuses that count towards an operator's current workload
ACTIVE_STATUSES = (
    PreparationStatus.PENDING.value,
    PreparationStatus.ASSIGNED.value,
    PreparationStatus.IN_PROGRESS.value,
)

_REASSIGNABLE_STATUSES = {
    PreparationStatus.PENDING,
    PreparationStatus.ASSIGNED,
    PreparationStatus.IN_PROGRESS,
}

_CANCELLABLE_STATUSES = _REASSIGNABLE_STATUSES | {PreparationStatus.PREPARED}


def estimate_minutes(line_count: int) -> int:
    return line_count * MINUTES_PER_ITEM + MINUTES_PER_ORDER


def progress_percentage(prepared: int, total: int) -> int:
    """``round(100 * prepared / total)`` rounding halves up; 0 when there are no items."""
    if not total:
        return 0
    return math.floor(prepared * 100 / total + 0.5)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@labdesk.entity(part_of="OrderPreparation")
class PreparationItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_code = String(max_length=100)
    quantity_ordered = Integer(required=True, min_value=1)
    quantity_prepared = Integer(min_value=0, default=0)
    is_prepared = Boolean(default=False)
    notes = String(max_length=1000)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@labdesk.aggregate
class OrderPreparation:
    order_id = Identifier(identifier=True)
    order_number = String(required=True, max_length=20)
    status = String(choices=PreparationStatus, default=PreparationStatus.PENDING.value)
    assigned_to = Identifier()
    assigned_to_name = String(max_length=200)
    assigned_at = DateTime()
    assigned_by = String(choices=AssignmentMode)
    items = HasMany(PreparationItem)
    total_items = Integer(min_value=0, default=0)
    prepared_items = Integer(min_value=0, default=0)
    progress = Integer(min_value=0, max_value=100, default=0)
    estimated_minutes = Integer(min_value=0)
    started_at = DateTime()
    completed_at = DateTime()
    preparation_notes = Text()
    dispatched_by = Identifier()
    dispatched_by_name = String(max_length=200)
    dispatched_at = DateTime()
    carrier = String(max_length=100)
    tracking_number = String(max_length=100)
    dispatch_notes = Text()
    cancellation_reason = Text()
    cancelled_at = DateTime()
    reassigned_from = Identifier()
    reassigned_by = Identifier()
    reassigned_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def counters_match_items(self):
        prepared = sum(1 for item in self.items or [] if item.is_prepared)
        if self.prepared_items != prepared:
            raise ValidationError({"prepared_items": ["Prepared count does not match prepared items"]})
        if self.progress != progress_percentage(prepared, self.total_items):
            raise ValidationError({"progress": ["Progress does not match prepared items"]})

    @invariant.post
    def prepared_status_requires_all_items(self):
        if self.status == PreparationStatus.PREPARED.value and self.prepared_items != self.total_items:
            raise ValidationError({"status": ["A preparation can only be preparado once every item is prepared"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_id: str,
        order_number: str,
        items_data: list[dict],
        assigned_to: str,
        assigned_to_name: str | None = None,
        assignment_mode: str = AssignmentMode.AUTO.value,
        estimated_minutes: int | None = None,
    ):
        """Open an assigned preparation with one unprepared item per order line.

        ``estimated_minutes`` defaults to two minutes per line plus five.
        """
        if not items_data:
            raise Unprocessable({"items": ["Cannot prepare an order without items"]})

        now = datetime.now(UTC)
        items = [
            PreparationItem(
                product_id=data["product_id"],
                product_name=data["product_name"],
                product_code=data.get("product_code"),
                quantity_ordered=data["quantity"],
                quantity_prepared=0,
                is_prepared=False,
            )
            for data in items_data
        ]
        prep = cls(
            order_id=order_id,
            order_number=order_number,
            status=PreparationStatus.ASSIGNED.value,
            assigned_to=assigned_to,
            assigned_to_name=assigned_to_name,
            assigned_at=now,
            assigned_by=assignment_mode,
            items=items,
            total_items=len(items),
            prepared_items=0,
            progress=0,
            estimated_minutes=estimated_minutes if estimated_minutes is not None else estimate_minutes(len(items)),
            created_at=now,
            updated_at=now,
        )
        prep._raise_assigned(now)
        return prep

    def _raise_assigned(self, now: datetime) -> None:
        self.raise_(
            PreparationAssigned(
                order_id=str(self.order_id),
                order_number=self.order_number,
                assigned_to=self.assigned_to,
                assigned_to_name=self.assigned_to_name or "",
                assignment_mode=self.assigned_by,
                total_items=self.total_items,
                estimated_minutes=self.estimated_minutes,
                assigned_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------
    def assign(self, assigned_to: str, assigned_to_name: str | None, assignment_mode: str) -> None:
        """Assign a ``pendiente`` preparation to an operator."""
        if PreparationStatus(self.status) != PreparationStatus.PENDING:
            raise InvalidState({"status": [f"Preparation is already {self.status}"]})

        now = datetime.now(UTC)
        self.status = PreparationStatus.ASSIGNED.value
        self.assigned_to = assigned_to
        self.assigned_to_name = assigned_to_name
        self.assigned_at = now
        self.assigned_by = assignment_mode
        self.updated_at = now
        self._raise_assigned(now)

    def reassign(
        self,
        assigned_to: str,
        assigned_to_name: str | None,
        assignment_mode: str,
        reassigned_by: str,
    ) -> None:
        """Hand the preparation to another operator.

        Work already in progress goes back to ``asignado`` so the new
        operator starts it explicitly.
        """
        current = PreparationStatus(self.status)
        if current not in _REASSIGNABLE_STATUSES:
            raise InvalidState({"status": [f"Cannot reassign a preparation that is {current.value}"]})

        now = datetime.now(UTC)
        previous = self.assigned_to
        self.reassigned_from = previous
        self.reassigned_by = reassigned_by
        self.reassigned_at = now
        self.assigned_to = assigned_to
        self.assigned_to_name = assigned_to_name
        self.assigned_at = now
        self.assigned_by = assignment_mode
        if current in (PreparationStatus.IN_PROGRESS, PreparationStatus.PENDING):
            self.status = PreparationStatus.ASSIGNED.value
        self.updated_at = now

        self.raise_(
            PreparationReassigned(
                order_id=str(self.order_id),
                order_number=self.order_number,
                previous_assignee=previous or "",
                assigned_to=assigned_to,
                assigned_to_name=assigned_to_name or "",
                assignment_mode=assignment_mode,
                reassigned_by=reassigned_by,
                total_items=self.total_items,
                reassigned_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------
    def _validate_progress_payload(self, items_data) -> None:
        if not isinstance(items_data, list) or not items_data:
            raise Unprocessable({"items": ["A non-empty list of items is required"]})
        if len(items_data) != len(self.items):
            raise Unprocessable({"items": [f"Expected {len(self.items)} items, got {len(items_data)}"]})

        for position, (item, data) in enumerate(zip(self.items, items_data, strict=True)):
            if not isinstance(data, dict):
                raise Unprocessable({"items": [f"Item {position} is not an object"]})
            if data.get("product_id") != item.product_id:
                raise Unprocessable({"items": [f"Item {position} does not match product {item.product_id}"]})
            quantity = data.get("quantity_prepared", 0)
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 0:
                raise Unprocessable({"items": [f"Item {position} has an invalid prepared quantity"]})
            if not isinstance(data.get("is_prepared"), bool):
                raise Unprocessable({"items": [f"Item {position} must say whether it is prepared"]})

    def record_progress(self, items_data: list[dict], notes: str | None = None) -> None:
        """Replace item progress and recompute counters and status."""
        current = PreparationStatus(self.status)
        if current == PreparationStatus.PENDING:
            raise InvalidState({"status": ["Preparation has not been assigned yet"]})
        if current == PreparationStatus.DISPATCHED:
            raise InvalidState({"status": ["Preparation has already been dispatched"]})
        if current == PreparationStatus.CANCELLED:
            raise InvalidState({"status": ["The order of this preparation was cancelled"]})

        self._validate_progress_payload(items_data)

        now = datetime.now(UTC)
        with atomic_change(self):
            for item, data in zip(self.items, items_data, strict=True):
                item.quantity_prepared = data.get("quantity_prepared", 0)
                item.is_prepared = data["is_prepared"]
                if data.get("notes") is not None:
                    item.notes = data["notes"]

            prepared = sum(1 for item in self.items if item.is_prepared)
            self.prepared_items = prepared
            self.progress = progress_percentage(prepared, self.total_items)
            if notes is not None:
                self.preparation_notes = notes

            if current == PreparationStatus.ASSIGNED:
                self.status = PreparationStatus.IN_PROGRESS.value
                self.started_at = self.started_at or now

            completed = prepared == self.total_items
            if completed and current != PreparationStatus.PREPARED:
                self.status = PreparationStatus.PREPARED.value
                self.completed_at = now
            elif not completed and current == PreparationStatus.PREPARED:
                self.status = PreparationStatus.IN_PROGRESS.value
                self.completed_at = None

            self.updated_at = now

        self.raise_(
            PreparationProgressRecorded(
                order_id=str(self.order_id),
                prepared_items=self.prepared_items,
                total_items=self.total_items,
                progress=self.progress,
                status=self.status,
                recorded_at=now,
            )
        )
        if self.status == PreparationStatus.PREPARED.value and current != PreparationStatus.PREPARED:
            self.raise_(
                PreparationCompleted(
                    order_id=str(self.order_id),
                    order_number=self.order_number,
                    assigned_to=self.assigned_to or "",
                    total_items=self.total_items,
                    completed_at=now,
                )
            )

    # -------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------
    def dispatch(
        self,
        dispatched_by: str,
        dispatched_by_name: str | None = None,
        carrier: str | None = None,
        tracking_number: str | None = None,
        notes: str | None = None,
    ) -> None:
        if PreparationStatus(self.status) != PreparationStatus.PREPARED:
            raise InvalidState({"status": [f"Only prepared orders can be dispatched, preparation is {self.status}"]})

        now = datetime.now(UTC)
        self.status = PreparationStatus.DISPATCHED.value
        self.dispatched_by = dispatched_by
        self.dispatched_by_name = dispatched_by_name
        self.dispatched_at = now
        self.carrier = carrier
        self.tracking_number = tracking_number
        self.dispatch_notes = notes
        self.updated_at = now

        self.raise_(
            OrderDispatched(
                order_id=str(self.order_id),
                order_number=self.order_number,
                carrier=carrier or "",
                tracking_number=tracking_number or "",
                dispatched_by=dispatched_by,
                dispatched_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason: str | None = None) -> None:
        """Close the preparation because its order was cancelled (only before dispatch)."""
        current = PreparationStatus(self.status)
        if current not in _CANCELLABLE_STATUSES:
            raise InvalidState({"status": [f"Cannot cancel a preparation that is {current.value}"]})

        now = datetime.now(UTC)
        self.status = PreparationStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.updated_at = now

        self.raise_(
            PreparationCancelled(
                order_id=str(self.order_id),
                order_number=self.order_number,
                assigned_to=self.assigned_to or "",
                previous_status=current.value,
                reason=reason or "",
                cancelled_at=now,
            )
        )

    @property
    def duration_minutes(self) -> float | None:
        """Minutes between start and completion, when both are known."""
        if not self.started_at or not self.completed_at:
            return None
        return (self.completed_at - self.started_at).total_seconds() / 60
