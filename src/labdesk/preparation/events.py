"""Preparation domain events: warehouse-side facts about an order's pick."""

from protean.fields import DateTime, Identifier, Integer, String

from labdesk.domain import labdesk


@labdesk.event(part_of="OrderPreparation")
class PreparationAssigned:
    """A preparation was opened and given to an operator."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    assigned_to = Identifier(required=True)
    assigned_to_name = String()
    assignment_mode = String(required=True)  # auto | manual | self
    total_items = Integer(required=True)
    estimated_minutes = Integer()
    assigned_at = DateTime(required=True)


@labdesk.event(part_of="OrderPreparation")
class PreparationReassigned:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_assignee = String()
    assigned_to = Identifier(required=True)
    assigned_to_name = String()
    assignment_mode = String(required=True)
    reassigned_by = Identifier(required=True)
    total_items = Integer()
    reassigned_at = DateTime(required=True)


@labdesk.event(part_of="OrderPreparation")
class PreparationProgressRecorded:
    __version__ = 1

    order_id = Identifier(required=True)
    prepared_items = Integer(required=True)
    total_items = Integer(required=True)
    progress = Integer(required=True)
    status = String(required=True)
    recorded_at = DateTime(required=True)


@labdesk.event(part_of="OrderPreparation")
class PreparationCompleted:
    """Every item of the order has been prepared."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    assigned_to = String()
    total_items = Integer(required=True)
    completed_at = DateTime(required=True)


@labdesk.event(part_of="OrderPreparation")
class OrderDispatched:
    """The prepared order left the warehouse."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    carrier = String()
    tracking_number = String()
    dispatched_by = Identifier(required=True)
    dispatched_at = DateTime(required=True)


@labdesk.event(part_of="OrderPreparation")
class PreparationCancelled:
    """The order was cancelled before its preparation was dispatched."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    assigned_to = String()
    previous_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)
