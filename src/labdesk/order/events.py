"""Order domain events."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from labdesk.domain import labdesk


@labdesk.event(part_of="Order")
class OrderPlaced:
    """An order was created from checkout or quote conversion."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = String()
    customer_name = String(required=True)
    customer_email = String(required=True)
    quote_id = String()
    item_count = Integer(required=True)
    total = Float(required=True)
    placed_at = DateTime(required=True)


@labdesk.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = String()
    previous_status = String(required=True)
    status = String(required=True)
    changed_by = String()
    changed_at = DateTime(required=True)


@labdesk.event(part_of="Order")
class OrderPaymentStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_payment_status = String(required=True)
    payment_status = String(required=True)
    changed_by = String()
    changed_at = DateTime(required=True)


@labdesk.event(part_of="Order")
class OrderDetailsUpdated:
    """Non-status fields (tracking, notes, payment method, …) were patched."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    changed_fields = String(required=True)  # comma-separated field names
    updated_by = String()
    updated_at = DateTime(required=True)


@labdesk.event(part_of="Order")
class OrderDeliveryConfirmed:
    """The ordering customer confirmed receipt."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = String()
    confirmed_by = Identifier(required=True)
    confirmed_at = DateTime(required=True)


@labdesk.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = String()
    reason = String()
    cancelled_by = String()
    cancelled_at = DateTime(required=True)


@labdesk.event(part_of="Order")
class WarehouseAssignmentFailed:
    """No operator could be auto-assigned; every warehouse operator must be told."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    item_count = Integer()
    reason = String()
    failed_at = DateTime(required=True)
