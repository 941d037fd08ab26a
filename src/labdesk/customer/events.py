"""Customer domain events."""

from protean.fields import DateTime, Identifier, String

from labdesk.domain import labdesk


@labdesk.event(part_of="Customer")
class CustomerRegistered:
    """A customer account became known to the quoting workflow."""

    __version__ = 1

    customer_id = Identifier(required=True)
    email = String(required=True)
    name = String(required=True)
    assigned_sales_rep = String()
    registered_at = DateTime(required=True)


@labdesk.event(part_of="Customer")
class SalesRepAssigned:
    """A sales representative took over a customer account."""

    __version__ = 1

    customer_id = Identifier(required=True)
    previous_sales_rep = String()
    assigned_sales_rep = Identifier(required=True)
    assigned_at = DateTime(required=True)
