"""Quote domain events: facts about a quote's progress through review.

Notification handlers subscribe to the ``labdesk::quote`` stream and turn
these into notices for representatives, administrators and customers.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from labdesk.domain import labdesk


@labdesk.event(part_of="Quote")
class QuoteRequested:
    """A customer requested a quote."""

    __version__ = 1

    quote_id = Identifier(required=True)
    quote_number = String(required=True)
    user_id = String()
    customer_name = String(required=True)
    customer_email = String(required=True)
    assigned_sales_rep = String()
    assigned_sales_rep_name = String()
    item_count = Integer(required=True)
    requested_at = DateTime(required=True)


@labdesk.event(part_of="Quote")
class QuotePriced:
    """The sales representative filled in prices and totals."""

    __version__ = 1

    quote_id = Identifier(required=True)
    quote_number = String(required=True)
    total = Float(required=True)
    valid_until = DateTime()
    priced_by = Identifier(required=True)
    priced_at = DateTime(required=True)


@labdesk.event(part_of="Quote")
class QuoteVendorApproved:
    """The sales representative approved the quote for administrator review."""

    __version__ = 1

    quote_id = Identifier(required=True)
    quote_number = String(required=True)
    user_id = String()
    customer_name = String()
    approved_by = Identifier(required=True)
    approved_by_name = String()
    approved_at = DateTime(required=True)


@labdesk.event(part_of="Quote")
class QuoteVendorRejected:
    """The sales representative rejected the quote."""

    __version__ = 1

    quote_id = Identifier(required=True)
    quote_number = String(required=True)
    user_id = String()
    rejected_by = Identifier(required=True)
    rejection_reason = String()
    rejected_at = DateTime(required=True)


@labdesk.event(part_of="Quote")
class QuoteAdminReviewStarted:
    """An administrator picked the quote up for final review."""

    __version__ = 1

    quote_id = Identifier(required=True)
    quote_number = String(required=True)
    reviewer_id = Identifier(required=True)
    started_at = DateTime(required=True)


@labdesk.event(part_of="Quote")
class QuoteAdminApproved:
    """An administrator gave final approval."""

    __version__ = 1

    quote_id = Identifier(required=True)
    quote_number = String(required=True)
    user_id = String()
    assigned_sales_rep = String()
    approved_by = Identifier(required=True)
    approved_at = DateTime(required=True)


@labdesk.event(part_of="Quote")
class QuoteAdminRejected:
    """An administrator rejected the quote."""

    __version__ = 1

    quote_id = Identifier(required=True)
    quote_number = String(required=True)
    user_id = String()
    assigned_sales_rep = String()
    rejected_by = Identifier(required=True)
    rejection_reason = String()
    rejected_at = DateTime(required=True)


@labdesk.event(part_of="Quote")
class QuoteConverted:
    """An approved quote became an order."""

    __version__ = 1

    quote_id = Identifier(required=True)
    quote_number = String(required=True)
    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = String()
    customer_name = String()
    assigned_sales_rep = String()
    total = Float()
    converted_by = Identifier(required=True)
    converted_at = DateTime(required=True)


@labdesk.event(part_of="Quote")
class QuoteExpired:
    """The quote lapsed before it was converted."""

    __version__ = 1

    quote_id = Identifier(required=True)
    quote_number = String(required=True)
    expired_at = DateTime(required=True)
