"""LabDesk bounded context: quote approval, orders and warehouse preparation.

A customer quote is reviewed by a sales representative and then by an
administrator, converted into an order, auto-assigned to the least-loaded
warehouse operator and tracked item by item until dispatch. Every state
change raises a domain event; notifications are created by event handlers so
that a failed notification never blocks the transition that caused it.
"""

from protean.domain import Domain

from labdesk.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

labdesk = Domain(name="labdesk")
