"""Quote read side: detail lookup, scoped listings and the review queue."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from labdesk.errors import NotFound
from labdesk.quote.quote import Quote, QuoteStatus

# Quotes still waiting on their sales representative
AWAITING_REVIEW_STATUSES = (QuoteStatus.PENDING.value, QuoteStatus.VENDOR_REVIEW.value)


def quote_for(quote_id: str) -> Quote:
    try:
        return current_domain.repository_for(Quote).get(quote_id)
    except ObjectNotFoundError:
        raise NotFound({"quote_id": [f"Quote {quote_id} does not exist"]}) from None


def quotes_for(
    user_id: str | None = None,
    assigned_sales_rep: str | None = None,
    status: str | None = None,
) -> list[Quote]:
    """Quotes matching every given filter, newest first."""
    filters = {}
    if user_id:
        filters["user_id"] = user_id
    if assigned_sales_rep:
        filters["assigned_sales_rep"] = assigned_sales_rep
    if status:
        filters["status"] = status

    repo = current_domain.repository_for(Quote)
    query = repo._dao.query.filter(**filters) if filters else repo._dao.query
    return sorted(query.all().items, key=lambda quote: quote.created_at, reverse=True)


def pending_review_queue(sales_rep_id: str | None = None) -> list[Quote]:
    """Quotes still awaiting representative review, oldest first, optionally for one representative."""
    filters = {"status__in": list(AWAITING_REVIEW_STATUSES)}
    if sales_rep_id:
        filters["assigned_sales_rep"] = sales_rep_id

    repo = current_domain.repository_for(Quote)
    items = repo._dao.query.filter(**filters).all().items
    return sorted(items, key=lambda quote: quote.created_at)
