"""Quote request: command and handler.

The sales representative is taken from the customer's record, looked up by
customer id first and by email second. A quote with no representative is
still accepted; it simply notifies nobody until someone picks it up.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from labdesk.access import actor_from, authorize
from labdesk.customer.customer import find_sales_rep
from labdesk.domain import labdesk
from labdesk.quote.quote import Quote
from labdesk.sequence import QUOTE_PREFIX, next_unique_number

logger = structlog.get_logger(__name__)


@labdesk.command(part_of="Quote")
class RequestQuote:
    """Request a quote for one or more products."""

    customer_name = String(required=True, max_length=200)
    customer_email = String(required=True, max_length=254)
    items = Text(required=True)  # JSON list of {product_id, product_name, product_code, quantity, notes}
    user_id = Identifier()
    customer_id = Identifier()
    customer_phone = String(max_length=50)
    organization = String(max_length=200)
    tax_id = String(max_length=50)
    customer_message = Text()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


def quote_number_taken(candidate: str) -> bool:
    repo = current_domain.repository_for(Quote)
    return bool(repo._dao.query.filter(quote_number=candidate).all().items)


@labdesk.command_handler(part_of=Quote)
class RequestQuoteHandler:
    @handle(RequestQuote)
    def request_quote(self, command):
        actor = actor_from(command)
        authorize(actor, "quote:request")

        rep_id, rep_name = find_sales_rep(command.customer_id, command.customer_email)
        quote_number = next_unique_number(QUOTE_PREFIX, quote_number_taken)

        quote = Quote.create(
            quote_number=quote_number,
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            items_data=json.loads(command.items),
            user_id=command.user_id or actor.user_id,
            customer_id=command.customer_id,
            customer_phone=command.customer_phone,
            organization=command.organization,
            tax_id=command.tax_id,
            customer_message=command.customer_message,
            assigned_sales_rep=rep_id,
            assigned_sales_rep_name=rep_name,
        )
        current_domain.repository_for(Quote).add(quote)

        logger.info(
            "Quote requested",
            quote_id=str(quote.id),
            quote_number=quote_number,
            assigned_sales_rep=rep_id,
        )
        return str(quote.id)
