"""Quote pricing: the representative fills in unit prices and totals."""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from labdesk.access import actor_from, authorize
from labdesk.domain import labdesk
from labdesk.quote.quote import DEFAULT_VALID_DAYS, Quote


@labdesk.command(part_of="Quote")
class PriceQuote:
    quote_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of {product_id, unit_price, subtotal, discount, notes}
    subtotal = Float(required=True, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    discount = Float(min_value=0.0, default=0.0)
    tax = Float(min_value=0.0, default=0.0)
    valid_days = Integer(min_value=1, default=DEFAULT_VALID_DAYS)
    vendor_notes = Text()
    quote_notes = Text()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


@labdesk.command_handler(part_of=Quote)
class PriceQuoteHandler:
    @handle(PriceQuote)
    def price_quote(self, command):
        actor = actor_from(command)
        repo = current_domain.repository_for(Quote)
        quote = repo.get(command.quote_id)
        authorize(actor, "quote:price", quote)

        quote.price(
            actor,
            items_data=json.loads(command.items),
            subtotal=command.subtotal,
            total=command.total,
            discount=command.discount or 0.0,
            tax=command.tax or 0.0,
            valid_days=command.valid_days or DEFAULT_VALID_DAYS,
            vendor_notes=command.vendor_notes,
            quote_notes=command.quote_notes,
        )
        repo.add(quote)
