"""Quote expiry: close a quote that will not be converted."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from labdesk.access import actor_from, authorize
from labdesk.domain import labdesk
from labdesk.quote.quote import Quote


@labdesk.command(part_of="Quote")
class ExpireQuote:
    quote_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


@labdesk.command_handler(part_of=Quote)
class ExpireQuoteHandler:
    @handle(ExpireQuote)
    def expire_quote(self, command):
        actor = actor_from(command)
        repo = current_domain.repository_for(Quote)
        quote = repo.get(command.quote_id)
        authorize(actor, "quote:expire", quote)
        quote.expire()
        repo.add(quote)
