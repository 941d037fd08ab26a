"""Quote approval: vendor review, admin review, and the step between them.

Vendor review may be done by the quote's own representative or by an
administrator. Admin review is reserved to ``admin``/``root``.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from labdesk.access import actor_from, authorize
from labdesk.domain import labdesk
from labdesk.quote.quote import Quote

logger = structlog.get_logger(__name__)


@labdesk.command(part_of="Quote")
class VendorReviewQuote:
    """Approve or reject a quote as its sales representative."""

    quote_id = Identifier(required=True)
    approved = Boolean(default=False)
    notes = Text()
    rejection_reason = Text()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


@labdesk.command(part_of="Quote")
class StartAdminReview:
    quote_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


@labdesk.command(part_of="Quote")
class AdminReviewQuote:
    """Give a vendor-approved quote its final approval or rejection."""

    quote_id = Identifier(required=True)
    approved = Boolean(default=False)
    notes = Text()
    rejection_reason = Text()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


@labdesk.command_handler(part_of=Quote)
class QuoteApprovalHandler:
    @handle(VendorReviewQuote)
    def vendor_review(self, command):
        actor = actor_from(command)
        repo = current_domain.repository_for(Quote)
        quote = repo.get(command.quote_id)
        authorize(actor, "quote:vendor_review", quote)

        quote.vendor_review(
            actor,
            approved=command.approved,
            notes=command.notes,
            rejection_reason=command.rejection_reason,
        )
        repo.add(quote)
        logger.info(
            "Quote vendor review recorded",
            quote_id=command.quote_id,
            approved=command.approved,
            reviewer=actor.user_id,
        )

    @handle(StartAdminReview)
    def start_admin_review(self, command):
        actor = actor_from(command)
        authorize(actor, "quote:admin_review")
        repo = current_domain.repository_for(Quote)
        quote = repo.get(command.quote_id)
        quote.start_admin_review(actor)
        repo.add(quote)

    @handle(AdminReviewQuote)
    def admin_review(self, command):
        actor = actor_from(command)
        authorize(actor, "quote:admin_review")
        repo = current_domain.repository_for(Quote)
        quote = repo.get(command.quote_id)

        quote.admin_review(
            actor,
            approved=command.approved,
            notes=command.notes,
            rejection_reason=command.rejection_reason,
        )
        repo.add(quote)
        logger.info(
            "Quote admin review recorded",
            quote_id=command.quote_id,
            approved=command.approved,
            reviewer=actor.user_id,
        )
