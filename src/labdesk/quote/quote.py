"""Quote aggregate: a customer's price request on its way to becoming an order.

A quote is reviewed twice: first by the customer's sales representative, who
fills in prices and approves or rejects it, then by an administrator. An
approved quote can be converted into an order exactly once.

State Machine:
    pendiente → en_revision_vendedor → {aprobado_vendedor | rechazado_vendedor}
    pendiente → {aprobado_vendedor | rechazado_vendedor}
    aprobado_vendedor → en_revision_admin → {aprobado | rechazado}
    aprobado_vendedor → {aprobado | rechazado}
    aprobado → convertida
    any non-terminal → vencida
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from labdesk.access import Actor
from labdesk.contact import validate_contact
from labdesk.domain import labdesk
from labdesk.errors import Conflict, InvalidState, Unprocessable
from labdesk.quote.events import (
    QuoteAdminApproved,
    QuoteAdminRejected,
    QuoteAdminReviewStarted,
    QuoteConverted,
    QuoteExpired,
    QuotePriced,
    QuoteRequested,
    QuoteVendorApproved,
    QuoteVendorRejected,
)

DEFAULT_VALID_DAYS = 30


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class QuoteStatus(Enum):
    PENDING = "pendiente"
    VENDOR_REVIEW = "en_revision_vendedor"
    VENDOR_APPROVED = "aprobado_vendedor"
    VENDOR_REJECTED = "rechazado_vendedor"
    ADMIN_REVIEW = "en_revision_admin"
    APPROVED = "aprobado"
    REJECTED = "rechazado"
    CONVERTED = "convertida"
    EXPIRED = "vencida"


_VALID_TRANSITIONS = {
    QuoteStatus.PENDING: {
        QuoteStatus.VENDOR_REVIEW,
        QuoteStatus.VENDOR_APPROVED,
        QuoteStatus.VENDOR_REJECTED,
        QuoteStatus.EXPIRED,
    },
    QuoteStatus.VENDOR_REVIEW: {
        QuoteStatus.VENDOR_APPROVED,
        QuoteStatus.VENDOR_REJECTED,
        QuoteStatus.EXPIRED,
    },
    QuoteStatus.VENDOR_APPROVED: {
        QuoteStatus.ADMIN_REVIEW,
        QuoteStatus.APPROVED,
        QuoteStatus.REJECTED,
        QuoteStatus.EXPIRED,
    },
    QuoteStatus.ADMIN_REVIEW: {
        QuoteStatus.APPROVED,
        QuoteStatus.REJECTED,
        QuoteStatus.EXPIRED,
    },
    QuoteStatus.APPROVED: {QuoteStatus.CONVERTED, QuoteStatus.EXPIRED},
    QuoteStatus.VENDOR_REJECTED: set(),  # terminal
    QuoteStatus.REJECTED: set(),  # terminal
    QuoteStatus.CONVERTED: set(),  # terminal
    QuoteStatus.EXPIRED: set(),  # terminal
}

TERMINAL_STATUSES = {s for s, targets in _VALID_TRANSITIONS.items() if not targets}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@labdesk.entity(part_of="Quote")
class QuoteItem:
    """A requested product line. Prices stay empty until the representative fills them in."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_code = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(min_value=0.0)
    subtotal = Float(min_value=0.0)
    discount = Float(min_value=0.0, default=0.0)
    notes = String(max_length=1000)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@labdesk.aggregate
class Quote:
    quote_number = String(required=True, max_length=20, unique=True)
    user_id = Identifier()
    customer_id = Identifier()
    customer_name = String(required=True, max_length=200)
    customer_email = String(required=True, max_length=254)
    customer_phone = String(max_length=50)
    organization = String(max_length=200)
    tax_id = String(max_length=50)
    assigned_sales_rep = Identifier()
    assigned_sales_rep_name = String(max_length=200)
    items = HasMany(QuoteItem)
    subtotal = Float(min_value=0.0)
    discount = Float(min_value=0.0)
    tax = Float(min_value=0.0)
    total = Float(min_value=0.0)
    status = String(choices=QuoteStatus, default=QuoteStatus.PENDING.value)
    valid_until = DateTime()
    customer_message = Text()
    quote_notes = Text()
    internal_notes = Text()
    vendor_notes = Text()
    admin_notes = Text()
    rejection_reason = Text()
    priced_by = Identifier()
    priced_at = DateTime()
    vendor_approved_at = DateTime()
    vendor_approved_by = Identifier()
    vendor_approved_by_name = String(max_length=200)
    vendor_rejected_at = DateTime()
    vendor_rejected_by = Identifier()
    admin_approved_at = DateTime()
    admin_approved_by = Identifier()
    admin_approved_by_name = String(max_length=200)
    admin_rejected_at = DateTime()
    admin_rejected_by = Identifier()
    order_id = Identifier()
    converted_at = DateTime()
    converted_by = Identifier()
    expired_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_link_requires_conversion(self):
        if self.order_id and self.status != QuoteStatus.CONVERTED.value:
            raise ValidationError({"order_id": ["Only a converted quote can reference an order"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        quote_number: str,
        customer_name: str,
        customer_email: str,
        items_data: list[dict],
        user_id: str | None = None,
        customer_id: str | None = None,
        customer_phone: str | None = None,
        organization: str | None = None,
        tax_id: str | None = None,
        customer_message: str | None = None,
        assigned_sales_rep: str | None = None,
        assigned_sales_rep_name: str | None = None,
    ):
        """Open a new quote request in ``pendiente``."""
        validate_contact(customer_name, customer_email, customer_phone)
        if not items_data:
            raise Unprocessable({"items": ["A quote needs at least one item"]})

        now = datetime.now(UTC)
        quote = cls(
            quote_number=quote_number,
            user_id=user_id,
            customer_id=customer_id,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            organization=organization,
            tax_id=tax_id,
            customer_message=customer_message,
            assigned_sales_rep=assigned_sales_rep,
            assigned_sales_rep_name=assigned_sales_rep_name,
            status=QuoteStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            quote.add_items(QuoteItem(**item_data))

        quote.raise_(
            QuoteRequested(
                quote_id=str(quote.id),
                quote_number=quote_number,
                user_id=user_id or "",
                customer_name=customer_name,
                customer_email=customer_email,
                assigned_sales_rep=assigned_sales_rep or "",
                assigned_sales_rep_name=assigned_sales_rep_name or "",
                item_count=len(items_data),
                requested_at=now,
            )
        )
        return quote

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: QuoteStatus) -> None:
        current = QuoteStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidState({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @property
    def item_count(self) -> int:
        """Total units requested across all lines."""
        return sum(item.quantity for item in self.items or [])

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def price(
        self,
        actor: Actor,
        items_data: list[dict],
        subtotal: float,
        total: float,
        discount: float = 0.0,
        tax: float = 0.0,
        valid_days: int = DEFAULT_VALID_DAYS,
        vendor_notes: str | None = None,
        quote_notes: str | None = None,
    ) -> None:
        """Record the representative's prices and totals and open the vendor review.

        ``items_data`` must list the quote's lines in order; only price
        related keys (``unit_price``, ``subtotal``, ``discount``, ``notes``)
        are taken from it.
        """
        current = QuoteStatus(self.status)
        if current != QuoteStatus.VENDOR_REVIEW:
            self._assert_can_transition(QuoteStatus.VENDOR_REVIEW)

        if len(items_data) != len(self.items):
            raise Unprocessable({"items": [f"Expected prices for {len(self.items)} items, got {len(items_data)}"]})

        for item, data in zip(self.items, items_data, strict=True):
            if data.get("product_id") and data["product_id"] != item.product_id:
                raise Unprocessable({"items": [f"Item order does not match quote at product {item.product_id}"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            for item, data in zip(self.items, items_data, strict=True):
                item.unit_price = data.get("unit_price")
                item.subtotal = data.get("subtotal")
                item.discount = data.get("discount") or 0.0
                if data.get("notes") is not None:
                    item.notes = data["notes"]

            self.subtotal = subtotal
            self.discount = discount
            self.tax = tax
            self.total = total
            self.valid_until = now + timedelta(days=valid_days)
            if vendor_notes is not None:
                self.vendor_notes = vendor_notes
            if quote_notes is not None:
                self.quote_notes = quote_notes
            self.priced_by = actor.user_id
            self.priced_at = now
            self.status = QuoteStatus.VENDOR_REVIEW.value
            self.updated_at = now

        self.raise_(
            QuotePriced(
                quote_id=str(self.id),
                quote_number=self.quote_number,
                total=total,
                valid_until=self.valid_until,
                priced_by=actor.user_id,
                priced_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Vendor review
    # -------------------------------------------------------------------
    def vendor_review(
        self,
        actor: Actor,
        approved: bool,
        notes: str | None = None,
        rejection_reason: str | None = None,
    ) -> None:
        """First-stage decision by the sales representative (or an administrator)."""
        target = QuoteStatus.VENDOR_APPROVED if approved else QuoteStatus.VENDOR_REJECTED
        self._assert_can_transition(target)

        now = datetime.now(UTC)
        self.status = target.value
        self.vendor_notes = notes
        self.updated_at = now

        if approved:
            self.vendor_approved_at = now
            self.vendor_approved_by = actor.user_id
            self.vendor_approved_by_name = actor.display_name
            self.raise_(
                QuoteVendorApproved(
                    quote_id=str(self.id),
                    quote_number=self.quote_number,
                    user_id=self.user_id or "",
                    customer_name=self.customer_name,
                    approved_by=actor.user_id,
                    approved_by_name=actor.display_name,
                    approved_at=now,
                )
            )
        else:
            self.vendor_rejected_at = now
            self.vendor_rejected_by = actor.user_id
            self.rejection_reason = rejection_reason
            self.raise_(
                QuoteVendorRejected(
                    quote_id=str(self.id),
                    quote_number=self.quote_number,
                    user_id=self.user_id or "",
                    rejected_by=actor.user_id,
                    rejection_reason=rejection_reason or "",
                    rejected_at=now,
                )
            )

    # -------------------------------------------------------------------
    # Admin review
    # -------------------------------------------------------------------
    def start_admin_review(self, actor: Actor) -> None:
        self._assert_can_transition(QuoteStatus.ADMIN_REVIEW)
        now = datetime.now(UTC)
        self.status = QuoteStatus.ADMIN_REVIEW.value
        self.updated_at = now
        self.raise_(
            QuoteAdminReviewStarted(
                quote_id=str(self.id),
                quote_number=self.quote_number,
                reviewer_id=actor.user_id,
                started_at=now,
            )
        )

    def admin_review(
        self,
        actor: Actor,
        approved: bool,
        notes: str | None = None,
        rejection_reason: str | None = None,
    ) -> None:
        """Final decision by an administrator."""
        target = QuoteStatus.APPROVED if approved else QuoteStatus.REJECTED
        self._assert_can_transition(target)

        now = datetime.now(UTC)
        self.status = target.value
        self.admin_notes = notes
        self.updated_at = now

        if approved:
            self.admin_approved_at = now
            self.admin_approved_by = actor.user_id
            self.admin_approved_by_name = actor.display_name
            self.raise_(
                QuoteAdminApproved(
                    quote_id=str(self.id),
                    quote_number=self.quote_number,
                    user_id=self.user_id or "",
                    assigned_sales_rep=self.assigned_sales_rep or "",
                    approved_by=actor.user_id,
                    approved_at=now,
                )
            )
        else:
            self.admin_rejected_at = now
            self.admin_rejected_by = actor.user_id
            self.rejection_reason = rejection_reason
            self.raise_(
                QuoteAdminRejected(
                    quote_id=str(self.id),
                    quote_number=self.quote_number,
                    user_id=self.user_id or "",
                    assigned_sales_rep=self.assigned_sales_rep or "",
                    rejected_by=actor.user_id,
                    rejection_reason=rejection_reason or "",
                    rejected_at=now,
                )
            )

    # -------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------
    def assert_convertible(self) -> None:
        """Raise unless this quote can be turned into an order right now."""
        if self.order_id:
            raise Conflict({"order_id": [f"Quote already converted to order {self.order_id}"]})
        if QuoteStatus(self.status) != QuoteStatus.APPROVED:
            raise InvalidState({"status": [f"Only approved quotes can be converted, quote is {self.status}"]})
        if not self.items:
            raise Unprocessable({"items": ["Quote has no items"]})
        if not self.total:
            raise Unprocessable({"total": ["Quote has no total"]})

    def mark_converted(self, actor: Actor, order_id: str, order_number: str) -> None:
        self.assert_convertible()
        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = QuoteStatus.CONVERTED.value
            self.order_id = order_id
            self.converted_at = now
            self.converted_by = actor.user_id
            self.updated_at = now

        self.raise_(
            QuoteConverted(
                quote_id=str(self.id),
                quote_number=self.quote_number,
                order_id=order_id,
                order_number=order_number,
                user_id=self.user_id or "",
                customer_name=self.customer_name,
                assigned_sales_rep=self.assigned_sales_rep or "",
                total=self.total,
                converted_by=actor.user_id,
                converted_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Expiry
    # -------------------------------------------------------------------
    def expire(self) -> None:
        self._assert_can_transition(QuoteStatus.EXPIRED)
        now = datetime.now(UTC)
        self.status = QuoteStatus.EXPIRED.value
        self.expired_at = now
        self.updated_at = now
        self.raise_(
            QuoteExpired(
                quote_id=str(self.id),
                quote_number=self.quote_number,
                expired_at=now,
            )
        )
