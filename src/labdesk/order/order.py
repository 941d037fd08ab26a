"""Order aggregate (CQRS): a binding purchase tracked from checkout to delivery.

Orders come from two places: quote conversion and direct checkout. Warehouse
staff move them into ``procesando`` when preparation starts, dispatch moves
them to ``enviado`` and only the ordering customer can confirm delivery.

State Machine:
    pendiente → confirmado → procesando → enviado → entregado
    forward skips along the chain are allowed (pendiente → procesando, …)
    {pendiente, confirmado, procesando, enviado} → cancelado
    entregado and cancelado are terminal
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from labdesk.contact import validate_contact
from labdesk.domain import labdesk
from labdesk.errors import Forbidden, InvalidState, Unprocessable
from labdesk.order.events import (
    OrderCancelled,
    OrderDeliveryConfirmed,
    OrderDetailsUpdated,
    OrderPaymentStatusChanged,
    OrderPlaced,
    OrderStatusChanged,
    WarehouseAssignmentFailed,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pendiente"
    CONFIRMED = "confirmado"
    PROCESSING = "procesando"
    SHIPPED = "enviado"
    DELIVERED = "entregado"
    CANCELLED = "cancelado"


class PaymentStatus(Enum):
    PENDING = "pendiente"
    PARTIAL = "parcial"
    PAID = "pagado"
    REFUNDED = "reembolsado"


class PaymentMethod(Enum):
    TRANSFER = "transferencia"
    CASH = "efectivo"
    CHEQUE = "cheque"
    CARD = "tarjeta"
    CREDIT_30 = "credito_30"
    CREDIT_60 = "credito_60"
    CREDIT_90 = "credito_90"


class ShippingMethod(Enum):
    PICKUP = "retiro"
    STANDARD = "despacho_standard"
    EXPRESS = "despacho_express"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # terminal
    OrderStatus.CANCELLED: set(),  # terminal
}

TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# First-occurrence timestamp stamped when the order enters each status
_STATUS_TIMESTAMPS = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

# Fields any staff member may patch besides status and payment status
_DETAIL_FIELDS = ("payment_method", "tracking_number", "shipping_method", "internal_notes", "customer_notes")


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@labdesk.value_object(part_of="Order")
class ShippingAddress:
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    country = String(max_length=100, default="Chile")
    phone = String(max_length=50)
    contact_name = String(max_length=200)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@labdesk.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_code = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    subtotal = Float(required=True, min_value=0.0)
    discount = Float(min_value=0.0, default=0.0)
    tax = Float(min_value=0.0, default=0.0)
    notes = String(max_length=1000)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@labdesk.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    user_id = Identifier()
    customer_name = String(required=True, max_length=200)
    customer_email = String(required=True, max_length=254)
    customer_phone = String(max_length=50)
    organization = String(max_length=200)
    tax_id = String(max_length=50)
    quote_id = Identifier()
    quote_number = String(max_length=20)
    assigned_sales_rep = Identifier()
    items = HasMany(OrderItem)
    subtotal = Float(required=True, min_value=0.0)
    discount = Float(min_value=0.0, default=0.0)
    tax = Float(min_value=0.0, default=0.0)
    shipping_cost = Float(min_value=0.0, default=0.0)
    total = Float(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod)
    shipping_address = ValueObject(ShippingAddress)
    shipping_method = String(choices=ShippingMethod, default=ShippingMethod.STANDARD.value)
    tracking_number = String(max_length=100)
    customer_notes = Text()
    internal_notes = Text()
    cancellation_reason = Text()
    created_by = Identifier()
    updated_by = Identifier()
    update_origin = String(max_length=255)
    confirmed_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    delivery_confirmed_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_be_positive(self):
        if self.total is not None and self.total <= 0:
            raise ValidationError({"total": ["Order total must be greater than zero"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number: str,
        customer_name: str,
        customer_email: str,
        items_data: list[dict],
        subtotal: float,
        total: float,
        discount: float = 0.0,
        tax: float = 0.0,
        shipping_cost: float = 0.0,
        user_id: str | None = None,
        customer_phone: str | None = None,
        organization: str | None = None,
        tax_id: str | None = None,
        payment_method: str | None = None,
        shipping_address: dict | None = None,
        shipping_method: str | None = None,
        customer_notes: str | None = None,
        quote_id: str | None = None,
        quote_number: str | None = None,
        assigned_sales_rep: str | None = None,
        created_by: str | None = None,
    ):
        """Create a new order in ``pendiente`` with payment ``pendiente``."""
        validate_contact(customer_name, customer_email, customer_phone)
        if not items_data:
            raise Unprocessable({"items": ["An order needs at least one item"]})
        if not total or total <= 0:
            raise Unprocessable({"total": ["Order total must be greater than zero"]})

        shipping_method = shipping_method or ShippingMethod.STANDARD.value
        if not shipping_address and shipping_method != ShippingMethod.PICKUP.value:
            raise Unprocessable({"shipping_address": ["A shipping address is required for delivery"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            user_id=user_id,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            organization=organization,
            tax_id=tax_id,
            quote_id=quote_id,
            quote_number=quote_number,
            assigned_sales_rep=assigned_sales_rep,
            items=[OrderItem(**item_data) for item_data in items_data],
            subtotal=subtotal,
            discount=discount,
            tax=tax,
            shipping_cost=shipping_cost,
            total=total,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=payment_method,
            shipping_address=ShippingAddress(**shipping_address) if shipping_address else None,
            shipping_method=shipping_method,
            customer_notes=customer_notes,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                user_id=user_id or "",
                customer_name=customer_name,
                customer_email=customer_email,
                quote_id=quote_id or "",
                item_count=len(items_data),
                total=total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATUSES

    @property
    def unit_count(self) -> int:
        """Total units across all lines."""
        return sum(item.quantity for item in self.items or [])

    def _assert_not_terminal(self) -> None:
        if self.is_terminal:
            raise InvalidState({"status": [f"Order is {self.status} and can no longer be modified"]})

    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidState({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _stamp_audit(self, actor_id: str | None, origin: str | None, now: datetime) -> None:
        self.updated_by = actor_id
        self.update_origin = origin or "unknown"
        self.updated_at = now

    def _move_to(self, target: OrderStatus, actor_id: str | None, origin: str | None, now: datetime) -> None:
        """Apply a status change, stamping the first-occurrence timestamp."""
        previous = self.status
        self._assert_can_transition(target)
        self.status = target.value

        stamp_field = _STATUS_TIMESTAMPS.get(target)
        if stamp_field and getattr(self, stamp_field) is None:
            setattr(self, stamp_field, now)

        self._stamp_audit(actor_id, origin, now)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=self.user_id or "",
                previous_status=previous,
                status=target.value,
                changed_by=actor_id or "",
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Staff updates
    # -------------------------------------------------------------------
    def apply_update(
        self,
        actor_id: str,
        origin: str | None = None,
        status: str | None = None,
        payment_status: str | None = None,
        **details,
    ) -> None:
        """Patch status, payment status and detail fields in one step.

        Delivery cannot be set here; it is only reachable through
        :meth:`confirm_delivery`. Setting the current status again is a no-op.
        """
        self._assert_not_terminal()

        unknown = set(details) - set(_DETAIL_FIELDS)
        if unknown:
            raise Unprocessable({"patch": [f"Unknown fields: {', '.join(sorted(unknown))}"]})

        try:
            target = OrderStatus(status) if status else None
        except ValueError:
            raise Unprocessable({"status": [f"Unknown order status: {status}"]}) from None

        if target == OrderStatus.DELIVERED:
            raise Forbidden({"status": ["Delivery can only be confirmed by the customer"]})
        if target == OrderStatus.CANCELLED:
            raise Unprocessable({"status": ["Use order cancellation to cancel an order"]})

        now = datetime.now(UTC)
        changed = []
        with atomic_change(self):
            for field_name, value in details.items():
                if value is not None and getattr(self, field_name) != value:
                    setattr(self, field_name, value)
                    changed.append(field_name)

            if payment_status and payment_status != self.payment_status:
                previous_payment = self.payment_status
                self.payment_status = payment_status
                self.raise_(
                    OrderPaymentStatusChanged(
                        order_id=str(self.id),
                        order_number=self.order_number,
                        previous_payment_status=previous_payment,
                        payment_status=self.payment_status,
                        changed_by=actor_id,
                        changed_at=now,
                    )
                )

            if target is not None and target.value != self.status:
                self._move_to(target, actor_id, origin, now)

            self._stamp_audit(actor_id, origin, now)

        if changed:
            self.raise_(
                OrderDetailsUpdated(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    changed_fields=",".join(changed),
                    updated_by=actor_id,
                    updated_at=now,
                )
            )

    # -------------------------------------------------------------------
    # Customer delivery confirmation
    # -------------------------------------------------------------------
    def confirm_delivery(self, actor_id: str, origin: str | None = None) -> bool:
        """Mark the order delivered on the customer's confirmation.

        Returns ``False`` (and changes nothing) when the order is already
        delivered, so repeated confirmations are harmless.
        """
        current = OrderStatus(self.status)
        if current == OrderStatus.DELIVERED:
            return False
        if current != OrderStatus.SHIPPED:
            raise InvalidState({"status": [f"Only shipped orders can be confirmed as delivered, order is {current.value}"]})

        now = datetime.now(UTC)
        self._move_to(OrderStatus.DELIVERED, actor_id, origin, now)
        self.delivery_confirmed_at = now
        self.raise_(
            OrderDeliveryConfirmed(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=self.user_id or "",
                confirmed_by=actor_id,
                confirmed_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Warehouse transitions
    # -------------------------------------------------------------------
    def mark_processing(self, actor_id: str | None = None, origin: str | None = None) -> None:
        """Move the order into ``procesando`` when preparation opens."""
        self._assert_not_terminal()
        if OrderStatus(self.status) == OrderStatus.PROCESSING:
            return
        self._move_to(OrderStatus.PROCESSING, actor_id, origin, datetime.now(UTC))

    def mark_shipped(
        self,
        tracking_number: str | None = None,
        actor_id: str | None = None,
        origin: str | None = None,
    ) -> None:
        """Move the order into ``enviado`` on dispatch."""
        self._assert_not_terminal()
        now = datetime.now(UTC)
        with atomic_change(self):
            if tracking_number:
                self.tracking_number = tracking_number
            self._move_to(OrderStatus.SHIPPED, actor_id, origin, now)

    def record_assignment_failure(self, reason: str) -> None:
        """Record that no warehouse operator could be assigned automatically."""
        self.raise_(
            WarehouseAssignmentFailed(
                order_id=str(self.id),
                order_number=self.order_number,
                item_count=len(self.items or []),
                reason=reason,
                failed_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, actor_id: str | None = None, reason: str | None = None, origin: str | None = None) -> None:
        self._assert_not_terminal()
        now = datetime.now(UTC)
        with atomic_change(self):
            self.cancellation_reason = reason
            self._move_to(OrderStatus.CANCELLED, actor_id, origin, now)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=self.user_id or "",
                reason=reason or "",
                cancelled_by=actor_id or "",
                cancelled_at=now,
            )
        )
