"""Application tests for placing, updating and cancelling orders."""

import json

import pytest
from protean import current_domain

from labdesk.access import Actor
from labdesk.errors import Forbidden, InvalidState, Unprocessable
from labdesk.order.cancellation import CancelOrder
from labdesk.order.order import Order, OrderStatus, PaymentStatus
from labdesk.order.update import UpdateOrder


def _actor_fields(actor):
    return {
        "actor_id": actor.user_id,
        "actor_role": actor.role,
        "actor_email": actor.email,
        "actor_name": actor.name,
    }


def _update(order_id, actor, **fields):
    current_domain.process(UpdateOrder(order_id=order_id, **fields, **_actor_fields(actor)), asynchronous=False)


def _get(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestPlaceOrder:
    def test_customer_order_is_owned_by_customer(self, place_order):
        order = _get(place_order())
        assert order.status == OrderStatus.PENDING.value
        assert order.user_id == "cust-1"
        assert order.created_by == "cust-1"
        assert order.order_number.startswith("ORD-")

    def test_staff_order_has_no_owner_unless_given(self, place_order, admin):
        order = _get(place_order(actor=admin))
        assert order.user_id is None
        assert order.created_by == "admin-1"

    def test_empty_items_is_unprocessable(self, place_order):
        with pytest.raises(Unprocessable):
            place_order(items=json.dumps([]))

    def test_zero_total_is_unprocessable(self, place_order):
        with pytest.raises(Unprocessable):
            place_order(total=0.0)

    def test_invalid_email_is_unprocessable(self, place_order):
        with pytest.raises(Unprocessable) as exc_info:
            place_order(customer_email="compras.labandes.cl")
        assert "customer_email" in exc_info.value.messages


class TestUpdateOrder:
    def test_admin_confirms_and_marks_paid(self, place_order, admin):
        order_id = place_order()
        _update(order_id, admin, status="confirmado", payment_status="pagado", origin="backoffice")
        order = _get(order_id)
        assert order.status == OrderStatus.CONFIRMED.value
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.update_origin == "backoffice"
        assert order.updated_by == "admin-1"

    def test_missing_origin_is_recorded_as_unknown(self, place_order, admin):
        order_id = place_order()
        _update(order_id, admin, internal_notes="Call before delivery")
        assert _get(order_id).update_origin == "unknown"

    def test_customer_patches_own_order(self, place_order, customer):
        order_id = place_order()
        _update(order_id, customer, customer_notes="Deliver after 10am", shipping_method="retiro", origin="portal")
        order = _get(order_id)
        assert order.customer_notes == "Deliver after 10am"
        assert order.shipping_method == "retiro"
        assert order.updated_by == "cust-1"

    def test_customer_cannot_patch_someone_elses_order(self, place_order):
        order_id = place_order()
        stranger = Actor(user_id="cust-2", role="cliente", email="otro@labnorte.cl")
        with pytest.raises(Forbidden):
            _update(order_id, stranger, customer_notes="Mine now")
        assert _get(order_id).customer_notes is None

    def test_warehouse_may_only_move_to_processing(self, place_order, admin, operator):
        order_id = place_order()
        _update(order_id, admin, status="confirmado")
        with pytest.raises(Forbidden):
            _update(order_id, operator, status="enviado")
        with pytest.raises(Forbidden):
            _update(order_id, operator, status="procesando", internal_notes="Done")

        _update(order_id, operator, status="procesando")
        assert _get(order_id).status == OrderStatus.PROCESSING.value

    def test_staff_cannot_mark_delivered(self, place_order, admin):
        order_id = place_order()
        _update(order_id, admin, status="enviado")
        with pytest.raises(Forbidden):
            _update(order_id, admin, status="entregado")

    def test_terminal_order_rejects_patch(self, place_order, admin):
        order_id = place_order()
        current_domain.process(
            CancelOrder(order_id=order_id, reason="Duplicate", **_actor_fields(admin)), asynchronous=False
        )
        with pytest.raises(InvalidState):
            _update(order_id, admin, tracking_number="TRK-1")


class TestConfirmDelivery:
    def test_customer_confirms_shipped_order(self, place_order, admin, customer):
        order_id = place_order()
        _update(order_id, admin, status="enviado")
        _update(order_id, customer, confirm_delivery=True)

        order = _get(order_id)
        assert order.status == OrderStatus.DELIVERED.value
        assert order.delivery_confirmed_at is not None

    def test_repeated_confirmation_is_harmless(self, place_order, admin, customer):
        order_id = place_order()
        _update(order_id, admin, status="enviado")
        _update(order_id, customer, confirm_delivery=True)
        _update(order_id, customer, confirm_delivery=True)
        assert _get(order_id).status == OrderStatus.DELIVERED.value

    def test_email_mismatch_is_forbidden(self, place_order, admin, customer):
        order_id = place_order()
        _update(order_id, admin, status="enviado")
        impostor = Actor(user_id="cust-1", role="cliente", email="otro@labandes.cl")
        with pytest.raises(Forbidden):
            _update(order_id, impostor, confirm_delivery=True)

    def test_unshipped_order_cannot_be_confirmed(self, place_order, customer):
        order_id = place_order()
        with pytest.raises(InvalidState):
            _update(order_id, customer, confirm_delivery=True)


class TestCancelOrder:
    def test_rep_cancels(self, place_order, rep):
        order_id = place_order()
        current_domain.process(
            CancelOrder(order_id=order_id, reason="Customer request", origin="phone", **_actor_fields(rep)),
            asynchronous=False,
        )
        order = _get(order_id)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Customer request"

    def test_customer_cannot_cancel(self, place_order, customer):
        order_id = place_order()
        with pytest.raises(Forbidden):
            current_domain.process(
                CancelOrder(order_id=order_id, reason="Changed my mind", **_actor_fields(customer)),
                asynchronous=False,
            )

    def test_cancelled_order_cannot_be_cancelled_again(self, place_order, admin):
        order_id = place_order()
        cancel = CancelOrder(order_id=order_id, reason="Duplicate", **_actor_fields(admin))
        current_domain.process(cancel, asynchronous=False)
        with pytest.raises(InvalidState):
            current_domain.process(
                CancelOrder(order_id=order_id, reason="Duplicate", **_actor_fields(admin)), asynchronous=False
            )
