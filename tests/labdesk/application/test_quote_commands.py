"""Application tests for the quote request, pricing, review and expiry commands."""

import json

import pytest
from protean import current_domain

from labdesk.customer.registration import RegisterCustomer
from labdesk.errors import Forbidden, InvalidState, Unprocessable
from labdesk.quote.approval import AdminReviewQuote, StartAdminReview, VendorReviewQuote
from labdesk.quote.creation import RequestQuote
from labdesk.quote.expiry import ExpireQuote
from labdesk.quote.pricing import PriceQuote
from labdesk.quote.quote import Quote, QuoteStatus


def _actor_fields(actor):
    return {
        "actor_id": actor.user_id,
        "actor_role": actor.role,
        "actor_email": actor.email,
        "actor_name": actor.name,
    }


def _register_customer(email="compras@labandes.cl", rep_id="rep-1"):
    return current_domain.process(
        RegisterCustomer(
            email=email,
            name="Laboratorio Andes",
            user_id="cust-1",
            assigned_sales_rep=rep_id,
            assigned_sales_rep_name="Rita Ventas",
        ),
        asynchronous=False,
    )


def _request_quote(actor, **overrides):
    defaults = {
        "customer_name": "Laboratorio Andes",
        "customer_email": "compras@labandes.cl",
        "items": json.dumps(
            [
                {"product_id": "prod-1", "product_name": "Micropipette", "quantity": 2},
                {"product_id": "prod-2", "product_name": "Pipette tips", "quantity": 10},
            ]
        ),
    }
    defaults.update(overrides)
    return current_domain.process(RequestQuote(**defaults, **_actor_fields(actor)), asynchronous=False)


def _price_quote(quote_id, actor):
    current_domain.process(
        PriceQuote(
            quote_id=quote_id,
            items=json.dumps(
                [
                    {"product_id": "prod-1", "unit_price": 100.0, "subtotal": 200.0},
                    {"product_id": "prod-2", "unit_price": 2.0, "subtotal": 20.0},
                ]
            ),
            subtotal=220.0,
            total=220.0,
            **_actor_fields(actor),
        ),
        asynchronous=False,
    )


class TestRequestQuote:
    def test_quote_is_stored_with_number(self, customer):
        quote_id = _request_quote(customer)
        quote = current_domain.repository_for(Quote).get(quote_id)
        assert quote.status == QuoteStatus.PENDING.value
        assert quote.quote_number.startswith("QUO-")
        assert quote.user_id == "cust-1"
        assert len(quote.items) == 2

    def test_rep_comes_from_customer_record(self, customer):
        _register_customer()
        quote_id = _request_quote(customer)
        quote = current_domain.repository_for(Quote).get(quote_id)
        assert quote.assigned_sales_rep == "rep-1"
        assert quote.assigned_sales_rep_name == "Rita Ventas"

    def test_rep_lookup_by_email_ignores_case(self, customer):
        _register_customer(email="Compras@LabAndes.cl")
        quote_id = _request_quote(customer, customer_email="COMPRAS@labandes.cl")
        quote = current_domain.repository_for(Quote).get(quote_id)
        assert quote.assigned_sales_rep == "rep-1"

    def test_unknown_customer_has_no_rep(self, customer):
        quote_id = _request_quote(customer, customer_email="nuevo@cliente.cl")
        quote = current_domain.repository_for(Quote).get(quote_id)
        assert quote.assigned_sales_rep is None

    def test_numbers_are_unique(self, customer):
        numbers = {current_domain.repository_for(Quote).get(_request_quote(customer)).quote_number for _ in range(5)}
        assert len(numbers) == 5

    def test_invalid_email_is_rejected(self, customer):
        with pytest.raises(Unprocessable) as exc_info:
            _request_quote(customer, customer_email="not-an-email")
        assert "customer_email" in exc_info.value.messages
        assert current_domain.repository_for(Quote)._dao.query.all().items == []

    def test_short_phone_is_rejected(self, customer):
        with pytest.raises(Unprocessable):
            _request_quote(customer, customer_phone="123")


class TestReviewFlow:
    def test_full_approval(self, customer, rep, admin):
        _register_customer()
        quote_id = _request_quote(customer)
        _price_quote(quote_id, rep)
        current_domain.process(
            VendorReviewQuote(quote_id=quote_id, approved=True, **_actor_fields(rep)), asynchronous=False
        )
        current_domain.process(StartAdminReview(quote_id=quote_id, **_actor_fields(admin)), asynchronous=False)
        current_domain.process(
            AdminReviewQuote(quote_id=quote_id, approved=True, notes="OK", **_actor_fields(admin)),
            asynchronous=False,
        )

        quote = current_domain.repository_for(Quote).get(quote_id)
        assert quote.status == QuoteStatus.APPROVED.value
        assert quote.total == 220.0
        assert quote.priced_by == "rep-1"
        assert quote.admin_approved_by == "admin-1"

    def test_unassigned_rep_cannot_price(self, customer, rep):
        _register_customer(rep_id="rep-9")
        quote_id = _request_quote(customer)
        with pytest.raises(Forbidden):
            _price_quote(quote_id, rep)

    def test_customer_cannot_vendor_review(self, customer):
        quote_id = _request_quote(customer)
        with pytest.raises(Forbidden):
            current_domain.process(
                VendorReviewQuote(quote_id=quote_id, approved=True, **_actor_fields(customer)),
                asynchronous=False,
            )

    def test_rep_cannot_admin_review(self, customer, rep):
        _register_customer()
        quote_id = _request_quote(customer)
        _price_quote(quote_id, rep)
        current_domain.process(
            VendorReviewQuote(quote_id=quote_id, approved=True, **_actor_fields(rep)), asynchronous=False
        )
        with pytest.raises(Forbidden):
            current_domain.process(
                AdminReviewQuote(quote_id=quote_id, approved=True, **_actor_fields(rep)), asynchronous=False
            )

    def test_vendor_rejection_is_final(self, customer, rep):
        _register_customer()
        quote_id = _request_quote(customer)
        current_domain.process(
            VendorReviewQuote(
                quote_id=quote_id, approved=False, rejection_reason="Out of catalogue", **_actor_fields(rep)
            ),
            asynchronous=False,
        )
        with pytest.raises(InvalidState):
            _price_quote(quote_id, rep)


class TestExpireQuote:
    def test_expire(self, customer, admin):
        quote_id = _request_quote(customer)
        current_domain.process(ExpireQuote(quote_id=quote_id, **_actor_fields(admin)), asynchronous=False)
        quote = current_domain.repository_for(Quote).get(quote_id)
        assert quote.status == QuoteStatus.EXPIRED.value

    def test_customer_cannot_expire(self, customer):
        quote_id = _request_quote(customer)
        with pytest.raises(Forbidden):
            current_domain.process(ExpireQuote(quote_id=quote_id, **_actor_fields(customer)), asynchronous=False)
