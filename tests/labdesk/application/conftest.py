"""Command builders shared by the application tests."""

import json

import pytest
from protean import current_domain

from labdesk.customer.registration import RegisterCustomer
from labdesk.order.creation import PlaceOrder
from labdesk.quote.approval import AdminReviewQuote, VendorReviewQuote
from labdesk.quote.conversion import ConvertQuoteToOrder
from labdesk.quote.creation import RequestQuote
from labdesk.quote.pricing import PriceQuote

ADDRESS = {"street": "Av. Matta 123", "city": "Santiago", "state": "RM"}


def actor_fields(actor):
    return {
        "actor_id": actor.user_id,
        "actor_role": actor.role,
        "actor_email": actor.email,
        "actor_name": actor.name,
    }


@pytest.fixture()
def approved_quote_id(customer, rep, admin):
    """A quote for 2 × prod-1 at 100.0 plus tax, approved by rep and admin (total 220.0)."""
    current_domain.process(
        RegisterCustomer(
            email=customer.email,
            name=customer.name,
            user_id=customer.user_id,
            assigned_sales_rep=rep.user_id,
            assigned_sales_rep_name=rep.name,
        ),
        asynchronous=False,
    )
    quote_id = current_domain.process(
        RequestQuote(
            customer_name=customer.name,
            customer_email=customer.email,
            items=json.dumps([{"product_id": "prod-1", "product_name": "Micropipette", "quantity": 2}]),
            **actor_fields(customer),
        ),
        asynchronous=False,
    )
    current_domain.process(
        PriceQuote(
            quote_id=quote_id,
            items=json.dumps([{"product_id": "prod-1", "unit_price": 100.0, "subtotal": 200.0}]),
            subtotal=200.0,
            tax=20.0,
            total=220.0,
            **actor_fields(rep),
        ),
        asynchronous=False,
    )
    current_domain.process(VendorReviewQuote(quote_id=quote_id, approved=True, **actor_fields(rep)), asynchronous=False)
    current_domain.process(
        AdminReviewQuote(quote_id=quote_id, approved=True, **actor_fields(admin)), asynchronous=False
    )
    return quote_id


@pytest.fixture()
def convert(customer):
    def _convert(quote_id, actor=None, **overrides):
        defaults = {
            "payment_method": "transferencia",
            "shipping_address": json.dumps(ADDRESS),
        }
        defaults.update(overrides)
        return current_domain.process(
            ConvertQuoteToOrder(quote_id=quote_id, **defaults, **actor_fields(actor or customer)),
            asynchronous=False,
        )

    return _convert


@pytest.fixture()
def place_order(customer):
    def _place(actor=None, line_count=1, **overrides):
        defaults = {
            "customer_name": customer.name,
            "customer_email": customer.email,
            "items": json.dumps(
                [
                    {
                        "product_id": f"prod-{n}",
                        "product_name": f"Reagent {n}",
                        "quantity": 1,
                        "unit_price": 50.0,
                        "subtotal": 50.0,
                    }
                    for n in range(1, line_count + 1)
                ]
            ),
            "subtotal": 50.0 * line_count,
            "total": 50.0 * line_count,
            "shipping_address": json.dumps(ADDRESS),
        }
        defaults.update(overrides)
        return current_domain.process(PlaceOrder(**defaults, **actor_fields(actor or customer)), asynchronous=False)

    return _place
