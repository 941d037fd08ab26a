import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain

from labdesk.api import notification_router, order_router, quote_router, register_error_handlers, warehouse_router
from labdesk.customer.registration import RegisterCustomer


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(quote_router)
    app.include_router(order_router)
    app.include_router(warehouse_router)
    app.include_router(notification_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def headers_for():
    """Gateway headers identifying ``actor``."""

    def _headers(actor, origin=None):
        headers = {
            "X-User-Id": actor.user_id,
            "X-User-Role": actor.role,
            "X-User-Email": actor.email,
            "X-User-Name": actor.name,
        }
        if origin:
            headers["X-Origin"] = origin
        return headers

    return _headers


@pytest.fixture()
def registered_customer(customer, rep):
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
    return customer
