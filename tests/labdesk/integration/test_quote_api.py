"""Integration tests for the quote endpoints via TestClient."""

import pytest
from protean import current_domain

from labdesk.order.order import Order
from labdesk.quote.quote import Quote, QuoteStatus

ITEMS = [{"product_id": "prod-1", "product_name": "Micropipette", "quantity": 2}]
ADDRESS = {"street": "Av. Matta 123", "city": "Santiago", "state": "RM"}


def _create_quote(client, headers, **overrides):
    """Helper: POST /quotes and return the quote_id."""
    body = {
        "customer_name": "Laboratorio Andes",
        "customer_email": "compras@labandes.cl",
        "items": ITEMS,
        "user_id": "cust-1",
    }
    body.update(overrides)
    response = client.post("/quotes", json=body, headers=headers)
    assert response.status_code == 201
    return response.json()["quote_id"]


def _price(client, quote_id, headers):
    return client.put(
        f"/quotes/{quote_id}/pricing",
        json={
            "items": [{"product_id": "prod-1", "unit_price": 100.0, "subtotal": 200.0}],
            "subtotal": 200.0,
            "tax": 20.0,
            "total": 220.0,
        },
        headers=headers,
    )


@pytest.fixture()
def approved_quote(client, headers_for, registered_customer, staff, rep, admin):
    quote_id = _create_quote(client, headers_for(registered_customer))
    assert _price(client, quote_id, headers_for(rep)).status_code == 200
    response = client.put(f"/quotes/{quote_id}/vendor-review", json={"approved": True}, headers=headers_for(rep))
    assert response.status_code == 200
    response = client.put(f"/quotes/{quote_id}/admin-review", json={"approved": True}, headers=headers_for(admin))
    assert response.status_code == 200
    return quote_id


class TestCreateQuote:
    def test_create_quote(self, client, headers_for, registered_customer):
        quote_id = _create_quote(client, headers_for(registered_customer))

        quote = current_domain.repository_for(Quote).get(quote_id)
        assert quote.status == QuoteStatus.PENDING.value
        assert quote.assigned_sales_rep == "rep-1"
        assert quote.quote_number.startswith("QUO-")

    def test_missing_identity_headers(self, client):
        response = client.post(
            "/quotes",
            json={"customer_name": "Laboratorio Andes", "customer_email": "compras@labandes.cl", "items": ITEMS},
        )
        assert response.status_code == 401

    def test_empty_quote_is_unprocessable(self, client, headers_for, customer):
        response = client.post(
            "/quotes",
            json={"customer_name": "Laboratorio Andes", "customer_email": "compras@labandes.cl", "items": []},
            headers=headers_for(customer),
        )
        assert response.status_code == 422
        assert "items" in response.json()["error"]

    def test_invalid_email_is_unprocessable(self, client, headers_for, customer):
        response = client.post(
            "/quotes",
            json={"customer_name": "Laboratorio Andes", "customer_email": "not-an-email", "items": ITEMS},
            headers=headers_for(customer),
        )
        assert response.status_code == 422
        assert "customer_email" in response.json()["error"]
        assert current_domain.repository_for(Quote)._dao.query.all().items == []

    def test_short_phone_is_unprocessable(self, client, headers_for, customer):
        response = client.post(
            "/quotes",
            json={
                "customer_name": "Laboratorio Andes",
                "customer_email": "compras@labandes.cl",
                "customer_phone": "12345",
                "items": ITEMS,
            },
            headers=headers_for(customer),
        )
        assert response.status_code == 422
        assert "customer_phone" in response.json()["error"]


class TestReviewEndpoints:
    def test_other_rep_cannot_price(self, client, headers_for, registered_customer):
        quote_id = _create_quote(client, headers_for(registered_customer))
        other = {"X-User-Id": "rep-2", "X-User-Role": "vendedor"}
        assert _price(client, quote_id, other).status_code == 403

    def test_customer_cannot_admin_review(self, client, headers_for, registered_customer):
        quote_id = _create_quote(client, headers_for(registered_customer))
        response = client.put(
            f"/quotes/{quote_id}/admin-review", json={"approved": True}, headers=headers_for(registered_customer)
        )
        assert response.status_code == 403

    def test_admin_review_before_vendor_review_conflicts(self, client, headers_for, registered_customer, admin):
        quote_id = _create_quote(client, headers_for(registered_customer))
        response = client.put(f"/quotes/{quote_id}/admin-review", json={"approved": True}, headers=headers_for(admin))
        assert response.status_code == 409

    def test_vendor_rejection(self, client, headers_for, registered_customer, rep):
        quote_id = _create_quote(client, headers_for(registered_customer))
        response = client.put(
            f"/quotes/{quote_id}/vendor-review",
            json={"approved": False, "rejection_reason": "Discontinued product"},
            headers=headers_for(rep),
        )
        assert response.status_code == 200

        quote = current_domain.repository_for(Quote).get(quote_id)
        assert quote.status == QuoteStatus.VENDOR_REJECTED.value
        assert quote.rejection_reason == "Discontinued product"

    def test_unknown_quote(self, client, headers_for, admin):
        response = client.put("/quotes/missing/admin-review/start", headers=headers_for(admin))
        assert response.status_code == 404


class TestConvertEndpoint:
    def test_convert_approved_quote(self, client, headers_for, approved_quote, registered_customer):
        response = client.post(
            f"/quotes/{approved_quote}/convert",
            json={"payment_method": "transferencia", "shipping_address": ADDRESS},
            headers=headers_for(registered_customer),
        )
        assert response.status_code == 201
        order_id = response.json()["order_id"]

        order = current_domain.repository_for(Order).get(order_id)
        assert order.quote_id == approved_quote
        assert order.total == 220.0
        assert current_domain.repository_for(Quote).get(approved_quote).status == QuoteStatus.CONVERTED.value

    def test_second_conversion_conflicts(self, client, headers_for, approved_quote, registered_customer):
        body = {"shipping_address": ADDRESS}
        headers = headers_for(registered_customer)
        assert client.post(f"/quotes/{approved_quote}/convert", json=body, headers=headers).status_code == 201
        assert client.post(f"/quotes/{approved_quote}/convert", json=body, headers=headers).status_code == 409

    def test_another_customer_cannot_convert(self, client, approved_quote):
        headers = {"X-User-Id": "cust-2", "X-User-Role": "cliente"}
        response = client.post(f"/quotes/{approved_quote}/convert", json={"shipping_address": ADDRESS}, headers=headers)
        assert response.status_code == 403


class TestReadEndpoints:
    def test_customer_lists_only_own_quotes(self, client, headers_for, registered_customer):
        own = {_create_quote(client, headers_for(registered_customer)) for _ in range(2)}
        stranger = {"X-User-Id": "cust-2", "X-User-Role": "cliente", "X-User-Email": "otro@labnorte.cl"}
        _create_quote(client, stranger, user_id="cust-2", customer_email="otro@labnorte.cl")

        response = client.get("/quotes", headers=headers_for(registered_customer))
        assert response.status_code == 200
        assert {quote["quote_id"] for quote in response.json()} == own

    def test_rep_lists_assigned_quotes(self, client, headers_for, registered_customer, rep):
        quote_id = _create_quote(client, headers_for(registered_customer))
        stranger = {"X-User-Id": "cust-2", "X-User-Role": "cliente"}
        _create_quote(client, stranger, user_id="cust-2", customer_email="otro@labnorte.cl")

        response = client.get("/quotes", headers=headers_for(rep))
        assert [quote["quote_id"] for quote in response.json()] == [quote_id]

    def test_admin_filters_by_status(self, client, headers_for, approved_quote, registered_customer, admin):
        _create_quote(client, headers_for(registered_customer))

        response = client.get("/quotes", params={"status": "aprobado"}, headers=headers_for(admin))
        assert [quote["quote_id"] for quote in response.json()] == [approved_quote]

    def test_review_queue_holds_unreviewed_quotes(self, client, headers_for, registered_customer, rep, admin):
        reviewed = _create_quote(client, headers_for(registered_customer))
        waiting = _create_quote(client, headers_for(registered_customer))
        assert _price(client, reviewed, headers_for(rep)).status_code == 200
        client.put(f"/quotes/{reviewed}/vendor-review", json={"approved": True}, headers=headers_for(rep))

        response = client.get("/quotes/pending-review", headers=headers_for(rep))
        assert response.status_code == 200
        assert [quote["quote_id"] for quote in response.json()] == [waiting]

        response = client.get("/quotes/pending-review", params={"sales_rep_id": "rep-1"}, headers=headers_for(admin))
        assert [quote["quote_id"] for quote in response.json()] == [waiting]

    def test_rep_cannot_peek_at_another_queue(self, client, headers_for, registered_customer):
        _create_quote(client, headers_for(registered_customer))
        other = {"X-User-Id": "rep-2", "X-User-Role": "vendedor"}
        response = client.get("/quotes/pending-review", params={"sales_rep_id": "rep-1"}, headers=other)
        assert response.json() == []

    def test_customer_has_no_review_queue(self, client, headers_for, registered_customer):
        response = client.get("/quotes/pending-review", headers=headers_for(registered_customer))
        assert response.status_code == 403

    def test_quote_detail_hides_review_notes_from_customer(self, client, headers_for, registered_customer, rep):
        quote_id = _create_quote(client, headers_for(registered_customer))
        client.put(
            f"/quotes/{quote_id}/vendor-review",
            json={"approved": False, "notes": "Margin too thin", "rejection_reason": "Discontinued product"},
            headers=headers_for(rep),
        )

        body = client.get(f"/quotes/{quote_id}", headers=headers_for(registered_customer)).json()
        assert body["status"] == QuoteStatus.VENDOR_REJECTED.value
        assert body["rejection_reason"] == "Discontinued product"
        assert body["vendor_notes"] is None
        assert body["items"][0]["quantity"] == 2

        body = client.get(f"/quotes/{quote_id}", headers=headers_for(rep)).json()
        assert body["vendor_notes"] == "Margin too thin"

    def test_quote_detail_is_private(self, client, headers_for, registered_customer):
        quote_id = _create_quote(client, headers_for(registered_customer))
        stranger = {"X-User-Id": "cust-2", "X-User-Role": "cliente"}
        assert client.get(f"/quotes/{quote_id}", headers=stranger).status_code == 403
        other_rep = {"X-User-Id": "rep-2", "X-User-Role": "vendedor"}
        assert client.get(f"/quotes/{quote_id}", headers=other_rep).status_code == 403

    def test_unknown_quote_detail(self, client, headers_for, admin):
        assert client.get("/quotes/missing", headers=headers_for(admin)).status_code == 404
