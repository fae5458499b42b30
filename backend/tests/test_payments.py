"""
Payment tests.

Payments are append-only rows; total paid is summed on read and recording a
payment never changes order status.
"""

from decimal import Decimal

import pytest

from delivery.extensions import db
from delivery.models import OrderPayment
from delivery.services import payment_service
from delivery.services.order_service import get_order


class TestRecordPayment:

    def test_split_payments_accumulate(self, client, admin_headers, make_order):
        order = make_order()

        first = client.post(f"/api/orders/{order['id']}/payment", json={"amount": 150.5}, headers=admin_headers)
        assert first.status_code == 200
        assert first.json["payment"]["amount"] == 150.5
        assert first.json["total_paid"] == 150.5

        second = client.post(f"/api/orders/{order['id']}/payment", json={"amount": "49.50"}, headers=admin_headers)
        assert second.status_code == 200
        assert second.json["total_paid"] == 200.0

        full = client.get(f"/api/orders/{order['id']}", headers=admin_headers).json
        assert full["total_paid"] == 200.0
        assert [p["id"] for p in full["payments"]] == [second.json["id"], first.json["id"]]
        assert full["status"] == "preparing"

    def test_courier_records_on_own_order(self, client, make_order, courier, courier_headers):
        order = make_order(assigned_to=courier.id)
        resp = client.post(f"/api/orders/{order['id']}/payment", json={"amount": 20}, headers=courier_headers)
        assert resp.status_code == 200
        assert resp.json["payment"]["recorded_by"] == courier.id

    @pytest.mark.parametrize("amount", [None, "", 0, -5, "abc", True, "NaN", "Infinity", 0.001])
    def test_invalid_amount_appends_nothing(self, client, admin_headers, make_order, amount):
        order = make_order()
        body = {} if amount is None else {"amount": amount}

        resp = client.post(f"/api/orders/{order['id']}/payment", json=body, headers=admin_headers)

        assert resp.status_code == 400
        assert db.session.query(OrderPayment).filter_by(order_id=order["id"]).count() == 0

    def test_invalid_amount_checked_before_order_lookup(self, client, admin_headers):
        resp = client.post("/api/orders/31337/payment", json={"amount": -1}, headers=admin_headers)
        assert resp.status_code == 400

    def test_missing_order(self, client, admin_headers):
        resp = client.post("/api/orders/31337/payment", json={"amount": 5}, headers=admin_headers)
        assert resp.status_code == 404


class TestTotalPaid:

    def test_total_is_zero_without_payments(self, app, make_order):
        order = get_order(make_order()["id"])
        assert payment_service.total_paid(order) == Decimal("0.00")

    def test_total_sums_rows(self, app, make_order, admin_headers, client):
        order_id = make_order()["id"]
        for amount in ("10.10", "20.20", "0.70"):
            client.post(f"/api/orders/{order_id}/payment", json={"amount": amount}, headers=admin_headers)

        order = get_order(order_id)
        assert payment_service.total_paid(order) == Decimal("31.00")
        assert len(payment_service.list_payments(order)) == 3
