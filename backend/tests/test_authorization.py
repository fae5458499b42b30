"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Couriers are denied admin/employee operations (403)
- Employees are denied admin-only user management (403)
- Courier ownership scoping: 404 before 403
"""

import pytest


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/orders"),
            ("POST", "/api/orders"),
            ("GET", "/api/orders/1"),
            ("PUT", "/api/orders/1"),
            ("POST", "/api/orders/1/assign"),
            ("POST", "/api/orders/1/status"),
            ("POST", "/api/orders/1/receive"),
            ("POST", "/api/orders/1/payment"),
            ("GET", "/api/users"),
            ("POST", "/api/users"),
            ("PUT", "/api/users/1"),
            ("DELETE", "/api/users/1"),
            ("POST", "/api/upload/order-image/1"),
            ("POST", "/api/upload/signature/1"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_health_is_public(self, client):
        for path in ("/health", "/api/health"):
            resp = client.get(path)
            assert resp.status_code == 200
            assert resp.json["status"] == "ok"
            assert resp.json["database"]["status"] == "healthy"


# =============================================================================
# COURIER DENIED MANAGEMENT OPERATIONS (403)
# =============================================================================


class TestCourierDenied:

    def test_cannot_create_order(self, client, courier_headers):
        resp = client.post(
            "/api/orders",
            json={"customer_name": "X", "customer_phone": "1", "address": "A", "service_type": "sale"},
            headers=courier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_assign_order(self, client, make_order, courier, courier_headers):
        order = make_order(assigned_to=courier.id)
        resp = client.post(
            f"/api/orders/{order['id']}/assign",
            json={"assigned_to": courier.id},
            headers=courier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_list_users(self, client, courier_headers):
        resp = client.get("/api/users", headers=courier_headers)
        assert resp.status_code == 403

    def test_admin_cannot_receive(self, client, make_order, admin_headers):
        order = make_order()
        resp = client.post(f"/api/orders/{order['id']}/receive", headers=admin_headers)
        assert resp.status_code == 403


# =============================================================================
# EMPLOYEE DENIED USER ADMINISTRATION (403)
# =============================================================================


class TestEmployeeDenied:

    def test_cannot_create_user(self, client, employee_headers):
        resp = client.post(
            "/api/users",
            json={"username": "x", "password": "secret1", "full_name": "X", "role": "courier"},
            headers=employee_headers,
        )
        assert resp.status_code == 403

    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_cannot_manage_single_user(self, client, employee_headers, courier, method):
        kwargs = {"json": {"full_name": "Changed"}} if method == "put" else {}
        resp = getattr(client, method)(f"/api/users/{courier.id}", headers=employee_headers, **kwargs)
        assert resp.status_code == 403

    def test_can_list_users(self, client, employee_headers):
        resp = client.get("/api/users", headers=employee_headers)
        assert resp.status_code == 200


# =============================================================================
# COURIER OWNERSHIP SCOPING
# =============================================================================


class TestCourierScoping:
    """Couriers never observe or mutate orders assigned to others."""

    def test_missing_order_is_404_even_for_courier(self, client, courier_headers):
        resp = client.get("/api/orders/9999", headers=courier_headers)
        assert resp.status_code == 404

    def test_cannot_view_other_couriers_order(self, client, make_order, other_courier, courier_headers):
        order = make_order(assigned_to=other_courier.id)
        resp = client.get(f"/api/orders/{order['id']}", headers=courier_headers)
        assert resp.status_code == 403

    def test_cannot_view_unassigned_order(self, client, make_order, courier_headers):
        order = make_order()
        resp = client.get(f"/api/orders/{order['id']}", headers=courier_headers)
        assert resp.status_code == 403

    @pytest.mark.parametrize(
        "method,suffix,body",
        [
            ("put", "", {"status": "delivered"}),
            ("post", "/status", {"status": "delivered"}),
            ("post", "/payment", {"amount": 10}),
            ("post", "/receive", None),
            ("post", "/signature", {"signature_data": "data:image/png;base64,AAAA"}),
        ],
    )
    def test_cannot_mutate_other_couriers_order(
        self, client, make_order, admin_headers, other_courier, courier_headers, method, suffix, body
    ):
        order = make_order(assigned_to=other_courier.id)
        if suffix == "/signature":
            path = f"/api/upload/signature/{order['id']}"
        else:
            path = f"/api/orders/{order['id']}{suffix}"

        resp = getattr(client, method)(path, json=body, headers=courier_headers)
        assert resp.status_code == 403

        after = client.get(f"/api/orders/{order['id']}", headers=admin_headers).json
        assert after["status"] == "assigned"
        assert after["payments"] == []
        assert after["signature"] is None

    def test_list_only_shows_own_orders(self, client, make_order, courier, other_courier, courier_headers):
        mine = make_order(assigned_to=courier.id)
        make_order(assigned_to=other_courier.id)
        make_order()

        resp = client.get("/api/orders", headers=courier_headers)
        assert resp.status_code == 200
        assert [o["id"] for o in resp.json] == [mine["id"]]

    def test_courier_filter_cannot_widen_scope(self, client, make_order, courier, other_courier, courier_headers):
        make_order(assigned_to=other_courier.id)
        resp = client.get(f"/api/orders?courier_id={other_courier.id}", headers=courier_headers)
        assert resp.status_code == 200
        assert resp.json == []
