"""
Authorization tests.

Verifies:
- Admin endpoints answer 403 {"message": "Forbidden"} without a session
- Customers are denied the same way
- A denied write changes nothing in the database
- Admins get through
"""

import pytest

from avenue.models import Brand, City, Country, County, Order, OrderStatusEvent

ADMIN_WRITES = [
    ("POST", "/api/admin/locations/countries", {"name": "Atlantis"}),
    ("PATCH", "/api/admin/locations/countries/1", {"is_active": False}),
    ("POST", "/api/admin/locations/counties", {"name": "Nowhere", "country_id": 1}),
    ("PATCH", "/api/admin/locations/counties/1", {"name": "Renamed"}),
    ("POST", "/api/admin/locations/cities", {"name": "Ghost Town", "county_id": 1}),
    ("PATCH", "/api/admin/locations/cities/1", {"delivery_fee": 1}),
    ("POST", "/api/admin/brands", {"name": "Knockoff"}),
    ("PATCH", "/api/admin/brands/1", {"name": "Renamed"}),
    ("PATCH", "/api/admin/orders/ORD-0000000000", {"status": "Delivered"}),
]

ADMIN_READS = [
    "/api/admin/locations/countries",
    "/api/admin/locations/counties",
    "/api/admin/locations/cities",
    "/api/admin/orders",
]


def _row_counts(db_session) -> dict:
    return {
        model.__tablename__: db_session.query(model).count()
        for model in (Country, County, City, Brand, Order, OrderStatusEvent)
    }


# =============================================================================
# NO SESSION - 403
# =============================================================================


class TestAnonymousDenied:

    @pytest.mark.parametrize("method,path,body", ADMIN_WRITES)
    def test_write_forbidden(self, client, db_session, locations, method, path, body):
        before = _row_counts(db_session)

        resp = client.open(path, method=method, json=body)

        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
        assert resp.json == {"message": "Forbidden"}
        assert _row_counts(db_session) == before

    @pytest.mark.parametrize("path", ADMIN_READS)
    def test_read_forbidden(self, client, db_session, path):
        resp = client.get(path)
        assert resp.status_code == 403

    def test_invalid_token_forbidden(self, client, db_session):
        resp = client.post(
            "/api/admin/brands",
            json={"name": "Knockoff"},
            headers={"Authorization": "Bearer not-a-real-token"},
        )
        assert resp.status_code == 403
        assert db_session.query(Brand).count() == 0


# =============================================================================
# CUSTOMER - 403
# =============================================================================


class TestCustomerDenied:

    @pytest.mark.parametrize("method,path,body", ADMIN_WRITES)
    def test_write_forbidden(self, client, db_session, locations, customer_headers, method, path, body):
        before = _row_counts(db_session)

        resp = client.open(path, method=method, json=body, headers=customer_headers)

        assert resp.status_code == 403
        assert resp.json == {"message": "Forbidden"}
        assert _row_counts(db_session) == before

    def test_denied_patch_leaves_row_untouched(self, client, db_session, locations, customer_headers):
        karen = locations["karen"]

        resp = client.patch(
            f"/api/admin/locations/cities/{karen.id}",
            json={"delivery_fee": 1},
            headers=customer_headers,
        )

        assert resp.status_code == 403
        db_session.refresh(karen)
        assert karen.delivery_fee == 350


# =============================================================================
# ADMIN - allowed
# =============================================================================


class TestAdminAllowed:

    @pytest.mark.parametrize("path", ADMIN_READS)
    def test_reads_allowed(self, client, admin_headers, path):
        resp = client.get(path, headers=admin_headers)
        assert resp.status_code == 200

    def test_deactivated_admin_is_forbidden(self, client, db_session, admin, admin_headers):
        admin.is_active = False
        db_session.commit()

        resp = client.get("/api/admin/orders", headers=admin_headers)
        assert resp.status_code == 403
