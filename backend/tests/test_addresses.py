"""
Address book tests.

Verifies:
- First address is the default; exactly one default thereafter
- set_default flips defaults in one unit of work
- Deleting the default promotes another address
- Lineage of country/county/city is checked on write
- Other users' addresses are invisible
"""

import pytest

from avenue.errors import NotFound, ValidationError
from avenue.models import Address
from avenue.services import address_service


def _defaults(db_session, user_id):
    return db_session.query(Address).filter_by(user_id=user_id, is_default=True).all()


# =============================================================================
# SERVICE
# =============================================================================


class TestDefaultPolicy:

    def test_first_address_becomes_default(self, db_session, customer, address_payload):
        address = address_service.create_address(customer.id, address_payload())
        assert address.is_default is True

    def test_second_address_is_not_default(self, db_session, customer, address_payload):
        first = address_service.create_address(customer.id, address_payload())
        second = address_service.create_address(customer.id, address_payload(street_address="Ngong Road"))

        assert second.is_default is False
        assert [a.id for a in _defaults(db_session, customer.id)] == [first.id]

    def test_new_default_demotes_previous(self, db_session, customer, address_payload):
        first = address_service.create_address(customer.id, address_payload())
        second = address_service.create_address(
            customer.id, address_payload(street_address="Ngong Road", is_default=True)
        )

        db_session.refresh(first)
        assert first.is_default is False
        assert [a.id for a in _defaults(db_session, customer.id)] == [second.id]

    def test_set_default(self, db_session, customer, address_payload):
        first = address_service.create_address(customer.id, address_payload())
        second = address_service.create_address(customer.id, address_payload(street_address="Ngong Road"))

        address_service.set_default(customer.id, second.id)

        db_session.refresh(first)
        assert first.is_default is False
        assert [a.id for a in _defaults(db_session, customer.id)] == [second.id]

    def test_set_default_is_idempotent(self, db_session, customer, address_payload):
        first = address_service.create_address(customer.id, address_payload())

        address_service.set_default(customer.id, first.id)
        address_service.set_default(customer.id, first.id)

        assert [a.id for a in _defaults(db_session, customer.id)] == [first.id]

    def test_set_default_on_foreign_address_is_not_found(self, db_session, customer, other_customer, address_payload):
        theirs = address_service.create_address(other_customer.id, address_payload())

        with pytest.raises(NotFound):
            address_service.set_default(customer.id, theirs.id)

        db_session.refresh(theirs)
        assert theirs.is_default is True

    def test_defaults_are_per_user(self, db_session, customer, other_customer, address_payload):
        mine = address_service.create_address(customer.id, address_payload())
        theirs = address_service.create_address(other_customer.id, address_payload())

        assert mine.is_default is True
        assert theirs.is_default is True

    def test_cannot_unset_the_default_directly(self, db_session, customer, address_payload):
        first = address_service.create_address(customer.id, address_payload())

        with pytest.raises(ValidationError):
            address_service.update_address(customer.id, first.id, {"is_default": False})

    def test_patch_is_default_true_demotes_others(self, db_session, customer, address_payload):
        first = address_service.create_address(customer.id, address_payload())
        second = address_service.create_address(customer.id, address_payload(street_address="Ngong Road"))

        address_service.update_address(customer.id, second.id, {"is_default": True})

        db_session.refresh(first)
        assert first.is_default is False
        assert second.is_default is True

    def test_delete_default_promotes_remaining(self, db_session, customer, address_payload):
        first = address_service.create_address(customer.id, address_payload())
        second = address_service.create_address(customer.id, address_payload(street_address="Ngong Road"))

        promoted = address_service.delete_address(customer.id, first.id)

        assert promoted.id == second.id
        assert [a.id for a in _defaults(db_session, customer.id)] == [second.id]

    def test_delete_last_address(self, db_session, customer, address_payload):
        only = address_service.create_address(customer.id, address_payload())

        assert address_service.delete_address(customer.id, only.id) is None
        assert address_service.list_addresses(customer.id) == []

    def test_delete_non_default_keeps_default(self, db_session, customer, address_payload):
        first = address_service.create_address(customer.id, address_payload())
        second = address_service.create_address(customer.id, address_payload(street_address="Ngong Road"))

        assert address_service.delete_address(customer.id, second.id) is None
        assert address_service.get_default_address(customer.id).id == first.id

    def test_list_puts_default_first(self, db_session, customer, address_payload):
        first = address_service.create_address(customer.id, address_payload())
        second = address_service.create_address(customer.id, address_payload(street_address="Ngong Road"))
        third = address_service.create_address(customer.id, address_payload(street_address="Kenyatta Ave"))

        address_service.set_default(customer.id, second.id)

        ids = [a.id for a in address_service.list_addresses(customer.id)]
        assert ids == [second.id, third.id, first.id]


class TestLineage:

    def test_city_outside_county_is_rejected(self, db_session, customer, locations, address_payload):
        with pytest.raises(ValidationError, match="city does not belong"):
            address_service.create_address(customer.id, address_payload(city_id=locations["nyali"].id))

    def test_county_outside_country_is_rejected(self, db_session, customer, locations, address_payload):
        with pytest.raises(ValidationError, match="county does not belong"):
            address_service.create_address(
                customer.id,
                address_payload(county_id=locations["kampala"].id, city_id=locations["westlands"].id),
            )

    def test_inactive_city_is_rejected(self, db_session, customer, locations, address_payload):
        with pytest.raises(ValidationError, match="city is not available"):
            address_service.create_address(customer.id, address_payload(city_id=locations["retired"].id))

    def test_update_checks_lineage(self, db_session, customer, locations, address_payload):
        address = address_service.create_address(customer.id, address_payload())

        with pytest.raises(ValidationError):
            address_service.update_address(customer.id, address.id, {"city_id": locations["nyali"].id})

        updated = address_service.update_address(
            customer.id,
            address.id,
            {"county_id": locations["mombasa"].id, "city_id": locations["nyali"].id},
        )
        assert updated.city_id == locations["nyali"].id


# =============================================================================
# HTTP
# =============================================================================


class TestAddressRoutes:

    def test_requires_auth(self, client, db_session):
        resp = client.get("/api/me/addresses")
        assert resp.status_code == 401
        assert resp.json == {"message": "Unauthorized"}

    def test_create_and_list(self, client, customer_headers, address_payload):
        resp = client.post("/api/me/addresses", json=address_payload(), headers=customer_headers)

        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["is_default"] is True
        assert data["city"] == {"id": data["city"]["id"], "name": "Westlands", "delivery_fee": 250}
        assert data["country"]["name"] == "Kenya"

        listed = client.get("/api/me/addresses", headers=customer_headers)
        assert [a["id"] for a in listed.json["data"]] == [data["id"]]

    def test_missing_fields_is_400(self, client, customer_headers, address_payload):
        payload = address_payload()
        del payload["phone"]

        resp = client.post("/api/me/addresses", json=payload, headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Missing required fields: phone"

    def test_bad_phone_is_400(self, client, customer_headers, address_payload):
        resp = client.post("/api/me/addresses", json=address_payload(phone="call me"), headers=customer_headers)
        assert resp.status_code == 400

    def test_malformed_city_id_is_400(self, client, customer_headers, address_payload):
        resp = client.post("/api/me/addresses", json=address_payload(city_id="abc"), headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Invalid City ID"

    @pytest.mark.parametrize("field, label", [("city_id", "City"), ("country_id", "Country")])
    def test_oversized_reference_id_is_400(self, client, customer_headers, address_payload, field, label):
        resp = client.post(
            "/api/me/addresses", json=address_payload(**{field: 10**20}), headers=customer_headers
        )
        assert resp.status_code == 400
        assert resp.json["message"] == f"Invalid {label} ID"

    def test_numeric_phone_is_400(self, client, customer_headers, address_payload):
        resp = client.post("/api/me/addresses", json=address_payload(phone=712345678), headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "phone must be a string"

    def test_set_default_route(self, client, db_session, customer, customer_headers, address_payload):
        address_service.create_address(customer.id, address_payload())
        second = address_service.create_address(customer.id, address_payload(street_address="Ngong Road"))

        resp = client.post(f"/api/me/addresses/{second.id}/default", headers=customer_headers)

        assert resp.status_code == 200
        assert resp.json["data"]["is_default"] is True
        assert [a.id for a in _defaults(db_session, customer.id)] == [second.id]

    def test_foreign_address_is_404(self, client, db_session, other_customer, customer_headers, address_payload):
        theirs = address_service.create_address(other_customer.id, address_payload())

        assert client.post(f"/api/me/addresses/{theirs.id}/default", headers=customer_headers).status_code == 404
        assert client.patch(
            f"/api/me/addresses/{theirs.id}", json={"phone": "0712345678"}, headers=customer_headers
        ).status_code == 404
        assert client.delete(f"/api/me/addresses/{theirs.id}", headers=customer_headers).status_code == 404

    def test_delete_route_reports_promotion(self, client, customer, customer_headers, address_payload):
        first = address_service.create_address(customer.id, address_payload())
        second = address_service.create_address(customer.id, address_payload(street_address="Ngong Road"))

        resp = client.delete(f"/api/me/addresses/{first.id}", headers=customer_headers)

        assert resp.status_code == 200
        assert resp.json["data"] == {"promoted_default_id": second.id}
