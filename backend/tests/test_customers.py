"""
Customer tests, mostly around the protected default (walk-in) customer.
"""

import pytest

from stockroom.errors import BusinessRuleError
from stockroom.models import Customer
from stockroom.services import customer_service


@pytest.fixture
def default_customer(db_session):
    return customer_service.get_default_customer()


class TestDefaultCustomer:

    def test_created_on_first_use(self, db_session):
        assert db_session.query(Customer).count() == 0

        customer = customer_service.get_default_customer()

        assert customer.is_default
        assert customer.email == "guest@example.com"
        assert customer_service.get_default_customer().id == customer.id
        assert db_session.query(Customer).count() == 1

    def test_listed_first(self, client, db_session, admin_headers, customer):
        resp = client.get("/api/customers", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["count"] == 2
        assert resp.json["customers"][0]["is_default"] is True

    def test_cannot_be_edited(self, client, db_session, admin_headers, default_customer):
        resp = client.put(
            f"/api/customers/{default_customer.id}",
            json={"name": "Changed"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "The default customer cannot be edited"

    def test_cannot_be_deactivated(self, client, db_session, admin_headers, default_customer):
        resp = client.patch(
            f"/api/customers/{default_customer.id}/status",
            json={"status": "inactive"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "The default customer cannot be deactivated"

    def test_cannot_be_deleted(self, client, db_session, admin_headers, default_customer):
        resp = client.delete(f"/api/customers/{default_customer.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "The default customer cannot be deleted"

    def test_only_one_default(self, db_session, default_customer):
        other = customer_service.create_customer({
            "name": "Shop",
            "lastname": "Counter",
            "phone": "123",
            "email": "counter@example.com",
            "is_default": True,
        })

        db_session.expire_all()
        defaults = db_session.query(Customer).filter_by(is_default=True).all()
        assert [c.id for c in defaults] == [other.id]

    def test_default_must_be_active(self, db_session):
        with pytest.raises(BusinessRuleError):
            customer_service.create_customer({
                "name": "Shop",
                "lastname": "Counter",
                "phone": "123",
                "email": "counter@example.com",
                "is_default": True,
                "status": "inactive",
            })


class TestCustomerCrud:

    def test_create_validates_fields(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/customers",
            json={"name": "Ana", "phone": "12ab", "email": "nope"},
            headers=admin_headers,
        )

        assert resp.status_code == 400
        errors = resp.json["errors"]
        assert "lastname is required" in errors
        assert "phone must contain only digits" in errors
        assert "email must be a valid email address" in errors

    def test_email_is_unique_case_insensitive(self, client, db_session, admin_headers, customer):
        resp = client.post(
            "/api/customers",
            json={"name": "Other", "lastname": "Person", "phone": "1", "email": "MARIO@example.com"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "Email is already registered"

    def test_update(self, client, db_session, admin_headers, customer):
        resp = client.put(
            f"/api/customers/{customer.id}",
            json={"phone": "3000000001"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["customer"]["phone"] == "3000000001"

    def test_delete_requires_inactive(self, client, db_session, admin_headers, customer):
        resp = client.delete(f"/api/customers/{customer.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Customer must be inactive before it can be deleted"

        client.patch(f"/api/customers/{customer.id}/status", json={"status": "inactive"}, headers=admin_headers)
        resp = client.delete(f"/api/customers/{customer.id}", headers=admin_headers)
        assert resp.status_code == 200

    def test_customer_with_sales_cannot_be_deleted(self, client, db_session, admin_headers, customer, make_product):
        product = make_product(stock=5)
        client.post(
            "/api/sales",
            json={"customer_id": customer.id, "lines": [{"product_id": product.id, "quantity": 1}]},
            headers=admin_headers,
        )
        client.patch(f"/api/customers/{customer.id}/status", json={"status": "inactive"}, headers=admin_headers)

        resp = client.delete(f"/api/customers/{customer.id}", headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json["message"] == "Cannot delete customer: it is referenced by sales"

    def test_validate_for_sale(self, client, db_session, admin_headers, customer):
        resp = client.get(f"/api/customers/{customer.id}/validate-sale", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["valid"] is True

        client.patch(f"/api/customers/{customer.id}/status", json={"status": "inactive"}, headers=admin_headers)
        resp = client.get(f"/api/customers/{customer.id}/validate-sale", headers=admin_headers)
        assert resp.status_code == 400
