"""
Purchase API tests.

Verifies:
- An active purchase adds stock; an inactive one does not
- Deactivating takes the stock back out, refused when it was already sold
- Lines are fixed after creation
- Only inactive purchases can be deleted
"""

from stockroom.models import Product, Purchase
from conftest import refreshed


def _purchase(client, headers, provider, lines, **extra):
    payload = {"provider_id": provider.id, "lines": lines, **extra}
    return client.post("/api/purchases", json=payload, headers=headers)


class TestCreatePurchase:

    def test_active_purchase_adds_stock(self, client, db_session, admin_headers, provider, make_product):
        a = make_product()
        b = make_product(stock=2)

        resp = _purchase(
            client, admin_headers, provider,
            [
                {"product_id": a.id, "quantity": 5, "price": 1.2},
                {"product_id": b.id, "quantity": 3, "price": "2.50"},
            ],
            purchase_date="2025-03-01",
        )

        assert resp.status_code == 201, resp.json
        purchase = resp.json["purchase"]
        assert purchase["code"] == "Pu01"
        assert purchase["status"] == "active"
        assert purchase["total"] == 13.5
        assert purchase["purchase_date"] == "2025-03-01"
        assert refreshed(Product, a.id).stock == 5
        assert refreshed(Product, b.id).stock == 5

    def test_inactive_purchase_leaves_stock(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()

        resp = _purchase(
            client, admin_headers, provider,
            [{"product_id": product.id, "quantity": 5, "price": 1}],
            status="inactive",
        )

        assert resp.status_code == 201
        assert refreshed(Product, product.id).stock == 0

    def test_price_is_required(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()

        resp = _purchase(client, admin_headers, provider, [{"product_id": product.id, "quantity": 5}])

        assert resp.status_code == 400
        assert "lines[0]: price must be a positive number" in resp.json["errors"]

    def test_inactive_provider_is_rejected(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()
        provider.status = "inactive"
        db_session.commit()

        resp = _purchase(client, admin_headers, provider, [{"product_id": product.id, "quantity": 1, "price": 1}])

        assert resp.status_code == 400
        assert refreshed(Product, product.id).stock == 0

    def test_unknown_product_rolls_back(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()

        resp = _purchase(
            client, admin_headers, provider,
            [
                {"product_id": product.id, "quantity": 5, "price": 1},
                {"product_id": 999, "quantity": 1, "price": 1},
            ],
        )

        assert resp.status_code == 404
        assert refreshed(Product, product.id).stock == 0
        assert db_session.query(Purchase).count() == 0

    def test_missing_provider(self, client, db_session, admin_headers, make_product):
        product = make_product()
        resp = client.post(
            "/api/purchases",
            json={"lines": [{"product_id": product.id, "quantity": 1, "price": 1}]},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "Invalid provider ID" in resp.json["errors"]


class TestPurchaseStatus:

    def _create(self, client, headers, provider, product, quantity=5):
        resp = _purchase(client, headers, provider, [{"product_id": product.id, "quantity": quantity, "price": 1}])
        assert resp.status_code == 201, resp.json
        return resp.json["purchase"]["id"]

    def _status(self, client, headers, purchase_id, status):
        return client.patch(f"/api/purchases/{purchase_id}/status", json={"status": status}, headers=headers)

    def test_deactivate_and_reactivate(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()
        purchase_id = self._create(client, admin_headers, provider, product)

        assert self._status(client, admin_headers, purchase_id, "inactive").status_code == 200
        assert refreshed(Product, product.id).stock == 0

        assert self._status(client, admin_headers, purchase_id, "active").status_code == 200
        assert refreshed(Product, product.id).stock == 5

    def test_deactivate_refused_when_stock_was_sold(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()
        purchase_id = self._create(client, admin_headers, provider, product)
        sale = client.post(
            "/api/sales",
            json={"lines": [{"product_id": product.id, "quantity": 3}]},
            headers=admin_headers,
        )
        assert sale.status_code == 201

        resp = self._status(client, admin_headers, purchase_id, "inactive")

        assert resp.status_code == 400
        assert "Insufficient stock" in resp.json["message"]
        assert refreshed(Purchase, purchase_id).status == "active"
        assert refreshed(Product, product.id).stock == 2

    def test_same_status_is_rejected(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()
        purchase_id = self._create(client, admin_headers, provider, product)

        resp = self._status(client, admin_headers, purchase_id, "active")

        assert resp.status_code == 400
        assert resp.json["message"] == "Purchase is already active"


class TestUpdateAndDeletePurchase:

    def test_lines_cannot_change(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()
        purchase_id = _purchase(
            client, admin_headers, provider, [{"product_id": product.id, "quantity": 1, "price": 1}],
        ).json["purchase"]["id"]

        resp = client.put(
            f"/api/purchases/{purchase_id}",
            json={"lines": [{"product_id": product.id, "quantity": 9, "price": 1}]},
            headers=admin_headers,
        )

        assert resp.status_code == 400
        assert "Purchase lines cannot be changed after creation" in resp.json["errors"]

    def test_update_date_and_status(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()
        purchase_id = _purchase(
            client, admin_headers, provider, [{"product_id": product.id, "quantity": 4, "price": 1}],
        ).json["purchase"]["id"]

        resp = client.put(
            f"/api/purchases/{purchase_id}",
            json={"purchase_date": "2025-01-15", "status": "inactive"},
            headers=admin_headers,
        )

        assert resp.status_code == 200, resp.json
        assert resp.json["purchase"]["purchase_date"] == "2025-01-15"
        assert resp.json["purchase"]["status"] == "inactive"
        assert refreshed(Product, product.id).stock == 0

    def test_active_purchase_cannot_be_deleted(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()
        purchase_id = _purchase(
            client, admin_headers, provider, [{"product_id": product.id, "quantity": 1, "price": 1}],
        ).json["purchase"]["id"]

        resp = client.delete(f"/api/purchases/{purchase_id}", headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json["message"] == "Only inactive purchases can be deleted"

    def test_inactive_purchase_can_be_deleted(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()
        purchase_id = _purchase(
            client, admin_headers, provider,
            [{"product_id": product.id, "quantity": 1, "price": 1}],
            status="inactive",
        ).json["purchase"]["id"]

        resp = client.delete(f"/api/purchases/{purchase_id}", headers=admin_headers)

        assert resp.status_code == 200
        assert refreshed(Purchase, purchase_id) is None
