"""
Transaction helper tests.

Verifies:
- IntegrityError is retried only when the caller opts in
- A purchase whose generated code collides is retried with a fresh code and
  moves stock exactly once
"""

import pytest
from sqlalchemy.exc import IntegrityError

from stockroom.models import Product, Purchase
from stockroom.services import purchase_service
from stockroom.services.code_service import next_code
from stockroom.services.concurrency import run_in_transaction
from conftest import refreshed


def _flaky(failures: int):
    calls = {"n": 0}

    def _func():
        calls["n"] += 1
        if calls["n"] <= failures:
            raise IntegrityError("INSERT INTO purchases", {}, Exception("UNIQUE constraint failed: purchases.code"))
        return "done"

    return _func, calls


class TestRunInTransaction:

    def test_integrity_error_retried_when_requested(self, app, db_session):
        func, calls = _flaky(failures=1)

        assert run_in_transaction(func, retry_integrity=True) == "done"
        assert calls["n"] == 2

    def test_integrity_error_propagates_by_default(self, app, db_session):
        func, calls = _flaky(failures=1)

        with pytest.raises(IntegrityError):
            run_in_transaction(func)
        assert calls["n"] == 1

    def test_gives_up_after_attempts(self, app, db_session):
        func, calls = _flaky(failures=5)

        with pytest.raises(IntegrityError):
            run_in_transaction(func, attempts=2, retry_integrity=True)
        assert calls["n"] == 2


class TestCodeCollision:

    def test_colliding_purchase_code_is_retried(self, client, db_session, admin_headers, provider, make_product, monkeypatch):
        product = make_product(stock=0)
        payload = {
            "provider_id": provider.id,
            "lines": [{"product_id": product.id, "quantity": 3, "price": "1.00"}],
        }
        assert client.post("/api/purchases", json=payload, headers=admin_headers).status_code == 201

        # First attempt reuses the code another writer already took
        attempts = {"n": 0}

        def _stale_then_fresh(model):
            attempts["n"] += 1
            return "Pu01" if attempts["n"] == 1 else next_code(model)

        monkeypatch.setattr(purchase_service, "next_code", _stale_then_fresh)

        resp = client.post("/api/purchases", json=payload, headers=admin_headers)

        assert resp.status_code == 201, resp.json
        assert resp.json["purchase"]["code"] == "Pu02"
        assert attempts["n"] == 2
        assert refreshed(Product, product.id).stock == 6
        assert db_session.query(Purchase).count() == 2
