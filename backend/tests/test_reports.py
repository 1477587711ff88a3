"""
PDF / Excel export tests.
"""

from io import BytesIO

import pytest
from openpyxl import load_workbook

from stockroom.services import report_service


@pytest.fixture
def purchased(client, admin_headers, provider, make_product):
    product = make_product(name="Saline")
    resp = client.post(
        "/api/purchases",
        json={
            "provider_id": provider.id,
            "purchase_date": "2025-03-10",
            "lines": [{"product_id": product.id, "quantity": 4, "price": "2.50"}],
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201
    return product


class TestPurchaseExports:

    def test_pdf(self, client, admin_headers, purchased):
        resp = client.get("/api/purchases/export/pdf", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.mimetype == report_service.PDF_MIMETYPE
        assert resp.data.startswith(b"%PDF")
        assert "attachment" in resp.headers["Content-Disposition"]
        assert "purchases_report_" in resp.headers["Content-Disposition"]

    def test_excel(self, client, admin_headers, purchased):
        resp = client.get("/api/purchases/export/excel", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.mimetype == report_service.EXCEL_MIMETYPE
        sheet = load_workbook(BytesIO(resp.data)).active
        values = [cell.value for row in sheet.iter_rows() for cell in row]
        assert "Saline" in values
        assert "Acme Supplies" in values
        assert 10.0 in values

    def test_no_rows_is_404(self, client, admin_headers, purchased):
        resp = client.get("/api/purchases/export/pdf?start_date=2024-01-01&end_date=2024-12-31", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json["message"] == "No purchases found for the selected filters"

    def test_start_after_end_is_400(self, client, admin_headers, purchased):
        resp = client.get("/api/purchases/export/excel?start_date=2025-05-01&end_date=2025-04-01", headers=admin_headers)
        assert resp.status_code == 400
        assert "start_date cannot be after end_date" in resp.json["errors"]

    def test_product_filter(self, client, admin_headers, purchased, make_product):
        other = make_product(name="Other")
        resp = client.get(f"/api/purchases/export/pdf?product_id={other.id}", headers=admin_headers)
        assert resp.status_code == 404


class TestSalesExports:

    def test_sales_pdf_and_excel(self, client, admin_headers, make_product):
        product = make_product(name="Gauze", stock=5)
        client.post(
            "/api/sales",
            json={"sales_date": "2025-04-01", "lines": [{"product_id": product.id, "quantity": 2}]},
            headers=admin_headers,
        )

        pdf = client.get("/api/sales/export/pdf?status=processing", headers=admin_headers)
        xlsx = client.get("/api/sales/export/excel", headers=admin_headers)

        assert pdf.status_code == 200
        assert pdf.data.startswith(b"%PDF")
        assert xlsx.status_code == 200
        sheet = load_workbook(BytesIO(xlsx.data)).active
        assert "Guest Customer" in [cell.value for row in sheet.iter_rows() for cell in row]

    def test_invalid_status_filter(self, client, admin_headers, db_session):
        resp = client.get("/api/sales/export/pdf?status=lost", headers=admin_headers)
        assert resp.status_code == 400


class TestReportModel:

    def test_filters_are_described(self):
        filters = report_service.ReportFilters(status="active", party_id=3)
        assert filters.describe("Provider") == ["Provider ID: 3", "Status: active"]
        assert report_service.ReportFilters().describe("Provider") == ["All records"]
