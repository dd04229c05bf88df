"""
Tests dell'API HTTP: envelope delle risposte e mappatura degli errori.

I service sono sostituiti con app.dependency_overrides; il database non
viene mai contattato.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import build_work_order
from spk_tracker.core.database import get_db
from spk_tracker.core.deps import get_document_service, get_payment_service, get_work_order_service
from spk_tracker.core.exceptions import NotFoundError, PersistenceError, RenderError, ValidationError
from spk_tracker.main import app
from spk_tracker.services.document_service import DocumentService, RenderedDocument
from spk_tracker.services.payment_service import PaymentService
from spk_tracker.services.work_order_service import PublishResult, WorkOrderService


async def override_get_db():
    yield AsyncMock()


@pytest.fixture
def work_orders():
    return MagicMock(spec=WorkOrderService)


@pytest.fixture
def payments():
    return MagicMock(spec=PaymentService)


@pytest.fixture
def documents():
    return MagicMock(spec=DocumentService)


@pytest.fixture
def client(work_orders, payments, documents):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_work_order_service] = lambda: work_orders
    app.dependency_overrides[get_payment_service] = lambda: payments
    app.dependency_overrides[get_document_service] = lambda: documents
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestSpkEndpoints:
    """Tests per /api/v1/spk."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_create_validation_error(self, client, work_orders):
        work_orders.create.side_effect = ValidationError(
            "Il nome del vendor è obbligatorio", field="vendor_name"
        )

        response = client.post("/api/v1/spk/", json={"vendorName": ""})

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "BUSINESS_VALIDATION_ERROR"
        assert body["field"] == "vendor_name"
        assert body["detail"] == "Il nome del vendor è obbligatorio"

    def test_create_success(self, client, work_orders):
        work_orders.create.return_value = build_work_order()

        response = client.post("/api/v1/spk/", json={"vendorName": "PT Maju Jaya"})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["spk_number"] == "SPK-2026-4821"
        assert [p["term"] for p in body["data"]["payments"]] == ["dp", "progress", "final"]
        assert work_orders.create.await_args.args[1] == {"vendorName": "PT Maju Jaya"}

    def test_get_not_found(self, client, work_orders):
        work_orders.get_by_id.side_effect = NotFoundError("SPK non trovato")

        response = client.get(f"/api/v1/spk/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error_code"] == "RESOURCE_NOT_FOUND"

    def test_persistence_error_hides_detail(self, client, work_orders):
        work_orders.get_by_id.side_effect = PersistenceError("password authentication failed for user spk")

        response = client.get(f"/api/v1/spk/{uuid.uuid4()}")

        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == "PERSISTENCE_ERROR"
        assert "password" not in body["detail"]

    def test_publish_already_published(self, client, work_orders):
        work_order = build_work_order(status="published", revision=2)
        work_orders.publish.return_value = PublishResult(work_order=work_order, already_published=True)

        response = client.post(f"/api/v1/spk/{work_order.id}/publish")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["already_published"] is True
        assert data["work_order"]["status"] == "published"

    def test_delete(self, client, work_orders):
        work_order_id = uuid.uuid4()

        response = client.delete(f"/api/v1/spk/{work_order_id}")

        assert response.status_code == 204
        work_orders.delete.assert_awaited_once()

    def test_document(self, client, documents):
        documents.get_document.return_value = RenderedDocument(
            filename="spk-SPK-2026-4821.pdf",
            content=b"%PDF-1.7",
            locator="https://files.example.com/artifacts/pdfs/spk-SPK-2026-4821-r1.pdf",
        )

        response = client.get(f"/api/v1/spk/{uuid.uuid4()}/document")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert "spk-SPK-2026-4821.pdf" in response.headers["content-disposition"]
        assert response.content == b"%PDF-1.7"

    def test_document_render_failure(self, client, documents):
        documents.get_document.side_effect = RenderError("cairo: libreria mancante")

        response = client.get(f"/api/v1/spk/{uuid.uuid4()}/document")

        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == "RENDER_FAILED"
        assert body["detail"] == "Generazione del documento non riuscita"


class TestPaymentEndpoints:
    """Tests per /api/v1/spk/{id}/payments."""

    def test_update_payment(self, client, payments):
        work_order = build_work_order(status="published")
        payment = work_order.payments[0]
        payment.status = "paid"
        result = MagicMock(payment=payment)
        payments.update_status.return_value = result

        response = client.patch(
            f"/api/v1/spk/{work_order.id}/payments/{payment.id}",
            json={"status": "paid", "paidDate": "2026-02-01"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "paid"
        kwargs = payments.update_status.await_args.kwargs
        assert kwargs["work_order_id"] == work_order.id

    def test_list_payments(self, client, payments):
        work_order = build_work_order()
        payments.get_by_work_order.return_value = list(work_order.payments)

        response = client.get(f"/api/v1/spk/{work_order.id}/payments/")

        assert response.status_code == 200
        assert len(response.json()["data"]) == 3


class TestVendorEndpoints:
    """Tests per /api/v1/vendors/{slug}/spk."""

    def test_vendor_view(self, client, work_orders):
        work_orders.get_by_vendor_slug.return_value = ([build_work_order(status="published")], 1)

        response = client.get("/api/v1/vendors/pt-maju-jaya/spk")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["items"][0]["vendor_name"] == "PT Maju Jaya"
        assert data["total"] == 1
        work_orders.get_by_vendor_slug.assert_awaited_once()

    def test_vendor_view_is_paginated(self, client, work_orders):
        """Test la vista vendor non tronca: espone totale e pagine."""
        work_orders.get_by_vendor_slug.return_value = ([build_work_order(vendor_name="Acme Supplies")], 45)

        response = client.get("/api/v1/vendors/acme-supplies/spk?page=3&per_page=20")

        data = response.json()["data"]
        assert data["page"] == 3
        assert data["total_pages"] == 3
        assert work_orders.get_by_vendor_slug.await_args.kwargs == {"page": 3, "per_page": 20}
        assert work_orders.get_by_vendor_slug.await_args.args[1] == "acme-supplies"
