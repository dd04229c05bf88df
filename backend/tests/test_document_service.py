"""
Unit tests per il recupero del documento PDF e l'archivio artefatti.
"""

import asyncio
import uuid
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from conftest import build_work_order, make_result
from spk_tracker.core.exceptions import NotFoundError, RenderError
from spk_tracker.core.storage import LocalArtifactStore
from spk_tracker.services.document_service import DocumentService
from spk_tracker.services.identifiers import document_artifact_key
from spk_tracker.services.pdf_service import SpkDocumentRenderer
from spk_tracker.services.work_order_service import WorkOrderService

BASE_URL = "https://files.example.com/artifacts"
PDF = b"%PDF-1.7 spk"


def artifact_key(work_order, revision=1):
    return document_artifact_key(work_order.id, revision)


@pytest.fixture
def store(tmp_path):
    return LocalArtifactStore(str(tmp_path), BASE_URL)


@pytest.fixture
def renderer():
    renderer = MagicMock(spec=SpkDocumentRenderer)
    renderer.render_pdf.return_value = PDF
    return renderer


@pytest.fixture
def documents(test_settings, renderer, store):
    return DocumentService(
        renderer=renderer,
        store=store,
        work_orders=WorkOrderService(settings=test_settings),
    )


# ============================================================
# LocalArtifactStore
# ============================================================


class TestLocalArtifactStore:
    """Tests per l'archivio su filesystem."""

    def test_put_get_delete(self, store):
        locator = store.put("pdfs/a.pdf", b"abc")

        assert locator == f"{BASE_URL}/pdfs/a.pdf"
        assert store.get("pdfs/a.pdf") == b"abc"

        store.delete("pdfs/a.pdf")
        assert store.get("pdfs/a.pdf") is None

    def test_delete_missing_is_silent(self, store):
        store.delete("pdfs/missing.pdf")

    def test_key_outside_root_rejected(self, store):
        with pytest.raises(ValueError):
            store.get("../../etc/passwd")

    def test_key_for(self, store):
        assert store.key_for(f"{BASE_URL}/pdfs/a.pdf") == "pdfs/a.pdf"
        assert store.key_for("https://elsewhere.example.com/a.pdf") is None

    def test_concurrent_put_same_key(self, store, tmp_path):
        """Test scritture concorrenti sulla stessa chiave: nessun errore, nessun file temporaneo residuo."""
        payloads = [f"%PDF writer {n}".encode() for n in range(4)]

        def write_many(content):
            for _ in range(50):
                store.put("pdfs/k.pdf", content)

        with ThreadPoolExecutor(max_workers=4) as pool:
            for future in [pool.submit(write_many, content) for content in payloads]:
                future.result()

        assert store.get("pdfs/k.pdf") in payloads
        assert sorted(p.name for p in (tmp_path / "pdfs").iterdir()) == ["k.pdf"]


# ============================================================
# DocumentService
# ============================================================


class TestGetDocument:
    """Tests per DocumentService.get_document."""

    def test_cache_miss_renders_and_stores(self, documents, renderer, store, mock_db, work_order):
        mock_db.execute.side_effect = [make_result(work_order), make_result(rowcount=1)]

        document = asyncio.run(documents.get_document(mock_db, work_order.id))

        assert document.content == PDF
        assert document.filename == "spk-SPK-2026-4821.pdf"
        assert document.media_type == "application/pdf"
        assert document.locator == f"{BASE_URL}/{artifact_key(work_order)}"
        assert store.get(artifact_key(work_order)) == PDF
        assert work_order.pdf_url == document.locator
        renderer.render_pdf.assert_called_once()
        mock_db.commit.assert_awaited_once()

    def test_renders_from_snapshot(self, documents, renderer, mock_db, work_order):
        mock_db.execute.side_effect = [make_result(work_order), make_result(rowcount=1)]

        asyncio.run(documents.get_document(mock_db, work_order.id))

        snapshot, payments = renderer.render_pdf.call_args.args
        assert snapshot.id == work_order.id
        assert snapshot.revision == 1
        assert sorted(p.term for p in payments) == ["dp", "final", "progress"]

    def test_cache_hit_skips_rendering(self, documents, renderer, store, mock_db, work_order):
        store.put(artifact_key(work_order), b"%PDF cached")
        mock_db.execute.return_value = make_result(work_order)

        document = asyncio.run(documents.get_document(mock_db, work_order.id))

        assert document.content == b"%PDF cached"
        renderer.render_pdf.assert_not_called()
        mock_db.commit.assert_not_awaited()

    def test_shared_spk_number_keeps_documents_apart(self, documents, renderer, store, mock_db):
        """Test due SPK con lo stesso numero: ognuno riceve il proprio contratto."""
        first = build_work_order(vendor_name="Vendor A")
        second = build_work_order(vendor_name="Vendor B")
        assert first.spk_number == second.spk_number
        renderer.render_pdf.side_effect = lambda snapshot, payments: f"PDF for {snapshot.vendor_name}".encode()

        mock_db.execute.side_effect = [make_result(first), make_result(rowcount=1)]
        first_document = asyncio.run(documents.get_document(mock_db, first.id))
        mock_db.execute.side_effect = [make_result(second), make_result(rowcount=1)]
        second_document = asyncio.run(documents.get_document(mock_db, second.id))

        assert first_document.content == b"PDF for Vendor A"
        assert second_document.content == b"PDF for Vendor B"
        assert first_document.locator != second_document.locator
        assert first_document.filename == second_document.filename == "spk-SPK-2026-4821.pdf"
        assert store.get(artifact_key(first)) == b"PDF for Vendor A"

    def test_delete_spares_artifact_of_shared_number(self, test_settings, store, mock_db):
        first = build_work_order(vendor_name="Vendor A")
        second = build_work_order(vendor_name="Vendor B")
        store.put(artifact_key(first), b"PDF for Vendor A")
        store.put(artifact_key(second), b"PDF for Vendor B")
        work_orders = WorkOrderService(settings=test_settings, artifact_store=store)
        mock_db.execute.return_value = make_result(first)

        asyncio.run(work_orders.delete(mock_db, first.id))

        assert store.get(artifact_key(first)) is None
        assert store.get(artifact_key(second)) == b"PDF for Vendor B"

    def test_concurrent_retrievals_return_same_document(self, documents, store, mock_db, work_order):
        mock_db.execute.return_value = make_result(work_order)

        async def retrieve_together():
            return await asyncio.gather(
                *(documents.get_document(mock_db, work_order.id) for _ in range(4))
            )

        results = asyncio.run(retrieve_together())

        assert {document.content for document in results} == {PDF}
        assert {document.locator for document in results} == {f"{BASE_URL}/{artifact_key(work_order)}"}
        assert store.get(artifact_key(work_order)) == PDF

    def test_new_revision_replaces_old_artifact(self, documents, store, mock_db, work_order):
        old_locator = store.put(artifact_key(work_order), b"%PDF old")
        work_order.revision = 2
        work_order.pdf_url = old_locator
        mock_db.execute.side_effect = [make_result(work_order), make_result(rowcount=1)]

        document = asyncio.run(documents.get_document(mock_db, work_order.id))

        assert document.locator.endswith("-r2.pdf")
        assert store.get(artifact_key(work_order)) is None

    def test_not_found(self, documents, renderer, mock_db):
        mock_db.execute.return_value = make_result(None)

        with pytest.raises(NotFoundError):
            asyncio.run(documents.get_document(mock_db, uuid.uuid4()))

        renderer.render_pdf.assert_not_called()

    def test_render_failure_is_not_not_found(self, documents, renderer, store, mock_db, work_order):
        renderer.render_pdf.side_effect = RenderError("WeasyPrint non disponibile")
        mock_db.execute.return_value = make_result(work_order)

        with pytest.raises(RenderError) as exc_info:
            asyncio.run(documents.get_document(mock_db, work_order.id))

        assert exc_info.value.status_code == 500
        assert store.get(artifact_key(work_order)) is None
        mock_db.commit.assert_not_awaited()


class TestInvalidate:
    """Tests per DocumentService.invalidate."""

    def test_invalidate_removes_artifact(self, documents, renderer, store, mock_db, work_order):
        work_order.pdf_url = store.put(artifact_key(work_order), PDF)
        mock_db.execute.side_effect = [make_result(work_order), make_result(rowcount=1)]

        asyncio.run(documents.invalidate(mock_db, work_order.id))

        assert store.get(artifact_key(work_order)) is None
        assert work_order.pdf_url is None
        renderer.forget.assert_called_once_with(work_order.id)
