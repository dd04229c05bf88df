"""
Recupero del documento PDF degli SPK
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Il documento è generato su richiesta e salvato nell'archivio artefatti con
chiave legata alla revisione dell'SPK: finché SPK e pagamenti non cambiano
viene restituito il file già salvato.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from spk_tracker.core.exceptions import RenderError
from spk_tracker.core.storage import ArtifactStore
from spk_tracker.models import WorkOrder
from spk_tracker.services.events import PaymentSnapshot, WorkOrderSnapshot
from spk_tracker.services.identifiers import document_artifact_key, document_filename
from spk_tracker.services.pdf_service import SpkDocumentRenderer
from spk_tracker.services.work_order_service import WorkOrderService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedDocument:
    """PDF pronto per il download."""
    filename: str
    content: bytes
    locator: str
    media_type: str = "application/pdf"


class DocumentService:
    """Genera, salva e restituisce il PDF di un SPK."""

    def __init__(
        self,
        renderer: SpkDocumentRenderer,
        store: ArtifactStore,
        work_orders: WorkOrderService,
    ) -> None:
        self.renderer = renderer
        self.store = store
        self.work_orders = work_orders

    async def get_document(
        self,
        db: AsyncSession,
        work_order_id: uuid.UUID,
    ) -> RenderedDocument:
        """
        Restituisce il PDF della revisione corrente dell'SPK.

        Args:
            db: Sessione database
            work_order_id: UUID dell'SPK

        Returns:
            RenderedDocument: Nome file, contenuto e locator pubblico

        Raises:
            NotFoundError: Se l'SPK non esiste
            RenderError: Se la generazione o il salvataggio del PDF fallisce
        """
        work_order = await self.work_orders.get_by_id(db, work_order_id)
        key = document_artifact_key(work_order.id, work_order.revision)
        filename = document_filename(work_order.spk_number)

        content = self._read_artifact(key)
        if content is not None:
            logger.debug("PDF SPK %s servito dall'archivio (%s)", work_order.spk_number, key)
            return RenderedDocument(filename=filename, content=content, locator=self.store.locator(key))

        snapshot = WorkOrderSnapshot.from_model(work_order)
        payments = [PaymentSnapshot.from_model(p) for p in work_order.payments]
        content = await asyncio.to_thread(self.renderer.render_pdf, snapshot, payments)

        try:
            locator = self.store.put(key, content)
        except OSError as e:
            logger.error("Errore salvataggio PDF SPK %s: %s", work_order.spk_number, e, exc_info=True)
            raise RenderError(f"Salvataggio PDF SPK {work_order.spk_number} fallito: {e}") from e

        previous_url = work_order.pdf_url
        await self._save_locator(db, work_order, locator)
        if previous_url and previous_url != locator:
            self._discard(self.store.key_for(previous_url))

        return RenderedDocument(filename=filename, content=content, locator=locator)

    async def invalidate(
        self,
        db: AsyncSession,
        work_order_id: uuid.UUID,
    ) -> None:
        """
        Elimina il PDF salvato dell'SPK e azzera pdf_url.

        Raises:
            NotFoundError: Se l'SPK non esiste
        """
        work_order = await self.work_orders.get_by_id(db, work_order_id)
        self._discard(document_artifact_key(work_order.id, work_order.revision))
        if work_order.pdf_url:
            self._discard(self.store.key_for(work_order.pdf_url))
        await self._save_locator(db, work_order, None)
        self.renderer.forget(work_order.id)
        logger.info("Documento SPK %s invalidato", work_order.spk_number)

    # ---------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------

    def _read_artifact(self, key: str) -> Optional[bytes]:
        try:
            return self.store.get(key)
        except OSError as e:
            logger.warning("Lettura artefatto %s fallita, rigenero: %s", key, e)
            return None

    def _discard(self, key: Optional[str]) -> None:
        if not key:
            return
        try:
            self.store.delete(key)
        except OSError as e:
            logger.warning("Artefatto %s non eliminato: %s", key, e)

    async def _save_locator(
        self,
        db: AsyncSession,
        work_order: WorkOrder,
        locator: Optional[str],
    ) -> None:
        """
        Salva pdf_url senza toccare updated_at né la revisione.

        Un errore qui non invalida il documento già prodotto: viene solo loggato.
        """
        try:
            await db.execute(
                update(WorkOrder)
                .where(WorkOrder.id == work_order.id)
                .values(pdf_url=locator)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Errore salvataggio pdf_url SPK %s: %s", work_order.spk_number, e)
            return
        set_committed_value(work_order, "pdf_url", locator)
