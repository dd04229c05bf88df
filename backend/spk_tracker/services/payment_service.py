"""
Service Layer per i Pagamenti a termine
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Aggiornamento dello stato dei pagamenti con emissione dell'evento
payment.updated dopo il commit.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spk_tracker.core.exceptions import NotFoundError, PersistenceError
from spk_tracker.models import Payment, WorkOrder
from spk_tracker.models.mixins import next_timestamp
from spk_tracker.schemas.payment import PaymentStatusUpdate, sort_by_term
from spk_tracker.services.events import PaymentSnapshot, PaymentUpdated, WorkOrderSnapshot
from spk_tracker.services.validator import validate_payment_update
from spk_tracker.services.work_order_service import WorkOrderService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentUpdateResult:
    """Pagamento aggiornato, SPK padre ricaricato ed evento emesso."""
    payment: Payment
    work_order: WorkOrder
    event: PaymentUpdated


class PaymentService:
    """
    Service per i pagamenti a termine.

    Ogni aggiornamento incrementa la revisione dell'SPK padre nella stessa
    transazione, così il documento in cache viene rigenerato.
    """

    def __init__(self, work_orders: WorkOrderService) -> None:
        self.work_orders = work_orders

    @property
    def settings(self):
        return self.work_orders.settings

    async def get_by_id(self, db: AsyncSession, payment_id: uuid.UUID) -> Payment:
        """
        Recupera un pagamento tramite ID.

        Raises:
            NotFoundError: Se il pagamento non esiste
        """
        try:
            result = await db.execute(select(Payment).where(Payment.id == payment_id))
        except SQLAlchemyError as e:
            logger.error("Errore lettura pagamento %s: %s", payment_id, e, exc_info=True)
            raise PersistenceError(f"Lettura pagamento {payment_id} fallita: {e}") from e

        payment = result.scalar_one_or_none()
        if not payment:
            logger.warning("Pagamento non trovato: %s", payment_id)
            raise NotFoundError(f"Pagamento con ID {payment_id} non trovato")
        return payment

    async def get_by_work_order(
        self,
        db: AsyncSession,
        work_order_id: uuid.UUID,
    ) -> list[Payment]:
        """
        Pagamenti di un SPK in ordine dp, progress, final.

        Raises:
            NotFoundError: Se l'SPK non esiste
        """
        work_order = await self.work_orders.get_by_id(db, work_order_id)
        return sort_by_term(list(work_order.payments))

    async def update_status(
        self,
        db: AsyncSession,
        payment_id: uuid.UUID,
        data: Union[Mapping[str, Any], PaymentStatusUpdate],
        actor: Optional[str] = None,
        work_order_id: Optional[uuid.UUID] = None,
    ) -> PaymentUpdateResult:
        """
        Aggiorna stato, data e riferimento di un pagamento.

        Tutte le transizioni tra pending, paid e overdue sono ammesse.
        Importo e percentuale non vengono mai modificati.

        Args:
            db: Sessione database
            payment_id: UUID del pagamento
            data: Input grezzo (dict) o PaymentStatusUpdate
            actor: Utente autore (default: settings.default_actor)
            work_order_id: Se indicato, il pagamento deve appartenere a questo SPK

        Returns:
            PaymentUpdateResult: Pagamento aggiornato, SPK padre ed evento

        Raises:
            ValidationError: Se lo stato non è valido
            NotFoundError: Se il pagamento non esiste (o non appartiene all'SPK)
            PersistenceError: Se il salvataggio fallisce
        """
        update_data = validate_payment_update(data)
        actor = actor or self.settings.default_actor

        payment = await self.get_by_id(db, payment_id)
        if work_order_id is not None and payment.spk_id != work_order_id:
            logger.warning("Pagamento %s non appartiene all'SPK %s", payment_id, work_order_id)
            raise NotFoundError(f"Pagamento con ID {payment_id} non trovato")

        previous_status = payment.status
        payment.status = update_data.status.value
        payment.paid_date = update_data.paid_date
        payment.payment_reference = update_data.payment_reference
        payment.updated_by = actor
        payment.updated_at = next_timestamp(payment.updated_at, self.work_orders.clock())

        try:
            await db.execute(
                update(WorkOrder)
                .where(WorkOrder.id == payment.spk_id)
                .values(revision=WorkOrder.revision + 1)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Errore aggiornamento pagamento %s: %s", payment_id, e, exc_info=True)
            raise PersistenceError(f"Aggiornamento pagamento {payment_id} fallito: {e}") from e

        work_order = await self.work_orders.get_by_id(db, payment.spk_id)
        event = PaymentUpdated(
            payment=PaymentSnapshot.from_model(payment),
            work_order=WorkOrderSnapshot.from_model(work_order),
        )
        self.work_orders.emit(event)

        logger.info(
            "Pagamento %s (%s) dell'SPK %s: %s -> %s",
            payment.id,
            payment.term,
            work_order.spk_number,
            previous_status,
            payment.status,
        )
        return PaymentUpdateResult(payment=payment, work_order=work_order, event=event)
