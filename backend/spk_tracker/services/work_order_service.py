"""
Service Layer per gli SPK
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Definisce la logica di business per la gestione degli SPK:
creazione atomica con i tre pagamenti, pubblicazione (draft → published)
con emissione dell'evento spk.published, letture ed eliminazione.
"""

import datetime
import logging
import random
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from spk_tracker.core.config import Settings, settings as default_settings
from spk_tracker.core.exceptions import NotFoundError, PersistenceError
from spk_tracker.core.storage import ArtifactStore
from spk_tracker.models import Payment, WorkOrder
from spk_tracker.schemas.payment import PaymentStatus, PaymentTerm
from spk_tracker.schemas.work_order import SpkStatus, WorkOrderCreate
from spk_tracker.services.events import WorkOrderPublished, WorkOrderSnapshot
from spk_tracker.services.identifiers import (
    document_artifact_key,
    document_locator,
    generate_spk_number,
    vendor_link,
    vendor_name_from_slug,
    vendor_slug,
)
from spk_tracker.services.notification_service import NotificationDispatcher
from spk_tracker.services.split_calculator import calculate_split
from spk_tracker.services.validator import validate_work_order_input

# Logger per questo modulo
logger = logging.getLogger(__name__)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class PublishResult:
    """
    Esito di publish().

    already_published=True indica una pubblicazione ripetuta: nessuna
    modifica e nessun evento emesso.
    """
    work_order: WorkOrder
    already_published: bool
    event: Optional[WorkOrderPublished] = None


class WorkOrderService:
    """
    Service per il ciclo di vita degli SPK.

    Fornisce metodi asincroni per interagire con il database
    in modo centralizzato, senza dipendenze da FastAPI.
    Le notifiche partono solo dopo il commit, tramite il dispatcher.
    """

    def __init__(
        self,
        dispatcher: Optional[NotificationDispatcher] = None,
        settings: Settings = default_settings,
        clock: Callable[[], datetime.datetime] = utc_now,
        rng: Optional[random.Random] = None,
        artifact_store: Optional[ArtifactStore] = None,
    ) -> None:
        """
        Inizializza il service.

        Args:
            dispatcher: Dispatcher delle notifiche (None = nessuna notifica)
            settings: Impostazioni applicazione
            clock: Sorgente dell'ora corrente (UTC)
            rng: Generatore casuale per i numeri SPK
            artifact_store: Archivio dei PDF da ripulire all'eliminazione
        """
        self.dispatcher = dispatcher
        self.settings = settings
        self.clock = clock
        self.rng = rng or random.Random()
        self.artifact_store = artifact_store

    # -------------------------------------------------------------------
    # Letture
    # -------------------------------------------------------------------

    async def get_by_id(
        self,
        db: AsyncSession,
        work_order_id: uuid.UUID,
    ) -> WorkOrder:
        """
        Recupera un SPK tramite ID, con i pagamenti caricati.

        Args:
            db: Sessione database
            work_order_id: UUID dell'SPK

        Returns:
            WorkOrder: L'SPK trovato

        Raises:
            NotFoundError: Se l'SPK non esiste
        """
        query = (
            select(WorkOrder)
            .where(WorkOrder.id == work_order_id)
            .options(selectinload(WorkOrder.payments))
            .execution_options(populate_existing=True)
        )
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Errore lettura SPK %s: %s", work_order_id, e, exc_info=True)
            raise PersistenceError(f"Lettura SPK {work_order_id} fallita: {e}") from e

        work_order = result.scalar_one_or_none()
        if not work_order:
            logger.warning("SPK non trovato: %s", work_order_id)
            raise NotFoundError(f"SPK con ID {work_order_id} non trovato")

        logger.debug("Recuperato SPK: %s", work_order_id)
        return work_order

    async def get_all(
        self,
        db: AsyncSession,
        status_filter: Optional[SpkStatus] = None,
        vendor_name: Optional[str] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[WorkOrder], int]:
        """
        Recupera la lista paginata degli SPK, più recenti prima.

        Args:
            db: Sessione database
            status_filter: Filtro opzionale per stato
            vendor_name: Ricerca parziale (case-insensitive) sul nome vendor
            page: Numero pagina (default 1)
            per_page: Elementi per pagina (default 20)

        Returns:
            Tuple di (lista SPK, totale count)
        """
        conditions = []
        if status_filter:
            conditions.append(WorkOrder.status == SpkStatus(status_filter).value)
        if vendor_name:
            conditions.append(WorkOrder.vendor_name.ilike(f"%{vendor_name}%"))

        query = select(WorkOrder).options(selectinload(WorkOrder.payments))
        count_query = select(func.count()).select_from(WorkOrder)
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        offset = (page - 1) * per_page
        query = query.order_by(WorkOrder.created_at.desc()).offset(offset).limit(per_page)

        try:
            result = await db.execute(query)
            work_orders = list(result.scalars().all())
            count_result = await db.execute(count_query)
        except SQLAlchemyError as e:
            logger.error("Errore lettura lista SPK: %s", e, exc_info=True)
            raise PersistenceError(f"Lettura lista SPK fallita: {e}") from e
        total = count_result.scalar() or 0

        logger.debug("Recuperati %d SPK su %d totali", len(work_orders), total)
        return work_orders, total

    async def get_by_vendor_slug(
        self,
        db: AsyncSession,
        slug: str,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[WorkOrder], int]:
        """
        SPK visibili dalla vista in sola lettura del vendor, paginati.

        Lo slug viene riconvertito in nome (trattini → spazi) e confrontato
        per contenimento, senza distinzione maiuscole/minuscole.

        Returns:
            Tuple di (lista SPK, totale count)
        """
        name = vendor_name_from_slug(slug).strip()
        if not name:
            return [], 0
        return await self.get_all(db, vendor_name=name, page=page, per_page=per_page)

    # -------------------------------------------------------------------
    # Creazione
    # -------------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        data: Union[Mapping[str, Any], WorkOrderCreate],
        actor: Optional[str] = None,
    ) -> WorkOrder:
        """
        Crea un SPK in stato draft insieme ai suoi tre pagamenti.

        Validazione → calcolo ripartizione → SPK + 3 pagamenti in un unico
        commit. Se un passo fallisce non viene salvato nulla.

        Args:
            db: Sessione database
            data: Input grezzo (dict) o WorkOrderCreate
            actor: Utente autore (default: settings.default_actor)

        Returns:
            WorkOrder: L'SPK creato, con i pagamenti in ordine dp/progress/final

        Raises:
            ValidationError: Se l'input non è valido
            PersistenceError: Se il salvataggio fallisce
        """
        payload = validate_work_order_input(data, default_currency=self.settings.default_currency)
        actor = actor or self.settings.default_actor

        split = calculate_split(
            payload.contract_value,
            payload.dp_percentage,
            payload.progress_percentage,
            payload.final_percentage,
            currency=payload.currency,
        )
        now = self.clock()
        spk_number = await self._generate_unique_number(db, now.year)

        percentages = {
            PaymentTerm.DP: payload.dp_percentage,
            PaymentTerm.PROGRESS: payload.progress_percentage,
            PaymentTerm.FINAL: payload.final_percentage,
        }
        payments = [
            Payment(
                id=uuid.uuid4(),
                term=term.value,
                amount=split.for_term(term),
                percentage=pct,
                status=PaymentStatus.PENDING.value,
                updated_by=actor,
                created_at=now,
                updated_at=now,
            )
            for term, pct in percentages.items()
        ]

        work_order = WorkOrder(
            id=uuid.uuid4(),
            spk_number=spk_number,
            vendor_name=payload.vendor_name,
            vendor_email=payload.vendor_email,
            vendor_phone=payload.vendor_phone,
            project_name=payload.project_name,
            project_description=payload.project_description,
            contract_value=payload.contract_value,
            currency=payload.currency,
            start_date=payload.start_date,
            end_date=payload.end_date,
            dp_percentage=payload.dp_percentage,
            dp_amount=split.dp_amount,
            progress_percentage=payload.progress_percentage,
            progress_amount=split.progress_amount,
            final_percentage=payload.final_percentage,
            final_amount=split.final_amount,
            status=SpkStatus.DRAFT.value,
            revision=1,
            created_by=actor,
            notes=payload.notes,
            created_at=now,
            updated_at=now,
            payments=payments,
        )

        db.add(work_order)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Errore creazione SPK %s: %s", spk_number, e, exc_info=True)
            raise PersistenceError(f"Creazione SPK {spk_number} fallita: {e}") from e

        logger.info("Creato SPK %s (%s)", work_order.spk_number, work_order.id)
        return work_order

    async def _generate_unique_number(self, db: AsyncSession, year: int) -> str:
        """
        Genera un numero SPK non ancora usato.

        Il numero resta casuale (4 cifre); in caso di collisione con un
        numero esistente si riprova fino a spk_number_max_attempts volte.
        """
        for attempt in range(1, self.settings.spk_number_max_attempts + 1):
            number = generate_spk_number(year, self.rng)
            try:
                result = await db.execute(
                    select(WorkOrder.id).where(WorkOrder.spk_number == number).limit(1)
                )
            except SQLAlchemyError as e:
                logger.error("Errore verifica numero SPK: %s", e, exc_info=True)
                raise PersistenceError(f"Verifica numero SPK fallita: {e}") from e
            if result.scalar_one_or_none() is None:
                return number
            logger.warning("Numero SPK %s già usato (tentativo %d)", number, attempt)

        raise PersistenceError(
            f"Impossibile generare un numero SPK libero per l'anno {year}"
        )

    # -------------------------------------------------------------------
    # Transizioni di stato
    # -------------------------------------------------------------------

    async def publish(
        self,
        db: AsyncSession,
        work_order_id: uuid.UUID,
    ) -> PublishResult:
        """
        Pubblica un SPK (draft → published).

        L'aggiornamento è condizionato allo stato draft, quindi due
        pubblicazioni concorrenti non si ostacolano: la seconda trova
        l'SPK già pubblicato e non fa nulla. L'evento spk.published viene
        emesso solo alla prima pubblicazione, dopo il commit.

        Args:
            db: Sessione database
            work_order_id: UUID dell'SPK

        Returns:
            PublishResult: SPK aggiornato, flag already_published ed evento

        Raises:
            NotFoundError: Se l'SPK non esiste
            PersistenceError: Se l'aggiornamento fallisce
        """
        stmt = (
            update(WorkOrder)
            .where(
                WorkOrder.id == work_order_id,
                WorkOrder.status == SpkStatus.DRAFT.value,
            )
            .values(
                status=SpkStatus.PUBLISHED.value,
                updated_at=self.clock(),
                revision=WorkOrder.revision + 1,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await db.execute(stmt)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Errore pubblicazione SPK %s: %s", work_order_id, e, exc_info=True)
            raise PersistenceError(f"Pubblicazione SPK {work_order_id} fallita: {e}") from e

        work_order = await self.get_by_id(db, work_order_id)

        if result.rowcount == 0:
            logger.info("SPK %s già pubblicato, nessuna modifica", work_order.spk_number)
            return PublishResult(work_order=work_order, already_published=True)

        event = self.build_published_event(work_order)
        self.emit(event)

        logger.info(
            "Cambiato stato SPK %s: %s -> %s",
            work_order.spk_number,
            SpkStatus.DRAFT.value,
            SpkStatus.PUBLISHED.value,
        )
        return PublishResult(work_order=work_order, already_published=False, event=event)

    def build_published_event(self, work_order: WorkOrder) -> WorkOrderPublished:
        """Costruisce l'evento spk.published con slug e link derivati."""
        app_url = self.settings.app_url
        return WorkOrderPublished(
            work_order=WorkOrderSnapshot.from_model(work_order),
            vendor_slug=vendor_slug(work_order.vendor_name),
            vendor_link=vendor_link(app_url, work_order.vendor_name),
            document_url=document_locator(app_url, work_order.id),
        )

    # -------------------------------------------------------------------
    # Eliminazione
    # -------------------------------------------------------------------

    async def delete(
        self,
        db: AsyncSession,
        work_order_id: uuid.UUID,
    ) -> WorkOrderSnapshot:
        """
        Elimina un SPK in qualsiasi stato, insieme ai suoi pagamenti.

        Returns:
            WorkOrderSnapshot: Fotografia dell'SPK eliminato

        Raises:
            NotFoundError: Se l'SPK non esiste
            PersistenceError: Se l'eliminazione fallisce
        """
        work_order = await self.get_by_id(db, work_order_id)
        snapshot = WorkOrderSnapshot.from_model(work_order)
        pdf_url = work_order.pdf_url

        try:
            await db.delete(work_order)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Errore eliminazione SPK %s: %s", work_order_id, e, exc_info=True)
            raise PersistenceError(f"Eliminazione SPK {work_order_id} fallita: {e}") from e

        self._remove_artifacts(snapshot, pdf_url)
        logger.info("Eliminato SPK %s (%s)", snapshot.spk_number, work_order_id)
        return snapshot

    def emit(self, event) -> None:
        """Consegna l'evento al dispatcher (in background), se configurato."""
        if self.dispatcher is not None:
            self.dispatcher.dispatch(event)

    def _remove_artifacts(self, snapshot: WorkOrderSnapshot, pdf_url: Optional[str]) -> None:
        """Elimina i PDF salvati di un SPK già rimosso dal database."""
        if self.artifact_store is None:
            return
        keys = {document_artifact_key(snapshot.id, snapshot.revision)}
        if pdf_url:
            key = self.artifact_store.key_for(pdf_url)
            if key:
                keys.add(key)
        for key in sorted(keys):
            try:
                self.artifact_store.delete(key)
            except OSError as e:
                logger.warning("Artefatto %s non eliminato: %s", key, e)
