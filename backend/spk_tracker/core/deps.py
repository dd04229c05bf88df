"""
Dependency Injection per i service
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Costruisce una sola volta dispatcher, archivio artefatti, renderer e
service a partire dalle impostazioni. Nei test si sostituiscono con
app.dependency_overrides.
"""

from functools import lru_cache

from spk_tracker.core.config import get_settings
from spk_tracker.core.storage import LocalArtifactStore
from spk_tracker.services.document_service import DocumentService
from spk_tracker.services.notification_service import NotificationConfig, NotificationDispatcher
from spk_tracker.services.payment_service import PaymentService
from spk_tracker.services.pdf_service import SpkDocumentRenderer
from spk_tracker.services.work_order_service import WorkOrderService


@lru_cache()
def get_dispatcher() -> NotificationDispatcher:
    """Dispatcher delle notifiche, configurato dai webhook in settings."""
    return NotificationDispatcher(NotificationConfig.from_settings(get_settings()))


@lru_cache()
def get_artifact_store() -> LocalArtifactStore:
    return LocalArtifactStore.from_settings(get_settings())


@lru_cache()
def get_renderer() -> SpkDocumentRenderer:
    return SpkDocumentRenderer()


@lru_cache()
def get_work_order_service() -> WorkOrderService:
    return WorkOrderService(
        dispatcher=get_dispatcher(),
        settings=get_settings(),
        artifact_store=get_artifact_store(),
    )


@lru_cache()
def get_payment_service() -> PaymentService:
    return PaymentService(get_work_order_service())


@lru_cache()
def get_document_service() -> DocumentService:
    return DocumentService(
        renderer=get_renderer(),
        store=get_artifact_store(),
        work_orders=get_work_order_service(),
    )


def shutdown_services() -> None:
    """Chiude il dispatcher (se creato) e svuota le istanze in cache."""
    if get_dispatcher.cache_info().currsize:
        get_dispatcher().shutdown(wait=True)
    for factory in (
        get_dispatcher,
        get_artifact_store,
        get_renderer,
        get_work_order_service,
        get_payment_service,
        get_document_service,
    ):
        factory.cache_clear()
