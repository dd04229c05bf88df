"""
Dispatcher delle notifiche webhook
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Converte gli eventi di dominio in payload JSON piatti e li invia
all'endpoint configurato per il tipo di evento.

Semantica at-most-once, fire-and-forget: un solo tentativo, nessuna
coda e nessun retry. Un errore di consegna viene loggato e non arriva
mai all'operazione che ha generato l'evento (già committata).
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from spk_tracker.core.config import Settings
from spk_tracker.core.exceptions import NotificationError
from spk_tracker.services.events import (
    DomainEvent,
    PaymentUpdated,
    WorkOrderPublished,
    WorkOrderSnapshot,
)

# Logger per questo modulo
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationConfig:
    """
    Configurazione esplicita del dispatcher.

    Attributes:
        endpoints: URL per nome evento (spk.published, payment.updated)
        timeout_seconds: Timeout della singola POST
        max_workers: Thread per le consegne in background
    """
    endpoints: dict[str, str] = field(default_factory=dict)
    timeout_seconds: float = 10.0
    max_workers: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationConfig":
        endpoints = {
            WorkOrderPublished.name: settings.webhook_spk_published_url,
            PaymentUpdated.name: settings.webhook_payment_updated_url,
        }
        return cls(
            endpoints={name: url for name, url in endpoints.items() if url},
            timeout_seconds=settings.webhook_timeout_seconds,
            max_workers=settings.notification_workers,
        )

    def endpoint_for(self, event_name: str) -> Optional[str]:
        return self.endpoints.get(event_name)


@dataclass(frozen=True)
class DeliveryResult:
    """Esito di una consegna. Usato solo per il logging."""
    event: str
    url: Optional[str]
    delivered: bool
    skipped: bool = False
    status_code: Optional[int] = None
    error: Optional[NotificationError] = None


# -------------------------------------------------------------------
# Costruzione payload
# -------------------------------------------------------------------

def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _number(value) -> Optional[float]:
    # Gli importi viaggiano come numeri JSON, come nel form di creazione
    return float(value) if value is not None else None


def work_order_fields(wo: WorkOrderSnapshot) -> dict[str, Any]:
    """Campi dell'SPK comuni a tutti i payload."""
    return {
        "id": str(wo.id),
        "spkNumber": wo.spk_number,
        "vendorName": wo.vendor_name,
        "vendorEmail": wo.vendor_email,
        "vendorPhone": wo.vendor_phone,
        "projectName": wo.project_name,
        "projectDescription": wo.project_description,
        "contractValue": _number(wo.contract_value),
        "currency": wo.currency,
        "startDate": _iso(wo.start_date),
        "endDate": _iso(wo.end_date),
        "dpPercentage": _number(wo.dp_percentage),
        "dpAmount": _number(wo.dp_amount),
        "progressPercentage": _number(wo.progress_percentage),
        "progressAmount": _number(wo.progress_amount),
        "finalPercentage": _number(wo.final_percentage),
        "finalAmount": _number(wo.final_amount),
        "status": wo.status,
        "createdAt": _iso(wo.created_at),
        "updatedAt": _iso(wo.updated_at),
        "createdBy": wo.created_by,
        "notes": wo.notes,
    }


def build_payload(event: DomainEvent) -> dict[str, Any]:
    """
    Costruisce il payload JSON piatto per un evento.

    Args:
        event: WorkOrderPublished o PaymentUpdated

    Returns:
        dict: Payload serializzabile con json.dumps

    Raises:
        TypeError: Se il tipo di evento non è gestito
    """
    if isinstance(event, WorkOrderPublished):
        payload = {"event": event.name, **work_order_fields(event.work_order)}
        payload["vendorLink"] = event.vendor_link
        payload["pdfUrl"] = event.document_url
        return payload

    if isinstance(event, PaymentUpdated):
        payment = event.payment
        return {
            "event": event.name,
            **work_order_fields(event.work_order),
            "paymentId": str(payment.id),
            "paymentTerm": payment.term,
            "paymentAmount": _number(payment.amount),
            "paymentPercentage": _number(payment.percentage),
            "paymentStatus": payment.status,
            "paymentPaidDate": _iso(payment.paid_date),
            "paymentReference": payment.payment_reference,
            "paymentUpdatedAt": _iso(payment.updated_at),
            "paymentUpdatedBy": payment.updated_by,
        }

    raise TypeError(f"Evento non gestito: {type(event).__name__}")


# -------------------------------------------------------------------
# Dispatcher
# -------------------------------------------------------------------

class NotificationDispatcher:
    """
    Invia gli eventi di dominio agli endpoint webhook configurati.

    La configurazione è iniettata alla costruzione; sessione HTTP ed
    executor possono essere sostituiti nei test.
    """

    def __init__(
        self,
        config: NotificationConfig,
        session: Optional[requests.Session] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=config.max_workers,
            thread_name_prefix="spk-notify",
        )

    def deliver(self, event: DomainEvent) -> DeliveryResult:
        """
        Consegna sincrona con un solo tentativo.

        Non solleva mai eccezioni: gli errori di rete e le risposte non 2xx
        sono restituiti nel DeliveryResult.
        """
        url = self.config.endpoint_for(event.name)
        if not url:
            logger.debug("Nessun endpoint per %s, notifica saltata", event.name)
            return DeliveryResult(event=event.name, url=None, delivered=False, skipped=True)

        try:
            payload = build_payload(event)
            response = self.session.post(
                url,
                json=payload,
                timeout=self.config.timeout_seconds,
            )
        except (requests.RequestException, TypeError, ValueError) as e:
            error = NotificationError(f"Invio {event.name} a {url} fallito: {e}")
            logger.error("Errore webhook %s: %s", event.name, e)
            return DeliveryResult(event=event.name, url=url, delivered=False, error=error)

        if not 200 <= response.status_code < 300:
            error = NotificationError(
                f"Webhook {event.name} ha risposto {response.status_code}",
                extra={"status_code": response.status_code},
            )
            logger.error(
                "Webhook %s rifiutato da %s: HTTP %s",
                event.name,
                url,
                response.status_code,
            )
            return DeliveryResult(
                event=event.name,
                url=url,
                delivered=False,
                status_code=response.status_code,
                error=error,
            )

        logger.info("Notifica %s consegnata (HTTP %s)", event.name, response.status_code)
        return DeliveryResult(
            event=event.name,
            url=url,
            delivered=True,
            status_code=response.status_code,
        )

    def dispatch(self, event: DomainEvent) -> Optional["Future[DeliveryResult]"]:
        """
        Avvia la consegna in background e ritorna subito.

        Il Future restituito serve solo ai test: il chiamante non deve
        attenderlo. Se l'evento non ha endpoint non viene creato nessun task.
        """
        if not self.config.endpoint_for(event.name):
            logger.debug("Nessun endpoint per %s, notifica saltata", event.name)
            return None

        try:
            future = self._executor.submit(self.deliver, event)
        except RuntimeError as e:
            # Executor già chiuso (shutdown applicazione)
            logger.warning("Notifica %s non inviata: %s", event.name, e)
            return None
        future.add_done_callback(self._log_outcome)
        return future

    @staticmethod
    def _log_outcome(future: "Future[DeliveryResult]") -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Task di notifica terminato con errore: %s", exc)
            return
        result = future.result()
        if result.error is not None:
            logger.warning("Notifica %s non consegnata: %s", result.event, result.error.detail)

    def shutdown(self, wait: bool = True) -> None:
        """Chiude l'executor e la sessione HTTP."""
        self._executor.shutdown(wait=wait)
        self.session.close()
