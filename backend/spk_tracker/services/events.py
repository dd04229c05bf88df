"""
Eventi di dominio del ciclo di vita SPK
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Gli eventi trasportano snapshot immutabili presi dopo il commit, così il
dispatcher delle notifiche non tocca mai la sessione database.
"""

import datetime
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar, Optional

from spk_tracker.models import Payment, WorkOrder


@dataclass(frozen=True)
class PaymentSnapshot:
    """Fotografia di un pagamento."""
    id: uuid.UUID
    spk_id: uuid.UUID
    term: str
    amount: Decimal
    percentage: Decimal
    status: str
    paid_date: Optional[datetime.date]
    payment_reference: Optional[str]
    updated_by: str
    updated_at: Optional[datetime.datetime]

    @classmethod
    def from_model(cls, payment: Payment) -> "PaymentSnapshot":
        return cls(
            id=payment.id,
            spk_id=payment.spk_id,
            term=payment.term,
            amount=payment.amount,
            percentage=payment.percentage,
            status=payment.status,
            paid_date=payment.paid_date,
            payment_reference=payment.payment_reference,
            updated_by=payment.updated_by,
            updated_at=payment.updated_at,
        )


@dataclass(frozen=True)
class WorkOrderSnapshot:
    """Fotografia di un SPK (senza pagamenti)."""
    id: uuid.UUID
    spk_number: str
    vendor_name: str
    vendor_email: Optional[str]
    vendor_phone: Optional[str]
    project_name: str
    project_description: Optional[str]
    contract_value: Decimal
    currency: str
    start_date: datetime.date
    end_date: Optional[datetime.date]
    dp_percentage: Decimal
    dp_amount: Decimal
    progress_percentage: Decimal
    progress_amount: Decimal
    final_percentage: Decimal
    final_amount: Decimal
    status: str
    revision: int
    created_by: str
    created_at: Optional[datetime.datetime]
    updated_at: Optional[datetime.datetime]
    notes: Optional[str]

    @classmethod
    def from_model(cls, work_order: WorkOrder) -> "WorkOrderSnapshot":
        return cls(
            id=work_order.id,
            spk_number=work_order.spk_number,
            vendor_name=work_order.vendor_name,
            vendor_email=work_order.vendor_email,
            vendor_phone=work_order.vendor_phone,
            project_name=work_order.project_name,
            project_description=work_order.project_description,
            contract_value=work_order.contract_value,
            currency=work_order.currency,
            start_date=work_order.start_date,
            end_date=work_order.end_date,
            dp_percentage=work_order.dp_percentage,
            dp_amount=work_order.dp_amount,
            progress_percentage=work_order.progress_percentage,
            progress_amount=work_order.progress_amount,
            final_percentage=work_order.final_percentage,
            final_amount=work_order.final_amount,
            status=work_order.status,
            revision=work_order.revision,
            created_by=work_order.created_by,
            created_at=work_order.created_at,
            updated_at=work_order.updated_at,
            notes=work_order.notes,
        )


@dataclass(frozen=True)
class DomainEvent:
    """Base degli eventi di dominio."""
    name: ClassVar[str] = "event"
    occurred_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc),
        kw_only=True,
    )


@dataclass(frozen=True)
class WorkOrderPublished(DomainEvent):
    """SPK passato da draft a published."""
    name: ClassVar[str] = "spk.published"

    work_order: WorkOrderSnapshot
    vendor_slug: str
    vendor_link: str
    document_url: str


@dataclass(frozen=True)
class PaymentUpdated(DomainEvent):
    """Stato di un pagamento aggiornato; include l'SPK padre."""
    name: ClassVar[str] = "payment.updated"

    payment: PaymentSnapshot
    work_order: WorkOrderSnapshot
