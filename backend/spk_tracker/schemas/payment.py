"""
Schemas Pydantic per i Pagamenti a termine
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Definisce enum, schemi di validazione e serializzazione dei pagamenti.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# -------------------------------------------------------------------
# Enum termini e stati
# -------------------------------------------------------------------

class PaymentTerm(str, Enum):
    """Termini di pagamento di un SPK, nell'ordine contrattuale."""
    DP = "dp"
    PROGRESS = "progress"
    FINAL = "final"


class PaymentStatus(str, Enum):
    """Stati di un pagamento. Ogni transizione tra stati è consentita."""
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


# Ordine contrattuale dei termini, usato per ordinare i pagamenti
TERM_ORDER: dict[str, int] = {
    PaymentTerm.DP.value: 0,
    PaymentTerm.PROGRESS.value: 1,
    PaymentTerm.FINAL.value: 2,
}

TERM_LABELS: dict[str, str] = {
    PaymentTerm.DP.value: "Down Payment (DP)",
    PaymentTerm.PROGRESS.value: "Progress Payment",
    PaymentTerm.FINAL.value: "Final Payment",
}


def sort_by_term(payments: list) -> list:
    """Ordina una lista di pagamenti per termine (dp, progress, final)."""
    def _position(payment) -> int:
        term = getattr(payment.term, "value", payment.term)
        return TERM_ORDER.get(term, len(TERM_ORDER))

    return sorted(payments, key=_position)


def blank_to_none(v):
    """Normalizza le stringhe vuote o di soli spazi a None."""
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


# -------------------------------------------------------------------
# Schemas
# -------------------------------------------------------------------

class PaymentStatusUpdate(BaseModel):
    """
    Schema per l'aggiornamento di stato di un pagamento.

    Accetta sia chiavi snake_case che camelCase (paidDate, paymentReference).
    La data di pagamento non è obbligatoria con status=paid: è responsabilità
    del chiamante fornirla.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: PaymentStatus = Field(..., description="Nuovo stato del pagamento")
    paid_date: Optional[datetime.date] = Field(None, description="Data di pagamento")
    payment_reference: Optional[str] = Field(None, max_length=255, description="Riferimento pagamento")

    @field_validator("paid_date", "payment_reference", mode="before")
    @classmethod
    def normalize_blank(cls, v):
        return blank_to_none(v)


class PaymentRead(BaseModel):
    """Schema per la lettura di un pagamento."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    spk_id: uuid.UUID
    term: PaymentTerm
    amount: Decimal
    percentage: Decimal
    status: PaymentStatus
    paid_date: Optional[datetime.date] = None
    payment_reference: Optional[str] = None
    updated_by: str
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
