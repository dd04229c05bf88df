"""
Schemas Pydantic per gli SPK (Surat Perintah Kerja)
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Definisce gli schemi di validazione e serializzazione per l'API.
Le regole di business (campi obbligatori, email, somma percentuali)
sono applicate da spk_tracker.services.validator, non qui.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from spk_tracker.schemas.payment import PaymentRead, blank_to_none, sort_by_term


# -------------------------------------------------------------------
# Enum per gli stati dell'SPK
# -------------------------------------------------------------------

class SpkStatus(str, Enum):
    """Enum che definisce i possibili stati di un SPK."""
    DRAFT = "draft"
    PUBLISHED = "published"


# -------------------------------------------------------------------
# Schemas per SPK
# -------------------------------------------------------------------

class WorkOrderCreate(BaseModel):
    """
    Schema per la creazione di un SPK.

    Accetta chiavi snake_case o camelCase (vendorName, contractValue, ...).
    Gli importi dei tre termini non sono in input: vengono calcolati
    dal valore di contratto e dalle percentuali.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    vendor_name: str = Field("", max_length=255, description="Nome del vendor")
    vendor_email: Optional[str] = Field(None, max_length=255, description="Email del vendor")
    vendor_phone: Optional[str] = Field(None, max_length=50, description="Telefono del vendor")
    project_name: str = Field("", max_length=255, description="Nome del progetto")
    project_description: Optional[str] = Field(None, description="Descrizione del progetto")
    contract_value: Decimal = Field(..., description="Valore del contratto")
    currency: Optional[str] = Field(None, description="Codice valuta (default da configurazione)")
    start_date: datetime.date = Field(..., description="Data inizio lavori")
    end_date: Optional[datetime.date] = Field(None, description="Data fine lavori")
    dp_percentage: Decimal = Field(..., description="Percentuale down payment")
    progress_percentage: Decimal = Field(..., description="Percentuale progress payment")
    final_percentage: Decimal = Field(..., description="Percentuale final payment")
    notes: Optional[str] = Field(None, description="Note libere")

    @field_validator(
        "vendor_email", "vendor_phone", "project_description",
        "currency", "end_date", "notes",
        mode="before",
    )
    @classmethod
    def normalize_blank(cls, v):
        """Le stringhe vuote dei campi opzionali diventano None."""
        return blank_to_none(v)

    @field_validator("vendor_name", "project_name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class WorkOrderRead(BaseModel):
    """
    Schema per la lettura di un SPK.

    Include lo stato, la revisione e i pagamenti ordinati per termine.
    """
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    spk_number: str
    vendor_name: str
    vendor_email: Optional[str] = None
    vendor_phone: Optional[str] = None
    project_name: str
    project_description: Optional[str] = None
    contract_value: Decimal
    currency: str
    start_date: datetime.date
    end_date: Optional[datetime.date] = None
    dp_percentage: Decimal
    dp_amount: Decimal
    progress_percentage: Decimal
    progress_amount: Decimal
    final_percentage: Decimal
    final_amount: Decimal
    status: SpkStatus
    revision: int
    pdf_url: Optional[str] = None
    created_by: str
    notes: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    payments: list[PaymentRead] = Field(default_factory=list)

    @field_validator("payments")
    @classmethod
    def order_payments(cls, v: list[PaymentRead]) -> list[PaymentRead]:
        """Pagamenti sempre in ordine dp, progress, final."""
        return sort_by_term(v)


class PublishRead(BaseModel):
    """Esito della pubblicazione di un SPK."""
    work_order: WorkOrderRead
    already_published: bool = False


# -------------------------------------------------------------------
# Schema per lista paginata
# -------------------------------------------------------------------

class WorkOrderList(BaseModel):
    """
    Schema per la risposta paginata degli SPK.

    Attributes:
        items: Lista degli SPK
        total: Numero totale di record
        page: Pagina corrente
        per_page: Record per pagina
        total_pages: Numero totale di pagine (calcolato automaticamente)
    """
    items: list[WorkOrderRead]
    total: int
    page: int
    per_page: int
    total_pages: int = 0

    @model_validator(mode="after")
    def compute_total_pages(self) -> "WorkOrderList":
        """Calcola automaticamente il numero totale di pagine."""
        if self.per_page > 0:
            self.total_pages = (self.total + self.per_page - 1) // self.per_page
        return self
