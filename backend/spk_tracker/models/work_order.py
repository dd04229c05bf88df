"""
Modello SQLAlchemy per gli SPK (Surat Perintah Kerja)
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

 Contiene:
- WorkOrder: SPK verso un vendor, proprietario dei tre pagamenti a termine
"""


from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, Date, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spk_tracker.models import Base
from spk_tracker.models.mixins import TimestampMixin, UUIDMixin

# Import per type hinting relazioni (evita circular import)
if TYPE_CHECKING:
    from spk_tracker.models.payment import Payment


# Gli stati sono definiti in spk_tracker.schemas.work_order.SpkStatus


class WorkOrder(Base, UUIDMixin, TimestampMixin):
    """
    Modello per gli SPK (work order verso un vendor).

    Rappresenta il contratto con un vendor per un progetto, con un piano
    di pagamento fisso in tre termini (DP, progress, final).

    Attributes:
        id: UUID primary key, generato automaticamente
        spk_number: Numero leggibile (SPK-<anno>-<4 cifre>)
        vendor_name: Nome del vendor
        vendor_email: Email del vendor (opzionale)
        vendor_phone: Telefono del vendor (opzionale)
        project_name: Nome del progetto
        project_description: Descrizione del progetto (opzionale)
        contract_value: Valore del contratto
        currency: Codice valuta (3 lettere)
        start_date: Data inizio lavori
        end_date: Data fine lavori (opzionale, non validata rispetto a start_date)
        dp_percentage / dp_amount: Down payment
        progress_percentage / progress_amount: Pagamento a stato avanzamento
        final_percentage / final_amount: Saldo finale
        status: draft o published
        revision: Contatore incrementato ad ogni modifica dell'SPK o dei suoi pagamenti
        pdf_url: Locator dell'ultimo documento PDF salvato
        created_by: Utente che ha creato l'SPK
        notes: Note libere

    Relationships:
        payments: I tre pagamenti (uno per termine)

    States (State Machine):
        draft → published
    """

    __tablename__ = "spk"

    # ------------------------------------------------------------
    # Colonne Identificative
    # ------------------------------------------------------------
    spk_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        doc="Numero SPK leggibile (SPK-<anno>-<4 cifre>)",
    )

    # ------------------------------------------------------------
    # Colonne Vendor
    # ------------------------------------------------------------
    vendor_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Nome del vendor",
    )

    vendor_email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Email del vendor",
    )

    vendor_phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        doc="Telefono del vendor",
    )

    # ------------------------------------------------------------
    # Colonne Progetto
    # ------------------------------------------------------------
    project_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Nome del progetto",
    )

    project_description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Descrizione del progetto",
    )

    # ------------------------------------------------------------
    # Colonne Contratto
    # ------------------------------------------------------------
    contract_value: Mapped[Decimal] = mapped_column(
        Numeric(18, 3),
        nullable=False,
        doc="Valore del contratto",
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="IDR",
        doc="Codice valuta ISO",
    )

    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        doc="Data inizio lavori",
    )

    end_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        doc="Data fine lavori",
    )

    # ------------------------------------------------------------
    # Colonne Ripartizione Pagamenti
    # ------------------------------------------------------------
    dp_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    dp_amount: Mapped[Decimal] = mapped_column(Numeric(18, 3), nullable=False)
    progress_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    progress_amount: Mapped[Decimal] = mapped_column(Numeric(18, 3), nullable=False)
    final_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    final_amount: Mapped[Decimal] = mapped_column(Numeric(18, 3), nullable=False)

    # ------------------------------------------------------------
    # Colonne Stato e Audit
    # ------------------------------------------------------------
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="draft",
        doc="Stato corrente dell'SPK",
    )

    revision: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        doc="Versione dello snapshot SPK + pagamenti (chiave cache documento)",
    )

    pdf_url: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        doc="Locator dell'ultimo PDF generato",
    )

    created_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Utente che ha creato l'SPK",
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Note libere",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="work_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        doc="Pagamenti a termine (dp, progress, final)",
    )

    # ------------------------------------------------------------
    # Indici e Vincoli
    # ------------------------------------------------------------
    __table_args__ = (
        Index("ix_spk_status_created", "status", "created_at"),
        Index("ix_spk_vendor_name", "vendor_name"),
        CheckConstraint(
            "status IN ('draft', 'published')",
            name="ck_spk_status",
        ),
        CheckConstraint("contract_value > 0", name="ck_spk_contract_value"),
        CheckConstraint(
            "dp_percentage BETWEEN 0 AND 100 "
            "AND progress_percentage BETWEEN 0 AND 100 "
            "AND final_percentage BETWEEN 0 AND 100",
            name="ck_spk_percentages_range",
        ),
        CheckConstraint(
            "ABS(dp_percentage + progress_percentage + final_percentage - 100) < 0.01",
            name="ck_spk_percentages_total",
        ),
    )

    # ------------------------------------------------------------
    # Metodi
    # ------------------------------------------------------------
    def __repr__(self) -> str:
        return f"<WorkOrder(id={self.id}, number={self.spk_number}, status={self.status})>"
