"""
Modello SQLAlchemy per i pagamenti a termine degli SPK
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)
"""


from __future__ import annotations
import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spk_tracker.models import Base
from spk_tracker.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from spk_tracker.models.work_order import WorkOrder


class Payment(Base, UUIDMixin, TimestampMixin):
    """
    Modello per un pagamento a termine di un SPK.

    Ogni SPK ha esattamente tre pagamenti, uno per termine (dp, progress, final),
    creati insieme all'SPK. Importo e percentuale sono copiati alla creazione
    e non vengono più ricalcolati.

    Attributes:
        id: UUID primary key
        spk_id: UUID dell'SPK padre
        term: Termine di pagamento (dp, progress, final)
        amount: Importo del termine
        percentage: Percentuale del valore di contratto
        status: pending, paid o overdue (transizioni libere)
        paid_date: Data di pagamento (significativa solo con status=paid)
        payment_reference: Riferimento libero (es. numero bonifico)
        updated_by: Utente dell'ultimo aggiornamento
    """

    __tablename__ = "payments"

    spk_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("spk.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID dell'SPK padre",
    )

    term: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="Termine di pagamento",
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 3),
        nullable=False,
        doc="Importo del termine",
    )

    percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        doc="Percentuale sul valore di contratto",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="Stato del pagamento",
    )

    paid_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        doc="Data di pagamento",
    )

    payment_reference: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Riferimento del pagamento",
    )

    updated_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Utente dell'ultimo aggiornamento",
    )

    work_order: Mapped["WorkOrder"] = relationship(
        "WorkOrder",
        back_populates="payments",
        doc="SPK padre",
    )

    __table_args__ = (
        UniqueConstraint("spk_id", "term", name="uq_payments_spk_term"),
        CheckConstraint(
            "term IN ('dp', 'progress', 'final')",
            name="ck_payments_term",
        ),
        CheckConstraint(
            "status IN ('pending', 'paid', 'overdue')",
            name="ck_payments_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, spk_id={self.spk_id}, term={self.term}, status={self.status})>"
