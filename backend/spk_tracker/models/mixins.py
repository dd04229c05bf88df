"""
Mixin SQLAlchemy per modelli
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Mixin riutilizzabili per aggiungere funzionalità comuni ai modelli.
"""

import datetime
import uuid
from typing import Optional

from sqlalchemy import DateTime, Uuid
from sqlalchemy import event
from sqlalchemy.orm import Mapped, mapped_column, Session
from sqlalchemy.sql import func


class TimestampMixin:
    """
    Mixin per gestione automatica timestamp creazione e aggiornamento.

    Aggiunge i campi:
    - created_at: data/ora di creazione record (impostato automaticamente)
    - updated_at: data/ora ultimo aggiornamento (aggiornato automaticamente,
      sempre strettamente crescente per lo stesso record)

    Usage:
        class MyModel(Base, TimestampMixin):
            __tablename__ = "my_table"
            ...
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Data/ora di creazione del record",
    )

    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Data/ora ultimo aggiornamento del record",
    )


class UUIDMixin:
    """
    Mixin per ID UUID generato lato applicazione.

    Aggiunge il campo id come UUID primary key con generazione automatica.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="UUID primary key",
    )


def next_timestamp(
    previous: Optional[datetime.datetime],
    now: Optional[datetime.datetime] = None,
) -> datetime.datetime:
    """
    Restituisce un timestamp UTC strettamente successivo a `previous`.

    Due aggiornamenti nello stesso microsecondo (o con un orologio che torna
    indietro) producono comunque updated_at crescenti.

    Args:
        previous: Valore corrente di updated_at (può essere naive se letto da SQLite)
        now: Istante di riferimento (default: adesso, UTC)

    Returns:
        datetime: Timestamp timezone-aware in UTC
    """
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    if previous is None:
        return now

    if previous.tzinfo is None:
        previous = previous.replace(tzinfo=datetime.timezone.utc)
    if now <= previous:
        return previous + datetime.timedelta(microseconds=1)
    return now


# ------------------------------------------------------------
# Event Listeners
# ------------------------------------------------------------
@event.listens_for(Session, "before_flush")
def update_timestamp(session: Session, flush_context, instances) -> None:
    """
    Event listener per aggiornare automaticamente il campo updated_at.

    Questo listener viene eseguito prima di ogni flush e aggiorna il campo
    updated_at di tutti gli oggetti modificati (dirty) e nuovi (new).

    Args:
        session: Sessione SQLAlchemy
        flush_context: Contesto del flush
        instances: Oggetti instances (non usato)
    """
    now = datetime.datetime.now(datetime.timezone.utc)

    for obj in session.dirty:
        if isinstance(obj, TimestampMixin):
            if session.is_modified(obj, include_collections=False):
                obj.updated_at = next_timestamp(obj.updated_at, now)

    for obj in session.new:
        if isinstance(obj, TimestampMixin):
            obj.updated_at = now
