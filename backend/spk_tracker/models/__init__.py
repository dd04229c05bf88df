"""
Modelli Database SQLAlchemy
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Import centralizzato di tutti i modelli per la creazione schema e usage generico.
"""

# SQLAlchemy 2.0 Base declarativa
# Importato qui per essere disponibile per tutti i modelli
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from spk_tracker.models.work_order import WorkOrder
from spk_tracker.models.payment import Payment

__all__ = [
    "Base",
    "WorkOrder",
    "Payment",
]
