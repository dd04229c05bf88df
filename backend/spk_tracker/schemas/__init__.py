"""
Schemas Pydantic per il progetto SPK Tracker

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle risposte API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from spk_tracker.schemas import WorkOrderRead, PaymentRead

from spk_tracker.schemas.common import ApiResponse, ErrorResponse
from spk_tracker.schemas.payment import (
    PaymentRead,
    PaymentStatus,
    PaymentStatusUpdate,
    PaymentTerm,
)
from spk_tracker.schemas.work_order import (
    PublishRead,
    SpkStatus,
    WorkOrderCreate,
    WorkOrderList,
    WorkOrderRead,
)

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "PaymentRead",
    "PaymentStatus",
    "PaymentStatusUpdate",
    "PaymentTerm",
    "PublishRead",
    "SpkStatus",
    "WorkOrderCreate",
    "WorkOrderList",
    "WorkOrderRead",
]
