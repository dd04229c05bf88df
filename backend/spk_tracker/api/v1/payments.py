"""
Router FastAPI per i Pagamenti degli SPK
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)
"""

import logging
import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from spk_tracker.core.database import get_db
from spk_tracker.core.deps import get_payment_service
from spk_tracker.schemas.common import ApiResponse
from spk_tracker.schemas.payment import PaymentRead
from spk_tracker.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/spk/{work_order_id}/payments",
    tags=["Pagamenti"],
)


@router.get(
    "/",
    name="pagamenti_lista",
    summary="Pagamenti di un SPK",
    description="I tre pagamenti dell'SPK in ordine DP, progress, final.",
    response_model=ApiResponse[list[PaymentRead]],
    status_code=status.HTTP_200_OK,
)
async def list_payments(
    work_order_id: uuid.UUID = Path(..., description="UUID dell'SPK"),
    db: AsyncSession = Depends(get_db),
    service: PaymentService = Depends(get_payment_service),
) -> ApiResponse[list[PaymentRead]]:
    payments = await service.get_by_work_order(db, work_order_id)
    return ApiResponse(data=[PaymentRead.model_validate(p) for p in payments])


@router.patch(
    "/{payment_id}",
    name="pagamento_aggiorna",
    summary="Aggiorna stato pagamento",
    description="Imposta stato (pending, paid, overdue), data e riferimento del pagamento "
               "e notifica il webhook payment.updated.",
    response_model=ApiResponse[PaymentRead],
    status_code=status.HTTP_200_OK,
)
async def update_payment(
    work_order_id: uuid.UUID = Path(..., description="UUID dell'SPK"),
    payment_id: uuid.UUID = Path(..., description="UUID del pagamento"),
    data: dict[str, Any] = Body(
        ...,
        examples=[{"status": "paid", "paidDate": "2026-02-01", "paymentReference": "TRF-001"}],
    ),
    db: AsyncSession = Depends(get_db),
    service: PaymentService = Depends(get_payment_service),
) -> ApiResponse[PaymentRead]:
    result = await service.update_status(db, payment_id, data, work_order_id=work_order_id)
    return ApiResponse(data=PaymentRead.model_validate(result.payment))
