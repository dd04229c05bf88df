"""
Router FastAPI per gli SPK
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Definisce gli endpoint API per creazione, consultazione, pubblicazione,
eliminazione e documento PDF degli SPK.
"""

import logging
import uuid
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from spk_tracker.core.database import get_db
from spk_tracker.core.deps import get_document_service, get_work_order_service
from spk_tracker.schemas.common import ApiResponse
from spk_tracker.schemas.work_order import (
    PublishRead,
    SpkStatus,
    WorkOrderList,
    WorkOrderRead,
)
from spk_tracker.services.document_service import DocumentService
from spk_tracker.services.work_order_service import WorkOrderService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/spk",
    tags=["SPK"],
)

CREATE_EXAMPLE = {
    "vendorName": "PT Maju Jaya",
    "vendorEmail": "procurement@majujaya.co.id",
    "projectName": "Renovasi Gudang",
    "contractValue": 100000000,
    "currency": "IDR",
    "startDate": "2026-01-15",
    "dpPercentage": 30,
    "progressPercentage": 40,
    "finalPercentage": 30,
}


# -------------------------------------------------------------------
# Endpoints per SPK
# -------------------------------------------------------------------

@router.get(
    "/",
    name="spk_lista",
    summary="Lista SPK",
    description="Recupera la lista paginata degli SPK, più recenti prima.",
    response_model=ApiResponse[WorkOrderList],
    status_code=status.HTTP_200_OK,
)
async def list_work_orders(
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(20, ge=1, le=100, description="Elementi per pagina"),
    status_filter: Optional[SpkStatus] = Query(None, alias="status", description="Filtro per stato"),
    vendor_name: Optional[str] = Query(None, description="Ricerca sul nome del vendor"),
    db: AsyncSession = Depends(get_db),
    service: WorkOrderService = Depends(get_work_order_service),
) -> ApiResponse[WorkOrderList]:
    work_orders, total = await service.get_all(
        db=db,
        status_filter=status_filter,
        vendor_name=vendor_name,
        page=page,
        per_page=per_page,
    )
    return ApiResponse(
        data=WorkOrderList(
            items=[WorkOrderRead.model_validate(wo) for wo in work_orders],
            total=total,
            page=page,
            per_page=per_page,
        )
    )


@router.post(
    "/",
    name="spk_crea",
    summary="Crea SPK",
    description="Crea un SPK in stato draft con i tre pagamenti (DP, progress, final). "
               "Accetta chiavi snake_case o camelCase.",
    response_model=ApiResponse[WorkOrderRead],
    status_code=status.HTTP_201_CREATED,
)
async def create_work_order(
    data: dict[str, Any] = Body(..., examples=[CREATE_EXAMPLE]),
    db: AsyncSession = Depends(get_db),
    service: WorkOrderService = Depends(get_work_order_service),
) -> ApiResponse[WorkOrderRead]:
    """
    Crea un nuovo SPK.

    Il corpo viene validato dal service (ordine dei controlli e campo
    dell'errore sono quelli attesi dal form), non dallo schema FastAPI.

    Raises:
        ValidationError: Se l'input non è valido (422, con `field`)
    """
    work_order = await service.create(db, data)
    return ApiResponse(data=WorkOrderRead.model_validate(work_order))


@router.get(
    "/{work_order_id}",
    name="spk_dettaglio",
    summary="Dettaglio SPK",
    response_model=ApiResponse[WorkOrderRead],
    status_code=status.HTTP_200_OK,
)
async def get_work_order(
    work_order_id: uuid.UUID = Path(..., description="UUID dell'SPK"),
    db: AsyncSession = Depends(get_db),
    service: WorkOrderService = Depends(get_work_order_service),
) -> ApiResponse[WorkOrderRead]:
    work_order = await service.get_by_id(db, work_order_id)
    return ApiResponse(data=WorkOrderRead.model_validate(work_order))


@router.post(
    "/{work_order_id}/publish",
    name="spk_pubblica",
    summary="Pubblica SPK",
    description="Porta l'SPK da draft a published e notifica il webhook spk.published. "
               "Ripetere la pubblicazione non ha effetti.",
    response_model=ApiResponse[PublishRead],
    status_code=status.HTTP_200_OK,
)
async def publish_work_order(
    work_order_id: uuid.UUID = Path(..., description="UUID dell'SPK"),
    db: AsyncSession = Depends(get_db),
    service: WorkOrderService = Depends(get_work_order_service),
) -> ApiResponse[PublishRead]:
    result = await service.publish(db, work_order_id)
    return ApiResponse(
        data=PublishRead(
            work_order=WorkOrderRead.model_validate(result.work_order),
            already_published=result.already_published,
        )
    )


@router.delete(
    "/{work_order_id}",
    name="spk_elimina",
    summary="Elimina SPK",
    description="Elimina un SPK in qualsiasi stato, con pagamenti e PDF salvati.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_work_order(
    work_order_id: uuid.UUID = Path(..., description="UUID dell'SPK"),
    db: AsyncSession = Depends(get_db),
    service: WorkOrderService = Depends(get_work_order_service),
) -> Response:
    await service.delete(db, work_order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{work_order_id}/document",
    name="spk_documento",
    summary="Documento PDF dell'SPK",
    description="Restituisce il PDF della revisione corrente, generandolo se necessario.",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def get_document(
    work_order_id: uuid.UUID = Path(..., description="UUID dell'SPK"),
    db: AsyncSession = Depends(get_db),
    documents: DocumentService = Depends(get_document_service),
) -> Response:
    """
    Scarica il PDF dell'SPK.

    Raises:
        NotFoundError: Se l'SPK non esiste (404)
        RenderError: Se la generazione fallisce (500, RENDER_FAILED)
    """
    document = await documents.get_document(db, work_order_id)
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'inline; filename="{document.filename}"'},
    )
