"""
Router FastAPI per la vista vendor
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Vista in sola lettura degli SPK di un vendor, raggiunta dal link
inviato con la notifica di pubblicazione.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from spk_tracker.core.database import get_db
from spk_tracker.core.deps import get_work_order_service
from spk_tracker.schemas.common import ApiResponse
from spk_tracker.schemas.work_order import WorkOrderList, WorkOrderRead
from spk_tracker.services.work_order_service import WorkOrderService

router = APIRouter(
    prefix="/vendors",
    tags=["Vendor"],
)


@router.get(
    "/{slug}/spk",
    name="vendor_spk",
    summary="SPK di un vendor",
    description="SPK paginati il cui nome vendor corrisponde allo slug (trattini come spazi, "
               "senza distinzione maiuscole/minuscole).",
    response_model=ApiResponse[WorkOrderList],
    status_code=status.HTTP_200_OK,
)
async def list_vendor_work_orders(
    slug: str = Path(..., min_length=1, description="Slug del vendor (es. pt-maju-jaya)"),
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(20, ge=1, le=100, description="Elementi per pagina"),
    db: AsyncSession = Depends(get_db),
    service: WorkOrderService = Depends(get_work_order_service),
) -> ApiResponse[WorkOrderList]:
    work_orders, total = await service.get_by_vendor_slug(db, slug, page=page, per_page=per_page)
    return ApiResponse(
        data=WorkOrderList(
            items=[WorkOrderRead.model_validate(wo) for wo in work_orders],
            total=total,
            page=page,
            per_page=per_page,
        )
    )
