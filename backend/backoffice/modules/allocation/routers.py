# backoffice/modules/allocation/routers.py
from fastapi import APIRouter, Depends, Path

from backoffice.core.security import require_capability
from backoffice.models.api_common import ErrorResponse, StatusResponse
from backoffice.models.auth import Capability, Principal
from .models import EffortAllocationBatchAPI, EffortAllocationListResponse
from .services import EffortAllocationService, get_allocation_service

allocation_router = APIRouter(
    prefix="/alocacao-esforco",
    tags=["Alocação de Esforço"],
    responses={404: {"model": ErrorResponse}},
)

can_allocate = require_capability(Capability.EFFORT_ALLOCATION)

@allocation_router.get("/faturamento/{faturamento_id}", response_model=EffortAllocationListResponse, summary="List effort allocations of an invoice")
async def list_allocations_endpoint(
    faturamento_id: str = Path(...),
    current_user: Principal = Depends(can_allocate),
    service: EffortAllocationService = Depends(get_allocation_service),
):
    return EffortAllocationListResponse(alocacoes=await service.list_for_invoice(faturamento_id))

@allocation_router.post("/faturamento/{faturamento_id}", response_model=EffortAllocationListResponse, summary="Batch save effort allocations of an invoice")
async def save_allocations_endpoint(
    batch: EffortAllocationBatchAPI,
    faturamento_id: str = Path(...),
    current_user: Principal = Depends(can_allocate),
    service: EffortAllocationService = Depends(get_allocation_service),
):
    items = await service.save_batch(faturamento_id, batch, current_user)
    return EffortAllocationListResponse(message="Alocações de esforço salvas com sucesso!", alocacoes=items)

@allocation_router.delete("/{alocacao_id}", response_model=StatusResponse, summary="Delete an effort allocation")
async def delete_allocation_endpoint(
    alocacao_id: str = Path(...),
    current_user: Principal = Depends(can_allocate),
    service: EffortAllocationService = Depends(get_allocation_service),
):
    await service.delete_allocation(alocacao_id, current_user)
    return StatusResponse(message="Alocação excluída com sucesso.")
