# backoffice/modules/invoices/routers.py
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from backoffice.core.security import require_capability
from backoffice.models.api_common import ErrorResponse, StatusResponse
from backoffice.models.auth import Capability, Principal
from .models import InvoiceCreateAPI, InvoiceListResponse, InvoiceResponse, InvoiceUpdateAPI
from .services import InvoiceService, get_invoice_service

invoices_router = APIRouter(
    prefix="/faturamentos",
    tags=["Faturamentos"],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)

can_write = require_capability(Capability.INVOICE_WRITE)
can_delete = require_capability(Capability.INVOICE_DELETE)

@invoices_router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED, summary="Create a monthly invoice record")
async def create_invoice_endpoint(
    invoice_in: InvoiceCreateAPI,
    current_user: Principal = Depends(can_write),
    invoice_service: InvoiceService = Depends(get_invoice_service),
):
    created = await invoice_service.create_invoice(invoice_in, current_user)
    return InvoiceResponse(message="Faturamento cadastrado com sucesso!", faturamento=created)

@invoices_router.get("", response_model=InvoiceListResponse, summary="List invoice records of a month")
async def list_invoices_endpoint(
    ano: int = Query(...),
    mes: int = Query(...),
    busca: Optional[str] = Query(None, description="Filtro por razão social ou código do cliente"),
    current_user: Principal = Depends(can_write),
    invoice_service: InvoiceService = Depends(get_invoice_service),
):
    items = await invoice_service.list_invoices(ano, mes, busca)
    return InvoiceListResponse(faturamentos=items)

@invoices_router.put("/{invoice_id}", response_model=InvoiceResponse, summary="Update an invoice record")
async def update_invoice_endpoint(
    invoice_update: InvoiceUpdateAPI,
    invoice_id: str = Path(...),
    current_user: Principal = Depends(can_write),
    invoice_service: InvoiceService = Depends(get_invoice_service),
):
    updated = await invoice_service.update_invoice(invoice_id, invoice_update, current_user)
    return InvoiceResponse(message="Faturamento atualizado com sucesso!", faturamento=updated)

@invoices_router.delete("/{invoice_id}", response_model=StatusResponse, summary="Delete an invoice record")
async def delete_invoice_endpoint(
    invoice_id: str = Path(...),
    current_user: Principal = Depends(can_delete),
    invoice_service: InvoiceService = Depends(get_invoice_service),
):
    await invoice_service.delete_invoice(invoice_id, current_user)
    return StatusResponse(message="Faturamento excluído com sucesso.")
