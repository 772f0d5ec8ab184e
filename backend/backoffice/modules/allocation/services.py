# backoffice/modules/allocation/services.py
from typing import List

from fastapi import Depends
from loguru import logger

from backoffice.core.database import TransactionManager, get_transaction_manager
from backoffice.core.exceptions import AppError, AppSystemError, InvalidInputError, NotFoundError
from backoffice.models.auth import Principal
from backoffice.modules.invoices.models import InvoiceInDB
from backoffice.modules.invoices.repository import InvoiceRepository, get_invoice_repository
from backoffice.modules.office.services_audit import AuditService, get_audit_service
from backoffice.modules.registry.repository import (
    JobRoleRepository, SectorRepository, get_job_role_repository, get_sector_repository,
)
from .models import EffortAllocationAPI, EffortAllocationBatchAPI, EffortAllocationInDB
from .repository import EffortAllocationRepository, get_allocation_repository

ENTITY_TYPE = "AlocacaoEsforco"

class EffortAllocationService:
    def __init__(
        self,
        allocation_repo: EffortAllocationRepository,
        invoice_repo: InvoiceRepository,
        sector_repo: SectorRepository,
        role_repo: JobRoleRepository,
        tx: TransactionManager,
        audit_service: AuditService,
    ):
        self.allocation_repo = allocation_repo
        self.invoice_repo = invoice_repo
        self.sector_repo = sector_repo
        self.role_repo = role_repo
        self.tx = tx
        self.audit_service = audit_service

    async def _get_invoice_or_404(self, invoice_id: str) -> InvoiceInDB:
        invoice = await self.invoice_repo.get_by_id(invoice_id)
        if invoice is None:
            raise NotFoundError("Faturamento não encontrado.")
        return invoice

    async def _to_api(self, allocations: List[EffortAllocationInDB]) -> List[EffortAllocationAPI]:
        sector_names = await self.sector_repo.get_names(a.setor_id for a in allocations)
        role_names = await self.role_repo.get_names(a.cargo_id for a in allocations)
        return [
            EffortAllocationAPI(
                **a.model_dump(exclude={"registrado_por_usuario_id", "created_at"}),
                nome_setor=sector_names.get(a.setor_id),
                nome_cargo=role_names.get(a.cargo_id),
            )
            for a in allocations
        ]

    async def list_for_invoice(self, invoice_id: str) -> List[EffortAllocationAPI]:
        invoice = await self._get_invoice_or_404(invoice_id)
        return await self._to_api(await self.allocation_repo.list_by_invoice(invoice.id))

    async def save_batch(self, invoice_id: str, batch: EffortAllocationBatchAPI, actor: Principal) -> List[EffortAllocationAPI]:
        """Upsert por (faturamento, setor, cargo), tudo ou nada."""
        log = logger.bind(service="EffortAllocationService", user_id=str(actor.user_id), faturamento_id=invoice_id)
        invoice = await self._get_invoice_or_404(invoice_id)
        if not batch.alocacoes:
            raise InvalidInputError("Nenhuma alocação informada.")

        try:
            async with self.tx.transaction("save_effort_allocations") as session:
                for index, item in enumerate(batch.alocacoes):
                    sector_id = self.allocation_repo._to_objectid(item.setor_id)
                    role_id = self.allocation_repo._to_objectid(item.cargo_id)
                    if sector_id is None or role_id is None:
                        raise InvalidInputError(f"Item {index + 1}: setor_id ou cargo_id inválido.")
                    if await self.sector_repo.get_by_id(sector_id, session=session) is None:
                        raise InvalidInputError(f"Item {index + 1}: setor não encontrado.")
                    if await self.role_repo.get_by_id(role_id, session=session) is None:
                        raise InvalidInputError(f"Item {index + 1}: cargo não encontrado.")
                    await self.allocation_repo.upsert_allocation(
                        invoice.id, sector_id, role_id,
                        item.quantidade_funcionarios, item.total_horas_gastas_cargo,
                        actor.user_id, session=session,
                    )
        except AppError as e:
            await self.audit_service.log_audit_event(
                action="effort_allocations_save_failed", status="failure", entity_type=ENTITY_TYPE,
                entity_id=invoice.id, current_user=actor, error_message=e.message,
            )
            raise
        except Exception as e:
            log.exception(f"Erro inesperado ao salvar alocações: {e}")
            raise AppSystemError() from e

        log.success(f"{len(batch.alocacoes)} alocações salvas.")
        await self.audit_service.log_audit_event(
            action="effort_allocations_saved", status="success", entity_type=ENTITY_TYPE, entity_id=invoice.id,
            details={"alocacoes": [i.model_dump() for i in batch.alocacoes]}, current_user=actor,
        )
        return await self._to_api(await self.allocation_repo.list_by_invoice(invoice.id))

    async def delete_allocation(self, allocation_id: str, actor: Principal) -> None:
        allocation = await self.allocation_repo.get_by_id(allocation_id)
        if allocation is None or not await self.allocation_repo.delete(allocation.id):
            raise NotFoundError("Alocação não encontrada.")
        await self.audit_service.log_audit_event(
            action="effort_allocation_deleted", status="success", entity_type=ENTITY_TYPE,
            entity_id=allocation.id, details={"deleted_data": allocation.model_dump()}, current_user=actor,
        )

async def get_allocation_service(
    allocation_repo: EffortAllocationRepository = Depends(get_allocation_repository),
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    sector_repo: SectorRepository = Depends(get_sector_repository),
    role_repo: JobRoleRepository = Depends(get_job_role_repository),
    tx: TransactionManager = Depends(get_transaction_manager),
    audit_service: AuditService = Depends(get_audit_service),
) -> EffortAllocationService:
    return EffortAllocationService(allocation_repo, invoice_repo, sector_repo, role_repo, tx, audit_service)
