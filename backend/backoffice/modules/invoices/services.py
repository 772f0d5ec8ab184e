# backoffice/modules/invoices/services.py
from typing import Any, Dict, List, Optional
from datetime import date

from fastapi import Depends
from loguru import logger

from backoffice.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from backoffice.core.months import parse_month
from backoffice.models.auth import Principal
from backoffice.modules.office.services_audit import AuditService, get_audit_service
from backoffice.modules.people.repository import UserRepository, get_user_repository
from backoffice.modules.registry.repository import ClientRepository, get_client_repository
from .models import InvoiceAPI, InvoiceCreateAPI, InvoiceInDB, InvoiceListItemAPI, InvoiceUpdateAPI
from .repository import InvoiceRepository, get_invoice_repository

ENTITY_TYPE = "Faturamento"

class InvoiceService:
    """Lançamentos de faturamento (um por cliente por mês)."""

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        client_repo: ClientRepository,
        user_repo: UserRepository,
        audit_service: AuditService,
    ):
        self.invoice_repo = invoice_repo
        self.client_repo = client_repo
        self.user_repo = user_repo
        self.audit_service = audit_service

    async def create_invoice(self, invoice_in: InvoiceCreateAPI, actor: Principal) -> InvoiceAPI:
        log = logger.bind(service="InvoiceService", user_id=str(actor.user_id), cliente_id=invoice_in.cliente_id)
        month = parse_month(invoice_in.mes_ano)

        client_id = self.invoice_repo._to_objectid(invoice_in.cliente_id)
        client = await self.client_repo.get_by_id(client_id) if client_id else None
        if client is None:
            await self._audit_failure("invoice_create_failed", None, actor, "Cliente não encontrado.", {"cliente_id": invoice_in.cliente_id})
            raise InvalidInputError("Cliente não encontrado.")

        data: Dict[str, Any] = {
            "cliente_id": client.id,
            "mes_ano": month,
            "valor_faturamento": invoice_in.valor_faturamento,
            "created_by_user_id": actor.user_id,
            "updated_by_user_id": actor.user_id,
        }
        try:
            created = await self.invoice_repo.create(data)
        except ConflictError as e:
            await self._audit_failure("invoice_create_failed_duplicate", None, actor, e.message, {"cliente_id": str(client.id), "mes_ano": month})
            raise

        log.success(f"Faturamento {created.id} criado para {month.isoformat()}.")
        await self.audit_service.log_audit_event(
            action="invoice_created", status="success", entity_type=ENTITY_TYPE,
            entity_id=created.id, details={"new_data": created.model_dump()}, current_user=actor,
        )
        return InvoiceAPI.model_validate(created)

    async def list_invoices(self, ano: int, mes: int, busca: Optional[str] = None) -> List[InvoiceListItemAPI]:
        if not (1900 <= ano <= 2100) or not (1 <= mes <= 12):
            raise InvalidInputError("Ano ou mês inválido.")
        invoices = await self.invoice_repo.list_for_month(date(ano, mes, 1))

        clients = await self.client_repo.get_map(inv.cliente_id for inv in invoices)
        user_names = await self.user_repo.get_names_by_ids(
            [inv.created_by_user_id for inv in invoices] + [inv.updated_by_user_id for inv in invoices]
        )

        needle = busca.strip().lower() if busca else None
        items: List[InvoiceListItemAPI] = []
        for inv in invoices:
            client = clients.get(inv.cliente_id)
            razao_social = (client.razao_social or client.nome) if client else None
            codigo = client.codigo if client else None
            if needle and not any(needle in (field or "").lower() for field in (razao_social, codigo)):
                continue
            items.append(InvoiceListItemAPI(
                **InvoiceAPI.model_validate(inv).model_dump(),
                cliente_codigo=codigo,
                cliente_razao_social=razao_social,
                created_by_user_nome=user_names.get(inv.created_by_user_id),
                updated_by_user_nome=user_names.get(inv.updated_by_user_id),
            ))
        # Ordena por razão social e, dentro dela, do mais recente para o mais antigo
        items.sort(key=lambda item: item.id, reverse=True)
        items.sort(key=lambda item: (item.cliente_razao_social or "").lower())
        return items

    async def update_invoice(self, invoice_id: str, invoice_update: InvoiceUpdateAPI, actor: Principal) -> InvoiceAPI:
        if invoice_update.valor_faturamento is None and invoice_update.mes_ano is None:
            raise InvalidInputError("Pelo menos um campo (valor_faturamento ou mes_ano) deve ser fornecido para atualização.")

        old = await self._get_or_404(invoice_id, actor, "invoice_update_failed_not_found")

        update_data: Dict[str, Any] = {"updated_by_user_id": actor.user_id}
        if invoice_update.valor_faturamento is not None:
            update_data["valor_faturamento"] = invoice_update.valor_faturamento
        if invoice_update.mes_ano is not None:
            update_data["mes_ano"] = parse_month(invoice_update.mes_ano)

        try:
            updated = await self.invoice_repo.update(old.id, update_data)
        except ConflictError:
            message = "Atualização resultaria em um faturamento duplicado para este cliente neste mês/ano."
            await self._audit_failure("invoice_update_failed_duplicate", old.id, actor, message, None)
            raise ConflictError(message)
        if updated is None:
            raise NotFoundError("Faturamento não encontrado para atualização.")

        await self.audit_service.log_audit_event(
            action="invoice_updated", status="success", entity_type=ENTITY_TYPE, entity_id=old.id,
            details={"old_data": old.model_dump(), "new_data": updated.model_dump()}, current_user=actor,
        )
        return InvoiceAPI.model_validate(updated)

    async def delete_invoice(self, invoice_id: str, actor: Principal) -> None:
        old = await self._get_or_404(invoice_id, actor, "invoice_delete_failed_not_found")
        if not await self.invoice_repo.delete(old.id):
            raise NotFoundError("Faturamento não encontrado.")
        await self.audit_service.log_audit_event(
            action="invoice_deleted", status="success", entity_type=ENTITY_TYPE, entity_id=old.id,
            details={"deleted_data": old.model_dump()}, current_user=actor,
        )

    async def _get_or_404(self, invoice_id: str, actor: Principal, failure_action: str) -> InvoiceInDB:
        invoice = await self.invoice_repo.get_by_id(invoice_id)
        if invoice is None:
            await self._audit_failure(failure_action, invoice_id, actor, "Faturamento não encontrado.", None)
            raise NotFoundError("Faturamento não encontrado.")
        return invoice

    async def _audit_failure(self, action: str, entity_id: Any, actor: Principal, message: str, details: Optional[Dict[str, Any]]):
        await self.audit_service.log_audit_event(
            action=action, status="failure", entity_type=ENTITY_TYPE, entity_id=entity_id,
            details=details, current_user=actor, error_message=message,
        )

async def get_invoice_service(
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    client_repo: ClientRepository = Depends(get_client_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    audit_service: AuditService = Depends(get_audit_service),
) -> InvoiceService:
    return InvoiceService(invoice_repo, client_repo, user_repo, audit_service)
