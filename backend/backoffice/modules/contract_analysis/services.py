# backoffice/modules/contract_analysis/services.py
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional

from bson import ObjectId
from fastapi import Depends
from loguru import logger

from backoffice.core.database import TransactionManager, get_transaction_manager
from backoffice.core.exceptions import AppError, AppSystemError, ConfigurationMissingError, InvalidInputError, NotFoundError
from backoffice.core.months import month_key, parse_month, previous_month
from backoffice.models.auth import Principal
from backoffice.modules.allocation.repository import EffortAllocationRepository, get_allocation_repository
from backoffice.modules.analysis_config.repository import (
    GlobalConfigRepository, SalaryConfigRepository, get_global_config_repository, get_salary_config_repository,
)
from backoffice.modules.invoices.repository import InvoiceRepository, get_invoice_repository
from backoffice.modules.office.services_audit import AuditService, get_audit_service
from backoffice.modules.people.repository import UserRepository, get_user_repository
from backoffice.modules.registry.repository import (
    ClientRepository, JobRoleRepository, SectorRepository,
    get_client_repository, get_job_role_repository, get_sector_repository,
)
from .engine import (
    AllocationInput, GlobalParameters, SalaryTable,
    compute_difference, compute_invoice_costing, derive_alert_status, resolve_override, to_money,
)
from .models import ContractAnalysisAPI, ContractAnalysisListItemAPI
from .repository import ContractAnalysisRepository, get_contract_analysis_repository

ENTITY_TYPE = "AnaliseContratual"

@dataclass
class AnalysisRun:
    month: str
    analyses: List[ContractAnalysisAPI]
    warnings: List[str]

    @property
    def message(self) -> str:
        message = f"Análise para {self.month} gerada/atualizada para {len(self.analyses)} clientes."
        if self.warnings:
            message += " Verifique os avisos para alocações que não puderam ser contabilizadas."
        return message

class ContractAnalysisService:
    """Geração em lote, listagem e ajuste manual da análise contratual por cliente."""

    def __init__(
        self,
        analysis_repo: ContractAnalysisRepository,
        global_repo: GlobalConfigRepository,
        salary_repo: SalaryConfigRepository,
        invoice_repo: InvoiceRepository,
        allocation_repo: EffortAllocationRepository,
        client_repo: ClientRepository,
        sector_repo: SectorRepository,
        role_repo: JobRoleRepository,
        user_repo: UserRepository,
        tx: TransactionManager,
        audit_service: AuditService,
    ):
        self.analysis_repo = analysis_repo
        self.global_repo = global_repo
        self.salary_repo = salary_repo
        self.invoice_repo = invoice_repo
        self.allocation_repo = allocation_repo
        self.client_repo = client_repo
        self.sector_repo = sector_repo
        self.role_repo = role_repo
        self.user_repo = user_repo
        self.tx = tx
        self.audit_service = audit_service

    async def generate_analysis(self, mes_ano: str, actor: Principal) -> AnalysisRun:
        """
        Recalcula a análise de todos os faturamentos do mês com esforço lançado.

        Roda numa única transação: erro de configuração, de entrada ou de banco
        desfaz todas as análises do mês. Alocações sem salário configurado não
        abortam; viram avisos e ficam fora do custo.
        """
        month = parse_month(mes_ano)
        key = month_key(month)
        log = logger.bind(service="ContractAnalysisService", user_id=str(actor.user_id), month=key)
        log.info("Gerando análise contratual...")

        try:
            async with self.tx.transaction("generate_contract_analysis") as session:
                config = await self.global_repo.get_for_month(month, session=session)
                if config is None:
                    raise ConfigurationMissingError(
                        f"Configuração global de análise (margem e fator de horas) não encontrada para {key}."
                    )
                params = GlobalParameters.validated(config.percentual_margem_lucro_desejada, config.fator_horas_mensal_padrao)
                salaries = SalaryTable.from_configs(await self.salary_repo.list_for_month(month, session=session))
                if not salaries:
                    log.warning(f"Nenhum salário configurado para {key}; custos de mão de obra serão zero.")

                invoices = await self.invoice_repo.list_for_month(month, session=session)
                allocations_by_invoice: Dict[ObjectId, List[AllocationInput]] = defaultdict(list)
                for allocation in await self.allocation_repo.list_by_invoice_ids([i.id for i in invoices], session=session):
                    allocations_by_invoice[allocation.faturamento_id].append(
                        AllocationInput(allocation.setor_id, allocation.cargo_id, allocation.total_horas_gastas_cargo)
                    )
                if not allocations_by_invoice:
                    raise NotFoundError(
                        f"Nenhum faturamento com esforço de equipe lançado encontrado para {key}. "
                        "Lance as alocações de esforço antes de gerar a análise."
                    )

                sector_names = await self.sector_repo.get_names(
                    (a.setor_id for items in allocations_by_invoice.values() for a in items), session=session
                )
                role_names = await self.role_repo.get_names(
                    (a.cargo_id for items in allocations_by_invoice.values() for a in items), session=session
                )

                warnings: List[str] = []
                analyses: List[ContractAnalysisAPI] = []
                # Sequencial: o seed depende do estado consistente do mês anterior
                for invoice in invoices:
                    prefix = f"Cliente ID {invoice.cliente_id} (Faturamento ID {invoice.id})"
                    allocations = allocations_by_invoice.get(invoice.id)
                    if not allocations:
                        warnings.append(f"{prefix}: Nenhuma alocação de esforço encontrada. Análise não gerada para este faturamento.")
                        continue

                    costing = compute_invoice_costing(invoice.valor_faturamento, allocations, salaries, params)
                    for missing in costing.unpriced:
                        warnings.append(
                            f"{prefix}: Salário não configurado ou inválido para Setor "
                            f"'{sector_names.get(missing.setor_id, missing.setor_id)}' e Cargo "
                            f"'{role_names.get(missing.cargo_id, missing.cargo_id)}' no mês {key}. "
                            "Esta alocação não será contabilizada no custo."
                        )
                    if costing.nothing_priced:
                        warnings.append(
                            f"{prefix}: Todas as alocações de esforço não puderam ser contabilizadas por falta de "
                            "configuração de salário. Custo de mão de obra será R$0.00."
                        )

                    existing = await self.analysis_repo.get_by_invoice(invoice.id, session=session)
                    seed = await self._previous_month_override(invoice.cliente_id, month, session)
                    override = resolve_override(
                        existing.valor_contrato_atual_cliente_input_gerente if existing else None, seed
                    )
                    difference = compute_difference(override, costing.ideal_value)

                    stored = await self.analysis_repo.upsert_analysis(
                        invoice.id,
                        {
                            "cliente_id": invoice.cliente_id,
                            "mes_ano_referencia": month,
                            "valor_faturamento_cliente_mes": to_money(invoice.valor_faturamento),
                            "custo_total_mao_de_obra_calculado": costing.labor_cost,
                            "custo_total_base_para_margem_calculado": costing.baseline,
                            "percentual_margem_lucro_aplicada": params.margin_percent,
                            "valor_ideal_calculado_com_margem": costing.ideal_value,
                            "valor_contrato_atual_cliente_input_gerente": to_money(override) if override is not None else None,
                            "diferenca_analise": difference,
                            "status_alerta": derive_alert_status(difference).value,
                        },
                        actor.user_id,
                        session=session,
                    )
                    analyses.append(ContractAnalysisAPI.model_validate(stored))
        except AppError as e:
            await self._audit_failure("contract_analysis_generate_failed", None, actor, e.message, {"mes_ano": key})
            raise
        except Exception as e:
            log.exception(f"Erro inesperado ao gerar análise contratual: {e}")
            await self._audit_failure("contract_analysis_generate_failed", None, actor, "Erro inesperado.", {"mes_ano": key})
            raise AppSystemError("Erro interno ao gerar análise contratual.") from e

        run = AnalysisRun(month=key, analyses=analyses, warnings=warnings)
        log.success(f"Análise gerada para {len(analyses)} faturamentos ({len(warnings)} avisos).")
        await self.audit_service.log_audit_event(
            action="contract_analysis_generated", status="success", entity_type=ENTITY_TYPE,
            details={"mes_ano": key, "analises": len(analyses), "warnings": warnings}, current_user=actor,
        )
        return run

    async def _previous_month_override(self, client_id: ObjectId, month, session) -> Optional[Decimal]:
        previous = await self.analysis_repo.get_by_client_month(client_id, previous_month(month), session=session)
        return previous.valor_contrato_atual_cliente_input_gerente if previous else None

    async def list_analyses(self, mes_ano: str) -> List[ContractAnalysisListItemAPI]:
        month = parse_month(mes_ano)
        analyses = await self.analysis_repo.list_for_month(month)

        clients = await self.client_repo.get_map(a.cliente_id for a in analyses)
        user_names = await self.user_repo.get_names_by_ids(
            [a.analise_realizada_por_usuario_id for a in analyses]
            + [a.created_by_user_id for a in analyses]
            + [a.updated_by_user_id for a in analyses]
        )

        items: List[ContractAnalysisListItemAPI] = []
        for analysis in analyses:
            client = clients.get(analysis.cliente_id)
            items.append(ContractAnalysisListItemAPI(
                **ContractAnalysisAPI.model_validate(analysis).model_dump(),
                cliente_nome=client.display_name if client else None,
                cliente_codigo=client.codigo if client else None,
                analise_realizada_por_usuario_nome=user_names.get(analysis.analise_realizada_por_usuario_id),
                created_by_user_nome=user_names.get(analysis.created_by_user_id),
                updated_by_user_nome=user_names.get(analysis.updated_by_user_id),
            ))
        items.sort(key=lambda item: (item.cliente_nome or "").lower())
        return items

    async def set_contract_value(self, analysis_id: str, contract_value: Optional[Decimal], actor: Principal) -> ContractAnalysisAPI:
        """Grava o valor de contrato atual e recalcula diferença/status a partir do valor ideal já gravado."""
        log = logger.bind(service="ContractAnalysisService", user_id=str(actor.user_id), analise_id=analysis_id)
        if contract_value is None or not contract_value.is_finite() or contract_value < 0:
            await self._audit_failure("contract_value_update_failed", analysis_id, actor, "Valor de contrato inválido.", None)
            raise InvalidInputError("Valor do contrato atual inválido. Informe um número maior ou igual a zero.")
        value = to_money(contract_value)

        obj_id = self.analysis_repo._to_objectid(analysis_id)
        try:
            async with self.tx.transaction("set_contract_value") as session:
                current = await self.analysis_repo.lock_for_update(obj_id, session=session) if obj_id else None
                if current is None:
                    raise NotFoundError("Análise contratual não encontrada.")
                difference = compute_difference(value, current.valor_ideal_calculado_com_margem)
                status = derive_alert_status(difference, allow_neutral=True)
                updated = await self.analysis_repo.apply_override(
                    current.id, value, difference, status, actor.user_id, session=session,
                )
                if updated is None:
                    raise NotFoundError("Análise contratual não encontrada.")
        except AppError as e:
            await self._audit_failure("contract_value_update_failed", analysis_id, actor, e.message, {"contract_value": value})
            raise
        except Exception as e:
            log.exception(f"Erro inesperado ao atualizar valor de contrato: {e}")
            system_error = AppSystemError()
            await self._audit_failure("contract_value_update_failed", analysis_id, actor, system_error.message, {"contract_value": value})
            raise system_error from e

        log.info(f"Valor de contrato atualizado para {value} (diferença {difference}, status {status.value}).")
        await self.audit_service.log_audit_event(
            action="contract_value_updated", status="success", entity_type=ENTITY_TYPE, entity_id=updated.id,
            details={
                "old_value": current.valor_contrato_atual_cliente_input_gerente,
                "new_value": value,
                "diferenca_analise": difference,
                "status_alerta": status.value,
            },
            current_user=actor,
        )
        return ContractAnalysisAPI.model_validate(updated)

    async def _audit_failure(self, action: str, entity_id, actor: Principal, message: str, details: Optional[Dict]):
        await self.audit_service.log_audit_event(
            action=action, status="failure", entity_type=ENTITY_TYPE, entity_id=entity_id,
            details=details, current_user=actor, error_message=message,
        )

async def get_contract_analysis_service(
    analysis_repo: ContractAnalysisRepository = Depends(get_contract_analysis_repository),
    global_repo: GlobalConfigRepository = Depends(get_global_config_repository),
    salary_repo: SalaryConfigRepository = Depends(get_salary_config_repository),
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    allocation_repo: EffortAllocationRepository = Depends(get_allocation_repository),
    client_repo: ClientRepository = Depends(get_client_repository),
    sector_repo: SectorRepository = Depends(get_sector_repository),
    role_repo: JobRoleRepository = Depends(get_job_role_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    tx: TransactionManager = Depends(get_transaction_manager),
    audit_service: AuditService = Depends(get_audit_service),
) -> ContractAnalysisService:
    return ContractAnalysisService(
        analysis_repo, global_repo, salary_repo, invoice_repo, allocation_repo,
        client_repo, sector_repo, role_repo, user_repo, tx, audit_service,
    )
