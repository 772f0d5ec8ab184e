# backoffice/modules/analysis_config/services.py
from typing import List

from fastapi import Depends
from loguru import logger

from backoffice.core.database import TransactionManager, get_transaction_manager
from backoffice.core.exceptions import AppError, AppSystemError, InvalidInputError, NotFoundError
from backoffice.core.months import month_key, parse_month
from backoffice.models.auth import Principal
from backoffice.modules.office.services_audit import AuditService, get_audit_service
from backoffice.modules.registry.repository import (
    JobRoleRepository, SectorRepository, get_job_role_repository, get_sector_repository,
)
from .models import GlobalConfigAPI, GlobalConfigUpsertAPI, SalaryConfigAPI, SalaryConfigBatchAPI
from .repository import (
    GlobalConfigRepository, SalaryConfigRepository, get_global_config_repository, get_salary_config_repository,
)

class AnalysisConfigService:
    """Parâmetros mensais da análise: margem/fator de horas e salários por setor/cargo."""

    def __init__(
        self,
        global_repo: GlobalConfigRepository,
        salary_repo: SalaryConfigRepository,
        sector_repo: SectorRepository,
        role_repo: JobRoleRepository,
        tx: TransactionManager,
        audit_service: AuditService,
    ):
        self.global_repo = global_repo
        self.salary_repo = salary_repo
        self.sector_repo = sector_repo
        self.role_repo = role_repo
        self.tx = tx
        self.audit_service = audit_service

    async def get_global_config(self, mes_ano: str) -> GlobalConfigAPI:
        month = parse_month(mes_ano)
        config = await self.global_repo.get_for_month(month)
        if config is None:
            raise NotFoundError(f"Nenhuma configuração global encontrada para {month_key(month)}.")
        return GlobalConfigAPI.model_validate(config)

    async def upsert_global_config(self, config_in: GlobalConfigUpsertAPI, actor: Principal) -> GlobalConfigAPI:
        month = parse_month(config_in.mes_ano_referencia)
        config = await self.global_repo.upsert_for_month(
            month,
            config_in.percentual_margem_lucro_desejada,
            config_in.fator_horas_mensal_padrao,
            actor.user_id,
        )
        logger.bind(user_id=str(actor.user_id)).info(f"Configuração global de {month_key(month)} salva.")
        await self.audit_service.log_audit_event(
            action="global_config_saved", status="success", entity_type="ConfiguracaoAnaliseGlobal",
            entity_id=config.id, details={"new_data": config.model_dump()}, current_user=actor,
        )
        return GlobalConfigAPI.model_validate(config)

    async def list_salary_configs(self, mes_ano: str) -> List[SalaryConfigAPI]:
        month = parse_month(mes_ano)
        configs = await self.salary_repo.list_for_month(month)
        sector_names = await self.sector_repo.get_names(c.setor_id for c in configs)
        role_names = await self.role_repo.get_names(c.cargo_id for c in configs)

        items = [
            SalaryConfigAPI(
                **c.model_dump(include={"id", "mes_ano_referencia", "setor_id", "cargo_id", "salario_mensal_base"}),
                nome_setor=sector_names.get(c.setor_id),
                nome_cargo=role_names.get(c.cargo_id),
            )
            for c in configs
        ]
        items.sort(key=lambda i: ((i.nome_setor or "").lower(), (i.nome_cargo or "").lower()))
        return items

    async def save_salary_configs(self, mes_ano: str, batch: SalaryConfigBatchAPI, actor: Principal) -> List[SalaryConfigAPI]:
        """Salva o lote inteiro numa transação; qualquer item inválido aborta todos."""
        month = parse_month(mes_ano)
        log = logger.bind(service="AnalysisConfigService", user_id=str(actor.user_id), month=month_key(month))
        if not batch.salarios:
            raise InvalidInputError("Nenhum salário informado.")

        try:
            async with self.tx.transaction("save_salary_configs") as session:
                for index, item in enumerate(batch.salarios):
                    sector_id = self.salary_repo._to_objectid(item.setor_id)
                    role_id = self.salary_repo._to_objectid(item.cargo_id)
                    if sector_id is None or role_id is None:
                        raise InvalidInputError(f"Item {index + 1}: setor_id ou cargo_id inválido.")
                    if await self.sector_repo.get_by_id(sector_id, session=session) is None:
                        raise InvalidInputError(f"Item {index + 1}: setor não encontrado.")
                    if await self.role_repo.get_by_id(role_id, session=session) is None:
                        raise InvalidInputError(f"Item {index + 1}: cargo não encontrado.")
                    await self.salary_repo.upsert_salary(
                        month, sector_id, role_id, item.salario_mensal_base, actor.user_id, session=session,
                    )
        except AppError as e:
            await self.audit_service.log_audit_event(
                action="salary_configs_save_failed", status="failure", entity_type="ConfiguracaoSalarioCargo",
                details={"mes_ano": month, "itens": len(batch.salarios)}, current_user=actor, error_message=e.message,
            )
            raise
        except Exception as e:
            log.exception(f"Erro inesperado ao salvar salários: {e}")
            raise AppSystemError() from e

        log.success(f"{len(batch.salarios)} salários salvos.")
        await self.audit_service.log_audit_event(
            action="salary_configs_saved", status="success", entity_type="ConfiguracaoSalarioCargo",
            details={"mes_ano": month, "itens": [i.model_dump() for i in batch.salarios]}, current_user=actor,
        )
        return await self.list_salary_configs(mes_ano)

async def get_analysis_config_service(
    global_repo: GlobalConfigRepository = Depends(get_global_config_repository),
    salary_repo: SalaryConfigRepository = Depends(get_salary_config_repository),
    sector_repo: SectorRepository = Depends(get_sector_repository),
    role_repo: JobRoleRepository = Depends(get_job_role_repository),
    tx: TransactionManager = Depends(get_transaction_manager),
    audit_service: AuditService = Depends(get_audit_service),
) -> AnalysisConfigService:
    return AnalysisConfigService(global_repo, salary_repo, sector_repo, role_repo, tx, audit_service)
