# backoffice/modules/analysis_config/routers.py
from fastapi import APIRouter, Depends, Path

from backoffice.core.security import require_capability
from backoffice.models.api_common import ErrorResponse
from backoffice.models.auth import Capability, Principal
from .models import GlobalConfigResponse, GlobalConfigUpsertAPI, SalaryConfigBatchAPI, SalaryConfigListResponse
from .services import AnalysisConfigService, get_analysis_config_service

analysis_config_router = APIRouter(
    prefix="/configuracao-analise",
    tags=["Configuração da Análise"],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)

can_configure = require_capability(Capability.ANALYSIS_CONFIG)

@analysis_config_router.get("/global/{mes_ano}", response_model=GlobalConfigResponse, summary="Get global analysis parameters of a month")
async def get_global_config_endpoint(
    mes_ano: str = Path(..., description="YYYY-MM ou YYYY-MM-DD"),
    current_user: Principal = Depends(can_configure),
    service: AnalysisConfigService = Depends(get_analysis_config_service),
):
    config = await service.get_global_config(mes_ano)
    return GlobalConfigResponse(configuracao_global=config)

@analysis_config_router.post("/global", response_model=GlobalConfigResponse, summary="Create or replace global analysis parameters of a month")
async def upsert_global_config_endpoint(
    config_in: GlobalConfigUpsertAPI,
    current_user: Principal = Depends(can_configure),
    service: AnalysisConfigService = Depends(get_analysis_config_service),
):
    config = await service.upsert_global_config(config_in, current_user)
    return GlobalConfigResponse(message="Configuração global salva com sucesso!", configuracao_global=config)

@analysis_config_router.get("/salarios/{mes_ano}", response_model=SalaryConfigListResponse, summary="List salary settings of a month")
async def list_salary_configs_endpoint(
    mes_ano: str = Path(...),
    current_user: Principal = Depends(can_configure),
    service: AnalysisConfigService = Depends(get_analysis_config_service),
):
    return SalaryConfigListResponse(salarios_config=await service.list_salary_configs(mes_ano))

@analysis_config_router.post("/salarios/{mes_ano}", response_model=SalaryConfigListResponse, summary="Batch save salary settings of a month")
async def save_salary_configs_endpoint(
    batch: SalaryConfigBatchAPI,
    mes_ano: str = Path(...),
    current_user: Principal = Depends(can_configure),
    service: AnalysisConfigService = Depends(get_analysis_config_service),
):
    items = await service.save_salary_configs(mes_ano, batch, current_user)
    return SalaryConfigListResponse(message="Configurações de salário salvas com sucesso!", salarios_config=items)
