# backoffice/modules/contract_analysis/routers.py
from fastapi import APIRouter, Depends, Path

from backoffice.core.security import require_capability
from backoffice.models.api_common import ErrorResponse
from backoffice.models.auth import Capability, Principal
from .models import AnalysisListResponse, AnalysisResponse, AnalysisRunResponse, ContractValueUpdateAPI
from .services import ContractAnalysisService, get_contract_analysis_service

contract_analysis_router = APIRouter(
    prefix="/analise-contratual",
    tags=["Análise Contratual"],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)

can_analyse = require_capability(Capability.CONTRACT_ANALYSIS)

@contract_analysis_router.post("/gerar-analise/{mes_ano}", response_model=AnalysisRunResponse, summary="Generate or refresh the contract analysis of a month")
async def generate_analysis_endpoint(
    mes_ano: str = Path(..., description="Primeiro dia do mês (YYYY-MM-DD) ou YYYY-MM"),
    current_user: Principal = Depends(can_analyse),
    service: ContractAnalysisService = Depends(get_contract_analysis_service),
):
    run = await service.generate_analysis(mes_ano, current_user)
    return AnalysisRunResponse(message=run.message, analises=run.analyses, warnings=run.warnings)

@contract_analysis_router.get("/{mes_ano}", response_model=AnalysisListResponse, summary="List contract analyses of a month")
async def list_analyses_endpoint(
    mes_ano: str = Path(...),
    current_user: Principal = Depends(can_analyse),
    service: ContractAnalysisService = Depends(get_contract_analysis_service),
):
    return AnalysisListResponse(analises=await service.list_analyses(mes_ano))

@contract_analysis_router.put("/{analise_id}/valor-contrato-atual", response_model=AnalysisResponse, summary="Set the current contract value of an analysis")
async def set_contract_value_endpoint(
    payload: ContractValueUpdateAPI,
    analise_id: str = Path(...),
    current_user: Principal = Depends(can_analyse),
    service: ContractAnalysisService = Depends(get_contract_analysis_service),
):
    updated = await service.set_contract_value(analise_id, payload.contract_value, current_user)
    return AnalysisResponse(message="Valor do contrato atual atualizado com sucesso!", analise=updated)
