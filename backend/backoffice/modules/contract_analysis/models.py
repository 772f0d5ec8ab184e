# backoffice/modules/contract_analysis/models.py
from pydantic import AliasChoices, BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from bson import ObjectId

from backoffice.models.api_common import ObjectIdStr
from .engine import AlertStatus

# --- Internal/DB Models ---
class ContractAnalysisInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    faturamento_id: ObjectId
    cliente_id: ObjectId
    mes_ano_referencia: date
    valor_faturamento_cliente_mes: Decimal
    custo_total_mao_de_obra_calculado: Decimal
    custo_total_base_para_margem_calculado: Decimal
    percentual_margem_lucro_aplicada: Decimal
    valor_ideal_calculado_com_margem: Decimal
    valor_contrato_atual_cliente_input_gerente: Optional[Decimal] = None
    diferenca_analise: Decimal
    status_alerta: AlertStatus
    data_analise_gerada: Optional[datetime] = None
    analise_realizada_por_usuario_id: Optional[ObjectId] = None
    created_by_user_id: Optional[ObjectId] = None
    updated_by_user_id: Optional[ObjectId] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

# --- API Models ---
class ContractAnalysisAPI(BaseModel):
    id: ObjectIdStr
    faturamento_id: ObjectIdStr
    cliente_id: ObjectIdStr
    mes_ano_referencia: date
    valor_faturamento_cliente_mes: Decimal
    custo_total_mao_de_obra_calculado: Decimal
    custo_total_base_para_margem_calculado: Decimal
    percentual_margem_lucro_aplicada: Decimal
    valor_ideal_calculado_com_margem: Decimal
    valor_contrato_atual_cliente_input_gerente: Optional[Decimal] = None
    diferenca_analise: Decimal
    status_alerta: AlertStatus
    data_analise_gerada: Optional[datetime] = None
    analise_realizada_por_usuario_id: Optional[ObjectIdStr] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ContractAnalysisListItemAPI(ContractAnalysisAPI):
    cliente_nome: Optional[str] = None
    cliente_codigo: Optional[str] = None
    analise_realizada_por_usuario_nome: Optional[str] = None
    created_by_user_nome: Optional[str] = None
    updated_by_user_nome: Optional[str] = None

class ContractValueUpdateAPI(BaseModel):
    contract_value: Optional[Decimal] = Field(
        None,
        validation_alias=AliasChoices("contract_value", "valor_contrato_atual"),
        description="Valor de contrato atual informado pelo gerente (>= 0).",
    )

class AnalysisRunResponse(BaseModel):
    success: bool = True
    message: str
    analises: List[ContractAnalysisAPI]
    warnings: List[str] = Field(default_factory=list)

class AnalysisListResponse(BaseModel):
    success: bool = True
    analises: List[ContractAnalysisListItemAPI]

class AnalysisResponse(BaseModel):
    success: bool = True
    message: str
    analise: ContractAnalysisAPI
