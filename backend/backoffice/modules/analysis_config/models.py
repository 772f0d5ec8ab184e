# backoffice/modules/analysis_config/models.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from bson import ObjectId

from backoffice.models.api_common import ObjectIdStr

CENT = Decimal("0.01")

# --- Internal/DB Models ---
class GlobalConfigInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    mes_ano_referencia: date
    percentual_margem_lucro_desejada: Decimal
    fator_horas_mensal_padrao: Decimal
    definido_por_usuario_id: Optional[ObjectId] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

class SalaryConfigInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    mes_ano_referencia: date
    setor_id: ObjectId
    cargo_id: ObjectId
    salario_mensal_base: Decimal
    definido_por_usuario_id: Optional[ObjectId] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

# --- API Models ---
class GlobalConfigUpsertAPI(BaseModel):
    mes_ano_referencia: str = Field(..., description="YYYY-MM ou YYYY-MM-DD; normalizado para o primeiro dia do mês")
    percentual_margem_lucro_desejada: Decimal = Field(..., ge=0)
    fator_horas_mensal_padrao: Decimal = Field(..., gt=0)

class GlobalConfigAPI(BaseModel):
    mes_ano_referencia: date
    percentual_margem_lucro_desejada: Decimal
    fator_horas_mensal_padrao: Decimal
    definido_por_usuario_id: Optional[ObjectIdStr] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class SalaryConfigItemAPI(BaseModel):
    setor_id: str
    cargo_id: str
    salario_mensal_base: Decimal = Field(..., ge=0)

    @field_validator("salario_mensal_base")
    @classmethod
    def quantize_salary(cls, v: Decimal) -> Decimal:
        return v.quantize(CENT, rounding=ROUND_HALF_UP)

class SalaryConfigBatchAPI(BaseModel):
    salarios: List[SalaryConfigItemAPI]

class SalaryConfigAPI(BaseModel):
    id: ObjectIdStr
    mes_ano_referencia: date
    setor_id: ObjectIdStr
    nome_setor: Optional[str] = None
    cargo_id: ObjectIdStr
    nome_cargo: Optional[str] = None
    salario_mensal_base: Decimal

    model_config = ConfigDict(from_attributes=True)

class GlobalConfigResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    configuracao_global: GlobalConfigAPI

class SalaryConfigListResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    salarios_config: List[SalaryConfigAPI]
