# backoffice/modules/allocation/models.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from bson import ObjectId

from backoffice.models.api_common import ObjectIdStr

class EffortAllocationInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    faturamento_id: ObjectId
    setor_id: ObjectId
    cargo_id: ObjectId
    quantidade_funcionarios: int = 0
    total_horas_gastas_cargo: Decimal
    registrado_por_usuario_id: Optional[ObjectId] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

class EffortAllocationItemAPI(BaseModel):
    setor_id: str
    cargo_id: str
    quantidade_funcionarios: int = Field(..., ge=0)
    total_horas_gastas_cargo: Decimal = Field(..., ge=0)

class EffortAllocationBatchAPI(BaseModel):
    alocacoes: List[EffortAllocationItemAPI]

class EffortAllocationAPI(BaseModel):
    id: ObjectIdStr
    faturamento_id: ObjectIdStr
    setor_id: ObjectIdStr
    nome_setor: Optional[str] = None
    cargo_id: ObjectIdStr
    nome_cargo: Optional[str] = None
    quantidade_funcionarios: int
    total_horas_gastas_cargo: Decimal
    updated_at: Optional[datetime] = None

class EffortAllocationListResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    alocacoes: List[EffortAllocationAPI]
