# backoffice/modules/invoices/models.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from bson import ObjectId

from backoffice.models.api_common import ObjectIdStr

CENT = Decimal("0.01")

# --- Internal/DB Models ---
class InvoiceInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    cliente_id: ObjectId
    mes_ano: date
    valor_faturamento: Decimal
    created_by_user_id: Optional[ObjectId] = None
    updated_by_user_id: Optional[ObjectId] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

# --- API Models ---
class InvoiceCreateAPI(BaseModel):
    cliente_id: str
    mes_ano: str = Field(..., description="YYYY-MM ou data completa; normalizado para o primeiro dia do mês")
    valor_faturamento: Decimal = Field(..., ge=0)

    @field_validator("valor_faturamento")
    @classmethod
    def quantize_value(cls, v: Decimal) -> Decimal:
        return v.quantize(CENT, rounding=ROUND_HALF_UP)

class InvoiceUpdateAPI(BaseModel):
    valor_faturamento: Optional[Decimal] = Field(None, ge=0)
    mes_ano: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("valor_faturamento")
    @classmethod
    def quantize_value(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return v.quantize(CENT, rounding=ROUND_HALF_UP) if v is not None else None

class InvoiceAPI(BaseModel):
    id: ObjectIdStr
    cliente_id: ObjectIdStr
    mes_ano: date
    valor_faturamento: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class InvoiceListItemAPI(InvoiceAPI):
    cliente_codigo: Optional[str] = None
    cliente_razao_social: Optional[str] = None
    created_by_user_nome: Optional[str] = None
    updated_by_user_nome: Optional[str] = None

class InvoiceResponse(BaseModel):
    success: bool = True
    message: str
    faturamento: InvoiceAPI

class InvoiceListResponse(BaseModel):
    success: bool = True
    faturamentos: List[InvoiceListItemAPI]
