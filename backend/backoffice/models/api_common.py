# backoffice/models/api_common.py

from typing import Annotated, Any, List, Optional

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, Field

def _objectid_to_str(value: Any) -> Any:
    return str(value) if isinstance(value, ObjectId) else value

# ObjectId do DB exposto como string na API
ObjectIdStr = Annotated[str, BeforeValidator(_objectid_to_str)]

class StatusResponse(BaseModel):
    """Resposta genérica indicando o status de uma operação."""
    success: bool = True
    message: Optional[str] = Field(None, description="Mensagem descritiva opcional.")

class ErrorDetail(BaseModel):
    """Estrutura para detalhar erros de validação."""
    field: Optional[str] = None
    message: str

class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: List[ErrorDetail] = Field(default_factory=list)
