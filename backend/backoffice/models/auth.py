# backoffice/models/auth.py

from enum import Enum
from typing import Dict, FrozenSet, Optional

from bson import ObjectId
from pydantic import BaseModel, Field, ConfigDict

class Role(str, Enum):
    """Perfis (claim 'role' do token) reconhecidos pela API."""
    GERENTE = "Gerente"
    GESTOR = "Gestor"
    DEV = "Dev"
    FISCAL = "Fiscal"

class Capability(str, Enum):
    CONTRACT_ANALYSIS = "contract_analysis"
    ANALYSIS_CONFIG = "analysis_config"
    EFFORT_ALLOCATION = "effort_allocation"
    INVOICE_WRITE = "invoice_write"
    INVOICE_DELETE = "invoice_delete"

ROLE_CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.DEV: frozenset(Capability),
    Role.GERENTE: frozenset(Capability),
    Role.GESTOR: frozenset({
        Capability.CONTRACT_ANALYSIS,
        Capability.EFFORT_ALLOCATION,
        Capability.INVOICE_WRITE,
        Capability.INVOICE_DELETE,
    }),
    Role.FISCAL: frozenset({Capability.INVOICE_WRITE}),
}

class TokenPayload(BaseModel):
    """Claims esperados no JWT emitido pelo serviço de identidade."""
    sub: str = Field(..., description="ID do usuário (ObjectId hex).")
    email: Optional[str] = None
    role: Optional[str] = None

class Principal(BaseModel):
    """Usuário autenticado da requisição corrente."""
    user_id: ObjectId
    email: Optional[str] = None
    role: Optional[Role] = None
    raw_role: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    def can(self, capability: Capability) -> bool:
        if self.role is None:
            return False
        return capability in ROLE_CAPABILITIES.get(self.role, frozenset())
