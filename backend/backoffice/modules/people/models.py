# backoffice/modules/people/models.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from bson import ObjectId

# Usuários são mantidos pelo serviço de identidade; aqui só lemos nome/email
class UserInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    nome: str
    email: Optional[str] = None
    permissao: Optional[str] = None
    ativo: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)
