# backoffice/modules/registry/models.py
# Cadastros de referência (clientes, setores, cargos). Somente leitura nesta API.
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from bson import ObjectId

class ClientInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    codigo: Optional[str] = None
    nome: Optional[str] = None
    razao_social: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    @property
    def display_name(self) -> str:
        return self.nome or self.razao_social or f"Cliente {self.id}"

class SectorInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    nome_setor: str
    ativo: bool = True

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

class JobRoleInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    nome_cargo: str
    ativo: bool = True

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)
