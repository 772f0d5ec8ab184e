# backoffice/modules/registry/repository.py
from typing import Dict, Iterable, Optional
from bson import ObjectId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from backoffice.core.database import get_database
from backoffice.core.repository import BaseRepository, Session
from .models import ClientInDB, JobRoleInDB, SectorInDB

class ClientRepository(BaseRepository[ClientInDB]):
    model = ClientInDB
    collection_name = "clientes"

    async def get_map(self, ids: Iterable[ObjectId], session: Session = None) -> Dict[ObjectId, ClientInDB]:
        return {c.id: c for c in await self.list_by_ids(list(ids), session=session)}

class SectorRepository(BaseRepository[SectorInDB]):
    model = SectorInDB
    collection_name = "setores"

    async def get_names(self, ids: Iterable[Optional[ObjectId]], session: Session = None) -> Dict[ObjectId, str]:
        return {s.id: s.nome_setor for s in await self.list_by_ids(list(ids), session=session)}

class JobRoleRepository(BaseRepository[JobRoleInDB]):
    model = JobRoleInDB
    collection_name = "cargos"

    async def get_names(self, ids: Iterable[Optional[ObjectId]], session: Session = None) -> Dict[ObjectId, str]:
        return {c.id: c.nome_cargo for c in await self.list_by_ids(list(ids), session=session)}

async def get_client_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> ClientRepository:
    return ClientRepository(db)

async def get_sector_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> SectorRepository:
    return SectorRepository(db)

async def get_job_role_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> JobRoleRepository:
    return JobRoleRepository(db)
