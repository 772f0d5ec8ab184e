# backoffice/modules/people/repository.py
from typing import Dict, Iterable, Optional
from bson import ObjectId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from backoffice.core.database import get_database
from backoffice.core.repository import BaseRepository, Session
from .models import UserInDB

class UserRepository(BaseRepository[UserInDB]):
    model = UserInDB
    collection_name = "usuarios"

    async def get_names_by_ids(self, ids: Iterable[Optional[ObjectId]], session: Session = None) -> Dict[ObjectId, str]:
        """Mapa id -> nome, para enriquecer listagens."""
        users = await self.list_by_ids([i for i in ids if i is not None], session=session)
        return {user.id: user.nome for user in users}

async def get_user_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> UserRepository:
    return UserRepository(db)
