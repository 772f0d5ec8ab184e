# backoffice/modules/office/repository.py
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING
from loguru import logger

from backoffice.core.database import get_database
from backoffice.core.repository import BaseRepository
from .models import AuditLogInDB

class AuditLogRepository(BaseRepository[AuditLogInDB]):
    model = AuditLogInDB
    collection_name = "audit_logs"

    async def create_indexes(self):
        await self.collection.create_index([("timestamp", DESCENDING)])
        await self.collection.create_index([("entity_type", 1), ("entity_id", 1)])
        logger.info(f"Índices criados/verificados para a coleção: {self.collection_name}")

async def get_audit_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> AuditLogRepository:
    return AuditLogRepository(db)
