# backoffice/modules/invoices/repository.py
from datetime import date
from typing import List
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING
from loguru import logger

from backoffice.core.database import get_database
from backoffice.core.months import month_key
from backoffice.core.repository import BaseRepository, Session
from .models import InvoiceInDB

class InvoiceRepository(BaseRepository[InvoiceInDB]):
    model = InvoiceInDB
    collection_name = "faturamentos"
    duplicate_message = "Já existe um faturamento para este cliente neste mês/ano."

    async def create_indexes(self):
        # Um faturamento por cliente por mês
        await self.collection.create_index(
            [("cliente_id", ASCENDING), ("mes_ano", ASCENDING)],
            unique=True,
            name="faturamento_cliente_mes_ano_unico",
        )
        await self.collection.create_index("mes_ano")
        logger.info(f"Índices criados/verificados para a coleção: {self.collection_name}")

    async def list_for_month(self, month: date, session: Session = None) -> List[InvoiceInDB]:
        return await self.list_by({"mes_ano": month_key(month)}, sort=[("_id", ASCENDING)], session=session)

async def get_invoice_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> InvoiceRepository:
    return InvoiceRepository(db)
