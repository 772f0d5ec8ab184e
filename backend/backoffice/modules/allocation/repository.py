# backoffice/modules/allocation/repository.py
from decimal import Decimal
from typing import Iterable, List
from bson import ObjectId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from loguru import logger

from backoffice.core.database import get_database
from backoffice.core.repository import BaseRepository, Session, utcnow
from .models import EffortAllocationInDB

class EffortAllocationRepository(BaseRepository[EffortAllocationInDB]):
    model = EffortAllocationInDB
    collection_name = "alocacao_esforco_cliente_cargo"
    duplicate_message = "Já existe alocação para este setor/cargo neste faturamento."

    async def create_indexes(self):
        await self.collection.create_index(
            [("faturamento_id", ASCENDING), ("setor_id", ASCENDING), ("cargo_id", ASCENDING)],
            unique=True,
            name="alocacao_faturamento_setor_cargo_unico",
        )
        logger.info(f"Índices criados/verificados para a coleção: {self.collection_name}")

    async def list_by_invoice(self, invoice_id: ObjectId, session: Session = None) -> List[EffortAllocationInDB]:
        return await self.list_by({"faturamento_id": invoice_id}, sort=[("_id", ASCENDING)], session=session)

    async def list_by_invoice_ids(self, invoice_ids: Iterable[ObjectId], session: Session = None) -> List[EffortAllocationInDB]:
        ids = list(set(invoice_ids))
        if not ids:
            return []
        return await self.list_by({"faturamento_id": {"$in": ids}}, sort=[("_id", ASCENDING)], session=session)

    async def upsert_allocation(
        self,
        invoice_id: ObjectId,
        sector_id: ObjectId,
        role_id: ObjectId,
        headcount: int,
        hours: Decimal,
        user_id: ObjectId,
        session: Session = None,
    ) -> EffortAllocationInDB:
        now = utcnow()
        query = {"faturamento_id": invoice_id, "setor_id": sector_id, "cargo_id": role_id}
        values = self._prepare_data_for_db({
            "quantidade_funcionarios": headcount,
            "total_horas_gastas_cargo": hours,
            "registrado_por_usuario_id": user_id,
            "updated_at": now,
        })
        try:
            document = await self.collection.find_one_and_update(
                query,
                {"$set": values, "$setOnInsert": {"created_at": now}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
                **self._session_kwargs(session),
            )
        except Exception as e:
            self._handle_db_exception(e, "upsert_allocation", query=query)
        return self._validate(document)

async def get_allocation_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> EffortAllocationRepository:
    return EffortAllocationRepository(db)
