# backoffice/modules/analysis_config/repository.py
from datetime import date
from decimal import Decimal
from typing import List, Optional
from bson import ObjectId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from loguru import logger

from backoffice.core.database import get_database
from backoffice.core.months import month_key
from backoffice.core.repository import BaseRepository, Session, utcnow
from .models import GlobalConfigInDB, SalaryConfigInDB

class GlobalConfigRepository(BaseRepository[GlobalConfigInDB]):
    model = GlobalConfigInDB
    collection_name = "configuracao_analise_global_mensal"
    duplicate_message = "Já existe configuração global para este mês."

    async def create_indexes(self):
        await self.collection.create_index("mes_ano_referencia", unique=True, name="config_global_mes_unico")
        logger.info(f"Índices criados/verificados para a coleção: {self.collection_name}")

    async def get_for_month(self, month: date, session: Session = None) -> Optional[GlobalConfigInDB]:
        return await self.get_by({"mes_ano_referencia": month_key(month)}, session=session)

    async def upsert_for_month(
        self,
        month: date,
        margin_percent: Decimal,
        hours_factor: Decimal,
        user_id: ObjectId,
        session: Session = None,
    ) -> GlobalConfigInDB:
        now = utcnow()
        values = self._prepare_data_for_db({
            "percentual_margem_lucro_desejada": margin_percent,
            "fator_horas_mensal_padrao": hours_factor,
            "definido_por_usuario_id": user_id,
            "updated_at": now,
        })
        query = {"mes_ano_referencia": month_key(month)}
        try:
            document = await self.collection.find_one_and_update(
                query,
                {"$set": values, "$setOnInsert": {"created_at": now}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
                **self._session_kwargs(session),
            )
        except Exception as e:
            self._handle_db_exception(e, "upsert_for_month", query=query)
        return self._validate(document)

class SalaryConfigRepository(BaseRepository[SalaryConfigInDB]):
    model = SalaryConfigInDB
    collection_name = "configuracoes_salario_cargo_mensal"
    duplicate_message = "Já existe salário configurado para este setor/cargo neste mês."

    async def create_indexes(self):
        await self.collection.create_index(
            [("mes_ano_referencia", ASCENDING), ("setor_id", ASCENDING), ("cargo_id", ASCENDING)],
            unique=True,
            name="salario_mes_setor_cargo_unico",
        )
        logger.info(f"Índices criados/verificados para a coleção: {self.collection_name}")

    async def list_for_month(self, month: date, session: Session = None) -> List[SalaryConfigInDB]:
        return await self.list_by({"mes_ano_referencia": month_key(month)}, sort=[("_id", ASCENDING)], session=session)

    async def upsert_salary(
        self,
        month: date,
        sector_id: ObjectId,
        role_id: ObjectId,
        salary: Decimal,
        user_id: ObjectId,
        session: Session = None,
    ) -> SalaryConfigInDB:
        now = utcnow()
        query = {"mes_ano_referencia": month_key(month), "setor_id": sector_id, "cargo_id": role_id}
        values = self._prepare_data_for_db({
            "salario_mensal_base": salary,
            "definido_por_usuario_id": user_id,
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
            self._handle_db_exception(e, "upsert_salary", query=query)
        return self._validate(document)

async def get_global_config_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> GlobalConfigRepository:
    return GlobalConfigRepository(db)

async def get_salary_config_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> SalaryConfigRepository:
    return SalaryConfigRepository(db)
