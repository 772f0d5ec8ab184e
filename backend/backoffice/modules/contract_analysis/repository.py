# backoffice/modules/contract_analysis/repository.py
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from bson import ObjectId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from loguru import logger

from backoffice.core.database import get_database
from backoffice.core.months import month_key
from backoffice.core.repository import BaseRepository, Session, utcnow
from .engine import AlertStatus
from .models import ContractAnalysisInDB

class ContractAnalysisRepository(BaseRepository[ContractAnalysisInDB]):
    model = ContractAnalysisInDB
    collection_name = "analises_contratuais_cliente"
    duplicate_message = "Já existe análise para este faturamento."

    async def create_indexes(self):
        # Uma análise por faturamento
        await self.collection.create_index("faturamento_id", unique=True, name="analise_faturamento_unico")
        await self.collection.create_index([("cliente_id", ASCENDING), ("mes_ano_referencia", ASCENDING)])
        logger.info(f"Índices criados/verificados para a coleção: {self.collection_name}")

    async def get_by_invoice(self, invoice_id: ObjectId, session: Session = None) -> Optional[ContractAnalysisInDB]:
        return await self.get_by({"faturamento_id": invoice_id}, session=session)

    async def get_by_client_month(self, client_id: ObjectId, month: date, session: Session = None) -> Optional[ContractAnalysisInDB]:
        return await self.get_by({"cliente_id": client_id, "mes_ano_referencia": month_key(month)}, session=session)

    async def list_for_month(self, month: date, session: Session = None) -> List[ContractAnalysisInDB]:
        return await self.list_by({"mes_ano_referencia": month_key(month)}, session=session)

    async def upsert_analysis(
        self,
        invoice_id: ObjectId,
        computed: Dict[str, Any],
        user_id: ObjectId,
        session: Session = None,
    ) -> ContractAnalysisInDB:
        """Insere ou atualiza a análise do faturamento. Criador só é gravado na inserção."""
        now = utcnow()
        values = self._prepare_data_for_db({
            **computed,
            "data_analise_gerada": now,
            "analise_realizada_por_usuario_id": user_id,
            "updated_by_user_id": user_id,
            "updated_at": now,
        })
        query = {"faturamento_id": invoice_id}
        try:
            document = await self.collection.find_one_and_update(
                query,
                {"$set": values, "$setOnInsert": {"created_by_user_id": user_id, "created_at": now}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
                **self._session_kwargs(session),
            )
        except Exception as e:
            self._handle_db_exception(e, "upsert_analysis", invoice_id, query)
        return self._validate(document)

    async def lock_for_update(self, analysis_id: ObjectId, session: Session = None) -> Optional[ContractAnalysisInDB]:
        """
        Equivalente a SELECT ... FOR UPDATE: grava um marcador no documento dentro
        da transação, de modo que outra transação que tente escrever nele entre em
        conflito até o commit/abort desta.
        """
        try:
            document = await self.collection.find_one_and_update(
                {"_id": analysis_id},
                {"$set": {"_lock": ObjectId()}},
                return_document=ReturnDocument.AFTER,
                **self._session_kwargs(session),
            )
        except Exception as e:
            self._handle_db_exception(e, "lock_for_update", analysis_id)
        return self._validate(document)

    async def apply_override(
        self,
        analysis_id: ObjectId,
        contract_value: Decimal,
        difference: Decimal,
        status: AlertStatus,
        user_id: ObjectId,
        session: Session = None,
    ) -> Optional[ContractAnalysisInDB]:
        return await self.update(
            analysis_id,
            {
                "valor_contrato_atual_cliente_input_gerente": contract_value,
                "diferenca_analise": difference,
                "status_alerta": status.value,
                "analise_realizada_por_usuario_id": user_id,
                "updated_by_user_id": user_id,
            },
            session=session,
        )

async def get_contract_analysis_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> ContractAnalysisRepository:
    return ContractAnalysisRepository(db)
