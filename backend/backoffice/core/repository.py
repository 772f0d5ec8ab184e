# backoffice/core/repository.py

from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar
from datetime import date, datetime, timezone
from decimal import Decimal

from pydantic import BaseModel
from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorCollection, AsyncIOMotorDatabase
from bson import ObjectId
from pymongo.results import InsertOneResult, UpdateResult, DeleteResult
from pymongo.errors import DuplicateKeyError
from loguru import logger

from backoffice.core.exceptions import AppSystemError, ConflictError

ModelType = TypeVar("ModelType", bound=BaseModel)

Session = Optional[AsyncIOMotorClientSession]

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class BaseRepository(Generic[ModelType]):
    """Repositório base para coleções MongoDB com Motor e Pydantic."""

    model: Type[ModelType]
    collection_name: str
    # Mensagem usada quando um índice único é violado
    duplicate_message: str = "Registro duplicado."

    def __init__(self, db: AsyncIOMotorDatabase):
        if not getattr(self, 'collection_name', None):
            raise AttributeError("Repository subclass must define a 'collection_name'")
        if not hasattr(self, 'model') or not issubclass(self.model, BaseModel):
            raise AttributeError("Repository subclass must define a Pydantic 'model'")

        self.db = db
        self.collection: AsyncIOMotorCollection = db[self.collection_name]

    @staticmethod
    def _to_objectid(id_str: Any) -> Optional[ObjectId]:
        """Converte input para ObjectId de forma segura, retornando None se inválido."""
        if isinstance(id_str, ObjectId):
            return id_str
        if isinstance(id_str, str) and ObjectId.is_valid(id_str):
            return ObjectId(id_str)
        return None

    @staticmethod
    def _session_kwargs(session: Session) -> Dict[str, Any]:
        # Só repassa session quando existe uma transação aberta
        return {"session": session} if session is not None else {}

    def _handle_db_exception(self, e: Exception, operation: str, doc_id: Any = None, query: Optional[Dict] = None):
        """Loga e levanta exceções de banco de dados padronizadas."""
        context = f"op='{operation}' coll='{self.collection_name}'"
        if doc_id: context += f" id='{doc_id}'"
        if query: context += f" query='{str(query)[:100]}...'"

        log_msg = f"DB Error during {context}: {e}"

        if isinstance(e, DuplicateKeyError):
            dup_key_info = e.details.get('keyValue', {}) if e.details else {}
            logger.warning(f"{log_msg} - Duplicate Key: {dup_key_info}")
            raise ConflictError(self.duplicate_message, details={"key": dup_key_info}) from e
        logger.exception(log_msg)
        raise AppSystemError() from e

    def _prepare_data_for_db(self, data: Dict) -> Dict:
        """Decimal -> str quantizado e date -> 'YYYY-MM-DD'."""
        prepared_data = {}
        for key, value in data.items():
            if isinstance(value, Decimal):
                prepared_data[key] = str(value)
            elif isinstance(value, date) and not isinstance(value, datetime):
                prepared_data[key] = value.isoformat()
            else:
                prepared_data[key] = value
        return prepared_data

    def _validate(self, document: Optional[Dict]) -> Optional[ModelType]:
        return self.model.model_validate(document) if document else None

    async def get_by_id(self, id: str | ObjectId, session: Session = None) -> Optional[ModelType]:
        """Busca um documento pelo seu _id."""
        obj_id = self._to_objectid(id)
        if not obj_id: return None
        try:
            document = await self.collection.find_one({"_id": obj_id}, **self._session_kwargs(session))
        except Exception as e:
            self._handle_db_exception(e, "get_by_id", obj_id)
        return self._validate(document)

    async def get_by(self, query: Dict[str, Any], session: Session = None) -> Optional[ModelType]:
        """Busca o PRIMEIRO documento que corresponde a um critério."""
        try:
            document = await self.collection.find_one(query, **self._session_kwargs(session))
        except Exception as e:
            self._handle_db_exception(e, "get_by", query=query)
        return self._validate(document)

    async def list_by(
        self,
        query: Optional[Dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 0,
        sort: Optional[List[Tuple[str, int]]] = None,
        session: Session = None,
    ) -> List[ModelType]:
        """Lista documentos com base em critérios, paginação e ordenação. limit=0 = sem limite."""
        try:
            cursor = self.collection.find(query or {}, **self._session_kwargs(session))
            if sort:
                cursor = cursor.sort(sort)
            cursor = cursor.skip(max(0, skip)).limit(max(0, limit))
            documents = await cursor.to_list(length=limit if limit > 0 else None)
        except Exception as e:
            self._handle_db_exception(e, "list_by", query=query)
        return [self.model.model_validate(doc) for doc in documents]

    async def list_by_ids(self, ids: List[ObjectId], session: Session = None) -> List[ModelType]:
        unique_ids = list({obj_id for obj_id in ids if obj_id is not None})
        if not unique_ids:
            return []
        return await self.list_by({"_id": {"$in": unique_ids}}, session=session)

    async def create(self, data_in: BaseModel | Dict, session: Session = None) -> ModelType:
        """Cria um novo documento."""
        if isinstance(data_in, BaseModel):
            create_data_dict = data_in.model_dump(exclude_unset=False, by_alias=False)
        else:
            create_data_dict = data_in.copy()

        create_data_prepared = self._prepare_data_for_db(create_data_dict)

        now = utcnow()
        create_data_prepared.setdefault("created_at", now)
        create_data_prepared.setdefault("updated_at", now)
        create_data_prepared.pop("_id", None)
        create_data_prepared.pop("id", None)

        try:
            result: InsertOneResult = await self.collection.insert_one(create_data_prepared, **self._session_kwargs(session))
        except Exception as e:
            self._handle_db_exception(e, "create")
        created_document = await self.get_by_id(result.inserted_id, session=session)
        if created_document is None:
            logger.critical(f"CRITICAL: Failed to retrieve document immediately after insertion! ID: {result.inserted_id}, Collection: {self.collection_name}")
            raise AppSystemError()
        return created_document

    async def update(self, id: str | ObjectId, data_in: BaseModel | Dict, session: Session = None) -> Optional[ModelType]:
        """Atualiza um documento existente usando $set."""
        obj_id = self._to_objectid(id)
        if not obj_id: return None

        if isinstance(data_in, BaseModel):
            update_data_dict = data_in.model_dump(exclude_unset=True, by_alias=False)
        else:
            update_data_dict = data_in.copy()

        update_data_prepared = self._prepare_data_for_db(update_data_dict)
        for field in ["_id", "id", "created_at"]:
            update_data_prepared.pop(field, None)

        if not update_data_prepared:
            logger.debug(f"Update called for ID {id} with no updatable data.")
            return await self.get_by_id(obj_id, session=session)

        update_data_prepared["updated_at"] = utcnow()

        try:
            result: UpdateResult = await self.collection.update_one(
                {"_id": obj_id},
                {"$set": update_data_prepared},
                **self._session_kwargs(session),
            )
        except Exception as e:
            self._handle_db_exception(e, "update", obj_id)
        if result.matched_count == 0:
            logger.warning(f"Document not found for update: ID {id}, Collection: {self.collection_name}")
            return None
        return await self.get_by_id(obj_id, session=session)

    async def delete(self, id: str | ObjectId, session: Session = None) -> bool:
        """Deleta um documento pelo ID."""
        obj_id = self._to_objectid(id)
        if not obj_id: return False
        try:
            result: DeleteResult = await self.collection.delete_one({"_id": obj_id}, **self._session_kwargs(session))
        except Exception as e:
            self._handle_db_exception(e, "delete", obj_id)
        deleted = result.deleted_count > 0
        if deleted: logger.info(f"Document deleted: ID {id}, Collection: {self.collection_name}")
        else: logger.warning(f"Document not found for deletion: ID {id}, Collection: {self.collection_name}")
        return deleted

    async def create_indexes(self):
        """Subclasses com índices próprios sobrescrevem."""
        return None
