# backoffice/core/database.py

from contextlib import asynccontextmanager, AbstractAsyncContextManager
from typing import AsyncIterator, Optional, cast

import motor.motor_asyncio
from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase
from fastapi import Depends, HTTPException, status
from loguru import logger

from backoffice.core.config import settings

DEFAULT_DB_NAME = "painel_backoffice"

class MongoDbContext(AbstractAsyncContextManager):
    client: Optional[motor.motor_asyncio.AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    async def __aenter__(self):
        """Connects on entering the async context."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Disconnects on exiting the async context."""
        await self.disconnect()

    @staticmethod
    def _parse_db_name(uri: str) -> str:
        uri_path = uri.split('/')[-1]
        db_name = uri_path.split('?')[0]
        if not db_name or '@' in db_name or ':' in db_name or len(db_name) > 63:
            logger.warning(f"Could not parse DB name from URI, using default: {DEFAULT_DB_NAME}")
            return DEFAULT_DB_NAME
        return db_name

    async def connect(self):
        """Establishes and verifies connection to MongoDB."""
        if self.client is not None and self.db is not None:
            logger.info("MongoDB connection already established.")
            return

        logger.info("Connecting to MongoDB...")
        try:
            self.client = motor.motor_asyncio.AsyncIOMotorClient(
                settings.MONGODB_URI,
                uuidRepresentation='standard',
                serverSelectionTimeoutMS=5000,
                tz_aware=True,
            )
            await self.client.admin.command('ping')

            db_name = settings.MONGODB_DB_NAME or self._parse_db_name(settings.MONGODB_URI)
            self.db = self.client[db_name]
            logger.success(f"MongoDB connection successful to database '{db_name}'.")
        except Exception as e:
            logger.critical(f"FATAL: Failed to connect to MongoDB: {e}")
            self.client = None
            self.db = None
            raise ConnectionError(f"MongoDB connection failed: {e}") from e

    async def disconnect(self):
        """Closes the MongoDB connection."""
        if self.client:
            logger.info("Closing MongoDB connection...")
            try:
                self.client.close()
                logger.info("MongoDB connection closed.")
            finally:
                self.client = None
                self.db = None

    def get_db(self) -> AsyncIOMotorDatabase:
        """Returns the database instance, raising error if not connected."""
        if self.db is None:
            logger.critical("Attempted to get MongoDB instance, but it's not available.")
            raise RuntimeError("MongoDB database is not connected or initialized.")
        return cast(AsyncIOMotorDatabase, self.db)

mongo_manager = MongoDbContext()

async def get_database() -> AsyncIOMotorDatabase:
    """FastAPI dependency to get a MongoDB database instance."""
    try:
        return mongo_manager.get_db()
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"Database connection not available: {e}")

# --- Transações ---

class TransactionManager:
    """
    Escopo transacional: abre uma sessão, inicia a transação, faz commit ao
    sair normalmente e abort + re-raise em qualquer exceção. A sessão é sempre
    encerrada. Requer MongoDB em replica set.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    @asynccontextmanager
    async def transaction(self, operation: str) -> AsyncIterator[Optional[AsyncIOMotorClientSession]]:
        log = logger.bind(operation=operation)
        async with await self.db.client.start_session() as session:
            log.debug("Transaction BEGIN")
            try:
                async with session.start_transaction():
                    yield session
            except Exception:
                log.warning("Transaction ROLLBACK")
                raise
            log.debug("Transaction COMMIT")

async def get_transaction_manager(
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> TransactionManager:
    return TransactionManager(db)
