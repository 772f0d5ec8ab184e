# backoffice/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from backoffice.api.v1 import api_router
from backoffice.core.config import settings
from backoffice.core.database import mongo_manager
from backoffice.core.exceptions import (
    AppError, app_error_handler, generic_exception_handler, http_exception_handler, validation_exception_handler,
)
from backoffice.core.logging_config import add_trace_id_middleware, setup_logging
from backoffice.modules.allocation.repository import EffortAllocationRepository
from backoffice.modules.analysis_config.repository import GlobalConfigRepository, SalaryConfigRepository
from backoffice.modules.contract_analysis.repository import ContractAnalysisRepository
from backoffice.modules.invoices.repository import InvoiceRepository
from backoffice.modules.office.repository import AuditLogRepository

INDEXED_REPOSITORIES = (
    AuditLogRepository,
    InvoiceRepository,
    EffortAllocationRepository,
    GlobalConfigRepository,
    SalaryConfigRepository,
    ContractAnalysisRepository,
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    await mongo_manager.connect()
    db = mongo_manager.get_db()
    for repo_cls in INDEXED_REPOSITORIES:
        await repo_cls(db).create_indexes()
    logger.success(f"{settings.PROJECT_NAME} started.")
    try:
        yield
    finally:
        await mongo_manager.disconnect()
        logger.info(f"{settings.PROJECT_NAME} stopped.")

def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        exception_handlers={
            AppError: app_error_handler,
            StarletteHTTPException: http_exception_handler,
            RequestValidationError: validation_exception_handler,
            Exception: generic_exception_handler,
        },
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(add_trace_id_middleware)

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app

app = create_app()
