# backoffice/api/v1.py
from fastapi import APIRouter

from backoffice.api.endpoints import status
from backoffice.modules.allocation.routers import allocation_router
from backoffice.modules.analysis_config.routers import analysis_config_router
from backoffice.modules.contract_analysis.routers import contract_analysis_router
from backoffice.modules.invoices.routers import invoices_router

api_router = APIRouter()

api_router.include_router(status.router)
api_router.include_router(invoices_router)
api_router.include_router(allocation_router)
api_router.include_router(analysis_config_router)
api_router.include_router(contract_analysis_router)
