# backoffice/core/exceptions.py

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from backoffice.core.logging_config import trace_id_var

class AppError(Exception):
    """Erro de domínio com status HTTP e mensagem segura para o cliente."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Erro interno."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

class ConfigurationMissingError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Configuração obrigatória ausente."

class InvalidInputError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Dados inválidos."

class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Registro não encontrado."

class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Registro duplicado."

class AppSystemError(AppError):
    default_message = "Erro interno. Consulte os logs para mais detalhes."

# --- Handlers FastAPI ---

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.bind(trace_id=trace_id_var.get())
    if exc.status_code >= 500:
        log.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    else:
        log.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})

async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    log = logger.bind(trace_id=trace_id_var.get())
    log.warning(f"HTTP Exception Caught: {exc.status_code} {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    log = logger.bind(trace_id=trace_id_var.get())
    log.warning(f"Validation Error on {request.method} {request.url.path}: {exc.errors()}")
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", [])), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, "message": "Dados inválidos.", "errors": errors},
    )

async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log = logger.bind(trace_id=trace_id_var.get())
    log.exception(f"Unhandled Exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": AppSystemError.default_message},
    )
