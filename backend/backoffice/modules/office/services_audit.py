# backoffice/modules/office/services_audit.py
from decimal import Decimal
from typing import Any, Dict, Optional
from datetime import date

from bson import ObjectId
from fastapi import Depends, Request
from fastapi.encoders import jsonable_encoder
from loguru import logger

from backoffice.core.logging_config import trace_id_var
from backoffice.core.repository import utcnow
from backoffice.models.auth import Principal
from .models import AUDIT_STATUSES, AuditLogCreateInternal
from .repository import AuditLogRepository, get_audit_repository

_DETAIL_ENCODERS = {ObjectId: str, Decimal: str, date: lambda d: d.isoformat()}

class AuditService:
    """Registra eventos de auditoria. Falhas do sink nunca interrompem a requisição."""

    def __init__(self, audit_repo: AuditLogRepository):
        self.audit_repo = audit_repo

    async def log_audit_event(
        self,
        action: str,
        status: AUDIT_STATUSES,
        entity_type: Optional[str] = None,
        entity_id: Any = None,
        details: Optional[Dict[str, Any]] = None,
        current_user: Optional[Principal] = None,
        request: Optional[Request] = None,
        error_message: Optional[str] = None,
    ) -> Optional[str]:
        log = logger.bind(trace_id=trace_id_var.get(), audit_action=action, audit_status=status)
        try:
            entry = AuditLogCreateInternal(
                timestamp=utcnow(),
                user_id=current_user.user_id if current_user else None,
                user_email=current_user.email if current_user else None,
                action=action,
                status=status,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id is not None else None,
                details=jsonable_encoder(details, custom_encoder=_DETAIL_ENCODERS) if details else None,
                ip_address=request.client.host if request and request.client else None,
                user_agent=request.headers.get("user-agent") if request else None,
                error_message=error_message,
            )
            created = await self.audit_repo.create(entry)
            log.debug(f"Audit log created: ID {created.id}")
            return str(created.id)
        except Exception as e:
            log.error(f"Failed to write audit log '{action}': {e}")
            return None

async def get_audit_service(
    audit_repo: AuditLogRepository = Depends(get_audit_repository),
) -> AuditService:
    return AuditService(audit_repo)
