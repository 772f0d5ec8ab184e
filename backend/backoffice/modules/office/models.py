# backoffice/modules/office/models.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Dict, Any, Literal
from datetime import datetime
from bson import ObjectId

# --- Audit Log Models ---
AUDIT_STATUSES = Literal["success", "failure"]

class AuditLogBase(BaseModel):
    timestamp: datetime
    user_id: Optional[ObjectId] = Field(None, description="ID of user performing action")
    user_email: Optional[str] = Field(None, description="Email of user (denormalized)")
    action: str = Field(..., description="Identifier of the action performed (e.g., 'contract_analysis_generated')")
    status: AUDIT_STATUSES = Field(..., description="Outcome of the action")
    entity_type: Optional[str] = Field(None, description="Type of entity affected (e.g., 'AnaliseContratual')")
    entity_id: Optional[str] = Field(None, description="ID of the entity affected")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional context/data about the event")
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    error_message: Optional[str] = Field(None, description="Error details if status is 'failure'")

    model_config = ConfigDict(arbitrary_types_allowed=True)

class AuditLogCreateInternal(AuditLogBase):
    pass

class AuditLogInDB(AuditLogBase):
    id: ObjectId = Field(..., alias="_id")
    created_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)
