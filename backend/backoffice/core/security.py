# backoffice/core/security.py

from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Dict

from bson import ObjectId
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, ExpiredSignatureError, jwt
from pydantic import ValidationError
from loguru import logger

from backoffice.core.config import settings
from backoffice.models.auth import Capability, Principal, Role, TokenPayload
from backoffice.modules.office.services_audit import AuditService, get_audit_service

# O login é feito pelo serviço de identidade; aqui só validamos o bearer token
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

CredentialsException = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)

# --- Funções de Utilidade JWT ---

def create_access_token(data: Dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Cria um token de acesso JWT com os claims 'sub', 'email' e 'role'."""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now, "nbf": now})

    subject = to_encode.get("sub")
    if not subject:
        logger.critical("FATAL: Attempted to create JWT token without 'sub' (subject) claim.")
        raise ValueError("Missing 'sub' claim in token data for JWT creation")

    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    logger.debug(f"Access token created for subject: {subject}, expires at {expire.isoformat()}")
    return encoded_jwt

def _resolve_role(raw_role: str | None) -> Role | None:
    if raw_role is None:
        return None
    try:
        return Role(raw_role)
    except ValueError:
        return None

async def get_current_principal(token: Annotated[str, Depends(oauth2_scheme)]) -> Principal:
    """
    Dependência FastAPI: decodifica e valida o JWT da requisição.
    Retorna o Principal ou levanta HTTPException 401.
    """
    log = logger.bind(service="AuthTokenValidation")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        token_data = TokenPayload.model_validate(payload)
    except ExpiredSignatureError:
        log.warning("Token validation failed: Signature has expired.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": 'Bearer error="invalid_token", error_description="The token has expired"'},
        )
    except JWTError as e:
        log.warning(f"Invalid JWT token format or signature: {e}")
        raise CredentialsException from e
    except ValidationError as e:
        log.warning(f"Token payload validation error: {e}")
        raise CredentialsException from e

    if not ObjectId.is_valid(token_data.sub):
        log.warning(f"Token 'sub' is not a valid user id: {token_data.sub!r}")
        raise CredentialsException

    principal = Principal(
        user_id=ObjectId(token_data.sub),
        email=token_data.email,
        role=_resolve_role(token_data.role),
        raw_role=token_data.role,
    )
    log.debug(f"Token validated for user {principal.user_id} (role={token_data.role})")
    return principal

CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]

def require_capability(capability: Capability):
    """Dependência de autorização: o perfil do token deve conceder a capability."""
    async def capability_checker(
        request: Request,
        principal: CurrentPrincipal,
        audit_service: AuditService = Depends(get_audit_service),
    ) -> Principal:
        if principal.can(capability):
            return principal
        logger.bind(user_id=str(principal.user_id), role=principal.raw_role).warning(
            f"Access denied to {request.method} {request.url.path} (requires '{capability.value}')"
        )
        await audit_service.log_audit_event(
            action="access_denied",
            status="failure",
            entity_type=capability.value,
            details={"route": request.url.path, "attempted_permission": principal.raw_role},
            current_user=principal,
            request=request,
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso negado. Permissão insuficiente.")
    return capability_checker
