from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import settings
from app.services.domain_lifecycle import DomainLifecycle

bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str, verify_exp: bool = True) -> Optional[Dict[str, Any]]:
    """Decode a dashboard-issued HS256 token; None if invalid."""
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": verify_exp},
        )
    except JWTError:
        return None


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UUID:
    """Acting user (JWT ``sub``); ownership is checked by the lifecycle service."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized
    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise unauthorized
    try:
        return UUID(str(payload["sub"]))
    except ValueError:
        raise unauthorized


def get_domain_lifecycle(request: Request) -> DomainLifecycle:
    return request.app.state.domain_lifecycle
