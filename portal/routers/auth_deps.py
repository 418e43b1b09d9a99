"""
Role-based access dependencies.
Every /api route except login resolves the caller through ``get_current_user``;
company scoping is applied with ``scope_company_id``.
"""
import logging
from typing import Callable, List, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from portal.core.exceptions import AccessDeniedError
from portal.database import get_db
from portal.models.user import User, UserRole
from portal.schemas.auth import TokenData
from portal.services import auth as auth_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """
    Extracts and validates the current user from the JWT token.
    """
    payload = auth_service.decode_access_token(token)

    if payload is None:
        logger.warning("Authentication failed: Invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("error") == "TOKEN_EXPIRED":
        logger.info("Authentication failed: Token expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="TOKEN_EXPIRED",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != "access":
        logger.warning("Authentication failed: Invalid token type")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        token_data = TokenData(
            user_id=int(payload.get("sub")),
            role=payload.get("role"),
            company_id=payload.get("company_id"),
        )
    except (TypeError, ValueError):
        logger.warning("Authentication failed: Missing subject in token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing subject in token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.get(User, token_data.user_id)
    if user is None:
        logger.warning(f"Authentication failed: User {token_data.user_id} not found in database")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        logger.warning(f"Authentication failed: User {user.email} is inactive")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive"
        )
    return user


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """
    Dependency factory that checks if the user has one of the allowed roles.

    Usage:
        @router.delete("/{file_id}")
        def delete_file(user: User = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            logger.warning(
                f"Access denied for {current_user.email}: role {current_user.role.value} "
                f"not in {[r.value for r in allowed_roles]}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied"
            )
        return current_user
    return role_checker


require_admin = require_role([UserRole.ADMIN])
require_company = require_role([UserRole.COMPANY])


def require_company_context(current_user: User = Depends(require_company)) -> User:
    """Company callers must be bound to a company row."""
    if current_user.company_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User does not belong to any company"
        )
    return current_user


def scope_company_id(user: User, requested: Optional[int] = None) -> Optional[int]:
    """
    Company id a query must be restricted to.

    Company callers are always pinned to their own company whatever they ask
    for; admins get the requested filter (None means every company).
    """
    if user.role == UserRole.ADMIN:
        return requested
    if user.company_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User does not belong to any company"
        )
    return user.company_id


def ensure_company_access(user: User, entity_company_id: int) -> None:
    """Reject company callers touching another company's row."""
    if user.role == UserRole.ADMIN:
        return
    if user.company_id != entity_company_id:
        raise AccessDeniedError("Access denied: entity belongs to a different company.")
