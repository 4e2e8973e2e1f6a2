from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import uuid

import redis

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.exceptions import RateLimitError
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, PendingApprovalError, UserRole, TokenPayload
)
from ..models.user import User

logger = logging.getLogger(__name__)

async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    if credentials is None:
        raise AuthenticationError("Authentication required")

    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    try:
        user_id = uuid.UUID(token_payload.sub or "")
    except ValueError:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user

# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that requires one of the given roles."""
    async def role_checker(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return current_user

    return role_checker

# Specific role dependencies
async def get_admin_user(
    current_user: User = Depends(require_role([UserRole.ADMIN]))
) -> User:
    """Require admin role."""
    return current_user

async def get_patient_user(
    current_user: User = Depends(require_role([UserRole.PATIENT]))
) -> User:
    """Require patient role."""
    return current_user

async def get_doctor_user(
    current_user: User = Depends(require_role([UserRole.DOCTOR]))
) -> User:
    """Require an approved doctor."""
    if not current_user.is_approved:
        raise PendingApprovalError()
    return current_user

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Fixed-window rate limiting for authentication endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    try:
        current_requests = redis_client.incr(key)
        if current_requests == 1:
            redis_client.expire(key, settings.RATE_LIMIT_WINDOW_SECONDS)
    except redis.RedisError as e:
        logger.warning(f"Rate limiting skipped, Redis unavailable: {e}")
        return

    if current_requests > settings.RATE_LIMIT_REQUESTS:
        raise RateLimitError()
