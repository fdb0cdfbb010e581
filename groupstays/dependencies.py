# ================================
# DEPENDENCIES (dependencies.py)
# ================================

from fastapi import Depends, Path, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from groupstays.models.user import User
from groupstays.models.enums import UserRole
from groupstays.core.security import verify_token
from groupstays.core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from typing import Optional

security = HTTPBearer(auto_error=False)

# ================================
# BASIC DEPENDENCIES
# ================================

def get_db(request: Request) -> Session:
    """Dependency für Database Session aus Middleware"""
    return request.state.db

def parse_positive_id(value: str, label: str) -> int:
    """Path ids must be positive integers; anything else is a 400, not a 422"""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}")
    if parsed <= 0:
        raise ValidationError(f"Invalid {label}")
    return parsed

def booking_id_path(booking_id: str = Path(..., description="Group booking id")) -> int:
    return parse_positive_id(booking_id, "group booking id")

def claim_id_path(claim_id: str = Path(..., description="Claim id")) -> int:
    return parse_positive_id(claim_id, "claim id")

# ================================
# USER AUTHENTICATION DEPENDENCIES
# ================================

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Dependency für aktuellen User (Bearer JWT mit sub = user id)"""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = verify_token(credentials.credentials)
    if not payload:
        raise AuthenticationError("Invalid authentication credentials")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")

    return user

# ================================
# ROLE-BASED DEPENDENCIES
# ================================

def require_role(role: UserRole):
    """Factory für Rollen-basierte Dependencies"""

    def role_dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role:
            raise AuthorizationError(f"{role.value.title()} access required")
        return current_user

    return role_dependency

require_admin = require_role(UserRole.ADMIN)
require_owner = require_role(UserRole.OWNER)
