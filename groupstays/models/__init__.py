# ================================
# DATABASE INITIALIZATION (models/__init__.py)
# ================================

"""
Database Models Package

Imports every model so Alembic autogeneration and metadata.create_all see them
"""

from groupstays.models.base import Base

# Import all models for Alembic auto-generation
from groupstays.models.user import User
from groupstays.models.business import Property, GroupBooking, GroupBookingClaim
from groupstays.models.audit import GroupBookingAudit
from groupstays.models.enums import (
    UserRole, PropertyStatus, GroupBookingStatus, ClaimStatus, AuditAction, CloseReasonCode
)

# Export all models
__all__ = [
    "Base",
    "User",
    "Property",
    "GroupBooking",
    "GroupBookingClaim",
    "GroupBookingAudit",
    "UserRole",
    "PropertyStatus",
    "GroupBookingStatus",
    "ClaimStatus",
    "AuditAction",
    "CloseReasonCode",
]
