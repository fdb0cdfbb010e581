# ================================
# STATUS & ACTION ENUMS (models/enums.py)
# ================================

from enum import Enum
from sqlalchemy import Enum as SAEnum

class UserRole(str, Enum):
    ADMIN = "ADMIN"
    OWNER = "OWNER"
    CUSTOMER = "CUSTOMER"

class PropertyStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"

class GroupBookingStatus(str, Enum):
    PENDING = "PENDING"
    REVIEWING = "REVIEWING"
    PROCESSING = "PROCESSING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"

# No claims window may be opened on, or claim submitted against, these
TERMINAL_BOOKING_STATUSES = frozenset({GroupBookingStatus.COMPLETED, GroupBookingStatus.CANCELED})

class ClaimStatus(str, Enum):
    PENDING = "PENDING"
    REVIEWING = "REVIEWING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"

# Claims still competing for the booking
LIVE_CLAIM_STATUSES = frozenset({ClaimStatus.PENDING, ClaimStatus.REVIEWING})

class AuditAction(str, Enum):
    OPENED_FOR_CLAIMS = "OPENED_FOR_CLAIMS"
    UPDATED_CLAIMS_SETTINGS = "UPDATED_CLAIMS_SETTINGS"
    RE_ADVERTISED = "RE_ADVERTISED"
    CLOSED_FOR_CLAIMS = "CLOSED_FOR_CLAIMS"
    OWNER_ASSIGNED = "OWNER_ASSIGNED"
    PROPERTIES_RECOMMENDED = "PROPERTIES_RECOMMENDED"
    CLAIMS_REVIEW_STARTED = "CLAIMS_REVIEW_STARTED"
    CLAIMS_RECOMMENDED = "CLAIMS_RECOMMENDED"
    CLAIM_STATUS_UPDATED = "CLAIM_STATUS_UPDATED"
    CLAIM_ACCEPTED = "CLAIM_ACCEPTED"
    CLAIM_WITHDRAWN = "CLAIM_WITHDRAWN"
    OWNER_MESSAGE_SENT = "OWNER_MESSAGE_SENT"
    OWNER_ACCEPTED_ASSIGNMENT = "OWNER_ACCEPTED_ASSIGNMENT"

# Audit actions whose metadata is a full claims window configuration
CONFIG_BEARING_ACTIONS = (
    AuditAction.OPENED_FOR_CLAIMS,
    AuditAction.UPDATED_CLAIMS_SETTINGS,
    AuditAction.RE_ADVERTISED,
)

class CloseReasonCode(str, Enum):
    OWNER_CONFIRMED = "OWNER_CONFIRMED"
    DEADLINE_REACHED = "DEADLINE_REACHED"
    NO_VALID_OFFERS = "NO_VALID_OFFERS"
    POLICY_DECISION = "POLICY_DECISION"

def enum_column_type(enum_cls, length: int = 40) -> SAEnum:
    """String-backed enum column (portable between PostgreSQL and SQLite)"""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )
