# ================================
# SCHEMAS PACKAGE INITIALIZATION (schemas/__init__.py)
# ================================

"""
Pydantic Schemas Package

Zentrale Imports für alle Schemas im System
"""

# Base Schemas
from groupstays.schemas.base import (
    BaseSchema,
    BaseResponseSchema,
    TimestampMixin,
    PaginatedResponse,
    ErrorResponse
)

# Group Stay Request Schemas
from groupstays.schemas.group_stay import (
    ClaimsWindowOpen,
    ClaimsWindowClose,
    ClaimsWindowToggle,
    OwnerAssign,
    PropertiesRecommend,
    ClaimCreate,
    ClaimsRecommend,
    ClaimStatusUpdate,
    OwnerMessage
)

# Group Stay Response Schemas
from groupstays.schemas.group_stay import (
    ClaimsWindowConfigResponse,
    GroupBookingResponse,
    PropertySummary,
    ClaimResponse,
    ClaimFigures,
    ReviewedClaim,
    ClaimShortlist,
    ClaimsReviewResponse,
    AuditResponse,
    AuditListResponse,
    WindowTransitionResponse,
    GroupBookingListResponse,
    ClaimListResponse,
    AvailableGroupStay,
    AvailableGroupStayListResponse,
    EligiblePropertyListResponse,
    SweepResponse
)
