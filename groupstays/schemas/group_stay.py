# ================================
# GROUP STAY SCHEMAS (schemas/group_stay.py)
# ================================

from typing import Optional, List, Dict, Any, Literal
from datetime import datetime
from decimal import Decimal
from pydantic import ConfigDict, Field, field_validator

from groupstays.schemas.base import BaseSchema, BaseResponseSchema, TimestampMixin, PaginatedResponse
from groupstays.models.enums import GroupBookingStatus, ClaimStatus, CloseReasonCode, AuditAction

# ================================
# CLAIMS WINDOW REQUESTS
# ================================

class ClaimsWindowOpen(BaseSchema):
    """Open a claims window, update its settings or re-advertise a directly handled booking"""
    deadline: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)
    min_discount_percent: Optional[float] = Field(None, ge=0, le=100)
    min_hotel_star: Optional[int] = Field(None, ge=1, le=5)
    re_advertise: bool = False

class ClaimsWindowClose(BaseSchema):
    """Close a claims window; a reason code or the legacy free-text reason is required"""
    reason_code: Optional[CloseReasonCode] = None
    reason_details: Optional[str] = Field(None, max_length=2000)
    reason: Optional[str] = Field(None, max_length=2000)

class ClaimsWindowToggle(BaseSchema):
    """PATCH body of the open-for-claims endpoint; open=false routes to close"""
    open: bool
    deadline: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)
    min_discount_percent: Optional[float] = Field(None, ge=0, le=100)
    min_hotel_star: Optional[int] = Field(None, ge=1, le=5)
    re_advertise: bool = False
    reason_code: Optional[CloseReasonCode] = None
    reason_details: Optional[str] = Field(None, max_length=2000)
    reason: Optional[str] = Field(None, max_length=2000)

    def to_open(self) -> ClaimsWindowOpen:
        fields = {"deadline", "notes", "min_discount_percent", "min_hotel_star", "re_advertise"}
        # Carry only what the caller sent so settings updates stay partial
        return ClaimsWindowOpen(**self.model_dump(include=fields & self.model_fields_set))

    def to_close(self) -> ClaimsWindowClose:
        return ClaimsWindowClose(
            reason_code=self.reason_code,
            reason_details=self.reason_details,
            reason=self.reason,
        )

# ================================
# DIRECT HANDLING REQUESTS
# ================================

class OwnerAssign(BaseSchema):
    owner_id: int = Field(..., gt=0)
    notes: Optional[str] = Field(None, max_length=2000)

class PropertiesRecommend(BaseSchema):
    property_ids: List[int] = Field(..., min_length=1, max_length=20)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("property_ids")
    @classmethod
    def validate_ids(cls, v: List[int]) -> List[int]:
        if any(pid <= 0 for pid in v):
            raise ValueError("property ids must be positive integers")
        return list(dict.fromkeys(v))

# ================================
# CLAIM REQUESTS
# ================================

class ClaimCreate(BaseSchema):
    """Owner offer for a group booking"""
    group_booking_id: int = Field(..., gt=0)
    property_id: int = Field(..., gt=0)
    offered_price_per_night: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    discount_percent: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    special_offers: Optional[str] = Field(None, max_length=2000)
    notes: Optional[str] = Field(None, max_length=2000)

class ClaimsRecommend(BaseSchema):
    claim_ids: List[int] = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("claim_ids")
    @classmethod
    def validate_claim_ids(cls, v: List[int]) -> List[int]:
        if any(cid <= 0 for cid in v):
            raise ValueError("claim ids must be positive integers")
        unique = list(dict.fromkeys(v))
        if len(unique) > 3:
            raise ValueError("at most 3 claims can be recommended")
        return unique

class ClaimStatusUpdate(BaseSchema):
    status: ClaimStatus
    notes: Optional[str] = Field(None, max_length=2000)

OwnerMessageType = Literal[
    "General",
    "Provide Details",
    "Special Offers",
    "Check-in Instructions",
    "Welcome Message",
    "Amenities Information",
    "Other",
]

class OwnerMessage(BaseSchema):
    """Message from the assigned owner to the customer (delivered by the audit event consumers)"""
    model_config = ConfigDict(extra="forbid")

    message: str = Field(..., min_length=1, max_length=5000)
    message_type: OwnerMessageType = "General"

# ================================
# RESPONSES
# ================================

class ClaimsWindowConfigResponse(BaseSchema):
    deadline: Optional[datetime] = None
    notes: Optional[str] = None
    min_discount_percent: Optional[float] = None
    min_hotel_star: Optional[int] = None
    version: int = 0

class GroupBookingResponse(BaseResponseSchema, TimestampMixin):
    user_id: Optional[int] = None
    status: GroupBookingStatus
    group_type: Optional[str] = None
    accommodation_type: Optional[str] = None
    headcount: int
    rooms_needed: int
    to_region: Optional[str] = None
    to_district: Optional[str] = None
    to_location: Optional[str] = None
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    min_hotel_star_label: Optional[str] = None
    currency: Optional[str] = None
    assigned_owner_id: Optional[int] = None
    owner_assigned_at: Optional[datetime] = None
    confirmed_property_id: Optional[int] = None
    recommended_property_ids: List[int] = []
    is_open_for_claims: bool
    opened_for_claims_at: Optional[datetime] = None
    claims_config_version: int = 0
    claims_deadline: Optional[datetime] = None

class PropertySummary(BaseResponseSchema):
    owner_id: int
    title: str
    type: Optional[str] = None
    region_name: Optional[str] = None
    district: Optional[str] = None
    hotel_star: Optional[str] = None

class ClaimResponse(BaseResponseSchema, TimestampMixin):
    group_booking_id: int
    owner_id: int
    property_id: int
    offered_price_per_night: float
    discount_percent: Optional[float] = None
    total_amount: float
    currency: str
    special_offers: Optional[str] = None
    notes: Optional[str] = None
    status: ClaimStatus
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    property: Optional[PropertySummary] = None

class ClaimFigures(BaseSchema):
    """Derived review figures of a claim"""
    nights: int
    price_per_guest: Optional[float] = None
    price_per_room: Optional[float] = None
    savings_amount: Optional[float] = None

class ReviewedClaim(ClaimResponse):
    owner_name: Optional[str] = None
    figures: ClaimFigures

class ClaimShortlist(BaseSchema):
    highest: Optional[int] = None
    mid: Optional[int] = None
    lowest: Optional[int] = None
    currency: Optional[str] = None
    target_total_amount: Optional[float] = None  # midpoint of highest and lowest

class ClaimsReviewResponse(BaseSchema):
    booking: GroupBookingResponse
    window: ClaimsWindowConfigResponse
    claims: List[ReviewedClaim]
    shortlist: Optional[ClaimShortlist] = None  # None when no live claims
    recommended_claim_ids: List[int] = []
    summary: Dict[str, int] = {}

class AuditResponse(BaseResponseSchema):
    group_booking_id: int
    actor_id: Optional[int] = None
    actor_role: Optional[str] = None
    action: AuditAction
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="metadata_")
    created_at: datetime

class AuditListResponse(BaseSchema):
    items: List[AuditResponse]
    total: int

class WindowTransitionResponse(BaseSchema):
    action: Optional[AuditAction] = None  # None when the request changed nothing
    booking: GroupBookingResponse
    window: ClaimsWindowConfigResponse

class GroupBookingListResponse(PaginatedResponse):
    items: List[GroupBookingResponse]

class ClaimListResponse(PaginatedResponse):
    items: List[ClaimResponse]

class AvailableGroupStay(BaseSchema):
    booking: GroupBookingResponse
    deadline: Optional[datetime] = None
    notes: Optional[str] = None
    min_discount_percent: Optional[float] = None
    min_hotel_star: Optional[int] = None
    total_claims: int = 0
    own_claims: int = 0
    other_claims: int = 0
    has_owner_claim: bool = False

class AvailableGroupStayListResponse(PaginatedResponse):
    items: List[AvailableGroupStay]

class EligiblePropertyListResponse(BaseSchema):
    items: List[PropertySummary]
    total: int

class SweepResponse(BaseSchema):
    closed: int
