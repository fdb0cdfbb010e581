# ================================
# ADMIN GROUP STAY API ROUTES (api/v1/admin_group_stays.py)
# ================================

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from groupstays.dependencies import get_db, require_admin, booking_id_path, claim_id_path
from groupstays.models.user import User
from groupstays.models.enums import GroupBookingStatus
from groupstays.services.admin_claims_service import AdminClaimsService
from groupstays.mappers.group_stay_mapper import map_claim
from groupstays.schemas.group_stay import (
    ClaimsWindowToggle,
    OwnerAssign,
    PropertiesRecommend,
    ClaimsRecommend,
    ClaimStatusUpdate,
    WindowTransitionResponse,
    GroupBookingResponse,
    GroupBookingListResponse,
    AuditListResponse,
    ClaimsReviewResponse,
    ClaimResponse,
    EligiblePropertyListResponse,
    SweepResponse
)

router = APIRouter()

# ================================
# CLAIMS WINDOW
# ================================

@router.patch("/{booking_id}/open-for-claims", response_model=WindowTransitionResponse)
async def toggle_open_for_claims(
    window_data: ClaimsWindowToggle,
    booking_id: int = Depends(booking_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Open, update, re-advertise (open=true) or close (open=false) the claims window"""
    return AdminClaimsService.toggle_claims_window(
        db=db,
        booking_id=booking_id,
        data=window_data,
        admin_id=current_user.id
    )

@router.post("/expire-windows", response_model=SweepResponse)
async def expire_claims_windows(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Close every open claims window whose deadline has passed"""
    return AdminClaimsService.expire_windows(db)

# ================================
# DIRECT HANDLING
# ================================

@router.post("/{booking_id}/owner", response_model=GroupBookingResponse)
async def assign_owner(
    assign_data: OwnerAssign,
    booking_id: int = Depends(booking_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Assign an owner directly (booking must not be open for claims)"""
    return AdminClaimsService.assign_owner(db, booking_id, assign_data, current_user.id)

@router.post("/{booking_id}/properties", response_model=GroupBookingResponse)
async def recommend_properties(
    recommend_data: PropertiesRecommend,
    booking_id: int = Depends(booking_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Recommend properties directly (booking must not be open for claims)"""
    return AdminClaimsService.recommend_properties(db, booking_id, recommend_data, current_user.id)

# ================================
# LISTINGS
# ================================

@router.get("/assignments", response_model=GroupBookingListResponse)
async def list_assignments(
    status: Optional[GroupBookingStatus] = Query(None),
    assigned_owner_id: Optional[int] = Query(None, gt=0),
    page: int = Query(1),
    page_size: int = Query(50),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """List group stays with their assignment state"""
    return AdminClaimsService.list_assignments(
        db=db,
        status=status,
        assigned_owner_id=assigned_owner_id,
        page=page,
        page_size=page_size
    )

@router.get("/{booking_id}/audits", response_model=AuditListResponse)
async def list_audits(
    booking_id: int = Depends(booking_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Audit history of a group stay, newest first"""
    return AdminClaimsService.list_audits(db, booking_id)

@router.get("/{booking_id}/eligible-properties", response_model=EligiblePropertyListResponse)
async def list_eligible_properties(
    booking_id: int = Depends(booking_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Approved properties that could compete for this group stay"""
    return AdminClaimsService.find_eligible_properties(db, booking_id)

# ================================
# CLAIMS REVIEW
# ================================

@router.get("/{booking_id}/claims", response_model=ClaimsReviewResponse)
async def list_claims(
    booking_id: int = Depends(booking_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Claims of a group stay with review figures and the three-way shortlist"""
    return AdminClaimsService.list_claims(db, booking_id)

@router.post("/{booking_id}/claims/start-review", response_model=GroupBookingResponse)
async def start_review(
    booking_id: int = Depends(booking_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return AdminClaimsService.start_review(db, booking_id, current_user.id)

@router.post("/{booking_id}/claims/recommendations", response_model=GroupBookingResponse)
async def recommend_claims(
    recommend_data: ClaimsRecommend,
    booking_id: int = Depends(booking_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Shortlist 1-3 claims for the customer"""
    return AdminClaimsService.recommend_claims(db, booking_id, recommend_data, current_user.id)

@router.patch("/claims/{claim_id}/status", response_model=ClaimResponse)
async def update_claim_status(
    status_data: ClaimStatusUpdate,
    claim_id: int = Depends(claim_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    claim = AdminClaimsService.update_claim_status(db, claim_id, status_data, current_user.id)
    return map_claim(claim)

@router.post("/claims/{claim_id}/accept", response_model=ClaimResponse)
async def accept_claim(
    claim_id: int = Depends(claim_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Accept a claim: confirms its property and closes the claims window"""
    claim = AdminClaimsService.accept_claim(db, claim_id, current_user.id)
    return map_claim(claim)
