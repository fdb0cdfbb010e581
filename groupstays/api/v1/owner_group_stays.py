# ================================
# OWNER GROUP STAY API ROUTES (api/v1/owner_group_stays.py)
# ================================

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from groupstays.dependencies import get_db, require_owner, booking_id_path, claim_id_path
from groupstays.models.user import User
from groupstays.models.enums import ClaimStatus
from groupstays.services.owner_claims_service import OwnerClaimsService
from groupstays.mappers.group_stay_mapper import map_claim
from groupstays.schemas.group_stay import (
    ClaimCreate,
    OwnerMessage,
    ClaimResponse,
    ClaimListResponse,
    AvailableGroupStayListResponse,
    GroupBookingResponse
)

router = APIRouter()

@router.get("/claims/available", response_model=AvailableGroupStayListResponse)
async def list_available_group_stays(
    region: Optional[str] = Query(None, max_length=255),
    accommodation_type: Optional[str] = Query(None, max_length=100),
    page: int = Query(1),
    page_size: int = Query(50),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_owner)
):
    """Group stays currently open for claims"""
    return OwnerClaimsService.list_available(
        db=db,
        owner_id=current_user.id,
        region=region,
        accommodation_type=accommodation_type,
        page=page,
        page_size=page_size
    )

@router.post("/claims", response_model=ClaimResponse, status_code=status.HTTP_201_CREATED)
async def submit_claim(
    claim_data: ClaimCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_owner)
):
    """Submit an offer for a group stay"""
    claim = OwnerClaimsService.submit_claim(db, current_user.id, claim_data)
    return map_claim(claim)

@router.get("/claims/my-claims", response_model=ClaimListResponse)
async def list_my_claims(
    status: Optional[ClaimStatus] = Query(None),
    page: int = Query(1),
    page_size: int = Query(50),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_owner)
):
    return OwnerClaimsService.list_my_claims(
        db=db,
        owner_id=current_user.id,
        status=status,
        page=page,
        page_size=page_size
    )

@router.post("/claims/{claim_id}/withdraw", response_model=ClaimResponse)
async def withdraw_claim(
    claim_id: int = Depends(claim_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_owner)
):
    claim = OwnerClaimsService.withdraw_claim(db, current_user.id, claim_id)
    return map_claim(claim)

@router.post("/{booking_id}/accept", response_model=GroupBookingResponse)
async def accept_assignment(
    booking_id: int = Depends(booking_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_owner)
):
    """Commit to hosting a group stay confirmed on one of your properties"""
    return OwnerClaimsService.accept_assignment(db, current_user.id, booking_id)

@router.post("/{booking_id}/message", response_model=GroupBookingResponse)
async def send_message(
    message_data: OwnerMessage,
    booking_id: int = Depends(booking_id_path),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_owner)
):
    """Send a message to the customer of an assigned group stay"""
    return OwnerClaimsService.send_message(db, current_user.id, booking_id, message_data)
