"""
Group Stay Mapper Module
Handles conversion of group booking / claim ORM objects to response schemas
"""
from typing import Optional
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from groupstays.models.business import GroupBooking, GroupBookingClaim
from groupstays.services.claims_window_service import ClaimsWindowConfig
from groupstays.schemas.group_stay import (
    GroupBookingResponse, ClaimsWindowConfigResponse, ClaimResponse,
    ReviewedClaim, ClaimFigures
)
from groupstays.utils import compute_nights, to_float

_CENTS = Decimal("0.01")

def map_booking(booking: GroupBooking, deadline: Optional[datetime] = None) -> GroupBookingResponse:
    """
    Map a GroupBooking ORM object to GroupBookingResponse

    Args:
        booking: GroupBooking ORM object
        deadline: Computed claims deadline (only meaningful while open)

    Returns:
        GroupBookingResponse with claims_deadline filled in
    """
    response = GroupBookingResponse.model_validate(booking)
    response.recommended_property_ids = list(booking.recommended_property_ids or [])
    response.claims_deadline = deadline if booking.is_open_for_claims else None
    return response

def map_window_config(config: ClaimsWindowConfig) -> ClaimsWindowConfigResponse:
    return ClaimsWindowConfigResponse(
        deadline=config.deadline,
        notes=config.notes,
        min_discount_percent=config.min_discount_percent,
        min_hotel_star=config.min_hotel_star,
        version=config.version,
    )

def map_claim(claim: GroupBookingClaim) -> ClaimResponse:
    return ClaimResponse.model_validate(claim)

def map_claim_figures(claim: GroupBookingClaim, booking: GroupBooking) -> ClaimFigures:
    """
    Derived figures shown to admins while comparing offers

    savings_amount applies the offered discount to the offered total
    (None when no discount was offered).
    """
    nights = compute_nights(booking.check_in, booking.check_out)
    total = Decimal(claim.total_amount or 0)

    price_per_guest = None
    if booking.headcount and booking.headcount > 0:
        price_per_guest = (total / booking.headcount).quantize(_CENTS, rounding=ROUND_HALF_UP)

    price_per_room = None
    if booking.rooms_needed and booking.rooms_needed > 0:
        price_per_room = (total / booking.rooms_needed).quantize(_CENTS, rounding=ROUND_HALF_UP)

    savings_amount = None
    discount = Decimal(claim.discount_percent) if claim.discount_percent is not None else None
    if discount:
        savings_amount = (total * discount / Decimal(100)).quantize(_CENTS, rounding=ROUND_HALF_UP)

    return ClaimFigures(
        nights=nights,
        price_per_guest=to_float(price_per_guest),
        price_per_room=to_float(price_per_room),
        savings_amount=to_float(savings_amount),
    )

def map_reviewed_claim(claim: GroupBookingClaim, booking: GroupBooking) -> ReviewedClaim:
    base = ClaimResponse.model_validate(claim).model_dump()
    return ReviewedClaim(
        **base,
        owner_name=claim.owner.display_name if claim.owner else None,
        figures=map_claim_figures(claim, booking),
    )
