# ================================
# CLAIM SUBMISSION SERVICE (services/claim_submission_service.py)
# ================================

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging

from groupstays.config import settings
from groupstays.models.business import GroupBooking, GroupBookingClaim
from groupstays.models.enums import ClaimStatus
from groupstays.schemas.group_stay import ClaimCreate
from groupstays.core.exceptions import (
    AppException, ValidationError, NotFoundError, ConflictError, EligibilityError
)
from groupstays.services.group_booking_registry import GroupBookingRegistry
from groupstays.services.property_directory import PropertyDirectory
from groupstays.services.claims_window_service import ClaimsWindowManager
from groupstays.services.eligibility_service import EligibilityEvaluator
from groupstays.utils import utc_now, as_utc, compute_nights

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")

def compute_total_amount(price_per_night: Decimal, booking: GroupBooking) -> Decimal:
    """price per night x nights x rooms, rounded to cents"""
    nights = compute_nights(booking.check_in, booking.check_out)
    rooms = max(1, booking.rooms_needed or 1)
    return (Decimal(price_per_night) * nights * rooms).quantize(_CENTS, rounding=ROUND_HALF_UP)

class ClaimSubmissionService:
    """Creates owner claims in a single transaction, re-validating everything against live data"""

    @staticmethod
    def submit_claim(
        db: Session,
        owner_id: int,
        data: ClaimCreate,
        now: Optional[datetime] = None,
    ) -> GroupBookingClaim:
        """
        Submit a claim for a group booking.

        Args:
            db: Database session
            owner_id: Calling owner
            data: Offer details
            now: Reference time for the deadline check

        Returns:
            The persisted claim (status PENDING)

        Raises:
            ConflictError: Window closed or expired, booking terminal/confirmed, duplicate claim
            NotFoundError: Booking absent, property absent or not owned and approved
            EligibilityError: Property or offer fails an eligibility rule
        """
        if not owner_id or owner_id <= 0:
            raise ValidationError("Invalid owner id")
        now = as_utc(now) or utc_now()

        try:
            booking = GroupBookingRegistry.get_or_404(db, data.group_booking_id, fresh=True)
            ClaimSubmissionService._ensure_window_accepts_claims(db, booking, now)

            if GroupBookingRegistry.find_live_claim(db, booking.id, owner_id):
                raise ConflictError("You have already submitted a claim for this group stay", "DUPLICATE_CLAIM")

            property = PropertyDirectory.get_owned_approved(db, data.property_id, owner_id)
            if not property:
                raise NotFoundError("Property not found or not approved", "PROPERTY_NOT_FOUND")

            window_config = ClaimsWindowManager.get_window_config(db, booking)
            verdict = EligibilityEvaluator.evaluate(
                booking, property, window_config,
                discount_percent=data.discount_percent,
                now=now,
            )
            if not verdict.ok:
                logger.info(
                    f"Claim by owner {owner_id} on group booking {booking.id} rejected "
                    f"({verdict.rule}): {verdict.reason}"
                )
                raise EligibilityError(verdict.reason, rule=verdict.rule)

            claim = GroupBookingClaim(
                group_booking_id=booking.id,
                owner_id=owner_id,
                property_id=property.id,
                offered_price_per_night=Decimal(data.offered_price_per_night).quantize(_CENTS),
                discount_percent=data.discount_percent,
                total_amount=compute_total_amount(data.offered_price_per_night, booking),
                currency=booking.currency or settings.DEFAULT_CURRENCY,
                special_offers=data.special_offers,
                notes=data.notes,
                status=ClaimStatus.PENDING,
            )
            GroupBookingRegistry.add_claim(db, claim)
            db.commit()

        except AppException:
            db.rollback()
            raise
        except IntegrityError:
            # Lost the race against a concurrent submission by the same owner
            db.rollback()
            logger.info(f"Duplicate claim by owner {owner_id} on group booking {data.group_booking_id} blocked by index")
            raise ConflictError("You have already submitted a claim for this group stay", "DUPLICATE_CLAIM")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to submit claim for group booking {data.group_booking_id}: {e}", exc_info=True)
            raise AppException("Failed to submit claim", 500, "CLAIM_SUBMISSION_FAILED")

        logger.info(
            f"Claim {claim.id} submitted by owner {owner_id} for group booking {claim.group_booking_id} "
            f"({claim.total_amount} {claim.currency})"
        )
        return claim

    @staticmethod
    def _ensure_window_accepts_claims(db: Session, booking: GroupBooking, now: datetime) -> None:
        if not booking.is_open_for_claims:
            raise ConflictError("This group stay is not open for claims", "WINDOW_CLOSED")
        if booking.is_terminal:
            raise ConflictError("This group stay is no longer active", "BOOKING_TERMINAL")
        if booking.confirmed_property_id is not None:
            raise ConflictError("This group stay has already been confirmed", "BOOKING_CONFIRMED")

        # The stored flag may lag behind the deadline until lazy expiry runs
        if ClaimsWindowManager.is_expired(booking, ClaimsWindowManager.get_window_config(db, booking), now=now):
            raise ConflictError("The claims deadline for this group stay has passed", "DEADLINE_PASSED")

claim_submission_service = ClaimSubmissionService()
