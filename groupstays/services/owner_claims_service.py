# ================================
# OWNER CLAIMS SERVICE (services/owner_claims_service.py)
# ================================

from typing import Optional
from sqlalchemy.orm import Session
import logging

from groupstays.models.business import GroupBookingClaim
from groupstays.models.enums import AuditAction, ClaimStatus, UserRole, LIVE_CLAIM_STATUSES
from groupstays.schemas.group_stay import (
    ClaimCreate, OwnerMessage, AvailableGroupStay, AvailableGroupStayListResponse,
    ClaimListResponse, GroupBookingResponse
)
from groupstays.core.exceptions import (
    ValidationError, NotFoundError, ConflictError, AuthorizationError
)
from groupstays.services.group_booking_registry import GroupBookingRegistry
from groupstays.services.property_directory import PropertyDirectory
from groupstays.services.claims_window_service import ClaimsWindowManager, compute_deadline
from groupstays.services.claim_submission_service import ClaimSubmissionService
from groupstays.mappers.group_stay_mapper import map_booking, map_claim
from groupstays.utils import clamp_pagination, utc_now
from groupstays.utils.audit import audit_trail

logger = logging.getLogger(__name__)

OWNER_ROLE = UserRole.OWNER.value

class OwnerClaimsService:
    """Owner entry points: browse open group stays, submit and manage claims"""

    @staticmethod
    def list_available(
        db: Session,
        owner_id: int,
        region: Optional[str] = None,
        accommodation_type: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> AvailableGroupStayListResponse:
        """Open, non-terminal group stays after expiring windows past their deadline"""
        ClaimsWindowManager.auto_close_expired(db, GroupBookingRegistry.list_open(db))
        page, page_size = clamp_pagination(page, page_size)

        bookings, total = GroupBookingRegistry.list_available(
            db, region=region, accommodation_type=accommodation_type,
            offset=(page - 1) * page_size, limit=page_size,
        )

        items = []
        for booking in bookings:
            config = ClaimsWindowManager.get_window_config(db, booking)
            deadline = compute_deadline(booking.opened_for_claims_at, config)
            active_claims = [c for c in booking.claims if c.status != ClaimStatus.WITHDRAWN]
            own = sum(1 for c in active_claims if c.owner_id == owner_id)
            items.append(AvailableGroupStay(
                booking=map_booking(booking, deadline),
                deadline=deadline,
                notes=config.notes,
                min_discount_percent=config.min_discount_percent,
                min_hotel_star=config.min_hotel_star,
                total_claims=len(active_claims),
                own_claims=own,
                other_claims=len(active_claims) - own,
                has_owner_claim=own > 0,
            ))

        return AvailableGroupStayListResponse(items=items, total=total, page=page, page_size=page_size)

    @staticmethod
    def submit_claim(db: Session, owner_id: int, data: ClaimCreate) -> GroupBookingClaim:
        return ClaimSubmissionService.submit_claim(db, owner_id, data)

    @staticmethod
    def list_my_claims(
        db: Session,
        owner_id: int,
        status: Optional[ClaimStatus] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> ClaimListResponse:
        booking_ids = GroupBookingRegistry.owner_claim_booking_ids(db, owner_id)
        ClaimsWindowManager.auto_close_expired(db, GroupBookingRegistry.list_open(db, booking_ids))
        page, page_size = clamp_pagination(page, page_size)

        claims, total = GroupBookingRegistry.list_owner_claims(
            db, owner_id, status=status, offset=(page - 1) * page_size, limit=page_size
        )
        return ClaimListResponse(items=[map_claim(c) for c in claims], total=total, page=page, page_size=page_size)

    @staticmethod
    def withdraw_claim(db: Session, owner_id: int, claim_id: int) -> GroupBookingClaim:
        claim = GroupBookingRegistry.get_claim(db, claim_id)
        if not claim or claim.owner_id != owner_id:
            raise NotFoundError("Claim not found", "CLAIM_NOT_FOUND")
        if claim.status == ClaimStatus.WITHDRAWN:
            raise ConflictError("Claim has already been withdrawn", "CLAIM_ALREADY_WITHDRAWN")
        if claim.status not in LIVE_CLAIM_STATUSES:
            raise ConflictError(f"Claim has already been {claim.status.value.lower()}", "CLAIM_ALREADY_DECIDED")

        previous = claim.status
        claim.status = ClaimStatus.WITHDRAWN
        audit_trail.record(
            db,
            group_booking_id=claim.group_booking_id,
            action=AuditAction.CLAIM_WITHDRAWN,
            actor_id=owner_id,
            actor_role=OWNER_ROLE,
            description=f"Owner withdrew claim {claim.id}",
            metadata={"claimId": claim.id, "from": previous},
        )
        db.commit()

        logger.info(f"Claim {claim.id} withdrawn by owner {owner_id}")
        return claim

    @staticmethod
    def accept_assignment(db: Session, owner_id: int, booking_id: int) -> GroupBookingResponse:
        """Owner commits to hosting a group stay whose confirmed property they own"""
        booking = GroupBookingRegistry.get(db, booking_id)
        if not booking or booking.assigned_owner_id != owner_id or booking.confirmed_property_id is None:
            raise NotFoundError(
                "Group stay not found, not assigned to you, or property not confirmed yet",
                "ASSIGNMENT_NOT_FOUND"
            )
        prop = booking.confirmed_property
        if prop is None or prop.owner_id != owner_id:
            raise AuthorizationError("You are not the owner of the confirmed property for this group stay")

        if audit_trail.has_action(db, booking.id, AuditAction.OWNER_ACCEPTED_ASSIGNMENT):
            raise ValidationError("Assignment already accepted", "ALREADY_ACCEPTED")

        owner = PropertyDirectory.get_user(db, owner_id)
        audit_trail.record(
            db,
            group_booking_id=booking.id,
            action=AuditAction.OWNER_ACCEPTED_ASSIGNMENT,
            actor_id=owner_id,
            actor_role=OWNER_ROLE,
            description="Owner accepted group stay assignment and committed to hosting the group",
            metadata={
                "ownerId": owner_id,
                "ownerName": owner.display_name if owner else None,
                "propertyId": prop.id,
                "propertyTitle": prop.title,
                "acceptedAt": utc_now(),
            },
        )
        db.commit()
        return map_booking(booking)

    @staticmethod
    def send_message(db: Session, owner_id: int, booking_id: int, data: OwnerMessage) -> GroupBookingResponse:
        """
        Message from the assigned owner to the customer.

        Recorded as OWNER_MESSAGE_SENT; delivery to the customer is done by the
        audit event subscribers after commit.
        """
        owner = PropertyDirectory.get_user(db, owner_id)
        if not owner:
            raise NotFoundError("Owner account not found", "OWNER_NOT_FOUND")
        if not owner.is_active:
            raise AuthorizationError("Your account has been suspended", "ACCOUNT_SUSPENDED")

        if not PropertyDirectory.has_approved_property(db, owner_id):
            raise AuthorizationError(
                "You must have at least one active property to send messages to customers",
                "NO_ACTIVE_PROPERTIES"
            )

        booking = GroupBookingRegistry.get(db, booking_id)
        if not booking or booking.assigned_owner_id != owner_id:
            raise NotFoundError("Group stay not found or not assigned to you", "ASSIGNMENT_NOT_FOUND")

        message = data.message.strip()
        if not message:
            raise ValidationError("Message cannot be empty")

        audit_trail.record(
            db,
            group_booking_id=booking.id,
            action=AuditAction.OWNER_MESSAGE_SENT,
            actor_id=owner_id,
            actor_role=OWNER_ROLE,
            description=f"Owner sent a message ({data.message_type})",
            metadata={
                "message": message,
                "messageType": data.message_type,
                "customerId": booking.user_id,
            },
        )
        db.commit()
        return map_booking(booking)

owner_claims_service = OwnerClaimsService()
