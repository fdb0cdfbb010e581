# ================================
# ADMIN CLAIMS SERVICE (services/admin_claims_service.py)
# ================================

from datetime import datetime, timezone
from typing import Optional, List, Iterable
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import logging

from groupstays.config import settings
from groupstays.models.business import GroupBooking, GroupBookingClaim
from groupstays.models.enums import (
    AuditAction, ClaimStatus, CloseReasonCode, GroupBookingStatus, UserRole, LIVE_CLAIM_STATUSES
)
from groupstays.schemas.group_stay import (
    ClaimsWindowOpen, ClaimsWindowClose, ClaimsWindowToggle, OwnerAssign, PropertiesRecommend,
    ClaimsRecommend, ClaimStatusUpdate, WindowTransitionResponse, ClaimsReviewResponse, ClaimShortlist,
    GroupBookingResponse, GroupBookingListResponse, AuditResponse, AuditListResponse,
    EligiblePropertyListResponse, PropertySummary, SweepResponse
)
from groupstays.core.exceptions import ValidationError, NotFoundError, ConflictError
from groupstays.services.group_booking_registry import GroupBookingRegistry
from groupstays.services.property_directory import PropertyDirectory
from groupstays.services.claims_window_service import ClaimsWindowManager, ClaimsWindowConfig, compute_deadline
from groupstays.services.eligibility_service import EligibilityEvaluator
from groupstays.mappers.group_stay_mapper import map_booking, map_window_config, map_reviewed_claim
from groupstays.utils import utc_now, as_utc, to_float, clamp_pagination
from groupstays.utils.audit import audit_trail

logger = logging.getLogger(__name__)

ADMIN_ROLE = UserRole.ADMIN.value
_WINDOW_FIELDS = {"deadline", "notes", "min_discount_percent", "min_hotel_star"}
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

def compute_three_way_shortlist(
    claims: Iterable[GroupBookingClaim],
    default_currency: Optional[str] = None,
) -> Optional[ClaimShortlist]:
    """
    Pick the highest, lowest and a middle offer among the live claims.

    The middle offer is the remaining claim closest to the midpoint of highest
    and lowest. Ties are broken by submission time, then id.

    Returns:
        ClaimShortlist, or None when there are no live claims

    Raises:
        ValidationError: Live claims are priced in different currencies
    """
    pool = []
    for claim in claims:
        if claim.status not in LIVE_CLAIM_STATUSES:
            continue
        total = to_float(claim.total_amount)
        if total is None:
            continue
        pool.append((claim, total, as_utc(claim.created_at) or _EPOCH))

    if not pool:
        return None

    currencies = {claim.currency or default_currency or "" for claim, _, _ in pool}
    if len(currencies) > 1:
        raise ValidationError("Cannot compute shortlist when claims have mixed currencies", "MIXED_CURRENCY")

    highest = min(pool, key=lambda entry: (-entry[1], entry[2], entry[0].id))
    lowest = min(pool, key=lambda entry: (entry[1], entry[2], entry[0].id))
    target = (highest[1] + lowest[1]) / 2

    remaining = [entry for entry in pool if entry[0].id not in (highest[0].id, lowest[0].id)]
    mid = min(remaining, key=lambda entry: (abs(entry[1] - target), entry[2], entry[0].id)) if remaining else None

    return ClaimShortlist(
        highest=highest[0].id,
        mid=mid[0].id if mid else None,
        lowest=lowest[0].id,
        currency=currencies.pop() or None,
        target_total_amount=target,
    )

class AdminClaimsService:
    """Admin control over claims windows, direct handling and claim review"""

    # ---------- claims window ----------

    @staticmethod
    def toggle_claims_window(
        db: Session,
        booking_id: int,
        data: ClaimsWindowToggle,
        admin_id: int,
        now: Optional[datetime] = None,
    ) -> WindowTransitionResponse:
        if data.open:
            return AdminClaimsService.open_for_claims(db, booking_id, data.to_open(), admin_id, now=now)
        return AdminClaimsService.close_for_claims(db, booking_id, data.to_close(), admin_id)

    @staticmethod
    def open_for_claims(
        db: Session,
        booking_id: int,
        data: ClaimsWindowOpen,
        admin_id: int,
        now: Optional[datetime] = None,
    ) -> WindowTransitionResponse:
        """
        Open a claims window, update the settings of an open one, or re-advertise.

        Re-advertising switches a directly handled booking (assigned owner or
        recommended properties) to competitive claims. It clears the direct
        handling and is only done when data.re_advertise is set.
        """
        now = as_utc(now) or utc_now()
        booking = GroupBookingRegistry.get_or_404(db, booking_id, fresh=True)
        ClaimsWindowManager.expire_booking(db, booking, now=now)

        if booking.is_terminal:
            raise ConflictError("Cannot open claims on a completed or canceled group stay", "BOOKING_TERMINAL")
        if booking.confirmed_property_id is not None:
            raise ValidationError("Group stay already has a confirmed property", "BOOKING_CONFIRMED")

        deadline = as_utc(data.deadline)
        if "deadline" in data.model_fields_set and deadline is not None and deadline <= now:
            raise ValidationError("Deadline must be in the future", "INVALID_DEADLINE")

        current = ClaimsWindowManager.get_window_config(db, booking)
        changes = {field: getattr(data, field) for field in _WINDOW_FIELDS & data.model_fields_set}
        if "deadline" in changes:
            changes["deadline"] = deadline

        metadata_extra = {}
        if booking.is_open_for_claims:
            if data.re_advertise:
                raise ValidationError("Claims window is already open; nothing to re-advertise", "ALREADY_OPEN")
            action = AuditAction.UPDATED_CLAIMS_SETTINGS
            new_config = current.with_changes(**changes)
            description = "Admin updated claims window settings"
        else:
            if booking.is_admin_handled:
                if not data.re_advertise:
                    raise ValidationError(
                        "Group stay is handled directly (assigned owner or recommended properties); "
                        "pass re_advertise=true to switch it to competitive claims",
                        "RE_ADVERTISE_REQUIRED"
                    )
                action = AuditAction.RE_ADVERTISED
                description = "Admin re-advertised group stay for competitive claims"
                metadata_extra = {
                    "previousAssignedOwnerId": booking.assigned_owner_id,
                    "previousRecommendedPropertyIds": list(booking.recommended_property_ids or []),
                }
                booking.assigned_owner_id = None
                booking.owner_assigned_at = None
                booking.recommended_property_ids = []
            elif data.re_advertise:
                raise ValidationError("Only directly handled group stays can be re-advertised", "NOT_ADMIN_HANDLED")
            else:
                action = AuditAction.OPENED_FOR_CLAIMS
                description = "Admin opened group stay for competitive claims"

            new_config = ClaimsWindowConfig(**changes)
            booking.is_open_for_claims = True
            booking.opened_for_claims_at = now

        version = (booking.claims_config_version or 0) + 1
        new_config = new_config.with_changes(version=version, updated_at=now)
        booking.claims_config = new_config.to_metadata()
        booking.claims_config_version = version

        effective_deadline = compute_deadline(booking.opened_for_claims_at, new_config)
        if effective_deadline is not None:
            description += f" (Deadline: {effective_deadline.date().isoformat()})"

        audit_trail.record(
            db,
            group_booking_id=booking.id,
            action=action,
            actor_id=admin_id,
            actor_role=ADMIN_ROLE,
            description=description,
            metadata={**new_config.to_metadata(), **metadata_extra},
        )
        db.commit()

        logger.info(f"{action.value}: group booking {booking.id} by admin {admin_id} (config v{version})")
        return WindowTransitionResponse(
            action=action,
            booking=map_booking(booking, effective_deadline),
            window=map_window_config(new_config),
        )

    @staticmethod
    def close_for_claims(
        db: Session,
        booking_id: int,
        data: ClaimsWindowClose,
        admin_id: int,
    ) -> WindowTransitionResponse:
        """Close a claims window; closing an already closed window changes nothing"""
        reason = (data.reason or "").strip() or None
        details = (data.reason_details or "").strip() or None
        if data.reason_code is None and reason is None:
            raise ValidationError(
                "reason_code is required (OWNER_CONFIRMED, DEADLINE_REACHED, NO_VALID_OFFERS, POLICY_DECISION)",
                "CLOSE_REASON_REQUIRED"
            )
        if data.reason_code == CloseReasonCode.POLICY_DECISION and details is None:
            raise ValidationError("reason_details is required for POLICY_DECISION", "CLOSE_REASON_DETAILS_REQUIRED")

        booking = GroupBookingRegistry.get_or_404(db, booking_id, fresh=True)
        config = ClaimsWindowManager.get_window_config(db, booking)

        if GroupBookingRegistry.close_window_if_open(db, booking) != 1:
            db.rollback()
            return WindowTransitionResponse(action=None, booking=map_booking(booking), window=map_window_config(config))

        description = "Admin closed group stay for competitive claims"
        if data.reason_code is not None:
            description += f" ({data.reason_code.value})"
        audit_trail.record(
            db,
            group_booking_id=booking.id,
            action=AuditAction.CLOSED_FOR_CLAIMS,
            actor_id=admin_id,
            actor_role=ADMIN_ROLE,
            description=description,
            metadata={
                "closeReasonCode": data.reason_code,
                "closeReasonDetails": details,
                "reason": reason,
            },
        )
        db.commit()

        logger.info(f"Claims window of group booking {booking.id} closed by admin {admin_id}")
        return WindowTransitionResponse(
            action=AuditAction.CLOSED_FOR_CLAIMS,
            booking=map_booking(booking),
            window=map_window_config(ClaimsWindowManager.get_window_config(db, booking)),
        )

    @staticmethod
    def expire_windows(db: Session, now: Optional[datetime] = None) -> SweepResponse:
        """Operator trigger for the expiry sweep"""
        return SweepResponse(closed=ClaimsWindowManager.auto_close_expired(db, now=now))

    # ---------- direct handling ----------

    @staticmethod
    def assign_owner(db: Session, booking_id: int, data: OwnerAssign, admin_id: int) -> GroupBookingResponse:
        booking = AdminClaimsService._get_for_direct_handling(db, booking_id)

        owner = PropertyDirectory.get_user(db, data.owner_id)
        if not owner:
            raise NotFoundError("Owner not found", "OWNER_NOT_FOUND")
        if owner.role != UserRole.OWNER:
            raise ValidationError("User is not a property owner", "NOT_AN_OWNER")

        previous_owner_id = booking.assigned_owner_id
        booking.assigned_owner_id = owner.id
        booking.owner_assigned_at = utc_now()

        audit_trail.record(
            db,
            group_booking_id=booking.id,
            action=AuditAction.OWNER_ASSIGNED,
            actor_id=admin_id,
            actor_role=ADMIN_ROLE,
            description=f"Admin assigned owner {owner.display_name}",
            metadata={"ownerId": owner.id, "previousOwnerId": previous_owner_id, "notes": data.notes},
        )
        db.commit()

        logger.info(f"Owner {owner.id} assigned to group booking {booking.id} by admin {admin_id}")
        return map_booking(booking)

    @staticmethod
    def recommend_properties(
        db: Session,
        booking_id: int,
        data: PropertiesRecommend,
        admin_id: int,
    ) -> GroupBookingResponse:
        booking = AdminClaimsService._get_for_direct_handling(db, booking_id)

        found = {prop.id for prop in PropertyDirectory.get_many(db, data.property_ids)}
        missing = [pid for pid in data.property_ids if pid not in found]
        if missing:
            raise ValidationError(f"Properties not found: {', '.join(str(pid) for pid in missing)}", "PROPERTY_NOT_FOUND")

        booking.recommended_property_ids = list(data.property_ids)
        audit_trail.record(
            db,
            group_booking_id=booking.id,
            action=AuditAction.PROPERTIES_RECOMMENDED,
            actor_id=admin_id,
            actor_role=ADMIN_ROLE,
            description=f"Admin recommended {len(data.property_ids)} propert{'y' if len(data.property_ids) == 1 else 'ies'}",
            metadata={"propertyIds": list(data.property_ids), "notes": data.notes},
        )
        db.commit()
        return map_booking(booking)

    @staticmethod
    def _get_for_direct_handling(db: Session, booking_id: int) -> GroupBooking:
        booking = GroupBookingRegistry.get_or_404(db, booking_id, fresh=True)
        ClaimsWindowManager.expire_booking(db, booking)
        if booking.is_terminal:
            raise ConflictError("Group stay is completed or canceled", "BOOKING_TERMINAL")
        if booking.is_open_for_claims:
            raise ConflictError("Group stay is open for claims; close the window first", "WINDOW_OPEN")
        return booking

    # ---------- review ----------

    @staticmethod
    def list_claims(db: Session, booking_id: int) -> ClaimsReviewResponse:
        booking = GroupBookingRegistry.get_or_404(db, booking_id)
        ClaimsWindowManager.expire_booking(db, booking)

        config = ClaimsWindowManager.get_window_config(db, booking)
        claims = GroupBookingRegistry.list_claims_for_booking(db, booking.id)
        shortlist = compute_three_way_shortlist(claims, booking.currency or settings.DEFAULT_CURRENCY)

        recommended = set(booking.recommended_property_ids or [])
        summary = {status.value.lower(): 0 for status in ClaimStatus}
        for claim in claims:
            summary[claim.status.value.lower()] += 1
        summary["total"] = len(claims)

        return ClaimsReviewResponse(
            booking=map_booking(booking, compute_deadline(booking.opened_for_claims_at, config)),
            window=map_window_config(config),
            claims=[map_reviewed_claim(claim, booking) for claim in claims],
            shortlist=shortlist,
            recommended_claim_ids=[claim.id for claim in claims if claim.property_id in recommended],
            summary=summary,
        )

    @staticmethod
    def start_review(db: Session, booking_id: int, admin_id: int) -> GroupBookingResponse:
        booking = GroupBookingRegistry.get_or_404(db, booking_id, fresh=True)
        if booking.is_terminal:
            raise ConflictError("Group stay is completed or canceled", "BOOKING_TERMINAL")

        moved = GroupBookingRegistry.set_claim_statuses(
            db, booking.id, [ClaimStatus.PENDING], ClaimStatus.REVIEWING
        )
        if booking.status == GroupBookingStatus.PENDING:
            booking.status = GroupBookingStatus.REVIEWING

        audit_trail.record(
            db,
            group_booking_id=booking.id,
            action=AuditAction.CLAIMS_REVIEW_STARTED,
            actor_id=admin_id,
            actor_role=ADMIN_ROLE,
            description=f"Admin started reviewing claims ({moved} moved to review)",
            metadata={"claimsMovedToReview": moved},
        )
        db.commit()
        return map_booking(booking)

    @staticmethod
    def recommend_claims(db: Session, booking_id: int, data: ClaimsRecommend, admin_id: int) -> GroupBookingResponse:
        """Shortlist 1-3 claims; their properties become the booking's recommendations"""
        booking = GroupBookingRegistry.get_or_404(db, booking_id, fresh=True)
        if booking.is_terminal:
            raise ConflictError("Group stay is completed or canceled", "BOOKING_TERMINAL")

        claims = {claim.id: claim for claim in GroupBookingRegistry.list_claims_by_ids(db, booking.id, data.claim_ids)}
        missing = [cid for cid in data.claim_ids if cid not in claims]
        if missing:
            raise ValidationError(
                f"Claims not found for this group stay: {', '.join(str(cid) for cid in missing)}",
                "CLAIM_NOT_FOUND"
            )
        not_live = [cid for cid in data.claim_ids if claims[cid].status not in LIVE_CLAIM_STATUSES]
        if not_live:
            raise ValidationError(
                f"Only pending or reviewing claims can be recommended: {', '.join(str(cid) for cid in not_live)}",
                "CLAIM_NOT_RECOMMENDABLE"
            )

        ordered = [claims[cid] for cid in data.claim_ids]
        booking.recommended_property_ids = list(dict.fromkeys(claim.property_id for claim in ordered))
        for claim in ordered:
            if claim.status == ClaimStatus.PENDING:
                claim.status = ClaimStatus.REVIEWING

        audit_trail.record(
            db,
            group_booking_id=booking.id,
            action=AuditAction.CLAIMS_RECOMMENDED,
            actor_id=admin_id,
            actor_role=ADMIN_ROLE,
            description=f"Admin recommended {len(ordered)} claim(s)",
            metadata={
                "claimIds": list(data.claim_ids),
                "propertyIds": booking.recommended_property_ids,
                "notes": data.notes,
            },
        )
        db.commit()
        return map_booking(booking)

    @staticmethod
    def update_claim_status(
        db: Session,
        claim_id: int,
        data: ClaimStatusUpdate,
        admin_id: int,
    ) -> GroupBookingClaim:
        if data.status == ClaimStatus.ACCEPTED:
            return AdminClaimsService.accept_claim(db, claim_id, admin_id)

        claim = GroupBookingRegistry.get_claim_or_404(db, claim_id)
        if claim.status == ClaimStatus.ACCEPTED:
            raise ConflictError("An accepted claim can no longer change status", "CLAIM_ALREADY_ACCEPTED")
        if claim.group_booking.is_terminal:
            raise ConflictError("Group stay is completed or canceled", "BOOKING_TERMINAL")

        previous = claim.status
        claim.status = data.status
        claim.reviewed_at = utc_now()
        claim.reviewed_by = admin_id

        try:
            db.flush()
        except IntegrityError:
            # Reviving a withdrawn claim while the owner has a newer live one
            db.rollback()
            raise ConflictError("Owner already has an active claim for this group stay", "DUPLICATE_CLAIM")

        audit_trail.record(
            db,
            group_booking_id=claim.group_booking_id,
            action=AuditAction.CLAIM_STATUS_UPDATED,
            actor_id=admin_id,
            actor_role=ADMIN_ROLE,
            description=f"Claim {claim.id} status changed from {previous.value} to {data.status.value}",
            metadata={"claimId": claim.id, "from": previous, "to": data.status, "notes": data.notes},
        )
        db.commit()
        return claim

    @staticmethod
    def accept_claim(db: Session, claim_id: int, admin_id: int, now: Optional[datetime] = None) -> GroupBookingClaim:
        """
        Accept a claim and confirm its property for the booking.

        Competing live claims are rejected and the claims window is closed
        (OWNER_CONFIRMED) in the same transaction.
        """
        now = as_utc(now) or utc_now()
        claim = GroupBookingRegistry.get_claim_or_404(db, claim_id)
        booking = GroupBookingRegistry.get_or_404(db, claim.group_booking_id, fresh=True)

        if booking.is_terminal:
            raise ConflictError("Group stay is completed or canceled", "BOOKING_TERMINAL")
        if booking.confirmed_property_id is not None:
            raise ConflictError("Group stay already has a confirmed property", "BOOKING_CONFIRMED")
        if claim.status not in LIVE_CLAIM_STATUSES:
            raise ConflictError("Only pending or reviewing claims can be accepted", "CLAIM_NOT_ACCEPTABLE")

        if GroupBookingRegistry.close_window_if_open(db, booking) == 1:
            audit_trail.record(
                db,
                group_booking_id=booking.id,
                action=AuditAction.CLOSED_FOR_CLAIMS,
                actor_id=admin_id,
                actor_role=ADMIN_ROLE,
                description="Claims window closed (claim accepted)",
                metadata={"closeReasonCode": CloseReasonCode.OWNER_CONFIRMED, "closeReasonDetails": None, "claimId": claim.id},
            )

        claim.status = ClaimStatus.ACCEPTED
        claim.reviewed_at = now
        claim.reviewed_by = admin_id
        rejected = GroupBookingRegistry.set_claim_statuses(
            db, booking.id, LIVE_CLAIM_STATUSES, ClaimStatus.REJECTED, exclude_claim_id=claim.id
        )

        booking.confirmed_property_id = claim.property_id
        booking.assigned_owner_id = claim.owner_id
        booking.owner_assigned_at = now
        booking.status = GroupBookingStatus.CONFIRMED

        audit_trail.record(
            db,
            group_booking_id=booking.id,
            action=AuditAction.CLAIM_ACCEPTED,
            actor_id=admin_id,
            actor_role=ADMIN_ROLE,
            description=f"Admin accepted claim {claim.id}",
            metadata={
                "claimId": claim.id,
                "propertyId": claim.property_id,
                "ownerId": claim.owner_id,
                "totalAmount": claim.total_amount,
                "currency": claim.currency,
                "rejectedClaims": rejected,
            },
        )
        db.commit()

        logger.info(f"Claim {claim.id} accepted for group booking {booking.id}; {rejected} competing claim(s) rejected")
        return claim

    # ---------- listings ----------

    @staticmethod
    def list_assignments(
        db: Session,
        status: Optional[GroupBookingStatus] = None,
        assigned_owner_id: Optional[int] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> GroupBookingListResponse:
        ClaimsWindowManager.auto_close_expired(db)
        page, page_size = clamp_pagination(page, page_size)

        bookings, total = GroupBookingRegistry.list_bookings(
            db, status=status, assigned_owner_id=assigned_owner_id,
            offset=(page - 1) * page_size, limit=page_size,
        )
        return GroupBookingListResponse(
            items=[map_booking(booking, ClaimsWindowManager.get_deadline(db, booking)) for booking in bookings],
            total=total,
            page=page,
            page_size=page_size,
        )

    @staticmethod
    def list_audits(db: Session, booking_id: int) -> AuditListResponse:
        booking = GroupBookingRegistry.get_or_404(db, booking_id)
        ClaimsWindowManager.expire_booking(db, booking)
        audits = audit_trail.list_for_booking(db, booking.id)
        return AuditListResponse(items=[AuditResponse.model_validate(a) for a in audits], total=len(audits))

    @staticmethod
    def find_eligible_properties(db: Session, booking_id: int) -> EligiblePropertyListResponse:
        """Approved properties that pass the property-level eligibility rules"""
        booking = GroupBookingRegistry.get_or_404(db, booking_id)
        config = ClaimsWindowManager.get_window_config(db, booking)

        eligible: List[PropertySummary] = []
        for prop in PropertyDirectory.list_approved(db, region=booking.to_region):
            if EligibilityEvaluator.evaluate(booking, prop, config, check_offer=False).ok:
                eligible.append(PropertySummary.model_validate(prop))
        return EligiblePropertyListResponse(items=eligible, total=len(eligible))

admin_claims_service = AdminClaimsService()
