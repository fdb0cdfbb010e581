# ================================
# GROUP BOOKING REGISTRY (services/group_booking_registry.py)
# ================================

from typing import Optional, List, Iterable, Tuple
from sqlalchemy.orm import Session, selectinload

from groupstays.models.business import GroupBooking, GroupBookingClaim
from groupstays.models.enums import (
    GroupBookingStatus, ClaimStatus, TERMINAL_BOOKING_STATUSES
)
from groupstays.core.exceptions import NotFoundError

class GroupBookingRegistry:
    """Typed read/write access to the group booking aggregate and its claims"""

    # ---------- bookings ----------

    @staticmethod
    def get(db: Session, booking_id: int, fresh: bool = False) -> Optional[GroupBooking]:
        """Load a booking; fresh=True bypasses the identity map so live values are read"""
        query = db.query(GroupBooking).filter(GroupBooking.id == booking_id)
        if fresh:
            query = query.populate_existing()
        return query.first()

    @staticmethod
    def get_or_404(db: Session, booking_id: int, fresh: bool = False) -> GroupBooking:
        booking = GroupBookingRegistry.get(db, booking_id, fresh=fresh)
        if not booking:
            raise NotFoundError("Group booking not found")
        return booking

    @staticmethod
    def list_open(db: Session, booking_ids: Optional[Iterable[int]] = None) -> List[GroupBooking]:
        query = db.query(GroupBooking).filter(GroupBooking.is_open_for_claims.is_(True))
        if booking_ids is not None:
            ids = list(booking_ids)
            if not ids:
                return []
            query = query.filter(GroupBooking.id.in_(ids))
        return query.order_by(GroupBooking.id).all()

    @staticmethod
    def close_window_if_open(db: Session, booking: GroupBooking) -> int:
        """
        Conditional close: UPDATE ... WHERE id = :id AND is_open_for_claims = true.

        Returns the number of affected rows (0 when someone else already closed it).
        """
        affected = db.query(GroupBooking).filter(
            GroupBooking.id == booking.id,
            GroupBooking.is_open_for_claims.is_(True)
        ).update(
            {
                GroupBooking.is_open_for_claims: False,
                GroupBooking.opened_for_claims_at: None,
                GroupBooking.claims_config_version: GroupBooking.claims_config_version + 1,
            },
            synchronize_session=False,
        )
        db.expire(booking, ["is_open_for_claims", "opened_for_claims_at", "claims_config_version"])
        return affected

    @staticmethod
    def list_available(
        db: Session,
        region: Optional[str] = None,
        accommodation_type: Optional[str] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[GroupBooking], int]:
        """Open bookings that are not in a terminal state, newest window first"""
        query = db.query(GroupBooking).filter(
            GroupBooking.is_open_for_claims.is_(True),
            GroupBooking.status.notin_(TERMINAL_BOOKING_STATUSES)
        )
        if region:
            query = query.filter(GroupBooking.to_region == region.strip())
        if accommodation_type:
            query = query.filter(GroupBooking.accommodation_type == accommodation_type.strip())

        total = query.count()
        # Claim counts must reflect submissions made since the bookings were first loaded
        items = query.populate_existing().options(selectinload(GroupBooking.claims)).order_by(
            GroupBooking.opened_for_claims_at.desc(),
            GroupBooking.id.desc()
        ).offset(offset).limit(limit).all()
        return items, total

    @staticmethod
    def list_bookings(
        db: Session,
        status: Optional[GroupBookingStatus] = None,
        assigned_owner_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[GroupBooking], int]:
        query = db.query(GroupBooking)
        if status is not None:
            query = query.filter(GroupBooking.status == status)
        if assigned_owner_id is not None:
            query = query.filter(GroupBooking.assigned_owner_id == assigned_owner_id)

        total = query.count()
        items = query.options(
            selectinload(GroupBooking.assigned_owner),
            selectinload(GroupBooking.confirmed_property)
        ).order_by(GroupBooking.created_at.desc(), GroupBooking.id.desc()).offset(offset).limit(limit).all()
        return items, total

    # ---------- claims ----------

    @staticmethod
    def get_claim(db: Session, claim_id: int) -> Optional[GroupBookingClaim]:
        return db.query(GroupBookingClaim).filter(GroupBookingClaim.id == claim_id).first()

    @staticmethod
    def get_claim_or_404(db: Session, claim_id: int) -> GroupBookingClaim:
        claim = GroupBookingRegistry.get_claim(db, claim_id)
        if not claim:
            raise NotFoundError("Claim not found")
        return claim

    @staticmethod
    def find_live_claim(db: Session, booking_id: int, owner_id: int) -> Optional[GroupBookingClaim]:
        """The owner's non-withdrawn claim for the booking, if any"""
        return db.query(GroupBookingClaim).filter(
            GroupBookingClaim.group_booking_id == booking_id,
            GroupBookingClaim.owner_id == owner_id,
            GroupBookingClaim.status != ClaimStatus.WITHDRAWN
        ).first()

    @staticmethod
    def add_claim(db: Session, claim: GroupBookingClaim) -> GroupBookingClaim:
        db.add(claim)
        db.flush()
        return claim

    @staticmethod
    def list_claims_for_booking(db: Session, booking_id: int) -> List[GroupBookingClaim]:
        return db.query(GroupBookingClaim).filter(
            GroupBookingClaim.group_booking_id == booking_id
        ).options(
            selectinload(GroupBookingClaim.owner),
            selectinload(GroupBookingClaim.property)
        ).order_by(
            GroupBookingClaim.status.asc(),
            GroupBookingClaim.total_amount.asc(),
            GroupBookingClaim.created_at.asc(),
            GroupBookingClaim.id.asc()
        ).all()

    @staticmethod
    def list_claims_by_ids(db: Session, booking_id: int, claim_ids: Iterable[int]) -> List[GroupBookingClaim]:
        return db.query(GroupBookingClaim).filter(
            GroupBookingClaim.group_booking_id == booking_id,
            GroupBookingClaim.id.in_(list(claim_ids))
        ).options(selectinload(GroupBookingClaim.property)).all()

    @staticmethod
    def list_owner_claims(
        db: Session,
        owner_id: int,
        status: Optional[ClaimStatus] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[GroupBookingClaim], int]:
        query = db.query(GroupBookingClaim).filter(GroupBookingClaim.owner_id == owner_id)
        if status is not None:
            query = query.filter(GroupBookingClaim.status == status)

        total = query.count()
        items = query.options(
            selectinload(GroupBookingClaim.group_booking),
            selectinload(GroupBookingClaim.property)
        ).order_by(GroupBookingClaim.created_at.desc(), GroupBookingClaim.id.desc()).offset(offset).limit(limit).all()
        return items, total

    @staticmethod
    def owner_claim_booking_ids(db: Session, owner_id: int) -> List[int]:
        rows = db.query(GroupBookingClaim.group_booking_id).filter(
            GroupBookingClaim.owner_id == owner_id
        ).distinct().all()
        return [row[0] for row in rows]

    @staticmethod
    def set_claim_statuses(
        db: Session,
        booking_id: int,
        from_statuses: Iterable[ClaimStatus],
        to_status: ClaimStatus,
        exclude_claim_id: Optional[int] = None,
    ) -> int:
        query = db.query(GroupBookingClaim).filter(
            GroupBookingClaim.group_booking_id == booking_id,
            GroupBookingClaim.status.in_(list(from_statuses))
        )
        if exclude_claim_id is not None:
            query = query.filter(GroupBookingClaim.id != exclude_claim_id)
        return query.update({GroupBookingClaim.status: to_status}, synchronize_session="fetch")

group_booking_registry = GroupBookingRegistry()
