# ================================
# CLAIMS WINDOW SERVICE (services/claims_window_service.py)
# ================================

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Iterable, Union
from sqlalchemy.orm import Session
import logging

from groupstays.config import settings
from groupstays.core.database import get_db_session
from groupstays.models.business import GroupBooking
from groupstays.models.enums import AuditAction, CloseReasonCode
from groupstays.services.group_booking_registry import GroupBookingRegistry
from groupstays.utils import utc_now, as_utc, parse_iso_datetime, to_float
from groupstays.utils.audit import audit_trail

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ClaimsWindowConfig:
    """Settings of a claims window as stored on the booking (camelCase on the wire)"""
    deadline: Optional[datetime] = None
    notes: Optional[str] = None
    min_discount_percent: Optional[float] = None
    min_hotel_star: Optional[int] = None
    version: int = 0
    updated_at: Optional[datetime] = None

    @classmethod
    def from_metadata(cls, metadata: Optional[Dict[str, Any]], version: Optional[int] = None) -> "ClaimsWindowConfig":
        if not metadata:
            return cls(version=version or 0)

        min_star = metadata.get("minHotelStar")
        try:
            min_star = int(min_star) if min_star is not None else None
        except (TypeError, ValueError):
            min_star = None

        notes = metadata.get("notes")
        return cls(
            deadline=parse_iso_datetime(metadata.get("deadline")),
            notes=str(notes) if notes else None,
            min_discount_percent=to_float(metadata.get("minDiscountPercent")),
            min_hotel_star=min_star,
            version=version if version is not None else int(metadata.get("configVersion") or 0),
            updated_at=parse_iso_datetime(metadata.get("updatedAt")),
        )

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "notes": self.notes,
            "minDiscountPercent": self.min_discount_percent,
            "minHotelStar": self.min_hotel_star,
            "configVersion": self.version,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def with_changes(self, **changes) -> "ClaimsWindowConfig":
        return replace(self, **changes)

def compute_deadline(
    opened_at: Optional[datetime],
    config: Union[ClaimsWindowConfig, Dict[str, Any], None],
    default_days: Optional[int] = None,
) -> Optional[datetime]:
    """
    Authoritative deadline of a claims window.

    Args:
        opened_at: When the window was opened (None when closed)
        config: Window configuration or raw audit metadata
        default_days: Window length when no explicit deadline is configured

    Returns:
        The explicit deadline, else opened_at + default window, else None
    """
    if isinstance(config, ClaimsWindowConfig):
        explicit = config.deadline
    elif config:
        explicit = parse_iso_datetime(config.get("deadline"))
    else:
        explicit = None

    if explicit is not None:
        return explicit

    opened_at = as_utc(opened_at)
    if opened_at is None:
        return None

    days = settings.CLAIMS_DEFAULT_WINDOW_DAYS if default_days is None else default_days
    return opened_at + timedelta(days=days)

class ClaimsWindowManager:
    """Deadline computation and lazy expiry of claims windows"""

    @staticmethod
    def get_window_config(db: Session, booking: GroupBooking) -> ClaimsWindowConfig:
        """Config stored on the booking; legacy rows fall back to the newest config-bearing audit row"""
        if booking.claims_config:
            return ClaimsWindowConfig.from_metadata(booking.claims_config, version=booking.claims_config_version or 0)

        legacy = audit_trail.latest_config(db, booking.id)
        if legacy:
            return ClaimsWindowConfig.from_metadata(legacy, version=booking.claims_config_version or 0)
        return ClaimsWindowConfig(version=booking.claims_config_version or 0)

    @staticmethod
    def get_deadline(db: Session, booking: GroupBooking) -> Optional[datetime]:
        config = ClaimsWindowManager.get_window_config(db, booking)
        return compute_deadline(booking.opened_for_claims_at, config)

    @staticmethod
    def is_expired(
        booking: GroupBooking,
        config: ClaimsWindowConfig,
        now: Optional[datetime] = None,
    ) -> bool:
        """True once now is strictly past the deadline; a window without one never expires"""
        deadline = compute_deadline(booking.opened_for_claims_at, config)
        if deadline is None:
            return False
        return (as_utc(now) or utc_now()) > deadline

    @staticmethod
    def auto_close_expired(
        db: Session,
        candidates: Optional[Iterable[GroupBooking]] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Close every open window whose deadline has passed.

        Each close is a conditional update, so a booking closed concurrently
        by another caller affects zero rows and gets no second audit row.

        Args:
            db: Database session (committed when anything was closed)
            candidates: Bookings to check; all open bookings when None
            now: Reference time (defaults to current UTC time)

        Returns:
            Number of windows actually closed by this call
        """
        now = as_utc(now) or utc_now()
        bookings = list(candidates) if candidates is not None else GroupBookingRegistry.list_open(db)

        closed = 0
        for booking in bookings:
            if not booking.is_open_for_claims:
                continue

            config = ClaimsWindowManager.get_window_config(db, booking)
            if not ClaimsWindowManager.is_expired(booking, config, now=now):
                continue
            deadline = compute_deadline(booking.opened_for_claims_at, config)

            if GroupBookingRegistry.close_window_if_open(db, booking) != 1:
                continue

            closed += 1
            audit_trail.record(
                db,
                group_booking_id=booking.id,
                action=AuditAction.CLOSED_FOR_CLAIMS,
                description="Claims window closed automatically (deadline reached)",
                metadata={
                    "closeReasonCode": CloseReasonCode.DEADLINE_REACHED,
                    "closeReasonDetails": None,
                    "deadline": deadline,
                    "automatic": True,
                },
                actor_role="SYSTEM",
            )
            logger.info(f"Claims window of group booking {booking.id} expired at {deadline.isoformat()}, closed")

        if closed:
            db.commit()
        return closed

    @staticmethod
    def expire_booking(db: Session, booking: GroupBooking, now: Optional[datetime] = None) -> bool:
        """Lazy expiry for a single booking; True when this call closed it"""
        return ClaimsWindowManager.auto_close_expired(db, [booking], now=now) == 1

    @staticmethod
    def sweep(now: Optional[datetime] = None) -> int:
        """Periodic sweep over all open windows in a session of its own"""
        with get_db_session() as db:
            closed = ClaimsWindowManager.auto_close_expired(db, now=now)
        if closed:
            logger.info(f"Claims expiry sweep closed {closed} window(s)")
        return closed

claims_window_manager = ClaimsWindowManager()
