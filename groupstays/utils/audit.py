# ================================
# AUDIT TRAIL UTILITY (utils/audit.py)
# ================================

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Dict, Any, List, Callable
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
import logging

import httpx

from groupstays.models.audit import GroupBookingAudit
from groupstays.models.enums import AuditAction, CONFIG_BEARING_ACTIONS

logger = logging.getLogger(__name__)

_PENDING_EVENTS_KEY = "group_booking_audit_events"

AuditSubscriber = Callable[[Dict[str, Any]], None]

class AuditEventPublisher:
    """
    Fan-out of committed audit events to downstream consumers (alerts, webhooks).

    Events are only delivered after the surrounding transaction commits.
    Delivery failures are logged and never reach the caller.
    """

    def __init__(self):
        self._subscribers: List[AuditSubscriber] = []

    def subscribe(self, subscriber: AuditSubscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: AuditSubscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def publish(self, events: List[Dict[str, Any]]) -> None:
        for audit_event in events:
            for subscriber in list(self._subscribers):
                try:
                    subscriber(audit_event)
                except Exception as e:
                    logger.error(f"Audit subscriber failed for {audit_event.get('action')}: {e}", exc_info=True)

class WebhookAuditSubscriber:
    """Posts audit events to an HTTP endpoint off the request thread"""

    def __init__(self, url: str, timeout: float = 2.0, max_workers: int = 2):
        self.url = url
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="audit-webhook")

    def __call__(self, audit_event: Dict[str, Any]) -> None:
        self._executor.submit(self._deliver, audit_event)

    def _deliver(self, audit_event: Dict[str, Any]) -> None:
        try:
            response = httpx.post(self.url, json=audit_event, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Audit webhook delivery failed ({audit_event.get('action')}): {e}")

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)

class GroupBookingAuditTrail:
    """
    Append-only audit trail for group bookings.

    Rows are written inside a SAVEPOINT so a failed audit insert never rolls
    back the booking or claim change it describes: history is diagnostic, the
    booking row is authoritative. Such failures are logged and swallowed.
    """

    def __init__(self, publisher: Optional[AuditEventPublisher] = None):
        self.publisher = publisher or AuditEventPublisher()

    def record(
        self,
        db: Session,
        group_booking_id: int,
        action: AuditAction,
        actor_id: Optional[int] = None,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        actor_role: Optional[str] = None,
    ) -> Optional[GroupBookingAudit]:
        """
        Append one audit row.

        Args:
            db: Session carrying the primary mutation
            group_booking_id: Booking the action applies to
            action: Audit action
            actor_id: Acting user, None for system actions (lazy expiry)
            description: Human readable summary
            metadata: Structured details (window configuration for config-bearing actions)
            actor_role: Role of the actor at the time of the action

        Returns:
            The persisted row, or None when the write failed
        """
        # Flush the primary mutation outside the SAVEPOINT: its errors must propagate
        db.flush()

        safe_metadata = self._to_json_safe(metadata or {})
        entry = GroupBookingAudit(
            group_booking_id=group_booking_id,
            actor_id=actor_id,
            action=action,
            description=description,
            metadata_=safe_metadata or None,
            actor_role=actor_role,
        )
        try:
            with db.begin_nested():
                db.add(entry)
                db.flush()
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to write audit row {action.value} for group booking {group_booking_id}: {e}",
                exc_info=True,
            )
            if entry in db:
                db.expunge(entry)
            return None

        db.info.setdefault(_PENDING_EVENTS_KEY, []).append({
            "group_booking_id": group_booking_id,
            "action": action.value,
            "actor_id": actor_id,
            "description": description,
            "metadata": safe_metadata,
        })
        logger.info(f"Audit {action.value} recorded for group booking {group_booking_id}")
        return entry

    def latest_config(self, db: Session, group_booking_id: int) -> Optional[Dict[str, Any]]:
        """Metadata of the most recent configuration-bearing row, if any"""
        latest = db.query(GroupBookingAudit).filter(
            GroupBookingAudit.group_booking_id == group_booking_id,
            GroupBookingAudit.action.in_(CONFIG_BEARING_ACTIONS)
        ).order_by(GroupBookingAudit.id.desc()).first()

        if not latest:
            return None
        return dict(latest.metadata_ or {})

    def list_for_booking(self, db: Session, group_booking_id: int) -> List[GroupBookingAudit]:
        """Newest first"""
        return db.query(GroupBookingAudit).filter(
            GroupBookingAudit.group_booking_id == group_booking_id
        ).order_by(GroupBookingAudit.id.desc()).all()

    def has_action(self, db: Session, group_booking_id: int, action: AuditAction) -> bool:
        return db.query(GroupBookingAudit.id).filter(
            GroupBookingAudit.group_booking_id == group_booking_id,
            GroupBookingAudit.action == action
        ).first() is not None

    def _to_json_safe(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): self._to_json_safe(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, set)):
            return [self._to_json_safe(v) for v in value]
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, Decimal):
            return float(value)
        return value

# Default audit trail instance for application-wide use
audit_publisher = AuditEventPublisher()
audit_trail = GroupBookingAuditTrail(audit_publisher)

@event.listens_for(Session, "after_commit")
def _publish_committed_audit_events(session: Session) -> None:
    events = session.info.pop(_PENDING_EVENTS_KEY, None)
    if events:
        audit_publisher.publish(events)

@event.listens_for(Session, "after_transaction_end")
def _discard_uncommitted_audit_events(session: Session, transaction) -> None:
    # A failed audit SAVEPOINT must not drop the events of rows written before it
    if transaction.parent is None:
        session.info.pop(_PENDING_EVENTS_KEY, None)
