# ================================
# OWNER CLAIMS SERVICE TESTS (test_owner_claims.py)
# ================================

from datetime import timedelta

import pytest

from groupstays.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from groupstays.models.audit import GroupBookingAudit
from groupstays.models.enums import AuditAction, ClaimStatus, GroupBookingStatus, PropertyStatus
from groupstays.schemas.group_stay import OwnerMessage
from groupstays.services.admin_claims_service import AdminClaimsService
from groupstays.services.owner_claims_service import OwnerClaimsService
from groupstays.utils import utc_now


def audit_actions(db, booking_id):
    rows = db.query(GroupBookingAudit).filter(
        GroupBookingAudit.group_booking_id == booking_id
    ).order_by(GroupBookingAudit.id).all()
    return [row.action for row in rows]


class TestAvailableGroupStays:

    def test_lists_open_bookings_with_claim_counts(self, db_session, owner, make_user, make_property,
                                                   make_booking, open_window, submit):
        booking = make_booking()
        open_window(booking, min_discount_percent=5, notes="Near the park gate")
        make_booking()  # never opened
        rival = make_user()
        submit(rival, booking, make_property(rival), discount=10)

        page = OwnerClaimsService.list_available(db_session, owner.id)
        assert page.total == 1
        item = page.items[0]
        assert item.booking.id == booking.id
        assert item.notes == "Near the park gate"
        assert item.min_discount_percent == 5
        assert item.deadline is not None
        assert (item.total_claims, item.own_claims, item.other_claims) == (1, 0, 1)
        assert item.has_owner_claim is False

        submit(owner, booking, make_property(owner), discount=10)
        item = OwnerClaimsService.list_available(db_session, owner.id).items[0]
        assert item.has_owner_claim is True
        assert item.own_claims == 1

    def test_expired_windows_are_closed_before_listing(self, db_session, owner, make_booking, expire_window):
        booking = expire_window(make_booking())
        page = OwnerClaimsService.list_available(db_session, owner.id)
        assert page.total == 0
        assert audit_actions(db_session, booking.id) == [AuditAction.CLOSED_FOR_CLAIMS]

    def test_terminal_bookings_are_hidden(self, db_session, owner, make_booking, expire_window):
        expire_window(make_booking(status=GroupBookingStatus.CANCELED), days_ago=1)
        assert OwnerClaimsService.list_available(db_session, owner.id).total == 0

    def test_filters(self, db_session, owner, make_booking, open_window):
        open_window(make_booking(to_region="Arusha", accommodation_type="hotel"))
        open_window(make_booking(to_region="Dodoma", accommodation_type="lodge"))

        assert OwnerClaimsService.list_available(db_session, owner.id, region="Dodoma").total == 1
        assert OwnerClaimsService.list_available(db_session, owner.id, accommodation_type="hotel").total == 1
        assert OwnerClaimsService.list_available(db_session, owner.id, page=1, page_size=1).page_size == 1


class TestMyClaims:

    def test_lists_only_own_claims(self, db_session, owner, make_user, make_property, make_booking,
                                   open_window, submit):
        booking = make_booking()
        open_window(booking)
        mine = submit(owner, booking, make_property(owner))
        rival = make_user()
        submit(rival, booking, make_property(rival))

        result = OwnerClaimsService.list_my_claims(db_session, owner.id)
        assert [c.id for c in result.items] == [mine.id]
        assert OwnerClaimsService.list_my_claims(db_session, owner.id, status=ClaimStatus.WITHDRAWN).total == 0

    def test_expires_windows_of_claimed_bookings(self, db_session, owner, make_property, make_booking,
                                                 open_window, submit):
        booking = make_booking()
        open_window(booking)
        submit(owner, booking, make_property(owner))
        booking.claims_config = {"deadline": (utc_now() - timedelta(hours=1)).isoformat()}
        db_session.commit()

        OwnerClaimsService.list_my_claims(db_session, owner.id)
        assert audit_actions(db_session, booking.id)[-1] == AuditAction.CLOSED_FOR_CLAIMS


class TestWithdraw:

    @pytest.fixture
    def claim(self, owner, make_property, make_booking, open_window, submit):
        booking = make_booking()
        open_window(booking)
        return submit(owner, booking, make_property(owner))

    def test_withdraw(self, db_session, owner, claim):
        withdrawn = OwnerClaimsService.withdraw_claim(db_session, owner.id, claim.id)
        assert withdrawn.status == ClaimStatus.WITHDRAWN
        assert audit_actions(db_session, claim.group_booking_id)[-1] == AuditAction.CLAIM_WITHDRAWN

    def test_withdraw_twice(self, db_session, owner, claim):
        OwnerClaimsService.withdraw_claim(db_session, owner.id, claim.id)
        with pytest.raises(ConflictError) as exc:
            OwnerClaimsService.withdraw_claim(db_session, owner.id, claim.id)
        assert exc.value.error_code == "CLAIM_ALREADY_WITHDRAWN"

    def test_someone_elses_claim_is_not_found(self, db_session, make_user, claim):
        with pytest.raises(NotFoundError):
            OwnerClaimsService.withdraw_claim(db_session, make_user().id, claim.id)

    def test_decided_claim(self, db_session, admin, owner, claim):
        AdminClaimsService.accept_claim(db_session, claim.id, admin.id)
        with pytest.raises(ConflictError) as exc:
            OwnerClaimsService.withdraw_claim(db_session, owner.id, claim.id)
        assert exc.value.error_code == "CLAIM_ALREADY_DECIDED"


class TestAssignment:

    @pytest.fixture
    def confirmed(self, db_session, admin, owner, make_property, make_booking, open_window, submit):
        booking = make_booking(user_id=None)
        open_window(booking)
        claim = submit(owner, booking, make_property(owner))
        AdminClaimsService.accept_claim(db_session, claim.id, admin.id)
        return booking

    def test_accept_assignment_once(self, db_session, owner, confirmed):
        result = OwnerClaimsService.accept_assignment(db_session, owner.id, confirmed.id)
        assert result.status == GroupBookingStatus.CONFIRMED
        assert AuditAction.OWNER_ACCEPTED_ASSIGNMENT in audit_actions(db_session, confirmed.id)

        with pytest.raises(ValidationError) as exc:
            OwnerClaimsService.accept_assignment(db_session, owner.id, confirmed.id)
        assert exc.value.error_code == "ALREADY_ACCEPTED"

    def test_other_owner_cannot_accept(self, db_session, make_user, confirmed):
        with pytest.raises(NotFoundError):
            OwnerClaimsService.accept_assignment(db_session, make_user().id, confirmed.id)

    def test_assigned_owner_must_own_the_confirmed_property(self, db_session, owner, make_user,
                                                            make_property, make_booking):
        other = make_user()
        booking = make_booking(assigned_owner_id=owner.id, confirmed_property_id=make_property(other).id)
        with pytest.raises(AuthorizationError):
            OwnerClaimsService.accept_assignment(db_session, owner.id, booking.id)


class TestOwnerMessage:

    def test_message_is_recorded(self, db_session, make_user, owner, make_property, make_booking):
        customer = make_user(name="Customer")
        make_property(owner)
        booking = make_booking(user_id=customer.id, assigned_owner_id=owner.id)

        OwnerClaimsService.send_message(
            db_session, owner.id, booking.id,
            OwnerMessage(message="  Welcome! Check-in from 2pm.  ", message_type="Check-in Instructions")
        )

        row = db_session.query(GroupBookingAudit).filter(
            GroupBookingAudit.action == AuditAction.OWNER_MESSAGE_SENT
        ).one()
        assert row.metadata_["message"] == "Welcome! Check-in from 2pm."
        assert row.metadata_["messageType"] == "Check-in Instructions"
        assert row.metadata_["customerId"] == customer.id

    def test_owner_without_approved_property(self, db_session, owner, make_property, make_booking):
        make_property(owner, status=PropertyStatus.SUSPENDED)
        booking = make_booking(assigned_owner_id=owner.id)
        with pytest.raises(AuthorizationError) as exc:
            OwnerClaimsService.send_message(db_session, owner.id, booking.id, OwnerMessage(message="Hi"))
        assert exc.value.error_code == "NO_ACTIVE_PROPERTIES"

    def test_unassigned_booking(self, db_session, owner, make_property, make_booking):
        make_property(owner)
        booking = make_booking()
        with pytest.raises(NotFoundError):
            OwnerClaimsService.send_message(db_session, owner.id, booking.id, OwnerMessage(message="Hi"))

    def test_unknown_message_type_is_rejected(self):
        with pytest.raises(ValueError):
            OwnerMessage(message="Hi", message_type="Spam")
