# ================================
# ELIGIBILITY RULE TESTS (test_eligibility.py)
# ================================

from datetime import timedelta

import pytest

from groupstays.models.business import GroupBooking, Property
from groupstays.services.claims_window_service import ClaimsWindowConfig
from groupstays.services.eligibility_service import EligibilityEvaluator
from groupstays.utils import utc_now


def booking(**overrides):
    values = {"accommodation_type": "hostel", "to_region": "Arusha", "to_district": None}
    values.update(overrides)
    return GroupBooking(**values)


def prop(**overrides):
    values = {
        "type": "Guest House",
        "region_name": "Arusha",
        "district": None,
        "hotel_star": "moderate",
        "services": ["group stay"],
    }
    values.update(overrides)
    return Property(**values)


def evaluate(b, p, config=None, **kwargs):
    return EligibilityEvaluator.evaluate(b, p, config or ClaimsWindowConfig(), **kwargs)


class TestScenarios:

    def test_hostel_request_accepts_guest_house_in_same_region(self):
        result = evaluate(booking(), prop())
        assert result.ok
        assert result.reason is None

    def test_region_mismatch_is_rejected(self):
        result = evaluate(booking(), prop(region_name="Dodoma"))
        assert not result.ok
        assert result.rule == "region"
        assert "region" in result.reason
        assert "Dodoma" in result.reason


class TestCapabilityRule:

    def test_missing_tag_rejects_even_when_everything_else_matches(self):
        result = evaluate(booking(), prop(services=["Parking", "Wifi"]))
        assert not result.ok
        assert result.rule == "capability"

    def test_capability_is_checked_before_region(self):
        result = evaluate(booking(), prop(services=[], region_name="Dodoma"))
        assert result.rule == "capability"


class TestTypeRule:

    @pytest.mark.parametrize("property_type", ["Hostel", "Hotel", "GUEST_HOUSE"])
    def test_hostel_equivalences(self, property_type):
        assert evaluate(booking(), prop(type=property_type)).ok

    def test_hostel_does_not_accept_villa(self):
        result = evaluate(booking(), prop(type="Villa"))
        assert result.rule == "accommodation_type"

    def test_guesthouse_only_accepts_guest_house(self):
        assert evaluate(booking(accommodation_type="guesthouse"), prop(type="Guest House")).ok
        assert not evaluate(booking(accommodation_type="guesthouse"), prop(type="Hotel")).ok

    def test_exact_match_after_normalisation(self):
        assert evaluate(booking(accommodation_type="Serviced Apartment"), prop(type="serviced-apartment")).ok

    def test_no_requested_type_accepts_any(self):
        assert evaluate(booking(accommodation_type=None), prop(type="Villa")).ok


class TestGeographyRule:

    def test_missing_property_region_is_a_hard_failure(self):
        result = evaluate(booking(), prop(region_name=None))
        assert result.rule == "region"
        assert result.reason == "Property region is missing"

    def test_region_comparison_is_normalised(self):
        assert evaluate(booking(to_region="  ARUSHA "), prop(region_name="arusha")).ok

    def test_district_word_is_ignored(self):
        assert evaluate(booking(to_district="Meru District"), prop(district="meru")).ok

    def test_district_mismatch(self):
        result = evaluate(booking(to_district="Meru"), prop(district="Karatu"))
        assert result.rule == "district"

    def test_missing_district_when_required(self):
        result = evaluate(booking(to_district="Meru"), prop(district=None))
        assert result.rule == "district"


class TestOfferThresholds:

    def test_discount_below_minimum(self):
        result = evaluate(booking(), prop(), ClaimsWindowConfig(min_discount_percent=15), discount_percent=10)
        assert result.rule == "min_discount"
        assert "15" in result.reason

    def test_discount_at_minimum_passes(self):
        assert evaluate(booking(), prop(), ClaimsWindowConfig(min_discount_percent=15), discount_percent=15).ok

    def test_missing_discount_when_minimum_set(self):
        result = evaluate(booking(), prop(), ClaimsWindowConfig(min_discount_percent=5), discount_percent=None)
        assert result.rule == "min_discount"

    def test_offer_rules_skipped_without_offer(self):
        config = ClaimsWindowConfig(min_discount_percent=50)
        assert evaluate(booking(), prop(), config, check_offer=False).ok

    def test_star_minimum_is_max_of_customer_and_admin(self):
        b = booking(min_hotel_star_label="simple")
        config = ClaimsWindowConfig(min_hotel_star=4)
        assert evaluate(b, prop(hotel_star="moderate"), config).rule == "hotel_star"
        assert evaluate(b, prop(hotel_star="high"), config).ok

    def test_customer_star_minimum_alone(self):
        b = booking(min_hotel_star_label="luxury")
        assert evaluate(b, prop(hotel_star="4")).rule == "hotel_star"
        assert evaluate(b, prop(hotel_star="5")).ok

    def test_unrated_property_fails_star_minimum(self):
        result = evaluate(booking(min_hotel_star_label="basic"), prop(hotel_star=None))
        assert result.rule == "hotel_star"


class TestDeadlineRule:

    def test_passed_deadline_rejects(self):
        config = ClaimsWindowConfig(deadline=utc_now() - timedelta(minutes=1))
        result = evaluate(booking(), prop(), config)
        assert result.rule == "deadline"

    def test_default_window_counts_from_opening(self):
        b = booking(opened_for_claims_at=utc_now() - timedelta(days=8))
        assert evaluate(b, prop()).rule == "deadline"
        b = booking(opened_for_claims_at=utc_now() - timedelta(days=6))
        assert evaluate(b, prop()).ok
