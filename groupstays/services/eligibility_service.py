# ================================
# ELIGIBILITY SERVICE (services/eligibility_service.py)
# ================================

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Any
import logging

from groupstays.models.business import GroupBooking, Property
from groupstays.services.claims_window_service import ClaimsWindowConfig, ClaimsWindowManager
from groupstays.utils import to_float
from groupstays.utils.location_utils import (
    has_capability_tag, normalize_type_key, normalize_region, normalize_district,
    hotel_star_rating, GROUP_STAY_TAG
)

logger = logging.getLogger(__name__)

# Requested type -> property type keys that may serve it (legacy equivalences)
TYPE_EQUIVALENCES = {
    "hostel": {"hostel", "hotel", "guest_house"},
    "guesthouse": {"guest_house"},
}

@dataclass(frozen=True)
class EligibilityResult:
    ok: bool
    rule: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def accept(cls) -> "EligibilityResult":
        return cls(ok=True)

    @classmethod
    def reject(cls, rule: str, reason: str) -> "EligibilityResult":
        return cls(ok=False, rule=rule, reason=reason)

class EligibilityEvaluator:
    """
    Pure rule engine deciding whether a property (and offer) may compete for a booking.

    Rules run in a fixed order and stop at the first failure:
    capability tag, accommodation type, geography, offer thresholds, deadline.
    """

    @staticmethod
    def evaluate(
        booking: GroupBooking,
        property: Property,
        window_config: Optional[ClaimsWindowConfig] = None,
        discount_percent: Any = None,
        now: Optional[datetime] = None,
        check_offer: bool = True,
    ) -> EligibilityResult:
        """
        Evaluate all eligibility rules.

        Args:
            booking: Freshly read group booking
            property: Candidate property
            window_config: Active claims window configuration
            discount_percent: Offered discount (ignored when check_offer is False)
            now: Reference time for the deadline rule
            check_offer: Apply the rules that only concern a submitted offer (discount, deadline)

        Returns:
            EligibilityResult with the failing rule and its reason
        """
        window_config = window_config or ClaimsWindowConfig()

        for check in (
            EligibilityEvaluator._check_capability,
            EligibilityEvaluator._check_type,
            EligibilityEvaluator._check_geography,
        ):
            result = check(booking, property)
            if not result.ok:
                return result

        if check_offer:
            result = EligibilityEvaluator._check_discount(window_config, discount_percent)
            if not result.ok:
                return result

        result = EligibilityEvaluator._check_hotel_star(booking, property, window_config)
        if not result.ok:
            return result

        if check_offer:
            return EligibilityEvaluator._check_deadline(booking, window_config, now)
        return EligibilityResult.accept()

    # ---------- rules ----------

    @staticmethod
    def _check_capability(booking: GroupBooking, property: Property) -> EligibilityResult:
        if not has_capability_tag(property.services, GROUP_STAY_TAG):
            return EligibilityResult.reject(
                "capability",
                "Property does not offer group stays (missing 'Group Stay' service)"
            )
        return EligibilityResult.accept()

    @staticmethod
    def _check_type(booking: GroupBooking, property: Property) -> EligibilityResult:
        requested = normalize_type_key(booking.accommodation_type)
        if requested is None:
            return EligibilityResult.accept()

        offered = normalize_type_key(property.type)
        allowed = TYPE_EQUIVALENCES.get(requested, {requested})
        if offered not in allowed:
            return EligibilityResult.reject(
                "accommodation_type",
                f"Property type '{property.type or 'unknown'}' does not match requested "
                f"accommodation type '{booking.accommodation_type}'"
            )
        return EligibilityResult.accept()

    @staticmethod
    def _check_geography(booking: GroupBooking, property: Property) -> EligibilityResult:
        requested_region = normalize_region(booking.to_region)
        if requested_region is not None:
            property_region = normalize_region(property.region_name)
            if property_region is None:
                return EligibilityResult.reject("region", "Property region is missing")
            if property_region != requested_region:
                return EligibilityResult.reject(
                    "region",
                    f"Property region '{property.region_name}' does not match requested region '{booking.to_region}'"
                )

        requested_district = normalize_district(booking.to_district)
        if requested_district is not None:
            property_district = normalize_district(property.district)
            if property_district is None:
                return EligibilityResult.reject("district", "Property district is missing")
            if property_district != requested_district:
                return EligibilityResult.reject(
                    "district",
                    f"Property district '{property.district}' does not match requested district '{booking.to_district}'"
                )
        return EligibilityResult.accept()

    @staticmethod
    def _check_discount(window_config: ClaimsWindowConfig, discount_percent: Any) -> EligibilityResult:
        minimum = window_config.min_discount_percent
        if minimum is None:
            return EligibilityResult.accept()

        offered = to_float(discount_percent)
        if offered is None:
            return EligibilityResult.reject(
                "min_discount",
                f"A discount of at least {minimum:g}% is required for this group stay"
            )
        if offered < minimum:
            return EligibilityResult.reject(
                "min_discount",
                f"Offered discount {offered:g}% is below the required minimum of {minimum:g}%"
            )
        return EligibilityResult.accept()

    @staticmethod
    def _check_hotel_star(
        booking: GroupBooking,
        property: Property,
        window_config: ClaimsWindowConfig,
    ) -> EligibilityResult:
        customer_min = hotel_star_rating(booking.min_hotel_star_label)
        admin_min = hotel_star_rating(window_config.min_hotel_star)
        required = max([star for star in (customer_min, admin_min) if star is not None], default=None)
        if required is None:
            return EligibilityResult.accept()

        actual = hotel_star_rating(property.hotel_star)
        if actual is None or actual < required:
            return EligibilityResult.reject(
                "hotel_star",
                f"Property hotel class ({property.hotel_star or 'unrated'}) is below the required minimum of {required} stars"
            )
        return EligibilityResult.accept()

    @staticmethod
    def _check_deadline(
        booking: GroupBooking,
        window_config: ClaimsWindowConfig,
        now: Optional[datetime],
    ) -> EligibilityResult:
        if ClaimsWindowManager.is_expired(booking, window_config, now=now):
            return EligibilityResult.reject("deadline", "The claims deadline for this group stay has passed")
        return EligibilityResult.accept()

eligibility_evaluator = EligibilityEvaluator()
