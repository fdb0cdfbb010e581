# ================================
# LOCATION & LABEL UTILITY TESTS (test_location_utils.py)
# ================================

import pytest

from groupstays.utils import compute_nights, parse_iso_datetime, clamp_pagination
from groupstays.utils.location_utils import (
    normalize_text, normalize_type_key, normalize_district, has_capability_tag, hotel_star_rating
)
from datetime import datetime, timezone

CHECK_IN = datetime(2026, 12, 1, 14, 0, tzinfo=timezone.utc)
CHECK_OUT = datetime(2026, 12, 4, 10, 0, tzinfo=timezone.utc)


class TestNormalizers:
    """Whitespace, case and type-key normalisation."""

    def test_normalize_text_collapses_whitespace(self):
        assert normalize_text("  Arusha   Region ") == "arusha region"
        assert normalize_text("   ") is None
        assert normalize_text(None) is None

    @pytest.mark.parametrize("raw", ["Guest House", "GUEST_HOUSE", "guest-house", " guest  house "])
    def test_type_key_variants(self, raw):
        assert normalize_type_key(raw) == "guest_house"

    def test_district_word_is_stripped(self):
        assert normalize_district("Arusha District") == "arusha"
        assert normalize_district("district of  Meru") == "of meru"
        assert normalize_district("Arusha") == normalize_district("ARUSHA district")


class TestCapabilityTags:

    def test_tag_matching_ignores_case_and_spacing(self):
        assert has_capability_tag(["Parking", "  GROUP   stay "])
        assert not has_capability_tag(["Parking", "Group"])
        assert not has_capability_tag(None)

    def test_legacy_shapes(self):
        assert has_capability_tag("wifi, Group Stay")
        assert has_capability_tag([{"name": "Group Stay"}])
        assert has_capability_tag({"Group Stay": True, "Pool": False})
        assert not has_capability_tag({"Group Stay": False})


class TestHotelStarRating:

    @pytest.mark.parametrize("label,expected", [
        ("basic", 1), ("Simple", 2), ("moderate", 3), ("HIGH", 4), ("luxury", 5),
        ("3", 3), (5, 5),
    ])
    def test_known_labels(self, label, expected):
        assert hotel_star_rating(label) == expected

    @pytest.mark.parametrize("label", [None, "", "premium", "0", "6", 7, True])
    def test_unknown_labels(self, label):
        assert hotel_star_rating(label) is None


class TestDateHelpers:

    def test_nights_rounds_partial_days_up(self):
        assert compute_nights(CHECK_IN, CHECK_OUT) == 3

    def test_flexible_dates_count_one_night(self):
        assert compute_nights(None, CHECK_OUT) == 1
        assert compute_nights(CHECK_IN, None) == 1

    def test_same_day_is_one_night(self):
        assert compute_nights(CHECK_IN, CHECK_IN) == 1

    def test_parse_iso_datetime(self):
        parsed = parse_iso_datetime("2026-12-01T14:00:00Z")
        assert parsed == CHECK_IN
        assert parse_iso_datetime("not a date") is None
        assert parse_iso_datetime(True) is None

    def test_clamp_pagination(self):
        assert clamp_pagination(None, None) == (1, 50)
        assert clamp_pagination(0, 500) == (1, 100)
        assert clamp_pagination(3, -5) == (3, 1)
