"""
Unit tests for the promo code rules: status, discount, room applicability
and the combined booking check.
"""

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from hotel_promos.promos import policy
from hotel_promos.promos.model import DiscountMode, Reason, Status
from hotel_promos.promos.policy import (
    compute_discount,
    evaluate_status,
    filter_by_status,
    is_applicable,
    remaining_redemptions,
    status_counts,
    try_apply,
)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


JUNE = utc(2024, 6, 1)
NEW_YEAR = utc(2025, 1, 1)


class TestEvaluateStatus:
    """Ordered decision chain: inactive, expired, exhausted, active."""

    def test_active(self, summer_code):
        assert evaluate_status(summer_code, JUNE) == Status.ACTIVE

    def test_exhausted_at_cap(self, summer_code):
        code = replace(summer_code, redemption_count=100)
        assert evaluate_status(code, JUNE) == Status.EXHAUSTED

    def test_over_cap_is_exhausted(self, summer_code):
        code = replace(summer_code, redemption_count=150)
        assert evaluate_status(code, JUNE) == Status.EXHAUSTED

    def test_expired(self, summer_code):
        assert evaluate_status(summer_code, NEW_YEAR) == Status.EXPIRED

    def test_expired_wins_over_exhausted(self, summer_code):
        code = replace(summer_code, redemption_count=100)
        assert evaluate_status(code, NEW_YEAR) == Status.EXPIRED

    @pytest.mark.parametrize("now", [JUNE, NEW_YEAR, utc(2023, 1, 1)])
    @pytest.mark.parametrize("count", [0, 100, 500])
    def test_disabled_always_inactive(self, summer_code, now, count):
        code = replace(summer_code, enabled=False, redemption_count=count)
        assert evaluate_status(code, now) == Status.INACTIVE

    def test_end_boundary_is_inclusive(self, summer_code):
        assert evaluate_status(summer_code, summer_code.valid_until) == Status.ACTIVE

    def test_not_yet_started_reports_active(self, summer_code):
        assert evaluate_status(summer_code, utc(2023, 6, 1)) == Status.ACTIVE

    def test_inverted_window_does_not_raise(self, summer_code):
        code = replace(summer_code, valid_from=utc(2025, 1, 1), valid_until=utc(2024, 1, 1))
        assert evaluate_status(code, JUNE) == Status.EXPIRED

    @pytest.mark.parametrize("cap", [None, 0])
    def test_no_cap_never_exhausted(self, summer_code, cap):
        code = replace(summer_code, max_redemptions=cap, redemption_count=10_000)
        assert evaluate_status(code, JUNE) == Status.ACTIVE

    def test_naive_datetimes_are_utc(self, summer_code):
        code = replace(summer_code, valid_until=datetime(2024, 12, 31))
        assert evaluate_status(code, datetime(2025, 1, 1)) == Status.EXPIRED
        assert evaluate_status(code, JUNE) == Status.ACTIVE

    def test_idempotent(self, summer_code):
        results = {evaluate_status(summer_code, JUNE) for _ in range(5)}
        assert results == {Status.ACTIVE}


class TestComputeDiscount:
    def test_percentage(self):
        assert compute_discount(DiscountMode.PERCENTAGE, 20, 50000) == 10000

    def test_percentage_accepts_plain_string_mode(self):
        assert compute_discount("percentage", 10, 1000) == 100

    @pytest.mark.parametrize("value", [101, 150, 1e6])
    def test_percentage_clamped_to_100(self, value):
        assert compute_discount("percentage", value, 30000) == compute_discount("percentage", 100, 30000)
        assert compute_discount("percentage", value, 30000) == 30000

    def test_fixed(self):
        assert compute_discount(DiscountMode.FIXED, 5000, 30000) == 5000

    def test_fixed_capped_at_price(self):
        assert compute_discount(DiscountMode.FIXED, 999999, 30000) == 30000

    @pytest.mark.parametrize("value,price", [(1, 1), (10, 9.5), (0.5, 100), (1e9, 0.01)])
    def test_fixed_never_exceeds_price(self, value, price):
        assert compute_discount("fixed", value, price) <= price

    @pytest.mark.parametrize(
        "value,price",
        [
            (20, 0),
            (20, -100),
            (0, 1000),
            (-5, 1000),
            (None, 1000),
            (20, None),
            (float("nan"), 1000),
            (20, float("nan")),
            (20, float("inf")),
            ("20", 1000),
            (True, 1000),
            (20, True),
        ],
    )
    def test_malformed_input_gives_zero(self, value, price):
        assert compute_discount("percentage", value, price) == 0
        assert compute_discount("fixed", value, price) == 0

    def test_unknown_mode_gives_zero_and_warns(self, monkeypatch):
        warnings = []
        monkeypatch.setattr(policy.log, "warning", lambda *a, **kw: warnings.append(a))

        assert compute_discount("bogo", 20, 1000) == 0
        assert compute_discount(None, 20, 1000) == 0
        assert len(warnings) == 2

    def test_no_rounding(self):
        assert compute_discount("percentage", 15, 333) == pytest.approx(49.95)

    @pytest.mark.parametrize(
        "mode,value,price",
        [("percentage", 20, 50000), ("fixed", 999999, 30000), ("bogo", 5, 100)],
    )
    def test_idempotent(self, mode, value, price):
        results = {compute_discount(mode, value, price) for _ in range(5)}
        assert len(results) == 1


class TestIsApplicable:
    def test_all_rooms_flag_wins(self, summer_code):
        code = replace(summer_code, applicable_room_ids=frozenset({"R1"}))
        assert is_applicable(code, "R1")
        assert is_applicable(code, "R99")
        assert is_applicable(code, None)

    def test_room_set(self, summer_code):
        code = replace(summer_code, applies_to_all_rooms=False, applicable_room_ids=frozenset({"R1", "R2"}))
        assert is_applicable(code, "R1")
        assert is_applicable(code, "R2")
        assert not is_applicable(code, "R3")
        assert not is_applicable(code, None)

    def test_empty_room_set_matches_nothing(self, summer_code):
        code = replace(summer_code, applies_to_all_rooms=False)
        assert not is_applicable(code, "R1")

    def test_numeric_room_id_compared_as_string(self, summer_code):
        code = replace(summer_code, applies_to_all_rooms=False, applicable_room_ids=frozenset({"12"}))
        assert is_applicable(code, 12)

    def test_idempotent(self, summer_code):
        code = replace(summer_code, applies_to_all_rooms=False, applicable_room_ids=frozenset({"R1"}))
        assert [is_applicable(code, "R1") for _ in range(5)] == [True] * 5
        assert [is_applicable(code, "R3") for _ in range(5)] == [False] * 5


class TestTryApply:
    def test_success(self, summer_code):
        result = try_apply(summer_code, JUNE, "R1", 3, 50000)
        assert result.ok
        assert result.reason is None
        assert result.discount == 10000
        assert result.final_price == 40000
        assert result.code == "SUMMER20"

    def test_room_not_eligible(self, summer_code):
        code = replace(summer_code, applies_to_all_rooms=False, applicable_room_ids=frozenset({"R1", "R2"}))
        result = try_apply(code, JUNE, "R3", 3, 50000)
        assert not result.ok
        assert result.reason == Reason.ROOM_NOT_ELIGIBLE
        assert result.discount == 0
        assert result.final_price == 50000

    def test_stay_too_short_on_valid_code(self, summer_code):
        code = replace(summer_code, minimum_stay_nights=3)
        result = try_apply(code, JUNE, "R1", 2, 50000)
        assert result.reason == Reason.STAY_TOO_SHORT

    def test_minimum_stay_is_inclusive(self, summer_code):
        code = replace(summer_code, minimum_stay_nights=3)
        assert try_apply(code, JUNE, "R1", 3, 50000).ok

    def test_room_checked_before_stay(self, summer_code):
        code = replace(summer_code, applies_to_all_rooms=False, minimum_stay_nights=5)
        assert try_apply(code, JUNE, "R1", 1, 50000).reason == Reason.ROOM_NOT_ELIGIBLE

    def test_stay_checked_before_status(self, summer_code):
        code = replace(summer_code, enabled=False)
        assert try_apply(code, JUNE, "R1", 1, 50000).reason == Reason.STAY_TOO_SHORT

    @pytest.mark.parametrize(
        "changes,now,reason",
        [
            ({"enabled": False}, JUNE, Reason.INACTIVE),
            ({}, NEW_YEAR, Reason.EXPIRED),
            ({"redemption_count": 100}, JUNE, Reason.EXHAUSTED),
        ],
    )
    def test_status_reasons(self, summer_code, changes, now, reason):
        result = try_apply(replace(summer_code, **changes), now, "R1", 3, 50000)
        assert not result.ok
        assert result.reason == reason

    def test_malformed_nights(self, summer_code):
        assert try_apply(summer_code, JUNE, "R1", None, 50000).reason == Reason.STAY_TOO_SHORT

    def test_malformed_price_is_zero_discount(self, summer_code):
        result = try_apply(summer_code, JUNE, "R1", 3, float("nan"))
        assert result.ok
        assert result.discount == 0

    def test_input_is_not_mutated(self, summer_code):
        before = replace(summer_code)
        try_apply(summer_code, JUNE, "R1", 3, 50000)
        assert summer_code == before


class TestListHelpers:
    def test_filter_by_status(self, summer_code):
        active = summer_code
        expired = replace(summer_code, code="OLD", valid_until=utc(2024, 3, 1))
        off = replace(summer_code, code="OFF", enabled=False)
        used = replace(summer_code, code="USED", redemption_count=100)
        codes = [active, expired, off, used]

        assert filter_by_status(codes, "all", JUNE) == codes
        assert filter_by_status(codes, Status.ACTIVE, JUNE) == [active]
        assert filter_by_status(codes, "expired", JUNE) == [expired]
        assert filter_by_status(codes, "inactive", JUNE) == [off]
        assert filter_by_status(codes, "exhausted", JUNE) == [used]

    def test_filter_unknown_status(self, summer_code):
        with pytest.raises(ValueError):
            filter_by_status([summer_code], "pending", JUNE)

    def test_status_counts(self, summer_code):
        codes = [summer_code, replace(summer_code, code="B", enabled=False)]
        counts = status_counts(codes, JUNE)
        assert counts == {
            Status.ACTIVE: 1,
            Status.INACTIVE: 1,
            Status.EXPIRED: 0,
            Status.EXHAUSTED: 0,
        }

    def test_remaining_redemptions(self, summer_code):
        assert remaining_redemptions(summer_code) == 95
        assert remaining_redemptions(replace(summer_code, redemption_count=120)) == 0
        assert remaining_redemptions(replace(summer_code, max_redemptions=None)) is None
