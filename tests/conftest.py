"""Shared fixtures for promo code tests."""

from datetime import datetime, timezone

import pytest

from hotel_promos.promos.model import DiscountMode, PromoCode
from hotel_promos.promos.service import PromoService
from hotel_promos.promos.storage import JsonPromoStorage


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def summer_code() -> PromoCode:
    """20% off for the whole of 2024, 5 of 100 uses spent, 2-night minimum."""
    return PromoCode(
        code="SUMMER20",
        description="Summer sale",
        discount_mode=DiscountMode.PERCENTAGE,
        discount_value=20,
        valid_from=utc(2024, 1, 1),
        valid_until=utc(2024, 12, 31),
        applies_to_all_rooms=True,
        max_redemptions=100,
        redemption_count=5,
        minimum_stay_nights=2,
        enabled=True,
    )


@pytest.fixture
def summer_record() -> dict:
    return {
        "code": "summer20",
        "description": "Summer sale",
        "discountMode": "percentage",
        "discountValue": 20,
        "appliesToAllRooms": True,
        "applicableRoomIds": [],
        "validFrom": "2024-01-01T00:00:00Z",
        "validUntil": "2024-12-31T00:00:00Z",
        "maxRedemptions": 100,
        "redemptionCount": 5,
        "minimumStayNights": 2,
        "enabled": True,
    }


@pytest.fixture
def storage(tmp_path) -> JsonPromoStorage:
    return JsonPromoStorage(promos_path=str(tmp_path / "promos.json"))


@pytest.fixture
def service(storage) -> PromoService:
    return PromoService(storage)
