from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime
from typing import FrozenSet, Optional


class DiscountMode(str, Enum):
    PERCENTAGE = "percentage"  # -N%
    FIXED = "fixed"            # -N currency units


class Status(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"


class Reason(str, Enum):
    ROOM_NOT_ELIGIBLE = "room_not_eligible"
    STAY_TOO_SHORT = "stay_too_short"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class PromoCode:
    code: str
    discount_mode: DiscountMode
    discount_value: float
    valid_from: datetime
    valid_until: datetime
    description: str = ""
    applies_to_all_rooms: bool = True
    applicable_room_ids: FrozenSet[str] = field(default_factory=frozenset)
    # None / 0 -> no cap
    max_redemptions: Optional[int] = 100
    redemption_count: int = 0
    minimum_stay_nights: int = 1
    enabled: bool = True


@dataclass(frozen=True)
class ApplyResult:
    code: str
    ok: bool
    base_price: float
    discount: float = 0.0
    reason: Optional[Reason] = None

    @property
    def final_price(self) -> float:
        return max(0.0, self.base_price - self.discount)
