"""Правила промокодов: статус, применимость к номеру, размер скидки.

Все функции чистые: запись не меняется, I/O нет, счётчик использований
только читается. Инкремент делает хранилище (см. storage.redeem).
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

from hotel_promos.promos.model import ApplyResult, DiscountMode, PromoCode, Reason, Status
from hotel_promos.utils.logger import get_logger

log = get_logger("promos.policy")

ALL = "all"


def _as_amount(value: Any) -> Optional[float]:
    # bool — подкласс int, но как цена/скидка это мусор
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _now(now: Optional[datetime]) -> datetime:
    return _as_utc(now) if now is not None else datetime.now(timezone.utc)


def has_cap(code: PromoCode) -> bool:
    return bool(code.max_redemptions)


def remaining_redemptions(code: PromoCode) -> Optional[int]:
    if not has_cap(code):
        return None
    return max(0, code.max_redemptions - code.redemption_count)


def evaluate_status(code: PromoCode, now: Optional[datetime] = None) -> Status:
    """Статус кода на момент `now`. Первое совпавшее правило побеждает.

    Начало окна (valid_from) намеренно не проверяется: код, срок которого
    ещё не наступил, считается active.
    """
    if not code.enabled:
        return Status.INACTIVE

    if _now(now) > _as_utc(code.valid_until):
        return Status.EXPIRED

    if has_cap(code) and code.redemption_count >= code.max_redemptions:
        return Status.EXHAUSTED

    return Status.ACTIVE


def compute_discount(mode: Union[DiscountMode, str], value: Any, base_price: Any) -> float:
    """Размер скидки для цены `base_price`. Никогда не бросает исключений.

    Некорректные числа и неизвестный режим дают 0. Округления нет.
    """
    price = _as_amount(base_price)
    amount = _as_amount(value)
    if price is None or price <= 0 or amount is None or amount <= 0:
        return 0.0

    try:
        mode = DiscountMode(mode)
    except ValueError:
        log.warning("unknown discount mode %r, discount degraded to 0", mode)
        return 0.0

    if mode == DiscountMode.PERCENTAGE:
        return price * min(amount, 100.0) / 100

    # fixed: скидка не больше цены
    return min(amount, price)


def is_applicable(code: PromoCode, room_id: Any) -> bool:
    if code.applies_to_all_rooms:
        return True
    if room_id is None:
        return False
    return str(room_id) in code.applicable_room_ids


def try_apply(
    code: PromoCode,
    now: Optional[datetime],
    room_id: Any,
    nights: Any,
    base_price: Any,
) -> ApplyResult:
    price = _as_amount(base_price) or 0.0

    def _fail(reason: Reason) -> ApplyResult:
        return ApplyResult(code=code.code, ok=False, base_price=price, reason=reason)

    if not is_applicable(code, room_id):
        return _fail(Reason.ROOM_NOT_ELIGIBLE)

    stay = _as_amount(nights)
    if stay is None or stay < code.minimum_stay_nights:
        return _fail(Reason.STAY_TOO_SHORT)

    status = evaluate_status(code, now)
    if status != Status.ACTIVE:
        return _fail(Reason(status.value))

    return ApplyResult(
        code=code.code,
        ok=True,
        base_price=price,
        discount=compute_discount(code.discount_mode, code.discount_value, base_price),
    )


def filter_by_status(
    codes: Iterable[PromoCode],
    status: Union[Status, str] = ALL,
    now: Optional[datetime] = None,
) -> List[PromoCode]:
    if status == ALL:
        return list(codes)
    status = Status(status)
    now = _now(now)
    return [c for c in codes if evaluate_status(c, now) == status]


def status_counts(codes: Iterable[PromoCode], now: Optional[datetime] = None) -> Dict[Status, int]:
    now = _now(now)
    counts = {s: 0 for s in Status}
    for c in codes:
        counts[evaluate_status(c, now)] += 1
    return counts
