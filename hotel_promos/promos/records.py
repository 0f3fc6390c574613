"""Граница записи: разбор и проверка промокода перед движком и хранилищем.

На вход — словарь формата обмена (camelCase) или строка из хранилища
(snake_case). На выход — неизменяемый PromoCode. Всё, что не является
числом, отсекается здесь с PromoValidationError, до движка.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from hotel_promos.promos.model import DiscountMode, PromoCode

DEFAULT_MAX_REDEMPTIONS = 100

# camelCase -> snake_case
_ALIASES = {
    "code": "code",
    "description": "description",
    "discountMode": "discount_mode",
    "discountValue": "discount_value",
    "appliesToAllRooms": "applies_to_all_rooms",
    "applicableRoomIds": "applicable_room_ids",
    "validFrom": "valid_from",
    "validUntil": "valid_until",
    "maxRedemptions": "max_redemptions",
    "redemptionCount": "redemption_count",
    "minimumStayNights": "minimum_stay_nights",
    "enabled": "enabled",
}

_ENABLED_WORDS = {"actif": True, "active": True, "inactif": False, "inactive": False}

_MISSING = object()


class PromoValidationError(ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


def _get(raw: Mapping[str, Any], name: str, default: Any = None) -> Any:
    snake = _ALIASES[name]
    if name in raw:
        return raw[name]
    if snake in raw:
        return raw[snake]
    if default is _MISSING:
        raise PromoValidationError(name, "is required")
    return default


def _number(field: str, value: Any) -> float:
    if isinstance(value, bool):
        raise PromoValidationError(field, "must be a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise PromoValidationError(field, f"not a number: {value!r}") from None
    elif isinstance(value, (int, float)):
        value = float(value)
    else:
        raise PromoValidationError(field, "must be a number")
    if not math.isfinite(value):
        raise PromoValidationError(field, "must be finite")
    return value


def _integer(field: str, value: Any, minimum: int) -> int:
    number = _number(field, value)
    if not number.is_integer():
        raise PromoValidationError(field, "must be an integer")
    number = int(number)
    if number < minimum:
        raise PromoValidationError(field, f"must be >= {minimum}")
    return number


def _flag(field: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _ENABLED_WORDS:
        return _ENABLED_WORDS[value.strip().lower()]
    raise PromoValidationError(field, "must be a boolean")


def _instant(field: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        # fromisoformat в старых версиях не понимает "Z"
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise PromoValidationError(field, f"not an ISO-8601 timestamp: {value!r}") from None
    else:
        raise PromoValidationError(field, "is required")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _room_ids(value: Any) -> frozenset:
    if value is None:
        return frozenset()
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise PromoValidationError("applicableRoomIds", "must be a list of room ids")

    ids = set()
    for item in value:
        # админка присылает и id, и целые объекты номеров
        if isinstance(item, Mapping):
            item = item.get("_id", item.get("id"))
        if item is None or str(item).strip() == "":
            raise PromoValidationError("applicableRoomIds", "empty room id")
        ids.add(str(item).strip())
    return frozenset(ids)


def normalize_code(code: Any) -> str:
    if not isinstance(code, str) or not code.strip():
        raise PromoValidationError("code", "is required")
    return code.strip().upper()


def parse_promo(raw: Mapping[str, Any], *, strict: bool = True) -> PromoCode:
    """Собрать PromoCode из словаря.

    strict=True — запись от администратора: проверяются диапазоны и
    межпольные инварианты. strict=False — запись из хранилища: только типы,
    чтобы движок мог работать и с уже «кривыми» данными.
    """
    # при создании обязательны все поля, кроме списка номеров, лимита и счётчика;
    # у записей из хранилища — значения по умолчанию
    def fallback(value: Any) -> Any:
        return _MISSING if strict else value

    code = normalize_code(_get(raw, "code"))

    raw_mode = _get(raw, "discountMode")
    try:
        mode = DiscountMode(raw_mode.strip().lower() if isinstance(raw_mode, str) else raw_mode)
    except ValueError:
        raise PromoValidationError("discountMode", f"unknown mode: {raw_mode!r}") from None

    value = _number("discountValue", _get(raw, "discountValue"))

    description = _get(raw, "description", fallback("")) or ""
    if not isinstance(description, str):
        raise PromoValidationError("description", "must be a string")

    applies_to_all = _flag("appliesToAllRooms", _get(raw, "appliesToAllRooms", fallback(True)))
    room_ids = _room_ids(_get(raw, "applicableRoomIds"))

    valid_from = _instant("validFrom", _get(raw, "validFrom"))
    valid_until = _instant("validUntil", _get(raw, "validUntil"))

    raw_max = _get(raw, "maxRedemptions", DEFAULT_MAX_REDEMPTIONS if strict else None)
    max_redemptions: Optional[int] = None
    if raw_max is not None:
        max_redemptions = _integer("maxRedemptions", raw_max, 1 if strict else 0)

    redemption_count = _integer("redemptionCount", _get(raw, "redemptionCount", 0), 0)
    minimum_stay = _integer("minimumStayNights", _get(raw, "minimumStayNights", fallback(1)), 1 if strict else 0)
    enabled = _flag("enabled", _get(raw, "enabled", fallback(True)))

    if strict:
        if value < 0:
            raise PromoValidationError("discountValue", "must be >= 0")
        if mode == DiscountMode.PERCENTAGE and value > 100:
            raise PromoValidationError("discountValue", "percentage must be <= 100")
        if valid_from > valid_until:
            raise PromoValidationError("validUntil", "must not be before validFrom")
        if applies_to_all:
            room_ids = frozenset()

    return PromoCode(
        code=code,
        description=description,
        discount_mode=mode,
        discount_value=value,
        applies_to_all_rooms=applies_to_all,
        applicable_room_ids=room_ids,
        valid_from=valid_from,
        valid_until=valid_until,
        max_redemptions=max_redemptions,
        redemption_count=redemption_count,
        minimum_stay_nights=minimum_stay,
        enabled=enabled,
    )


def promo_to_record(promo: PromoCode) -> dict:
    return {
        "code": promo.code,
        "description": promo.description,
        "discountMode": promo.discount_mode.value,
        "discountValue": promo.discount_value,
        "appliesToAllRooms": promo.applies_to_all_rooms,
        "applicableRoomIds": sorted(promo.applicable_room_ids),
        "validFrom": promo.valid_from.isoformat(),
        "validUntil": promo.valid_until.isoformat(),
        "maxRedemptions": promo.max_redemptions,
        "redemptionCount": promo.redemption_count,
        "minimumStayNights": promo.minimum_stay_nights,
        "enabled": promo.enabled,
    }
