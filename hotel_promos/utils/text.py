from decimal import Decimal, ROUND_HALF_UP

from hotel_promos.config import CURRENCY
from hotel_promos.promos.model import DiscountMode, PromoCode


def round_amount(amount) -> float:
    # суммы в валюте без копеек (FCFA) — округляем до целых
    return float(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(amount, currency: str = CURRENCY) -> str:
    value = int(round_amount(amount))
    return f"{value:,}".replace(",", " ") + f" {currency}"


def _format_number(value) -> str:
    value = float(value)
    return f"{value:g}" if not value.is_integer() else str(int(value))


def format_discount(mode, value, currency: str = CURRENCY) -> str:
    try:
        mode = DiscountMode(mode)
    except ValueError:
        return "No discount"

    if mode == DiscountMode.PERCENTAGE:
        return f"{_format_number(value)}%"
    return format_amount(value, currency)


def usage_text(promo: PromoCode) -> str:
    cap = promo.max_redemptions if promo.max_redemptions else "∞"
    return f"{promo.redemption_count} / {cap}"


def promo_line(promo: PromoCode, status: str) -> str:
    stay = f", min {promo.minimum_stay_nights} night(s)" if promo.minimum_stay_nights > 1 else ""
    rooms = "all rooms" if promo.applies_to_all_rooms else ", ".join(sorted(promo.applicable_room_ids)) or "—"
    return (
        f"{promo.code:<16} {status:<10} "
        f"{format_discount(promo.discount_mode, promo.discount_value):<14} "
        f"{usage_text(promo):<12} "
        f"until {promo.valid_until:%Y-%m-%d}  [{rooms}{stay}]"
    )
