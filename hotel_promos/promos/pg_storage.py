from __future__ import annotations

from typing import List, Optional

import asyncpg

from hotel_promos.promos.model import PromoCode
from hotel_promos.promos.records import normalize_code, parse_promo

_COLUMNS = """
    code,
    description,
    discount_mode,
    discount_value,
    applies_to_all_rooms,
    applicable_room_ids,
    valid_from,
    valid_until,
    max_redemptions,
    redemption_count,
    minimum_stay_nights,
    enabled
"""


def _row_to_promo(row) -> PromoCode:
    return parse_promo(dict(row), strict=False)


class PgPromoStorage:
    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get_promo(self, code: str) -> Optional[PromoCode]:
        sql = f"SELECT {_COLUMNS} FROM promo_codes WHERE code = $1"
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(sql, normalize_code(code))

        if not row:
            return None
        return _row_to_promo(row)

    async def list_promos(self) -> List[PromoCode]:
        sql = f"SELECT {_COLUMNS} FROM promo_codes ORDER BY code"
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(sql)
        return [_row_to_promo(r) for r in rows]

    async def save_promo(self, promo: PromoCode) -> PromoCode:
        # redemption_count при конфликте не обновляем: его меняет только redeem()
        sql = f"""
        INSERT INTO promo_codes (
            code, description, discount_mode, discount_value,
            applies_to_all_rooms, applicable_room_ids, valid_from, valid_until,
            max_redemptions, redemption_count, minimum_stay_nights, enabled
        )
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
        ON CONFLICT (code) DO UPDATE
        SET
            description = EXCLUDED.description,
            discount_mode = EXCLUDED.discount_mode,
            discount_value = EXCLUDED.discount_value,
            applies_to_all_rooms = EXCLUDED.applies_to_all_rooms,
            applicable_room_ids = EXCLUDED.applicable_room_ids,
            valid_from = EXCLUDED.valid_from,
            valid_until = EXCLUDED.valid_until,
            max_redemptions = EXCLUDED.max_redemptions,
            minimum_stay_nights = EXCLUDED.minimum_stay_nights,
            enabled = EXCLUDED.enabled
        RETURNING {_COLUMNS};
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                sql,
                promo.code,
                promo.description,
                promo.discount_mode.value,
                promo.discount_value,
                promo.applies_to_all_rooms,
                sorted(promo.applicable_room_ids),
                promo.valid_from,
                promo.valid_until,
                promo.max_redemptions,
                promo.redemption_count,
                promo.minimum_stay_nights,
                promo.enabled,
            )
        return _row_to_promo(row)

    async def delete_promo(self, code: str) -> bool:
        sql = "DELETE FROM promo_codes WHERE code = $1;"
        async with self.pool.acquire() as conn:
            result = await conn.execute(sql, normalize_code(code))
        # result будет типа: "DELETE 1"
        return result.endswith(" 1")

    async def redeem(self, code: str) -> bool:
        # проверка лимита и инкремент — одним UPDATE, без гонок
        sql = """
        UPDATE promo_codes
        SET redemption_count = redemption_count + 1
        WHERE code = $1
        AND (
            max_redemptions IS NULL
            OR max_redemptions = 0
            OR redemption_count < max_redemptions
        );
        """
        async with self.pool.acquire() as conn:
            result = await conn.execute(sql, normalize_code(code))
        return result.endswith(" 1")
