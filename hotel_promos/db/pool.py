import asyncpg

from hotel_promos.config import PgConfig

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS promo_codes (
    code                 TEXT PRIMARY KEY,
    description          TEXT NOT NULL DEFAULT '',
    discount_mode        TEXT NOT NULL,
    discount_value       DOUBLE PRECISION NOT NULL,
    applies_to_all_rooms BOOLEAN NOT NULL DEFAULT TRUE,
    applicable_room_ids  TEXT[] NOT NULL DEFAULT '{}',
    valid_from           TIMESTAMPTZ NOT NULL,
    valid_until          TIMESTAMPTZ NOT NULL,
    max_redemptions      INTEGER,
    redemption_count     INTEGER NOT NULL DEFAULT 0,
    minimum_stay_nights  INTEGER NOT NULL DEFAULT 1,
    enabled              BOOLEAN NOT NULL DEFAULT TRUE
);
"""


def _ssl_arg(sslmode: str):
    return None if sslmode == "disable" else True


async def create_pool(cfg: PgConfig) -> asyncpg.Pool:
    return await asyncpg.create_pool(
        host=cfg.host,
        port=cfg.port,
        database=cfg.database,
        user=cfg.user,
        password=cfg.password,
        ssl=_ssl_arg(cfg.sslmode),
        min_size=1,
        max_size=10,
        command_timeout=30,
    )


async def ensure_schema(pool: asyncpg.Pool) -> None:
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA_SQL)
