from hotel_promos.config import DATA_DIR
from hotel_promos.promos.service import PromoService
from hotel_promos.promos.storage import JsonPromoStorage

# JSON fallback (test-режим / без базы)
json_storage = JsonPromoStorage(promos_path=str(DATA_DIR / "promos.json"))

_pg_pool = None


def set_pg_pool(pool) -> None:
    global _pg_pool
    _pg_pool = pool


class PromoStorageProxy:
    def __init__(self):
        self._pg_storage = None

    def _backend(self):
        # Ленивая инициализация, чтобы в test-режиме вообще не трогать PG-код.
        if self._pg_storage is None and _pg_pool is not None:
            from hotel_promos.promos.pg_storage import PgPromoStorage  # lazy import
            self._pg_storage = PgPromoStorage(_pg_pool)
        return self._pg_storage or json_storage

    async def get_promo(self, code):
        return await self._backend().get_promo(code)

    async def list_promos(self):
        return await self._backend().list_promos()

    async def save_promo(self, promo):
        return await self._backend().save_promo(promo)

    async def delete_promo(self, code):
        return await self._backend().delete_promo(code)

    async def redeem(self, code):
        return await self._backend().redeem(code)


promo_service = PromoService(PromoStorageProxy())
