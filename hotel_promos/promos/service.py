from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from hotel_promos.promos import policy
from hotel_promos.promos.model import ApplyResult, PromoCode, Reason, Status
from hotel_promos.promos.records import normalize_code, parse_promo, promo_to_record
from hotel_promos.promos.storage import JsonPromoStorage
from hotel_promos.utils.logger import get_logger

log = get_logger("promos.service")


class PromoError(Exception):
    pass


class PromoNotFound(PromoError):
    def __init__(self, code: str):
        super().__init__(f"Promo code {code} not found")
        self.code = code


class PromoAlreadyExists(PromoError):
    def __init__(self, code: str):
        super().__init__(f"Promo code {code} already exists")
        self.code = code


class PromoService:
    def __init__(self, storage: JsonPromoStorage):
        self.storage = storage

    async def get(self, code: str) -> PromoCode:
        promo = await self.storage.get_promo(code)
        if not promo:
            raise PromoNotFound(normalize_code(code))
        return promo

    async def verify(
        self,
        code: str,
        room_id: Any,
        nights: Any,
        base_price: Any,
        now: Optional[datetime] = None,
    ) -> ApplyResult:
        promo = await self.get(code)
        return policy.try_apply(promo, now, room_id, nights, base_price)

    async def redeem(
        self,
        code: str,
        room_id: Any,
        nights: Any,
        base_price: Any,
        now: Optional[datetime] = None,
    ) -> ApplyResult:
        """Проверка + списание одного использования.

        verify() ничего не резервирует: лимит перепроверяется хранилищем
        в момент инкремента.
        """
        result = await self.verify(code, room_id, nights, base_price, now)
        if not result.ok:
            log.info("promo %s refused: %s", result.code, result.reason.value)
            return result

        if not await self.storage.redeem(result.code):
            # код могли удалить между verify и списанием
            if not await self.storage.get_promo(result.code):
                raise PromoNotFound(result.code)
            log.info("promo %s refused at commit: redemption cap reached", result.code)
            return replace(result, ok=False, discount=0.0, reason=Reason.EXHAUSTED)

        log.info("promo %s redeemed, discount %s", result.code, result.discount)
        return result

    async def create(self, raw: Mapping[str, Any]) -> PromoCode:
        promo = parse_promo(raw)
        if await self.storage.get_promo(promo.code):
            raise PromoAlreadyExists(promo.code)

        promo = await self.storage.save_promo(promo)
        log.info("promo %s created", promo.code)
        return promo

    async def update(self, code: str, raw: Mapping[str, Any]) -> PromoCode:
        current = await self.get(code)

        # полная замена; счётчик использований хранилище оставляет своим
        promo = parse_promo({**raw, "code": current.code})
        promo = await self.storage.save_promo(promo)
        log.info("promo %s updated", promo.code)
        return promo

    async def delete(self, code: str) -> None:
        if not await self.storage.delete_promo(code):
            raise PromoNotFound(normalize_code(code))
        log.info("promo %s deleted", normalize_code(code))

    async def set_enabled(self, code: str, enabled: bool) -> PromoCode:
        promo = replace(await self.get(code), enabled=enabled)
        promo = await self.storage.save_promo(promo)
        log.info("promo %s %s", promo.code, "enabled" if enabled else "disabled")
        return promo

    async def list(
        self,
        status: Union[Status, str] = policy.ALL,
        now: Optional[datetime] = None,
    ) -> List[PromoCode]:
        return policy.filter_by_status(await self.storage.list_promos(), status, now)

    async def stats(self, now: Optional[datetime] = None) -> Dict[str, int]:
        promos = await self.storage.list_promos()
        counts = policy.status_counts(promos, now)
        out = {s.value: n for s, n in counts.items()}
        out["total"] = len(promos)
        out["redemptions"] = sum(p.redemption_count for p in promos)
        return out

    async def export(self, code: str) -> dict:
        return promo_to_record(await self.get(code))
