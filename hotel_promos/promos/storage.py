import asyncio
import json
import os
from dataclasses import replace
from typing import List, Optional

from hotel_promos.promos.model import PromoCode
from hotel_promos.promos.records import normalize_code, parse_promo, promo_to_record
from hotel_promos.utils.logger import get_logger

log = get_logger("promos.storage")


class PromoStorageError(RuntimeError):
    pass


class JsonPromoStorage:
    """Все промокоды в одном JSON-файле: {"CODE": {...запись...}}."""

    def __init__(self, promos_path: str):
        self.promos_path = promos_path
        self._lock = asyncio.Lock()

    def _read_json(self, *, for_write: bool = False) -> dict:
        if not os.path.exists(self.promos_path):
            return {}
        with open(self.promos_path, "r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                log.warning("promo file %s is not valid JSON: %s", self.promos_path, e)
                # битый файл не перезаписываем, иначе потеряем все коды
                if for_write:
                    raise PromoStorageError(f"{self.promos_path} is corrupt, refusing to write") from e
                return {}

    def _atomic_write_json(self, data: dict) -> None:
        os.makedirs(os.path.dirname(self.promos_path) or ".", exist_ok=True)
        tmp = f"{self.promos_path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self.promos_path)

    async def get_promo(self, code: str) -> Optional[PromoCode]:
        code = normalize_code(code)
        async with self._lock:
            raw = self._read_json().get(code)

        if not raw:
            return None
        return parse_promo({**raw, "code": code}, strict=False)

    async def list_promos(self) -> List[PromoCode]:
        async with self._lock:
            data = self._read_json()
        return [parse_promo({**raw, "code": code}, strict=False) for code, raw in data.items()]

    async def save_promo(self, promo: PromoCode) -> PromoCode:
        """Создать или целиком заменить запись.

        Счётчик использований у существующего кода не трогаем: его меняет
        только redeem().
        """
        async with self._lock:
            data = self._read_json(for_write=True)
            stored = data.get(promo.code)
            if stored:
                promo = replace(promo, redemption_count=int(stored.get("redemptionCount", 0)))
            data[promo.code] = promo_to_record(promo)
            self._atomic_write_json(data)
        return promo

    async def delete_promo(self, code: str) -> bool:
        code = normalize_code(code)
        async with self._lock:
            data = self._read_json(for_write=True)
            if data.pop(code, None) is None:
                return False
            self._atomic_write_json(data)
            return True

    async def redeem(self, code: str) -> bool:
        """+1 к счётчику, только если лимит после инкремента не превышен."""
        code = normalize_code(code)
        async with self._lock:
            data = self._read_json(for_write=True)
            raw = data.get(code)
            if not raw:
                return False

            promo = parse_promo({**raw, "code": code}, strict=False)
            if promo.max_redemptions and promo.redemption_count + 1 > promo.max_redemptions:
                return False

            promo = replace(promo, redemption_count=promo.redemption_count + 1)
            data[code] = promo_to_record(promo)
            self._atomic_write_json(data)
            return True
