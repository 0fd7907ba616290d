from __future__ import annotations

import threading
from collections import Counter
from dataclasses import replace

from booking_engine.application.ports.promotion_repository import PromotionRepositoryPort
from booking_engine.domain.entities.promotion import Promotion, normalize_code


class MemoryPromotionRepository(PromotionRepositoryPort):
    def __init__(self, promotions: list[Promotion] | None = None) -> None:
        self._promotions: dict[str, Promotion] = {}
        self._customer_usage: Counter[tuple[str, str]] = Counter()
        self._lock = threading.Lock()
        for promotion in promotions or []:
            self.add(promotion)

    def add(self, promotion: Promotion) -> None:
        with self._lock:
            self._promotions[promotion.id] = replace(promotion, code=normalize_code(promotion.code))

    def get(self, promotion_id: str) -> Promotion | None:
        with self._lock:
            return self._promotions.get(promotion_id)

    def get_by_code(self, shop_id: str, code: str) -> Promotion | None:
        code = normalize_code(code)
        with self._lock:
            for promotion in self._promotions.values():
                if promotion.shop_id == shop_id and promotion.code == code:
                    return promotion
        return None

    def list_for_shop(self, shop_id: str) -> list[Promotion]:
        with self._lock:
            promotions = [p for p in self._promotions.values() if p.shop_id == shop_id]
        return sorted(promotions, key=lambda p: p.starts_at)

    def customer_usage(self, promotion_id: str, customer_id: str) -> int:
        with self._lock:
            return self._customer_usage[(promotion_id, customer_id)]

    def try_increment_usage(self, promotion_id: str, customer_id: str) -> bool:
        with self._lock:
            promotion = self._promotions.get(promotion_id)
            if promotion is None:
                return False
            if promotion.usage_limit is not None and promotion.usage_count >= promotion.usage_limit:
                return False
            if promotion.usage_per_customer is not None:
                if self._customer_usage[(promotion_id, customer_id)] >= promotion.usage_per_customer:
                    return False
            self._promotions[promotion_id] = replace(promotion, usage_count=promotion.usage_count + 1)
            self._customer_usage[(promotion_id, customer_id)] += 1
            return True

    def release_usage(self, promotion_id: str, customer_id: str) -> None:
        with self._lock:
            promotion = self._promotions.get(promotion_id)
            if promotion is None or promotion.usage_count == 0:
                return
            self._promotions[promotion_id] = replace(promotion, usage_count=promotion.usage_count - 1)
            if self._customer_usage[(promotion_id, customer_id)] > 0:
                self._customer_usage[(promotion_id, customer_id)] -= 1
