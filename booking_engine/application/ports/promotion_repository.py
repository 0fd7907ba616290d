from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.promotion import Promotion


class PromotionRepositoryPort(ABC):
    @abstractmethod
    def get_by_code(self, shop_id: str, code: str) -> Promotion | None:
        """Lookup by normalized (upper-case) code."""
        raise NotImplementedError

    @abstractmethod
    def list_for_shop(self, shop_id: str) -> list[Promotion]:
        raise NotImplementedError

    @abstractmethod
    def customer_usage(self, promotion_id: str, customer_id: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def try_increment_usage(self, promotion_id: str, customer_id: str) -> bool:
        """
        Atomically consume one use. Returns False when the overall usage limit
        is already exhausted.
        """
        raise NotImplementedError

    @abstractmethod
    def release_usage(self, promotion_id: str, customer_id: str) -> None:
        """Give back a use consumed by a booking that was never persisted."""
        raise NotImplementedError
