from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.service import Service
from booking_engine.domain.entities.shop import Shop


class CatalogPort(ABC):
    @abstractmethod
    def get_shop(self, shop_id: str) -> Shop | None:
        raise NotImplementedError

    @abstractmethod
    def get_service(self, service_id: str) -> Service | None:
        raise NotImplementedError
