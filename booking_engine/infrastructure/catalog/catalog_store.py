from __future__ import annotations

from booking_engine.application.ports.catalog import CatalogPort
from booking_engine.domain.entities.service import Service
from booking_engine.domain.entities.shop import Shop


class CatalogStore(CatalogPort):
    def __init__(self, shops: list[Shop] | None = None, services: list[Service] | None = None) -> None:
        self._shops = {shop.id: shop for shop in shops or []}
        self._services = {service.id: service for service in services or []}

    def get_shop(self, shop_id: str) -> Shop | None:
        return self._shops.get(shop_id)

    def get_service(self, service_id: str) -> Service | None:
        return self._services.get(service_id)

    def add_shop(self, shop: Shop) -> None:
        self._shops[shop.id] = shop

    def add_service(self, service: Service) -> None:
        self._services[service.id] = service
