from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager


class IdempotencyStorePort(ABC):
    @abstractmethod
    def hold(self, token: str) -> AbstractContextManager[None]:
        """Serialise callers sharing `token` for the duration of the block."""
        raise NotImplementedError

    @abstractmethod
    def get(self, token: str) -> str | None:
        """Appointment id previously recorded for `token`, if still retained."""
        raise NotImplementedError

    @abstractmethod
    def remember(self, token: str, appointment_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def forget(self, token: str) -> None:
        """Drop the record for `token`; a no-op when there is none."""
        raise NotImplementedError
