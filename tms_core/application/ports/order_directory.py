"""Port interface for the order-management collaborator."""

from abc import ABC, abstractmethod

from tms_core.domain.entities.order import Order


class OrderDirectory(ABC):
    @abstractmethod
    async def get_order(self, order_id: int, tenant_id: int) -> Order | None:
        ...
