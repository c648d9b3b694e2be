"""Port interface for the driver / vehicle / trailer collaborators."""

from abc import ABC, abstractmethod


class FleetDirectory(ABC):
    @abstractmethod
    async def driver_exists(self, driver_id: int, tenant_id: int) -> bool:
        ...

    @abstractmethod
    async def vehicle_exists(self, vehicle_id: int, tenant_id: int) -> bool:
        ...

    @abstractmethod
    async def trailer_exists(self, trailer_id: int, tenant_id: int) -> bool:
        ...
