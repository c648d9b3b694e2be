"""Port interface for assignment persistence."""

from abc import ABC, abstractmethod

from tms_core.domain.entities.assignment import Assignment


class AssignmentRepository(ABC):
    @abstractmethod
    async def add(self, assignment: Assignment) -> Assignment:
        ...

    @abstractmethod
    async def update(self, assignment: Assignment) -> Assignment:
        ...

    @abstractmethod
    async def delete(self, assignment_id: int) -> None:
        ...

    @abstractmethod
    async def get_by_id(self, assignment_id: int) -> Assignment | None:
        """Return the assignment regardless of tenant; callers check ownership."""
        ...

    @abstractmethod
    async def list_by_order(
        self, tenant_id: int, order_id: int, include_inactive: bool = True
    ) -> list[Assignment]:
        ...

    @abstractmethod
    async def get_version(self, order_id: int) -> int:
        """Current version token of the order's assignment set (0 when unseen)."""
        ...

    @abstractmethod
    async def bump_version(self, order_id: int, expected: int) -> bool:
        """Advance the version if it still equals *expected*.

        Returns False when another transaction changed the set in between.
        """
        ...
