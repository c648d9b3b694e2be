"""Order snapshot: the slice of an externally owned order the core reads."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class Order:
    id: int
    tenant_id: int
    loading_date: date
    unloading_date: date
    price_net: Decimal | None = None
    currency: str = "PLN"
    order_number: str | None = None

    def contains(self, day: date) -> bool:
        return self.loading_date <= day <= self.unloading_date

    def clamp(self, day: date) -> date:
        """Pull *day* into the order window."""
        return min(max(day, self.loading_date), self.unloading_date)
