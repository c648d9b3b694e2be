"""AllocationSummary: read-only aggregate of one order's assignments."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from tms_core.domain.entities.assignment import Assignment
from tms_core.domain.entities.order import Order
from tms_core.domain.policies.temporal_validity import peak_load
from tms_core.domain.value_objects.money import round_money


@dataclass(frozen=True)
class AllocationSummary:
    total: int
    active_count: int
    completed_count: int
    total_revenue_share: float
    remaining_share: float
    total_allocated: Decimal
    order_price: Decimal | None
    currency: str


def summarize(
    assignments: list[Assignment],
    order: Order,
    as_of: date | None = None,
) -> AllocationSummary:
    """Project counts, committed share and allocated money for *order*.

    The committed share is the peak concurrent share over the rest of the
    order window, starting at *as_of* (default today) clamped into the
    window. Assignments that start in the future or already ended therefore
    count only where they actually overlap, so ``remaining_share`` is the
    ceiling a new open-ended assignment starting at *as_of* could take.
    """
    reference = order.clamp(as_of or date.today())
    committed = peak_load(assignments, order, reference, order.unloading_date)

    allocated = sum(
        (a.allocated_amount for a in assignments if a.allocated_amount is not None),
        Decimal(0),
    )

    return AllocationSummary(
        total=len(assignments),
        active_count=sum(1 for a in assignments if a.is_open()),
        completed_count=sum(1 for a in assignments if a.is_completed()),
        total_revenue_share=round(committed, 6),
        remaining_share=max(0.0, round(1.0 - committed, 6)),
        total_allocated=round_money(allocated, order.currency),
        order_price=order.price_net,
        currency=order.currency,
    )
