"""RevenueAllocationPolicy: money earned by one assignment."""

from __future__ import annotations

from decimal import Decimal

from tms_core.domain.value_objects.money import round_money, to_decimal


def allocate(
    order_price: Decimal | int | float | None,
    revenue_share: float,
    manual_override: Decimal | int | float | None = None,
    currency: str | None = "PLN",
) -> Decimal | int | float | None:
    """Allocated amount for an assignment.

    Args:
        order_price: order net price, ``None`` while the order is unpriced.
        revenue_share: fraction of the order revenue, in (0, 1].
        manual_override: operator-entered amount; returned unchanged.
        currency: ISO 4217 code deciding the rounding precision.

    Returns:
        The override when given, ``None`` for an unpriced order, otherwise
        ``order_price * revenue_share`` rounded half-up to the currency's
        minor units.
    """
    if manual_override is not None:
        return manual_override
    if order_price is None:
        return None
    return round_money(to_decimal(order_price) * to_decimal(revenue_share), currency)
