"""TemporalValidityPolicy: consistency of one order's assignment set over time.

Assignments cover closed day intervals ``[start_date, end_date]``; an open
assignment runs until the order's unloading date. Only active assignments take
part in the checks, soft-retired ones are kept for audit only.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from tms_core.domain.entities.assignment import Assignment
from tms_core.domain.entities.order import Order
from tms_core.domain.errors import (
    OutOfRangeError,
    OverallocatedError,
    PrimaryConflictError,
    ValidationError,
)

SHARE_TOLERANCE = 0.001
_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class LoadSegment:
    """A run of days over which the summed revenue share is constant."""

    start: date
    end: date
    load: float


def effective_interval(assignment: Assignment, order: Order) -> tuple[date, date]:
    end = assignment.end_date if assignment.end_date is not None else order.unloading_date
    return assignment.start_date, min(end, order.unloading_date)


def load_profile(
    assignments: Iterable[Assignment],
    order: Order,
    start: date,
    end: date,
) -> list[LoadSegment]:
    """Sweep-line over the active assignments, restricted to ``[start, end]``.

    Each assignment contributes ``+share`` on its first day and ``-share`` on
    the day after its effective end. Walking the sorted event days yields a
    piecewise-constant load profile covering the whole range.
    """
    if start > end:
        return []

    deltas: dict[date, float] = defaultdict(float)
    deltas[start] += 0.0
    for a in assignments:
        if not a.is_active:
            continue
        a_start, a_end = effective_interval(a, order)
        lo, hi = max(a_start, start), min(a_end, end)
        if lo > hi:
            continue
        deltas[lo] += a.revenue_share
        deltas[hi + _ONE_DAY] -= a.revenue_share

    points = sorted(deltas)
    segments: list[LoadSegment] = []
    running = 0.0
    for i, point in enumerate(points):
        running = round(running + deltas[point], 9)
        if point > end:
            break
        seg_end = points[i + 1] - _ONE_DAY if i + 1 < len(points) else end
        segments.append(LoadSegment(start=point, end=min(seg_end, end), load=running))
    return segments


def peak_load(
    assignments: Iterable[Assignment], order: Order, start: date, end: date
) -> float:
    return max((s.load for s in load_profile(assignments, order, start, end)), default=0.0)


def available_share(
    assignments: Iterable[Assignment], order: Order, start: date, end: date
) -> float:
    """Largest share a new assignment covering ``[start, end]`` could still take."""
    return max(0.0, round(1.0 - peak_load(assignments, order, start, end), 6))


def check_structure(proposed: Assignment) -> None:
    """Field-level rules that need no other assignment."""
    if not 0 < proposed.revenue_share <= 1:
        raise ValidationError(
            "Revenue share must be greater than 0% and at most 100%",
            field="revenueShare",
        )
    if proposed.end_date is not None and proposed.end_date < proposed.start_date:
        raise ValidationError(
            "End date cannot be earlier than the start date", field="endDate"
        )
    if proposed.reason.requires_note() and not (proposed.reason_note or "").strip():
        raise ValidationError(
            "A note is required when the reason is OTHER", field="reasonNote"
        )
    if proposed.distance_km is not None and proposed.distance_km <= 0:
        raise ValidationError("Distance must be positive", field="distanceKm")
    if (
        proposed.allocated_amount_overridden
        and proposed.allocated_amount is not None
        and proposed.allocated_amount < 0
    ):
        raise ValidationError(
            "Allocated amount cannot be negative", field="allocatedAmount"
        )


def check_range(proposed: Assignment, order: Order) -> None:
    if proposed.start_date < order.loading_date:
        raise OutOfRangeError(
            "Start date cannot be earlier than the loading date",
            field="startDate",
            loadingDate=order.loading_date.isoformat(),
        )
    if proposed.start_date > order.unloading_date:
        raise OutOfRangeError(
            "Start date cannot be later than the unloading date",
            field="startDate",
            unloadingDate=order.unloading_date.isoformat(),
        )
    if proposed.end_date is not None and proposed.end_date > order.unloading_date:
        raise OutOfRangeError(
            "End date cannot be later than the unloading date",
            field="endDate",
            unloadingDate=order.unloading_date.isoformat(),
        )


def check_primary(assignments: Iterable[Assignment]) -> None:
    open_primaries = [a for a in assignments if a.is_open_primary()]
    if len(open_primaries) > 1:
        raise PrimaryConflictError(
            "Only one open assignment per order can be primary",
            primaryAssignmentIds=[a.id for a in open_primaries if a.id is not None],
        )


def check_allocation(
    others: list[Assignment],
    proposed: Assignment,
    order: Order,
    tolerance: float = SHARE_TOLERANCE,
) -> None:
    start, end = effective_interval(proposed, order)
    profile = load_profile([*others, proposed], order, start, end)

    over = [s for s in profile if s.load > 1.0 + tolerance]
    if not over:
        return

    # Report the first contiguous run of overloaded days
    window_start, window_end = over[0].start, over[0].end
    for seg in over[1:]:
        if seg.start != window_end + _ONE_DAY:
            break
        window_end = seg.end

    raise OverallocatedError(
        remaining_share=available_share(others, order, start, end),
        window_start=window_start,
        window_end=window_end,
        requested_share=proposed.revenue_share,
    )


def validate(
    existing: list[Assignment],
    proposed: Assignment,
    order: Order,
    *,
    replacing_id: int | None = None,
    tolerance: float = SHARE_TOLERANCE,
) -> None:
    """Validate *proposed* against the other assignments of *order*.

    Args:
        existing: current assignments of the order (any state).
        proposed: the assignment being created, or the edited version of one.
        order: the owning order.
        replacing_id: id of the stored assignment *proposed* replaces; defaults
            to ``proposed.id`` so an edit never collides with itself.
        tolerance: floating slack allowed above 100%.

    Raises:
        ValidationError, OutOfRangeError, OverallocatedError,
        PrimaryConflictError: on the first violated rule.
    """
    check_structure(proposed)
    check_range(proposed, order)

    exclude_id = replacing_id if replacing_id is not None else proposed.id
    others = [a for a in existing if exclude_id is None or a.id != exclude_id]

    if proposed.is_active:
        check_allocation(others, proposed, order, tolerance)
    check_primary([*others, proposed])
