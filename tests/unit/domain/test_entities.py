"""Tests for domain entities and errors."""

from datetime import date

from tms_core.domain.entities.assignment import Assignment
from tms_core.domain.entities.audit_entry import AuditEntry
from tms_core.domain.entities.order import Order
from tms_core.domain.errors import (
    AssignmentError,
    ConcurrentModificationError,
    DeleteForbiddenError,
    NotFoundError,
    OverallocatedError,
    PrimaryConflictError,
    TenantMismatchError,
    ValidationError,
)
from tms_core.domain.value_objects.enums import AssignmentReason, AuditAction, ErrorCode


def _assignment(**overrides) -> Assignment:
    fields = dict(
        id=1, tenant_id=1, order_id=10, driver_id=5,
        start_date=date(2026, 1, 5), revenue_share=1.0,
    )
    fields.update(overrides)
    return Assignment(**fields)


def test_assignment_defaults():
    a = _assignment()
    assert a.reason == AssignmentReason.INITIAL
    assert a.is_active is True
    assert a.is_primary is False
    assert a.allocated_amount is None
    assert a.allocated_amount_overridden is False


def test_open_assignment():
    a = _assignment()
    assert a.is_open()
    assert not a.is_completed()


def test_ended_assignment():
    a = _assignment(end_date=date(2026, 1, 6))
    assert not a.is_open()
    assert a.is_completed()


def test_inactive_assignment_is_not_open():
    assert not _assignment(is_active=False).is_open()


def test_open_primary():
    assert _assignment(is_primary=True).is_open_primary()
    assert not _assignment(is_primary=True, end_date=date(2026, 1, 6)).is_open_primary()
    assert not _assignment(is_primary=False).is_open_primary()


def test_order_contains_and_clamp():
    order = Order(id=1, tenant_id=1, loading_date=date(2026, 1, 5), unloading_date=date(2026, 1, 6))
    assert order.contains(date(2026, 1, 5))
    assert order.contains(date(2026, 1, 6))
    assert not order.contains(date(2026, 1, 7))
    assert order.clamp(date(2026, 1, 1)) == date(2026, 1, 5)
    assert order.clamp(date(2026, 2, 1)) == date(2026, 1, 6)
    assert order.currency == "PLN"


def test_audit_entry_defaults():
    entry = AuditEntry(id=None, tenant_id=1, action=AuditAction.CREATE, entity_id=3)
    assert entry.changes is None
    assert entry.metadata is None
    assert entry.user_id is None


def test_error_to_dict():
    err = ValidationError("Bad share", field="revenueShare")
    assert err.to_dict() == {
        "error": "Bad share",
        "errorCode": "VALIDATION",
        "field": "revenueShare",
    }
    assert err.http_status == 400
    assert str(err) == "Bad share"


def test_error_statuses():
    assert NotFoundError("x").http_status == 404
    assert TenantMismatchError("x").http_status == 404
    assert TenantMismatchError("x").code == ErrorCode.TENANT_MISMATCH
    assert PrimaryConflictError("x").http_status == 409
    assert DeleteForbiddenError("x").http_status == 409
    assert ConcurrentModificationError("x").http_status == 409
    assert isinstance(TenantMismatchError("x"), NotFoundError)
    assert isinstance(NotFoundError("x"), AssignmentError)


def test_overallocated_error_details():
    err = OverallocatedError(
        remaining_share=0.23,
        window_start=date(2026, 1, 5),
        window_end=date(2026, 1, 6),
        requested_share=0.5,
    )
    body = err.to_dict()
    assert body["errorCode"] == "OVERALLOCATED"
    assert body["remainingShare"] == 0.23
    assert body["windowStart"] == "2026-01-05"
    assert body["windowEnd"] == "2026-01-06"
    assert body["requestedShare"] == 0.5
    assert "maximum available share: 23%" in body["error"]
    assert err.http_status == 400
