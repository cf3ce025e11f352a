import pytest
from sqlalchemy.exc import OperationalError

from salesflow.application.service import OrderService
from salesflow.core_settings import Settings
from salesflow.domain.errors import PartialFailure, PermissionDenied

from conftest import history_rows, order_payload


def test_history_listing_is_chronological(db, service, make_order, make_product, salesperson, manager):
    order = make_order((make_product(), 1, "1.00"))
    service.submit(salesperson, order.id, notes="first")
    service.reject(manager, order.id, notes="second")
    service.reopen(salesperson, order.id)

    entries = service.history(salesperson, order.id)
    assert [(e.previous_status, e.new_status, e.notes) for e in entries] == [
        ("draft", "submitted", "first"),
        ("submitted", "rejected", "second"),
        ("rejected", "draft", None),
    ]
    assert [e.changed_by for e in entries] == [salesperson.id, manager.id, salesperson.id]


def test_history_requires_visibility(service, make_order, make_product, other_salesperson):
    order = make_order((make_product(), 1, "1.00"))
    with pytest.raises(PermissionDenied):
        service.history(other_salesperson, order.id)


def test_detached_history_failure_surfaces_partial_failure(db, make_product, salesperson, monkeypatch):
    settings = Settings(HISTORY_IN_TRANSACTION=False)
    service = OrderService(db, settings)
    order = service.create(salesperson, order_payload((make_product(), 1, "1.00")))

    def broken_record(*args, **kwargs):
        raise OperationalError("INSERT INTO order_status_history", {}, Exception("disk I/O error"))

    monkeypatch.setattr(service.history_recorder, "record", broken_record)

    with pytest.raises(PartialFailure) as exc_info:
        service.submit(salesperson, order.id)
    assert exc_info.value.details() == {
        "order_id": str(order.id),
        "previous_status": "draft",
        "new_status": "submitted",
    }

    # The status change stays committed
    db.refresh(order)
    assert order.status == "submitted"
    assert history_rows(db, order) == []


def test_detached_history_records_when_healthy(db, make_product, salesperson):
    service = OrderService(db, Settings(HISTORY_IN_TRANSACTION=False))
    order = service.create(salesperson, order_payload((make_product(), 1, "1.00")))
    service.submit(salesperson, order.id)
    assert [(h.previous_status, h.new_status) for h in history_rows(db, order)] == [("draft", "submitted")]


def test_in_transaction_history_failure_rolls_back_status(db, service, make_order, make_product, salesperson, monkeypatch):
    order = make_order((make_product(), 1, "1.00"))

    def broken_record(*args, **kwargs):
        raise OperationalError("INSERT INTO order_status_history", {}, Exception("disk I/O error"))

    monkeypatch.setattr(service.history_recorder, "record", broken_record)

    with pytest.raises(OperationalError):
        service.submit(salesperson, order.id)
    db.refresh(order)
    assert order.status == "draft"
