from datetime import date
from decimal import Decimal
import uuid

import pytest

from salesflow.application.schemas import OrderItemCreate, OrderUpdate
from salesflow.domain.enums import OrderStatus
from salesflow.domain.errors import IllegalTransition, InvalidReference, NotFound, PermissionDenied
from salesflow.domain.models import OrderItem, SaleOrder

from conftest import force_status, order_payload


def test_create_builds_owned_draft(service, make_product, salesperson):
    product = make_product(stock=1)
    order = service.create(salesperson, order_payload(
        (product, 2, "4.50"), delivery_date=date(2026, 11, 2), notes="leave at gate"
    ))
    assert order.status == "draft"
    assert order.salesperson_id == salesperson.id
    assert order.delivery_date == date(2026, 11, 2)
    assert order.total_amount == Decimal("9.00")
    assert order.items[0].line_status == "pending"


def test_create_with_unknown_product_persists_nothing(db, service, make_product, salesperson):
    product = make_product()
    payload = order_payload((product, 1, "1.00"))
    payload.items.append(OrderItemCreate(product_id=uuid.uuid4(), quantity=1, unit_price=Decimal("1.00")))

    with pytest.raises(InvalidReference):
        service.create(salesperson, payload)
    assert db.query(SaleOrder).count() == 0
    assert db.query(OrderItem).count() == 0


@pytest.mark.parametrize("role_fixture", ["manager", "warehouse"])
def test_only_salespeople_create(request, service, make_product, role_fixture):
    actor = request.getfixturevalue(role_fixture)
    with pytest.raises(PermissionDenied):
        service.create(actor, order_payload((make_product(), 1, "1.00")))


def test_get_and_list_respect_ownership(service, make_order, make_product, salesperson, other_salesperson, manager, warehouse):
    product = make_product()
    mine = make_order((product, 1, "1.00"))
    theirs = make_order((product, 1, "1.00"), owner=other_salesperson)

    assert [o.id for o in service.list(salesperson)] == [mine.id]
    assert {o.id for o in service.list(manager)} == {mine.id, theirs.id}
    assert {o.id for o in service.list(warehouse)} == {mine.id, theirs.id}
    with pytest.raises(PermissionDenied):
        service.get(salesperson, theirs.id)


def test_list_filters_by_status(service, make_order, make_product, salesperson, manager):
    product = make_product()
    draft = make_order((product, 1, "1.00"))
    submitted = make_order((product, 1, "1.00"))
    service.submit(salesperson, submitted.id)

    assert [o.id for o in service.list(manager, OrderStatus.SUBMITTED)] == [submitted.id]
    assert [o.id for o in service.list(manager, OrderStatus.DRAFT)] == [draft.id]


def test_unknown_order(service, manager):
    with pytest.raises(NotFound):
        service.get(manager, uuid.uuid4())


def test_edit_replaces_items_wholesale(db, service, make_order, make_product, salesperson):
    old = make_product("Old")
    new = make_product("New", stock=1)
    order = make_order((old, 1, "1.00"), (old, 2, "1.00"))

    patch = OrderUpdate(
        customer_name="Acme Holdings",
        items=order_payload((new, 3, "7.00")).items,
    )
    order = service.update(salesperson, order.id, patch)

    assert order.customer_name == "Acme Holdings"
    assert order.contact_person == "Jane Roe"
    assert [(i.product_id, i.quantity, i.line_total, i.is_in_stock) for i in order.items] == [
        (new.id, 3, Decimal("21.00"), False)
    ]
    assert db.query(OrderItem).filter(OrderItem.order_id == order.id).count() == 1


def test_edit_without_items_keeps_lines(service, make_order, make_product, salesperson):
    product = make_product()
    order = make_order((product, 2, "5.00"))
    item_ids = [item.id for item in order.items]

    order = service.update(salesperson, order.id, OrderUpdate(notes="call first", contact_person=None))
    assert order.notes == "call first"
    assert order.contact_person == "Jane Roe"
    assert [item.id for item in order.items] == item_ids


def test_edit_with_unknown_product_changes_nothing(db, service, make_order, make_product, salesperson):
    order = make_order((make_product(), 1, "1.00"), customer_name="Before")
    patch = OrderUpdate(
        customer_name="After",
        items=[OrderItemCreate(product_id=uuid.uuid4(), quantity=1, unit_price=Decimal("1.00"))],
    )
    with pytest.raises(InvalidReference):
        service.update(salesperson, order.id, patch)
    db.refresh(order)
    assert order.customer_name == "Before"
    assert len(order.items) == 1


def test_salesperson_edits_only_drafts(service, make_order, make_product, salesperson, other_salesperson):
    order = make_order((make_product(), 1, "1.00"))
    with pytest.raises(PermissionDenied):
        service.update(other_salesperson, order.id, OrderUpdate(notes="hi"))

    service.submit(salesperson, order.id)
    with pytest.raises(IllegalTransition):
        service.update(salesperson, order.id, OrderUpdate(notes="too late"))


def test_manager_edits_until_fulfilled(db, service, make_order, make_product, manager, warehouse):
    order = force_status(db, make_order((make_product(), 1, "1.00")), OrderStatus.SHIPPED)
    assert service.update(manager, order.id, OrderUpdate(shipping_address="2 Quay St")).shipping_address == "2 Quay St"
    with pytest.raises(PermissionDenied):
        service.update(warehouse, order.id, OrderUpdate(notes="x"))

    force_status(db, order, OrderStatus.FULFILLED)
    with pytest.raises(IllegalTransition):
        service.update(manager, order.id, OrderUpdate(notes="x"))


def test_soft_delete_hides_order(db, service, make_order, make_product, salesperson, manager):
    order = make_order((make_product(), 1, "1.00"))
    service.delete(salesperson, order.id)

    with pytest.raises(NotFound):
        service.get(manager, order.id)
    assert service.list(manager) == []
    db.refresh(order)
    assert order.deleted_at is not None
    with pytest.raises(NotFound):
        service.submit(salesperson, order.id)


def test_salesperson_deletes_only_own_drafts(service, make_order, make_product, salesperson, other_salesperson):
    order = make_order((make_product(), 1, "1.00"))
    with pytest.raises(PermissionDenied):
        service.delete(other_salesperson, order.id)
    service.submit(salesperson, order.id)
    with pytest.raises(IllegalTransition):
        service.delete(salesperson, order.id)


def test_manager_deletes_approved_order(service, make_order, make_product, salesperson, manager):
    order = make_order((make_product(), 1, "1.00"))
    service.submit(salesperson, order.id)
    service.approve(manager, order.id)
    service.delete(manager, order.id)
    with pytest.raises(NotFound):
        service.get(manager, order.id)


@pytest.mark.parametrize("role_fixture", ["salesperson", "manager", "warehouse"])
def test_fulfilled_order_is_never_deletable(request, db, service, make_order, make_product, role_fixture):
    order = force_status(db, make_order((make_product(), 1, "1.00")), OrderStatus.FULFILLED)
    actor = request.getfixturevalue(role_fixture)
    with pytest.raises((IllegalTransition, PermissionDenied)):
        service.delete(actor, order.id)
    db.refresh(order)
    assert order.deleted_at is None
