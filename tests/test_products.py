import pytest

from salesflow.application.products import ProductService
from salesflow.application.schemas import ProductCreate, ProductUpdate
from salesflow.domain.errors import Conflict, NotFound, PermissionDenied

from conftest import force_status


def test_codes_are_generated_in_sequence(db, manager):
    products = ProductService(db)
    first = products.create(manager, ProductCreate(name="Bolt", wholesale_price=1, retail_price=2))
    second = products.create(manager, ProductCreate(name="Nut", wholesale_price=1, retail_price=2))
    assert (first.code, second.code) == ("PRD0001", "PRD0002")


def test_duplicate_code_conflicts(db, manager):
    products = ProductService(db)
    products.create(manager, ProductCreate(code="BOLT", name="Bolt", wholesale_price=1, retail_price=2))
    with pytest.raises(Conflict):
        products.create(manager, ProductCreate(code="BOLT", name="Other", wholesale_price=1, retail_price=2))


def test_only_managers_maintain_products(db, make_product, salesperson, warehouse):
    product = make_product()
    with pytest.raises(PermissionDenied):
        ProductService(db).update(salesperson, product.id, ProductUpdate(stock_quantity=1))
    with pytest.raises(PermissionDenied):
        ProductService(db).delete(warehouse, product.id)


def test_product_on_approved_order_cannot_be_deleted(db, service, make_order, make_product, salesperson, manager, warehouse):
    product = make_product(stock=10)
    order = make_order((product, 4, "1.00"))
    service.submit(salesperson, order.id)
    service.approve(manager, order.id)

    with pytest.raises(Conflict):
        ProductService(db).delete(manager, product.id)

    # The order can still be fulfilled against the product
    order = service.fulfill(warehouse, order.id)
    assert order.status == "fulfilled"
    db.refresh(product)
    assert product.stock_quantity == 6


@pytest.mark.parametrize("status", ["draft", "submitted", "rejected", "packing", "shipped"])
def test_open_orders_block_product_deletion(db, make_order, make_product, manager, status):
    product = make_product()
    force_status(db, make_order((product, 1, "1.00")), status)
    with pytest.raises(Conflict):
        ProductService(db).delete(manager, product.id)
    db.refresh(product)
    assert product.deleted_at is None


@pytest.mark.parametrize("status", ["fulfilled", "delivered"])
def test_closed_orders_do_not_block_deletion(db, make_order, make_product, manager, status):
    product = make_product()
    force_status(db, make_order((product, 1, "1.00")), status)
    products = ProductService(db)
    products.delete(manager, product.id)
    with pytest.raises(NotFound):
        products.get(product.id)


def test_deleted_orders_do_not_block_deletion(db, service, make_order, make_product, salesperson, manager):
    product = make_product()
    order = make_order((product, 1, "1.00"))
    service.delete(salesperson, order.id)
    ProductService(db).delete(manager, product.id)
    db.refresh(product)
    assert product.deleted_at is not None
