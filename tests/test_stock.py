import uuid

import pytest

from salesflow.application.stock import StockLedger
from salesflow.domain.errors import InsufficientStock, NotFound


def test_get_stock(db, make_product):
    product = make_product(stock=7)
    assert StockLedger(db).get_stock(product.id) == 7


def test_decrement_consumes_exact_amount(db, make_product):
    product = make_product(stock=10)
    ledger = StockLedger(db)
    ledger.decrement_stock(product.id, 4)
    db.commit()
    assert ledger.get_stock(product.id) == 6


def test_decrement_never_goes_negative(db, make_product):
    product = make_product("Gear", stock=3)
    ledger = StockLedger(db)
    with pytest.raises(InsufficientStock) as exc_info:
        ledger.decrement_stock(product.id, 4)
    assert exc_info.value.details() == {
        "stock_issues": [{"product": "Gear", "requested": 4, "available": 3}]
    }
    assert ledger.get_stock(product.id) == 3


def test_decrement_to_zero(db, make_product):
    product = make_product(stock=3)
    ledger = StockLedger(db)
    ledger.decrement_stock(product.id, 3)
    assert ledger.get_stock(product.id) == 0


@pytest.mark.parametrize("amount", [0, -2])
def test_decrement_requires_positive_amount(db, make_product, amount):
    product = make_product()
    with pytest.raises(ValueError):
        StockLedger(db).decrement_stock(product.id, amount)


def test_unknown_product(db):
    with pytest.raises(NotFound):
        StockLedger(db).get_stock(uuid.uuid4())
    with pytest.raises(NotFound):
        StockLedger(db).decrement_stock(uuid.uuid4(), 1)
