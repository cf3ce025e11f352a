import uuid

from sqlalchemy import update
from sqlalchemy.orm import Session

from salesflow.domain.errors import InsufficientStock, NotFound, StockIssue
from salesflow.domain.models import Product, utcnow


class StockLedger:
    def __init__(self, db: Session):
        self.db = db

    def _get_product(self, product_id: uuid.UUID) -> Product:
        product = (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.deleted_at.is_(None))
            .populate_existing()
            .first()
        )
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        return product

    def get_stock(self, product_id: uuid.UUID) -> int:
        return self._get_product(product_id).stock_quantity

    def decrement_stock(self, product_id: uuid.UUID, amount: int) -> None:
        """
        Consume ``amount`` units in a single conditional UPDATE.

        The row only changes while enough stock remains, so concurrent
        fulfilments can never drive the quantity negative; the loser of
        such a race gets InsufficientStock.
        """
        if amount <= 0:
            raise ValueError(f"Decrement amount must be positive, got {amount}")
        result = self.db.execute(
            update(Product)
            .where(
                Product.id == product_id,
                Product.deleted_at.is_(None),
                Product.stock_quantity >= amount,
            )
            .values(stock_quantity=Product.stock_quantity - amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            product = self._get_product(product_id)
            raise InsufficientStock([
                StockIssue(product=product.name, requested=amount, available=product.stock_quantity)
            ])
