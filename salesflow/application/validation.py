from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Protocol
import uuid

from sqlalchemy.orm import Session

from salesflow.domain.errors import InvalidReference, StockIssue
from salesflow.domain.models import Product

CENT = Decimal("0.01")


class RequestedItem(Protocol):
    product_id: uuid.UUID
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class ValidatedItem:
    product: Product
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    is_in_stock: bool

    @property
    def product_id(self) -> uuid.UUID:
        return self.product.id


@dataclass
class ItemValidation:
    validated: List[ValidatedItem] = field(default_factory=list)
    stock_issues: List[StockIssue] = field(default_factory=list)

    @property
    def all_in_stock(self) -> bool:
        return not self.stock_issues


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    return (Decimal(quantity) * unit_price).quantize(CENT)


class ItemValidator:
    """Checks requested lines against the product catalogue and current stock."""

    def __init__(self, db: Session):
        self.db = db

    def _load_products(self, product_ids) -> dict:
        products = (
            self.db.query(Product)
            .filter(Product.id.in_(set(product_ids)), Product.deleted_at.is_(None))
            .populate_existing()
            .all()
        )
        return {product.id: product for product in products}

    def validate(self, items: Iterable[RequestedItem]) -> ItemValidation:
        """
        Validate ``items`` and compute their line totals and stock flags.

        Any line naming a missing or deleted product fails the whole batch
        with InvalidReference. Stock is compared against the total quantity
        requested per product, so split lines of one product are judged
        together and reported as a single issue. Shortfalls are only
        reported, never raised; gating transitions decide what to do with them.
        """
        items = list(items)
        products = self._load_products(item.product_id for item in items)
        requested = defaultdict(int)
        for item in items:
            if item.product_id not in products:
                raise InvalidReference(item.product_id)
            requested[item.product_id] += item.quantity

        result = ItemValidation()
        reported = set()
        for item in items:
            product = products[item.product_id]
            unit_price = Decimal(str(item.unit_price)).quantize(CENT, rounding=ROUND_HALF_UP)
            total_requested = requested[item.product_id]
            is_in_stock = product.stock_quantity >= total_requested
            result.validated.append(ValidatedItem(
                product=product,
                quantity=item.quantity,
                unit_price=unit_price,
                line_total=line_total(item.quantity, unit_price),
                is_in_stock=is_in_stock,
            ))
            if not is_in_stock and product.id not in reported:
                reported.add(product.id)
                result.stock_issues.append(StockIssue(
                    product=product.name,
                    requested=total_requested,
                    available=product.stock_quantity,
                ))
        return result
