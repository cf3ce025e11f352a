from sqlalchemy.orm import Session
from typing import List
import uuid

from salesflow.domain.actor import Actor
from salesflow.domain.errors import Conflict, NotFound, PermissionDenied
from salesflow.domain.enums import OrderStatus
from salesflow.domain.models import OrderItem, Product, SaleOrder, utcnow
from .schemas import ProductCreate, ProductUpdate

# Orders in these statuses no longer read their products
CLOSED_STATUSES = (OrderStatus.FULFILLED.value, OrderStatus.DELIVERED.value)

class ProductService:
    """Catalogue plumbing: products and the stock levels orders are checked against."""

    def __init__(self, db: Session):
        self.db = db

    def _generate_code(self) -> str:
        """Generate the next product code in format PRD####"""
        latest_product = self.db.query(Product).filter(
            Product.code.like('PRD%')
        ).order_by(Product.code.desc()).first()

        next_num = 1
        if latest_product and latest_product.code:
            try:
                next_num = int(latest_product.code.replace('PRD', '')) + 1
            except ValueError:
                # Hand-entered code that merely starts with PRD
                next_num = self.db.query(Product).count() + 1
        return f"PRD{next_num:04d}"

    def _ensure_manager(self, actor: Actor) -> None:
        if not actor.is_manager:
            raise PermissionDenied("Only managers can maintain products")

    def _ensure_unique_code(self, code: str, exclude_id: uuid.UUID = None) -> None:
        query = self.db.query(Product).filter(Product.code == code)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first() is not None:
            raise Conflict(f"Product code {code} already exists")

    def _ensure_not_on_open_orders(self, product: Product) -> None:
        open_orders = (
            self.db.query(SaleOrder.id)
            .join(OrderItem, OrderItem.order_id == SaleOrder.id)
            .filter(
                OrderItem.product_id == product.id,
                SaleOrder.deleted_at.is_(None),
                SaleOrder.status.notin_(CLOSED_STATUSES),
            )
            .distinct()
            .count()
        )
        if open_orders:
            raise Conflict(
                f"Product {product.code} is still used by {open_orders} open order(s)"
            )

    def list(self) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.deleted_at.is_(None))
            .order_by(Product.name)
            .all()
        )

    def get(self, product_id: uuid.UUID) -> Product:
        product = self.db.query(Product).filter(
            Product.id == product_id, Product.deleted_at.is_(None)
        ).first()
        if not product:
            raise NotFound("Product not found")
        return product

    def create(self, actor: Actor, data: ProductCreate) -> Product:
        self._ensure_manager(actor)
        product_data = data.model_dump()
        if not product_data.get('code'):
            product_data['code'] = self._generate_code()
        self._ensure_unique_code(product_data['code'])

        obj = Product(**product_data)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update(self, actor: Actor, product_id: uuid.UUID, data: ProductUpdate) -> Product:
        self._ensure_manager(actor)
        product = self.get(product_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if 'code' in changes:
            self._ensure_unique_code(changes['code'], exclude_id=product.id)
        for key, value in changes.items():
            setattr(product, key, value)
        product.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete(self, actor: Actor, product_id: uuid.UUID) -> None:
        self._ensure_manager(actor)
        product = self.get(product_id)
        self._ensure_not_on_open_orders(product)
        product.deleted_at = utcnow()
        self.db.commit()
