from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import uuid

from salesflow.core.logging_config import get_logger
from salesflow.core_settings import Settings, get_settings
from salesflow.domain.actor import Actor
from salesflow.domain.enums import LineStatus, OrderAction, OrderStatus
from salesflow.domain.errors import (
    IllegalTransition,
    InsufficientStock,
    NotFound,
    PartialFailure,
    PermissionDenied,
)
from salesflow.domain.models import OrderItem, OrderStatusHistory, SaleOrder, utcnow
from salesflow.domain.workflow import ACTOR_FIELDS, TRANSITIONS, TransitionRule, next_statuses
from . import access
from .history import HistoryRecorder
from .schemas import OrderCreate, OrderUpdate
from .stock import StockLedger
from .validation import ItemValidation, ItemValidator

logger = get_logger(__name__)

# Columns that may not be cleared through an edit
REQUIRED_FIELDS = {"customer_name", "contact_person", "email", "notes"}


class OrderService:
    """
    Order workflow engine.

    Every status change is applied with a compare-and-set UPDATE guarded on
    the expected source status, so two requests racing from the same state
    cannot both succeed. The status change, item updates, stock consumption
    and history entry of one transition are committed together.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.validator = ItemValidator(db)
        self.ledger = StockLedger(db)
        self.history_recorder = HistoryRecorder(db, self.settings.NOTES_MAX_LENGTH)

    # -- queries ---------------------------------------------------------

    def _get_active_order(self, order_id: uuid.UUID) -> SaleOrder:
        order = (
            self.db.query(SaleOrder)
            .filter(SaleOrder.id == order_id, SaleOrder.deleted_at.is_(None))
            .first()
        )
        if order is None:
            raise NotFound("Order not found")
        return order

    def get(self, actor: Actor, order_id: uuid.UUID) -> SaleOrder:
        order = self._get_active_order(order_id)
        access.ensure_can_view(actor, order)
        return order

    def list(self, actor: Actor, status: Optional[OrderStatus] = None) -> List[SaleOrder]:
        query = self.db.query(SaleOrder).filter(
            SaleOrder.deleted_at.is_(None),
            access.visible_orders_filter(actor),
        )
        if status is not None:
            query = query.filter(SaleOrder.status == OrderStatus(status).value)
        return query.order_by(SaleOrder.created_at.desc()).all()

    def history(self, actor: Actor, order_id: uuid.UUID) -> List[OrderStatusHistory]:
        order = self.get(actor, order_id)
        return self.history_recorder.list_for_order(order.id)

    # -- draft maintenance -----------------------------------------------

    def _build_items(self, validation: ItemValidation) -> List[OrderItem]:
        return [
            OrderItem(
                product_id=checked.product_id,
                position=position,
                quantity=checked.quantity,
                unit_price=checked.unit_price,
                line_total=checked.line_total,
                is_in_stock=checked.is_in_stock,
                line_status=LineStatus.PENDING.value,
            )
            for position, checked in enumerate(validation.validated)
        ]

    def create(self, actor: Actor, data: OrderCreate) -> SaleOrder:
        if not access.can_create(actor):
            raise PermissionDenied("Only salespeople can create orders")
        # Drafts may be oversold; only a missing product aborts creation
        validation = self.validator.validate(data.items)
        now = utcnow()
        order = SaleOrder(
            id=uuid.uuid4(),
            customer_name=data.customer_name,
            contact_person=data.contact_person,
            email=data.email,
            shipping_address=data.shipping_address,
            delivery_date=data.delivery_date,
            notes=data.notes or "",
            status=OrderStatus.DRAFT.value,
            salesperson_id=actor.id,
            created_at=now,
            updated_at=now,
        )
        order.items = self._build_items(validation)
        try:
            self.db.add(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        logger.info(
            f"Order {order.id} created",
            extra={'extra_fields': {
                'order_id': str(order.id),
                'items': len(order.items),
                'stock_issues': len(validation.stock_issues),
            }}
        )
        return order

    def update(self, actor: Actor, order_id: uuid.UUID, patch: OrderUpdate) -> SaleOrder:
        order = self._get_active_order(order_id)
        access.ensure_can_edit(actor, order)

        fields = patch.model_dump(exclude_unset=True, exclude={"items"})
        validation = self.validator.validate(patch.items) if patch.items is not None else None

        try:
            # Pin the status we authorised against
            self._compare_and_set(order, order.status, order.status)
            for key, value in fields.items():
                if value is None and key in REQUIRED_FIELDS:
                    continue
                setattr(order, key, value)
            if validation is not None:
                order.items.clear()
                self.db.flush()
                order.items.extend(self._build_items(validation))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        logger.info(
            f"Order {order.id} updated",
            extra={'extra_fields': {
                'order_id': str(order.id),
                'fields': sorted(fields),
                'items_replaced': validation is not None,
            }}
        )
        return order

    def delete(self, actor: Actor, order_id: uuid.UUID) -> None:
        order = self._get_active_order(order_id)
        access.ensure_can_delete(actor, order)
        try:
            self._compare_and_set(order, order.status, order.status, deleted_at=utcnow())
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(
            f"Order {order.id} deleted",
            extra={'extra_fields': {'order_id': str(order.id), 'status': order.status}}
        )

    # -- workflow --------------------------------------------------------

    def _compare_and_set(self, order: SaleOrder, expected: str, target: str, **values) -> None:
        """Move ``order`` to ``target`` only if it is still in ``expected``."""
        result = self.db.execute(
            update(SaleOrder)
            .where(
                SaleOrder.id == order.id,
                SaleOrder.status == expected,
                SaleOrder.deleted_at.is_(None),
            )
            .values(status=target, updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = self.db.execute(
                select(SaleOrder.status).where(SaleOrder.id == order.id)
            ).scalar()
            raise IllegalTransition(
                current or expected, target,
                message=f"Order {order.id} changed concurrently; expected status '{expected}'",
            )
        self.db.refresh(order)

    def _consume_stock(self, items: List[OrderItem]) -> None:
        for item in items:
            if item.is_in_stock:
                self.ledger.decrement_stock(item.product_id, item.quantity)
                item.line_status = LineStatus.FULFILLED.value
            else:
                item.line_status = LineStatus.BACKORDERED.value

    def _record_detached(self, order: SaleOrder, previous: str, actor: Actor, notes: Optional[str]) -> None:
        try:
            self.history_recorder.record(order.id, previous, order.status, actor.id, notes)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                f"Status history write failed for order {order.id}",
                exc_info=True,
                extra={'extra_fields': {
                    'order_id': str(order.id),
                    'previous_status': previous,
                    'new_status': order.status,
                }}
            )
            raise PartialFailure(order.id, previous, order.status) from exc

    def transition(
        self,
        actor: Actor,
        order_id: uuid.UUID,
        action: OrderAction,
        notes: Optional[str] = None,
    ) -> SaleOrder:
        rule: TransitionRule = TRANSITIONS[OrderAction(action)]
        order = self._get_active_order(order_id)
        access.ensure_can_view(actor, order)
        if order.status != rule.source.value:
            raise IllegalTransition(
                order.status, rule.target,
                allowed=sorted(status.value for status in next_statuses(order.status)),
            )
        if not access.can_transition(actor, order, rule.action):
            raise PermissionDenied()

        items = list(order.items)
        validation = None
        if rule.stock_check:
            validation = self.validator.validate(items)
            if not validation.all_in_stock:
                raise InsufficientStock(validation.stock_issues)

        previous = order.status
        values = {}
        if rule.role in ACTOR_FIELDS:
            values[ACTOR_FIELDS[rule.role]] = actor.id

        try:
            self._compare_and_set(order, rule.source.value, rule.target.value, **values)
            if validation is not None:
                for item, checked in zip(items, validation.validated):
                    item.is_in_stock = checked.is_in_stock
                    item.unit_price = checked.unit_price
                    item.line_total = checked.line_total
            if rule.action == OrderAction.FULFILL:
                self._consume_stock(items)
            if self.settings.HISTORY_IN_TRANSACTION:
                self.history_recorder.record(order.id, previous, rule.target, actor.id, notes)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if not self.settings.HISTORY_IN_TRANSACTION:
            self._record_detached(order, previous, actor, notes)

        self.db.refresh(order)
        logger.info(
            f"Order {order.id} moved from {previous} to {order.status}",
            extra={'extra_fields': {
                'order_id': str(order.id),
                'action': rule.action.value,
                'previous_status': previous,
                'new_status': order.status,
                'actor_role': actor.role.value,
            }}
        )
        return order

    def submit(self, actor: Actor, order_id: uuid.UUID, notes: Optional[str] = None) -> SaleOrder:
        return self.transition(actor, order_id, OrderAction.SUBMIT, notes)

    def approve(self, actor: Actor, order_id: uuid.UUID, notes: Optional[str] = None) -> SaleOrder:
        return self.transition(actor, order_id, OrderAction.APPROVE, notes)

    def reject(self, actor: Actor, order_id: uuid.UUID, notes: Optional[str] = None) -> SaleOrder:
        return self.transition(actor, order_id, OrderAction.REJECT, notes)

    def start_packing(self, actor: Actor, order_id: uuid.UUID, notes: Optional[str] = None) -> SaleOrder:
        return self.transition(actor, order_id, OrderAction.START_PACKING, notes)

    def mark_packed(self, actor: Actor, order_id: uuid.UUID, notes: Optional[str] = None) -> SaleOrder:
        return self.transition(actor, order_id, OrderAction.MARK_PACKED, notes)

    def mark_shipped(self, actor: Actor, order_id: uuid.UUID, notes: Optional[str] = None) -> SaleOrder:
        return self.transition(actor, order_id, OrderAction.MARK_SHIPPED, notes)

    def mark_delivered(self, actor: Actor, order_id: uuid.UUID, notes: Optional[str] = None) -> SaleOrder:
        return self.transition(actor, order_id, OrderAction.MARK_DELIVERED, notes)

    def fulfill(self, actor: Actor, order_id: uuid.UUID, notes: Optional[str] = None) -> SaleOrder:
        return self.transition(actor, order_id, OrderAction.FULFILL, notes)

    def reopen(self, actor: Actor, order_id: uuid.UUID, notes: Optional[str] = None) -> SaleOrder:
        return self.transition(actor, order_id, OrderAction.REOPEN, notes)
