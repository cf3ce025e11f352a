"""
Role-based visibility and mutation rules for sale orders.

The ``can_*`` predicates are pure; the ``ensure_*`` helpers turn a denial
into the matching error so every caller reports it the same way.
"""

from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy import true

from salesflow.domain.actor import Actor
from salesflow.domain.enums import OrderAction, OrderStatus, UserRole
from salesflow.domain.errors import IllegalTransition, PermissionDenied
from salesflow.domain.models import SaleOrder
from salesflow.domain.workflow import TRANSITIONS


def _owns(actor: Actor, order: SaleOrder) -> bool:
    return actor.is_salesperson and order.salesperson_id == actor.id


def can_create(actor: Actor) -> bool:
    return actor.is_salesperson


def can_view(actor: Actor, order: SaleOrder) -> bool:
    if actor.role in (UserRole.MANAGER, UserRole.WAREHOUSE):
        return True
    return _owns(actor, order)


def can_edit(actor: Actor, order: SaleOrder) -> bool:
    if actor.is_salesperson:
        return _owns(actor, order) and order.status == OrderStatus.DRAFT.value
    if actor.is_manager:
        return order.status != OrderStatus.FULFILLED.value
    return False


def can_delete(actor: Actor, order: SaleOrder) -> bool:
    if actor.is_salesperson:
        return _owns(actor, order) and order.status == OrderStatus.DRAFT.value
    if actor.is_manager:
        return order.status != OrderStatus.FULFILLED.value
    return False


def can_transition(actor: Actor, order: SaleOrder, action: OrderAction) -> bool:
    rule = TRANSITIONS[OrderAction(action)]
    if actor.role != rule.role:
        return False
    if rule.owner_only:
        return _owns(actor, order)
    return True


def visible_orders_filter(actor: Actor) -> ColumnElement:
    """SQL criterion selecting the orders ``actor`` may list."""
    if actor.is_salesperson:
        return SaleOrder.salesperson_id == actor.id
    return true()


def ensure_can_view(actor: Actor, order: SaleOrder) -> None:
    if not can_view(actor, order):
        raise PermissionDenied()


def _ensure_mutation(actor: Actor, order: SaleOrder, allowed: bool, verb: str) -> None:
    if allowed:
        return
    if actor.is_warehouse or not can_view(actor, order):
        raise PermissionDenied()
    # Right actor, wrong moment: the order's status forbids it
    raise IllegalTransition(
        order.status, verb,
        message=f"Cannot {verb} an order in status '{order.status}'",
    )


def ensure_can_edit(actor: Actor, order: SaleOrder) -> None:
    _ensure_mutation(actor, order, can_edit(actor, order), "edit")


def ensure_can_delete(actor: Actor, order: SaleOrder) -> None:
    _ensure_mutation(actor, order, can_delete(actor, order), "delete")
