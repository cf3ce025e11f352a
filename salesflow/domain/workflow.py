"""Order lifecycle transition table."""

from dataclasses import dataclass
from typing import Dict, Set

from .enums import OrderAction, OrderStatus, UserRole


@dataclass(frozen=True)
class TransitionRule:
    action: OrderAction
    source: OrderStatus
    target: OrderStatus
    role: UserRole
    stock_check: bool = False
    owner_only: bool = False


# ``approved`` has two outgoing terminal paths: the packing pipeline that ends
# at ``delivered`` and the direct ``fulfill`` shortcut, which is the only edge
# that consumes stock.
TRANSITIONS: Dict[OrderAction, TransitionRule] = {
    rule.action: rule
    for rule in (
        TransitionRule(OrderAction.SUBMIT, OrderStatus.DRAFT, OrderStatus.SUBMITTED,
                       UserRole.SALESPERSON, stock_check=True, owner_only=True),
        TransitionRule(OrderAction.APPROVE, OrderStatus.SUBMITTED, OrderStatus.APPROVED,
                       UserRole.MANAGER, stock_check=True),
        TransitionRule(OrderAction.REJECT, OrderStatus.SUBMITTED, OrderStatus.REJECTED,
                       UserRole.MANAGER),
        TransitionRule(OrderAction.START_PACKING, OrderStatus.APPROVED, OrderStatus.PACKING,
                       UserRole.WAREHOUSE),
        TransitionRule(OrderAction.MARK_PACKED, OrderStatus.PACKING, OrderStatus.PACKED,
                       UserRole.WAREHOUSE),
        TransitionRule(OrderAction.MARK_SHIPPED, OrderStatus.PACKED, OrderStatus.SHIPPED,
                       UserRole.WAREHOUSE),
        TransitionRule(OrderAction.MARK_DELIVERED, OrderStatus.SHIPPED, OrderStatus.DELIVERED,
                       UserRole.WAREHOUSE),
        TransitionRule(OrderAction.FULFILL, OrderStatus.APPROVED, OrderStatus.FULFILLED,
                       UserRole.WAREHOUSE),
        TransitionRule(OrderAction.REOPEN, OrderStatus.REJECTED, OrderStatus.DRAFT,
                       UserRole.SALESPERSON),
    )
}

# Column stamped with the acting user's id, by role
ACTOR_FIELDS: Dict[UserRole, str] = {
    UserRole.MANAGER: "manager_id",
    UserRole.WAREHOUSE: "warehouse_id",
}


def next_statuses(current: str) -> Set[OrderStatus]:
    return {rule.target for rule in TRANSITIONS.values() if rule.source.value == current}
