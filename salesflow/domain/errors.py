"""
Typed failures raised by the order core.

Each error carries a stable ``kind`` used by the API layer when it
translates the failure into a transport response, plus optional
structured ``details``.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class StockIssue:
    product: str
    requested: int
    available: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class OrderError(Exception):
    kind = "order_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> Dict[str, Any]:
        return {}


class NotFound(OrderError):
    kind = "not_found"


class PermissionDenied(OrderError):
    kind = "permission_denied"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class IllegalTransition(OrderError):
    kind = "illegal_transition"

    def __init__(
        self,
        current: str,
        attempted: str,
        message: Optional[str] = None,
        allowed: Optional[List[str]] = None,
    ):
        self.current = getattr(current, "value", current)
        self.attempted = getattr(attempted, "value", attempted)
        self.allowed = allowed
        super().__init__(
            message or f"Cannot move order from '{self.current}' to '{self.attempted}'"
        )

    def details(self) -> Dict[str, Any]:
        details = {"current_status": self.current, "attempted": self.attempted}
        if self.allowed is not None:
            details["allowed"] = self.allowed
        return details


class InsufficientStock(OrderError):
    kind = "insufficient_stock"

    def __init__(self, issues: List[StockIssue]):
        self.issues = list(issues)
        super().__init__("Insufficient stock for some items")

    def details(self) -> Dict[str, Any]:
        return {"stock_issues": [issue.to_dict() for issue in self.issues]}


class InvalidReference(OrderError):
    kind = "invalid_reference"

    def __init__(self, product_id: Any):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")

    def details(self) -> Dict[str, Any]:
        return {"product_id": str(self.product_id)}


class PartialFailure(OrderError):
    """The status change committed but its audit record did not."""
    kind = "partial_failure"

    def __init__(self, order_id: Any, previous_status: str, new_status: str):
        self.order_id = order_id
        self.previous_status = previous_status
        self.new_status = new_status
        super().__init__(
            f"Order {order_id} moved from '{previous_status}' to '{new_status}' "
            "but the status history could not be written"
        )

    def details(self) -> Dict[str, Any]:
        return {
            "order_id": str(self.order_id),
            "previous_status": self.previous_status,
            "new_status": self.new_status,
        }


class Conflict(OrderError):
    kind = "conflict"
