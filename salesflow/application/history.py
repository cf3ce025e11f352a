from typing import List, Optional
import uuid

from sqlalchemy.orm import Session

from salesflow.domain.models import OrderStatusHistory, utcnow


class HistoryRecorder:
    """Append-only audit trail of order status changes."""

    def __init__(self, db: Session, notes_max_length: int = 1000):
        self.db = db
        self.notes_max_length = notes_max_length

    def record(
        self,
        order_id: uuid.UUID,
        previous_status: str,
        new_status: str,
        actor_id: uuid.UUID,
        notes: Optional[str] = None,
    ) -> OrderStatusHistory:
        entry = OrderStatusHistory(
            order_id=order_id,
            previous_status=getattr(previous_status, "value", previous_status),
            new_status=getattr(new_status, "value", new_status),
            changed_by=actor_id,
            changed_at=utcnow(),
            notes=notes[: self.notes_max_length] if notes else None,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_for_order(self, order_id: uuid.UUID) -> List[OrderStatusHistory]:
        return (
            self.db.query(OrderStatusHistory)
            .filter(OrderStatusHistory.order_id == order_id)
            .order_by(OrderStatusHistory.changed_at, OrderStatusHistory.id)
            .all()
        )
