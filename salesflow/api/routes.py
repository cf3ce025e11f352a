from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from typing import Optional
import uuid

from salesflow.infrastructure.db import get_db
from salesflow.application.service import OrderService
from salesflow.application.schemas import (
    OrderCreate,
    OrderRead,
    OrderStatusHistoryRead,
    OrderUpdate,
    WorkflowAction,
)
from salesflow.domain.actor import Actor
from salesflow.domain.enums import OrderAction, OrderStatus
from .deps import get_current_actor

router = APIRouter(prefix="/orders", tags=["orders"])

@router.get("/", response_model=list[OrderRead])
def list_orders(
    status: Optional[OrderStatus] = None,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """List the orders visible to the caller, newest first."""
    return OrderService(db).list(actor, status)

@router.post("/", response_model=OrderRead, status_code=201)
def create_order(
    payload: OrderCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return OrderService(db).create(actor, payload)

@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: uuid.UUID, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return OrderService(db).get(actor, order_id)

@router.put("/{order_id}", response_model=OrderRead)
def update_order(
    order_id: uuid.UUID,
    payload: OrderUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return OrderService(db).update(actor, order_id, payload)

@router.delete("/{order_id}", status_code=204)
def delete_order(order_id: uuid.UUID, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    OrderService(db).delete(actor, order_id)
    return None

@router.get("/{order_id}/history", response_model=list[OrderStatusHistoryRead])
def order_history(order_id: uuid.UUID, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return OrderService(db).history(actor, order_id)

def _register_workflow_action(action: OrderAction) -> None:
    path = "/{order_id}/" + action.value.replace("_", "-")

    def run_action(
        order_id: uuid.UUID,
        payload: Optional[WorkflowAction] = Body(default=None),
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db),
    ):
        notes = payload.notes if payload else None
        return OrderService(db).transition(actor, order_id, action, notes)

    run_action.__name__ = f"{action.value}_order"
    router.add_api_route(
        path,
        run_action,
        methods=["POST"],
        response_model=OrderRead,
        summary=f"{action.value.replace('_', ' ').capitalize()} an order",
    )

# submit, approve, reject, start-packing, mark-packed, mark-shipped,
# mark-delivered, fulfill, reopen
for _action in OrderAction:
    _register_workflow_action(_action)
