from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import uuid

from salesflow.infrastructure.db import get_db
from salesflow.application.products import ProductService
from salesflow.application.schemas import ProductCreate, ProductRead, ProductUpdate
from salesflow.domain.actor import Actor
from .deps import get_current_actor

router = APIRouter(prefix="/products", tags=["products"])

@router.get("/", response_model=list[ProductRead])
def list_products(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return ProductService(db).list()

@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: uuid.UUID, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return ProductService(db).get(product_id)

@router.post("/", response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return ProductService(db).create(actor, payload)

@router.put("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return ProductService(db).update(actor, product_id, payload)

@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: uuid.UUID, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    ProductService(db).delete(actor, product_id)
    return None
