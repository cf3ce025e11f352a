from pydantic import BaseModel, Field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional
import uuid

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

class OrderItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0)

class OrderCreate(BaseModel):
    customer_name: str = Field(min_length=1, max_length=200)
    contact_person: str = Field(min_length=1, max_length=100)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    shipping_address: Optional[str] = Field(default=None, max_length=500)
    delivery_date: Optional[date] = None
    notes: str = Field(default="", max_length=1000)
    items: list[OrderItemCreate] = Field(min_length=1)

class OrderUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    contact_person: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN, max_length=255)
    shipping_address: Optional[str] = Field(default=None, max_length=500)
    delivery_date: Optional[date] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    # When given, replaces every existing line of the order
    items: Optional[list[OrderItemCreate]] = Field(default=None, min_length=1)

class WorkflowAction(BaseModel):
    notes: Optional[str] = None

class OrderItemRead(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    unit_price: float
    line_total: float
    is_in_stock: bool
    line_status: str
    class Config:
        from_attributes = True

class OrderRead(BaseModel):
    id: uuid.UUID
    customer_name: str
    contact_person: str
    email: str
    shipping_address: Optional[str] = None
    delivery_date: Optional[date] = None
    notes: str
    status: str
    salesperson_id: uuid.UUID
    manager_id: Optional[uuid.UUID] = None
    warehouse_id: Optional[uuid.UUID] = None
    total_amount: float
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemRead]
    class Config:
        from_attributes = True

class OrderStatusHistoryRead(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID
    previous_status: str
    new_status: str
    changed_by: uuid.UUID
    changed_at: datetime
    notes: Optional[str] = None
    class Config:
        from_attributes = True

class ProductCreate(BaseModel):
    code: Optional[str] = Field(default=None, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, max_length=100)
    wholesale_price: Decimal = Field(ge=0)
    retail_price: Decimal = Field(ge=0)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=1)
    stock_quantity: int = Field(default=0, ge=0)

class ProductUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, max_length=100)
    wholesale_price: Optional[Decimal] = Field(default=None, ge=0)
    retail_price: Optional[Decimal] = Field(default=None, ge=0)
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=1)
    stock_quantity: Optional[int] = Field(default=None, ge=0)

class ProductRead(BaseModel):
    id: uuid.UUID
    code: str
    name: str
    category: Optional[str] = None
    wholesale_price: float
    retail_price: float
    tax_rate: float
    stock_quantity: int
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True
