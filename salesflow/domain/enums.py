from enum import Enum

class OrderStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    PACKING = "packing"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"

class LineStatus(str, Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    BACKORDERED = "backordered"

class UserRole(str, Enum):
    SALESPERSON = "salesperson"
    MANAGER = "manager"
    WAREHOUSE = "warehouse"

class OrderAction(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    START_PACKING = "start_packing"
    MARK_PACKED = "mark_packed"
    MARK_SHIPPED = "mark_shipped"
    MARK_DELIVERED = "mark_delivered"
    FULFILL = "fulfill"
    REOPEN = "reopen"
