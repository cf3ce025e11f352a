import uuid
from dataclasses import dataclass

from .enums import UserRole

@dataclass(frozen=True)
class Actor:
    """An already-authenticated caller with a resolved role."""
    id: uuid.UUID
    role: UserRole

    @property
    def is_salesperson(self) -> bool:
        return self.role == UserRole.SALESPERSON

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER

    @property
    def is_warehouse(self) -> bool:
        return self.role == UserRole.WAREHOUSE
