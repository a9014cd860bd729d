"""Import all models so SQLModel.metadata picks them up."""

from panda.models.service import FrpType, Service, ServiceInput, ServiceRead
from panda.models.user import User, UserCreate, UserRead, UserRole, UserRoleUpdate

__all__ = [
    "FrpType",
    "Service",
    "ServiceInput",
    "ServiceRead",
    "User",
    "UserCreate",
    "UserRead",
    "UserRole",
    "UserRoleUpdate",
]
