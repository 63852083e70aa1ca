from .dto import RoleChangeIn
from .service import UserAdminService

__all__ = ["RoleChangeIn", "UserAdminService"]
