"""Role → permission mapping."""

from __future__ import annotations

from authsvc.models.user import UserRole, coerce_role

BASE_PERMISSIONS: tuple[str, ...] = (
    "auth:register",
    "auth:login",
    "auth:token:validate",
    "profile:read",
)
ADMIN_PERMISSIONS: tuple[str, ...] = ("users:read", "users:write")


def permissions_for(role: UserRole | str | None) -> list[str]:
    """Return the permission list for ``role``; unknown roles get the base set."""
    resolved = coerce_role(role, strict=False)
    if resolved is UserRole.ADMIN:
        return [*BASE_PERMISSIONS, *ADMIN_PERMISSIONS]
    return list(BASE_PERMISSIONS)
