# authsvc/services/users/dto.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RoleChangeIn:
    """
    Input DTO for changing a user's role.

    :param user_id: Target user id.
    :type user_id: str
    :param role: New role name (current or legacy alias).
    :type role: str
    """

    user_id: str
    role: str
