# authsvc/services/users/service.py
from __future__ import annotations

import logging

from authsvc.models.user import coerce_role
from authsvc.services._shared.base import BaseService
from authsvc.services._shared.errors import NotFoundError, ServiceError
from authsvc.services.auth.dto import ProfileOut, UserPublicOut
from authsvc.services.auth.permissions import permissions_for
from authsvc.services.auth.session import user_public_out
from authsvc.services.users.dto import RoleChangeIn

logger = logging.getLogger(__name__)


class UserAdminService(BaseService):
    """
    Administrative operations over user accounts.

    The acting user comes from ``ctx`` (``actor_id`` / ``actor_role``).
    """

    def list_users(self) -> list[UserPublicOut]:
        """
        List every user, newest first.

        :raises AuthorizationError: Unless the actor is an admin.
        """
        self.ensure_admin()
        with self.ro_uow() as uow:
            return [user_public_out(u) for u in uow.users.list_newest_first()]

    def get_user(self, user_id: str) -> ProfileOut:
        """
        Fetch one user with its permissions.

        :param user_id: Target user id.
        :raises AuthorizationError: Unless the actor is that user or an admin.
        :raises NotFoundError: When the user does not exist.
        """
        self.ensure_owner_or_admin(self.ctx.actor_id, user_id)
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return ProfileOut(user=user_public_out(user), permissions=permissions_for(user.role))

    def change_role(self, dto: RoleChangeIn) -> UserPublicOut:
        """
        Promote or demote a user.

        :raises AuthorizationError: Unless the actor is an admin.
        :raises ServiceError: Unknown role name.
        :raises NotFoundError: When the user does not exist.
        """
        self.ensure_admin()
        try:
            role = coerce_role(dto.role)
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc

        with self.rw_uow() as uow:
            user = uow.users.get_for_update(dto.user_id)
            if user is None:
                raise NotFoundError("User", dto.user_id)
            user.role = role
            uow.users.flush()
            out = user_public_out(user)

        logger.info(
            "users.role_changed",
            extra={"user_id": out.id, "role": out.role, "actor_id": self.ctx.actor_id},
        )
        return out
