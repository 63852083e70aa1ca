# authsvc/services/_shared/base.py
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from authsvc.core import errors as api_errors
from authsvc.services._shared.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ServiceError,
    TokenError,
)
from authsvc.services._shared.policies.common import is_admin, is_owner
from authsvc.uow.base import UnitOfWork
from authsvc.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data (auth, request ids, client).

    :param actor_id: Authenticated user identifier.
    :param actor_role: Role claim of the authenticated user.
    :param request_id: Correlation id for logging/tracing.
    :param user_agent: Client ``User-Agent``, stored on issued refresh tokens.
    :param ip_address: Client address, stored on issued refresh tokens.
    """

    actor_id: str | None = None
    actor_role: str | None = None
    request_id: str | None = None
    user_agent: str | None = None
    ip_address: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Keep services thin, orchestration-only, no web/ORM leakage.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    - ``uow_factory`` replaces the read-write UoW (tests inject a bound one).
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    def __init__(
        self,
        *,
        ctx: ServiceContext | None = None,
        uow_factory: Callable[[], UnitOfWork] | None = None,
    ) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (auth, tracing).
        :type ctx: ServiceContext | None
        :param uow_factory: Optional factory for read-write units of work.
        :type uow_factory: Callable[[], UnitOfWork] | None
        """
        self.ctx = ctx or ServiceContext()
        self._uow_factory = uow_factory

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> UnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: UnitOfWork
        """
        if self._uow_factory is not None:
            return self._uow_factory()
        return SQLAlchemyUnitOfWork()

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level (e.g. "READ COMMITTED").
        :type isolation: str | None
        :param enforce_db_readonly: Apply ``SET TRANSACTION READ ONLY`` when supported.
        :type enforce_db_readonly: bool
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc))

        if isinstance(exc, TokenError):
            # → 401 with the token-specific code
            return api_errors.Unauthorized(str(exc), code=exc.code)

        if isinstance(exc, AuthenticationError):
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, AuthorizationError):
            return api_errors.Forbidden(str(exc))

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="bad_request",
            )

        return exc

    # --------------------------- AuthZ --------------------------------

    def ensure_owner_or_admin(
        self, actor_id: str | None, owner_id: str, *, msg: str | None = None
    ) -> None:
        """
        Ensure the current actor is the resource owner or an admin.

        :param actor_id: Authenticated user id.
        :param owner_id: Expected owner id.
        :param msg: Optional custom error message.
        :raises AuthorizationError: If the actor is neither.
        """
        if is_admin(self.ctx.actor_role):
            return
        if not is_owner(actor_id=actor_id, owner_id=owner_id):
            raise AuthorizationError(msg or "You can only access your own account.")

    def ensure_admin(self, *, msg: str | None = None) -> None:
        """:raises AuthorizationError: Unless the context actor is an admin."""
        if not is_admin(self.ctx.actor_role):
            raise AuthorizationError(msg or "Administrator role required.")
