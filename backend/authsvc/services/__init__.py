"""Service layer.

Use cases live in subpackages and are imported from there:

- :mod:`authsvc.services.auth`: :class:`AuthService`, the rotation engine
  (:class:`RefreshTokenRotator`) and the session builder.
- :mod:`authsvc.services.users`: :class:`UserAdminService`.
- :mod:`authsvc.services._shared`: base service, error taxonomy and ports.

This module imports nothing eagerly: repositories depend on the error
taxonomy, and the services depend on the repositories.
"""
