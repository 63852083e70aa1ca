"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Service code that
commits only releases its own SAVEPOINT; the outer transaction is rolled back
after every test.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from authsvc.core.config import TestingConfig
from authsvc.core.extensions import db as _db
from authsvc.factory import create_app
from authsvc.services._shared.ports import StubIdentityProvider, StubTokenProvider
from authsvc.uow import SQLAlchemyUnitOfWork


@pytest.fixture(scope="session")
def app():
    """Testing app on in-memory SQLite; ``DATABASE_URL`` from the shell is ignored."""
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create the users and refresh_tokens tables once and drop them at the end.

    No app context stays pushed between tests; see :func:`app_context`.
    """
    with app.app_context():
        _db.create_all()
    yield _db
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(app, db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    with app.app_context():
        conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture()
def app_context(app):
    """Push a fresh application context per test so ``g`` starts empty."""
    with app.app_context() as ctx:
        yield ctx


@pytest.fixture(scope="function")
def session(app_context, db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; automatically rolled
        back after each test.

    Notes
    -----
    The connection holds a top-level transaction plus a SAVEPOINT, so the
    session joins in ``create_savepoint`` mode: ``commit()``/``rollback()``
    issued by units of work only affect the session's own SAVEPOINT.
    Objects are not expired on commit so they stay readable after a test
    client request tears the scoped session down.
    """
    top_trans = connection.begin()

    SessionFactory = sessionmaker(bind=connection, future=True, expire_on_commit=False)
    scoped = scoped_session(SessionFactory)

    nested = connection.begin_nested()

    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture()
def client(app, session):
    """Return a Flask test client sharing the transactional session."""
    return app.test_client()


@pytest.fixture()
def uow_factory(session) -> Callable[[], SQLAlchemyUnitOfWork]:
    """Read-write unit-of-work factory bound to the test session."""
    return lambda: SQLAlchemyUnitOfWork(session)


@pytest.fixture()
def token_provider() -> StubTokenProvider:
    return StubTokenProvider()


@pytest.fixture()
def identity_provider() -> StubIdentityProvider:
    return StubIdentityProvider()


@pytest.fixture(scope="session")
def faker():
    """Seeded Faker shared by the whole run."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


@pytest.fixture()
def freeze_time() -> Callable[[str | None], Any]:
    """Factory returning :func:`freezegun.freeze_time`.

    Examples
    --------
    >>> def test_with_frozen_time(freeze_time):
    ...     with freeze_time("2024-01-01"):
    ...         ...
    """
    from freezegun import freeze_time as _freeze_time

    def _factory(target: str | None = None) -> Any:
        return _freeze_time(target or "2024-01-01")

    return _factory


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield
