"""Session-bound repository base for SQLAlchemy 2.x.

Repositories only read and stage writes. They never commit or roll back: the
unit of work that hands them its session owns the transaction.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from authsvc.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


def parse_sort_tokens(raw: Iterable[str]) -> list[tuple[str, bool]]:
    """Turn ``["-created_at", "name"]`` into ``[("created_at", True), ("name", False)]``.

    Blank tokens are dropped.
    """
    parsed: list[tuple[str, bool]] = []
    for token in raw:
        descending = token.startswith("-")
        name = token.lstrip("-").strip()
        if name:
            parsed.append((name, descending))
    return parsed


class BaseRepository(Generic[E]):
    """Persistence helpers for a single mapped model.

    Subclasses set ``model`` and may whitelist sort keys through
    ``_sortable_fields``. Every model here has an opaque string ``id``.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, or the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    @property
    def _pk(self) -> InstrumentedAttribute[Any]:
        return cast(InstrumentedAttribute[Any], self.model.id)  # type: ignore[attr-defined]

    def _sortable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Public sort key → column; unknown keys are ignored."""
        return {}

    # --------------------------------- Writes --------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush so constraints fire inside the caller's transaction."""
        self.session.add(instance)
        self.flush()
        return instance

    def flush(self) -> None:
        self.session.flush()

    # --------------------------------- Reads ---------------------------------

    def get(self, entity_id: str) -> E | None:
        """Point lookup by primary key."""
        stmt = select(self.model).where(self._pk == entity_id)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def get_for_update(self, entity_id: str) -> E | None:
        """Point lookup taking a row lock until the transaction ends.

        SQLite has no row locks and renders a plain ``SELECT``. The identity
        map is refreshed so the caller sees the locked row's current values.
        """
        stmt = (
            select(self.model)
            .where(self._pk == entity_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def list(self, *, sort: Iterable[str] | None = None, limit: int | None = None) -> list[E]:
        """List rows ordered by whitelisted sort keys, then by id."""
        stmt: Select[Any] = select(self.model)
        allowed = self._sortable_fields()
        for name, descending in parse_sort_tokens(sort or []):
            col = allowed.get(name)
            if col is not None:
                stmt = stmt.order_by(col.desc() if descending else col.asc())
        stmt = stmt.order_by(self._pk.asc())
        if limit is not None:
            stmt = stmt.limit(int(limit))
        return cast(list[E], list(self.session.execute(stmt).scalars().all()))
