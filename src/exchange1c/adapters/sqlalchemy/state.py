"""Engine and session state shared by the SQLAlchemy host models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session, scoped_session, sessionmaker

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy models are used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _sessions: scoped_session[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        if self._sessions is not None:
            self._sessions.remove()
        self._sessions = None
        self._engine = value

    @property
    def sessions(self) -> scoped_session[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call exchange1c.adapters.sqlalchemy."
                "unit_of_work.startup() before using the catalog models."
            )
        if self._sessions is None:
            self._sessions = scoped_session(
                sessionmaker(bind=self._engine, expire_on_commit=False)
            )
        return self._sessions


STATE = _AdapterState()


def current_session() -> Session:
    """Return the session of the calling thread."""

    return STATE.sessions()
