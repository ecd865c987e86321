"""Lifecycle of the SQLAlchemy catalog store and its transaction boundaries.

The exchange core issues one call per record and never commits; here each
synchronisation pass becomes one transaction: pending changes are discarded
when a pass starts and committed when it finishes. A pass aborted by an error
therefore leaves nothing behind: a failed call rolls back and releases the
session of its thread, and the next pass starts from a clean slate.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine

from exchange1c.config import get_database_config
from exchange1c.domain.events import (
    AfterCategorySync,
    AfterOffersSync,
    AfterProductsSync,
    BeforeCategorySync,
    BeforeOffersSync,
    BeforeProductsSync,
    ExchangeEvent,
    ExchangeFailed,
)

from .mappings import create_all_tables, start_mappers
from .models import CatalogOffer
from .state import STATE, StartupError, current_session

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from exchange1c.domain.events import EventBus

log = getLogger(__name__)

_PASS_STARTS = (BeforeCategorySync, BeforeProductsSync, BeforeOffersSync)
_PASS_ENDS = (AfterCategorySync, AfterProductsSync, AfterOffersSync)


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, mappers and tables."""

    if STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    start_mappers()
    create_all_tables(resolved_engine)
    STATE.engine = resolved_engine


def is_started() -> bool:
    return STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if STATE.engine is not None:
        STATE.engine.dispose()
    STATE.engine = None


def _begin_pass(event: ExchangeEvent) -> None:
    session = current_session()
    if session.new or session.dirty or session.deleted:
        log.warning("Discarding changes left by an aborted pass before %s", type(event).__name__)
    session.rollback()


def _finish_pass(event: ExchangeEvent) -> None:
    if isinstance(event, AfterOffersSync) and not event.only_changes:
        retired = CatalogOffer.deactivate_missing(event.ids)
        if retired:
            log.info("Deactivated %s offers missing from the feed", retired)
    current_session().commit()


def _abort_pass(event: ExchangeEvent) -> None:
    if STATE.engine is None:
        return
    # closing rolls back and hands the connection back to the pool
    STATE.sessions.remove()
    log.debug("Released the catalog session after %s", type(event).__name__)


def bind_commit_listener(bus: EventBus) -> None:
    """Make every synchronisation pass published on ``bus`` one transaction."""

    for event_type in _PASS_STARTS:
        bus.subscribe(event_type, _begin_pass)
    for event_type in _PASS_ENDS:
        bus.subscribe(event_type, _finish_pass)
    bus.subscribe(ExchangeFailed, _abort_pass)
