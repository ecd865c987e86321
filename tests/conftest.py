from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from exchange1c.adapters.sqlalchemy import bind_commit_listener, shutdown, startup
from exchange1c.app import build_orchestrator
from exchange1c.config import DEFAULT_MODELS, ExchangeConfig
from exchange1c.domain.events import EventBus, ExchangeEvent
from exchange1c.domain.models import ModelResolver
from tests.support.catalog import MEMORY_MODELS, reset_memory_models

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from exchange1c.domain.exchange import ExchangeOrchestrator

LOGIN = "exchange"
PASSWORD = "secret"


@pytest.fixture(autouse=True)
def memory_models() -> Iterator[dict[str, object]]:
    reset_memory_models()
    try:
        yield MEMORY_MODELS
    finally:
        reset_memory_models()


@pytest.fixture
def import_dir(tmp_path: Path) -> Path:
    return tmp_path / "import"


@pytest.fixture
def exchange_config(import_dir: Path, memory_models: dict[str, object]) -> ExchangeConfig:
    return ExchangeConfig(
        import_dir=import_dir,
        login=LOGIN,
        password=PASSWORD,
        models=memory_models,
    )


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorded_events(bus: EventBus) -> list[ExchangeEvent]:
    events: list[ExchangeEvent] = []
    bus.subscribe(ExchangeEvent, events.append)
    return events


@pytest.fixture
def resolver(memory_models: dict[str, object]) -> ModelResolver:
    return ModelResolver(memory_models)


@pytest.fixture
def orchestrator(exchange_config: ExchangeConfig, bus: EventBus) -> ExchangeOrchestrator:
    return build_orchestrator(exchange_config, bus=bus)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_store(sqlite_engine: Engine) -> Iterator[Engine]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield sqlite_engine
    finally:
        shutdown()


@pytest.fixture
def sqlite_config(import_dir: Path) -> ExchangeConfig:
    return ExchangeConfig(
        import_dir=import_dir,
        login=LOGIN,
        password=PASSWORD,
        models=dict(DEFAULT_MODELS),
    )


@pytest.fixture
def sqlite_orchestrator(
    sqlite_store: Engine,
    sqlite_config: ExchangeConfig,
    bus: EventBus,
) -> ExchangeOrchestrator:
    _ = sqlite_store
    bind_commit_listener(bus)
    return build_orchestrator(sqlite_config, bus=bus)
