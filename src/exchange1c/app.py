"""Composition root wiring configuration, host models and the exchange core."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from exchange1c.adapters.commerceml import parse_document
from exchange1c.adapters.http import create_app as create_http_app
from exchange1c.adapters.sqlalchemy import bind_commit_listener, is_started, startup
from exchange1c.config import get_exchange_config
from exchange1c.domain.events import EventBus
from exchange1c.domain.exchange import (
    AuthGate,
    CategorySyncEngine,
    ExchangeOrchestrator,
    FileReceiver,
    OfferSyncEngine,
)
from exchange1c.domain.models import ModelResolver

if TYPE_CHECKING:
    from fastapi import FastAPI

    from exchange1c.config import ExchangeConfig
    from exchange1c.domain.ports.parsing import DocumentParser

log = getLogger(__name__)

_REFERENCE_MODELS_PACKAGE = "exchange1c.adapters.sqlalchemy"


def uses_reference_models(resolver: ModelResolver) -> bool:
    """Return whether any capability resolves to the bundled SQLAlchemy models."""

    return any(
        model.__module__.startswith(_REFERENCE_MODELS_PACKAGE)
        for model in (resolver.group_model, resolver.product_model, resolver.offer_model)
    )


def build_orchestrator(
    config: ExchangeConfig | None = None,
    *,
    bus: EventBus | None = None,
    parser: DocumentParser = parse_document,
    resolver: ModelResolver | None = None,
) -> ExchangeOrchestrator:
    """Assemble an orchestrator from configuration.

    Model resolution happens here so a misconfigured host fails at startup
    with :class:`ModelResolutionError` instead of during the first import.
    """

    config = config or get_exchange_config()
    bus = bus or EventBus()
    resolver = resolver or ModelResolver(config.models)
    config.ensure_import_dir()

    return ExchangeOrchestrator(
        config,
        auth=AuthGate(config),
        files=FileReceiver(config),
        categories=CategorySyncEngine(resolver, bus),
        offers=OfferSyncEngine(resolver, bus, import_dir=config.resolve_import_dir()),
        parser=parser,
        bus=bus,
    )


def build_exchange(
    config: ExchangeConfig | None = None,
    *,
    bus: EventBus | None = None,
) -> ExchangeOrchestrator:
    """Build an orchestrator and, for the bundled models, their database."""

    config = config or get_exchange_config()
    bus = bus or EventBus()
    resolver = ModelResolver(config.models)
    if uses_reference_models(resolver):
        if not is_started():
            startup()
        bind_commit_listener(bus)
        log.info("Using the SQLAlchemy catalog models")
    return build_orchestrator(config, bus=bus, resolver=resolver)


def create_app(config: ExchangeConfig | None = None) -> FastAPI:
    """FastAPI application serving the exchange endpoint."""

    config = config or get_exchange_config()
    return create_http_app(build_exchange(config), config)
