"""SQLAlchemy reference implementation of the catalog host models."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .models import (
    CatalogGroup,
    CatalogOffer,
    CatalogOfferPrice,
    CatalogPriceType,
    CatalogProduct,
    CatalogProperty,
)
from .state import StartupError, current_session
from .unit_of_work import bind_commit_listener, is_started, shutdown, startup

__all__ = [
    "CatalogGroup",
    "CatalogOffer",
    "CatalogOfferPrice",
    "CatalogPriceType",
    "CatalogProduct",
    "CatalogProperty",
    "StartupError",
    "bind_commit_listener",
    "create_all_tables",
    "current_session",
    "is_started",
    "mapper_registry",
    "shutdown",
    "startup",
]
