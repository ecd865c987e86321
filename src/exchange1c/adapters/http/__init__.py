"""HTTP transport for the exchange endpoint."""

from __future__ import annotations

from .routes import EXCHANGE_PATH, create_app, create_router

__all__ = ["EXCHANGE_PATH", "create_app", "create_router"]
