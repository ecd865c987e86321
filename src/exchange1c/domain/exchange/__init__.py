"""Exchange protocol orchestration and catalog synchronisation engines."""

from __future__ import annotations

from .auth import AuthGate
from .categories import CategorySyncEngine
from .files import FileAck, FileReceiver, sanitize_filename
from .offers import OfferSyncEngine
from .orchestrator import ExchangeOrchestrator, ExchangeResponse, PhaseParams, failure_response
from .reports import SyncFailure, SyncReport
from .session import ExchangePhase, ExchangeSession

__all__ = [
    "AuthGate",
    "CategorySyncEngine",
    "ExchangeOrchestrator",
    "ExchangePhase",
    "ExchangeResponse",
    "ExchangeSession",
    "FileAck",
    "FileReceiver",
    "OfferSyncEngine",
    "PhaseParams",
    "SyncFailure",
    "SyncReport",
    "failure_response",
    "sanitize_filename",
]
