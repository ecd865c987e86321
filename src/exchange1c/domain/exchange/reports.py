"""Outcome summaries of a synchronisation pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Hashable


@dataclass(frozen=True, slots=True)
class SyncFailure:
    external_id: str
    reason: str


@dataclass(slots=True)
class SyncReport:
    """Counts of one pass plus the primary keys of every model it touched."""

    created: int = 0
    updated: int = 0
    failures: list[SyncFailure] = field(default_factory=list[SyncFailure])
    ids: set[Hashable] = field(default_factory=set)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def processed(self) -> int:
        return self.created + self.updated

    def record_failure(self, external_id: str, error: Exception) -> None:
        self.failures.append(SyncFailure(external_id=external_id, reason=str(error)))
