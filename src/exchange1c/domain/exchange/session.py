"""Per-exchange session state owned by the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from exchange1c.domain.records import Classifier


class ExchangePhase(StrEnum):
    CHECKAUTH = "checkauth"
    INIT = "init"
    FILE = "file"
    IMPORT = "import"
    COMPLETE = "complete"


@dataclass(slots=True)
class ExchangeSession:
    """One exchange run, from ``checkauth`` until ``complete`` or expiry."""

    token: str
    import_dir: Path
    phase: ExchangePhase = ExchangePhase.CHECKAUTH
    received_files: set[str] = field(default_factory=set[str])
    classifier: Classifier | None = None
    classifier_synced: bool = False

    def advance(self, phase: ExchangePhase) -> None:
        self.phase = phase

    def mark_received(self, *names: str) -> None:
        self.received_files.update(names)

    def reset_files(self) -> None:
        self.received_files.clear()
