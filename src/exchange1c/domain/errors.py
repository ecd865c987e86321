"""Error taxonomy of the exchange core.

Every exception raised by a component derives from :class:`ExchangeError` and
carries the HTTP status the orchestrator answers with once it converts the
fault into a ``failure`` response.
"""

from __future__ import annotations

from typing import ClassVar


class ExchangeError(RuntimeError):
    """Base class for faults surfaced by the exchange protocol."""

    status_code: ClassVar[int] = 500


class AuthRequiredError(ExchangeError):
    """Credentials are wrong, or the session token is missing, unknown or expired."""

    status_code = 401


class SequenceError(ExchangeError):
    """A phase was requested before the phase it depends on."""

    status_code = 409


class UnsupportedOperationError(ExchangeError):
    """Unknown ``mode`` or ``type`` request parameter."""

    status_code = 400


class ExchangeIOError(ExchangeError):
    """Writing, assembling or extracting an uploaded file failed."""


class DanglingReferenceError(ExchangeError):
    """A group names a parent that has not been synchronised yet."""

    def __init__(self, external_id: str, parent_id: str) -> None:
        super().__init__(f"Group {external_id} references unknown parent group {parent_id}")
        self.external_id = external_id
        self.parent_id = parent_id


class SynchronizationError(ExchangeError):
    """Catalog data cannot be applied to the host models."""


class DocumentParseError(SynchronizationError):
    """An uploaded document is not a readable CommerceML document."""


class ModelResolutionError(ExchangeError):
    """No usable host model is registered for a capability."""
