"""Protocol state machine driving one catalog exchange.

Each call names a ``mode``; the orchestrator checks that the phases it depends
on already happened, runs it, and answers with the line-based body the ERP
expects. Every fault is converted here into a ``failure`` body; nothing raised
by a component reaches the transport.
"""

from __future__ import annotations

import threading
import traceback
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, NamedTuple

from exchange1c.domain.errors import (
    AuthRequiredError,
    ExchangeError,
    SequenceError,
    UnsupportedOperationError,
)
from exchange1c.domain.events import ExchangeCompleted, ExchangeFailed
from exchange1c.domain.exchange.files import sanitize_filename
from exchange1c.domain.exchange.session import ExchangePhase, ExchangeSession

if TYPE_CHECKING:
    from collections.abc import Callable

    from exchange1c.config import ExchangeConfig
    from exchange1c.domain.events import EventBus
    from exchange1c.domain.exchange.auth import AuthGate
    from exchange1c.domain.exchange.categories import CategorySyncEngine
    from exchange1c.domain.exchange.files import FileReceiver
    from exchange1c.domain.exchange.offers import OfferSyncEngine
    from exchange1c.domain.ports.parsing import DocumentParser

log = getLogger(__name__)

CATALOG_TYPE = "catalog"


@dataclass(frozen=True, slots=True, kw_only=True)
class PhaseParams:
    """Request parameters of one exchange call."""

    type: str = CATALOG_TYPE
    token: str | None = None
    login: str | None = None
    password: str | None = None
    filename: str | None = None
    part: int | None = None
    content: bytes = b""


class ExchangeResponse(NamedTuple):
    body: str
    status_code: int = 200

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def failure_response(error: BaseException, status_code: int) -> ExchangeResponse:
    lines = ["failure", str(error) or type(error).__name__]
    frames = traceback.extract_tb(error.__traceback__)
    if frames:
        lines.extend((frames[-1].filename, str(frames[-1].lineno)))
    return ExchangeResponse("\n".join(lines), status_code)


class ExchangeOrchestrator:
    def __init__(
        self,
        config: ExchangeConfig,
        *,
        auth: AuthGate,
        files: FileReceiver,
        categories: CategorySyncEngine,
        offers: OfferSyncEngine,
        parser: DocumentParser,
        bus: EventBus,
    ) -> None:
        self._config = config
        self._auth = auth
        self._files = files
        self._categories = categories
        self._offers = offers
        self._parser = parser
        self._bus = bus
        self._sessions: dict[str, ExchangeSession] = {}
        self._lock = threading.Lock()
        self._phases: dict[str, Callable[[PhaseParams], str]] = {
            ExchangePhase.CHECKAUTH: self._checkauth,
            ExchangePhase.INIT: self._init,
            ExchangePhase.FILE: self._file,
            ExchangePhase.IMPORT: self._import,
            ExchangePhase.COMPLETE: self._complete,
        }

    def handle(self, mode: str | None, params: PhaseParams | None = None) -> ExchangeResponse:
        params = params or PhaseParams()
        with self._lock:
            try:
                body = self._dispatch(mode, params)
            except ExchangeError as exc:
                log.warning("Exchange mode=%s failed: %s", mode, exc)
                self._publish_failure(mode, exc)
                return failure_response(exc, exc.status_code)
            except Exception as exc:  # noqa: BLE001
                log.exception("Unexpected failure in exchange mode=%s", mode)
                self._publish_failure(mode, exc)
                return failure_response(exc, 500)
        return ExchangeResponse(body)

    def _publish_failure(self, mode: str | None, error: BaseException) -> None:
        # the failure body is answered even when a handler breaks
        try:
            self._bus.publish(ExchangeFailed(mode=mode, error=error))
        except Exception:  # noqa: BLE001
            log.exception("ExchangeFailed handler raised for mode=%s", mode)

    def active_session(self, token: str | None) -> ExchangeSession | None:
        if token is None:
            return None
        return self._sessions.get(token)

    def _dispatch(self, mode: str | None, params: PhaseParams) -> str:
        if params.type != CATALOG_TYPE:
            raise UnsupportedOperationError(f"Exchange type {params.type!r} is not supported")
        phase = self._phases.get(mode or "")
        if phase is None:
            raise UnsupportedOperationError(f"Unsupported exchange mode {mode!r}")
        log.info("Exchange mode=%s filename=%s part=%s", mode, params.filename, params.part)
        return phase(params)

    def _require_session(self, mode: ExchangePhase, params: PhaseParams) -> ExchangeSession:
        if not self._sessions:
            raise SequenceError(f"checkauth must precede {mode}")
        if params.token is None:
            raise AuthRequiredError("Session token is missing, unknown or expired")
        session = self._sessions.get(params.token)
        if session is None or not self._auth.validate(params.token):
            self._sessions.pop(params.token, None)
            raise AuthRequiredError("Session token is missing, unknown or expired")
        return session

    def _checkauth(self, params: PhaseParams) -> str:
        token = self._auth.authenticate(params.login, params.password)
        self._sessions = {
            token: ExchangeSession(token=token, import_dir=self._config.resolve_import_dir())
        }
        return f"success\n{token}"

    def _init(self, params: PhaseParams) -> str:
        session = self._require_session(ExchangePhase.INIT, params)
        self._files.reset()
        session.reset_files()
        session.advance(ExchangePhase.INIT)
        zip_flag = "yes" if self._config.use_zip else "no"
        return f"zip={zip_flag}\nfile_limit={self._config.file_limit}"

    def _file(self, params: PhaseParams) -> str:
        session = self._require_session(ExchangePhase.FILE, params)
        if not params.filename:
            raise UnsupportedOperationError("mode=file requires a filename")
        ack = self._files.receive_part(params.filename, params.content, params.part)
        # nested archive entries (images and the like) are not importable by name
        session.mark_received(ack.filename, *(name for name in ack.extracted if "/" not in name))
        session.advance(ExchangePhase.FILE)
        return "success"

    def _import(self, params: PhaseParams) -> str:
        session = self._require_session(ExchangePhase.IMPORT, params)
        if not params.filename:
            raise UnsupportedOperationError("mode=import requires a filename")
        name = sanitize_filename(params.filename)
        if name not in session.received_files:
            raise SequenceError(f"File {name} was not received in this exchange")
        offset = self._files.pending_offset(name)
        if offset is not None:
            log.info("File %s still has missing parts, assembled=%s", name, offset)
            return f"progress\n{offset}"

        document = self._parser(self._files.path_for(name), classifier=session.classifier)
        if document.is_classifier:
            self._categories.sync(document)
            if document.classifier is not None:
                session.classifier = document.classifier
            self._offers.sync_products(document)
            session.classifier_synced = True
        else:
            if not session.classifier_synced:
                raise SequenceError(
                    f"Offer package {name} requires the classifier to be imported first"
                )
            self._offers.sync(document)
        session.advance(ExchangePhase.IMPORT)
        return "success"

    def _complete(self, params: PhaseParams) -> str:
        session = self._require_session(ExchangePhase.COMPLETE, params)
        session.advance(ExchangePhase.COMPLETE)
        self._bus.publish(ExchangeCompleted(files=tuple(sorted(session.received_files))))
        del self._sessions[session.token]
        self._auth.revoke(session.token)
        log.info("Exchange completed, files=%s", len(session.received_files))
        return "success"
