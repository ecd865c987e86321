from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import uvicorn

from exchange1c.app import build_exchange, create_app
from exchange1c.config import configure_logging, get_exchange_config
from exchange1c.domain.exchange import ExchangePhase, PhaseParams

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from types import FrameType

    from exchange1c.config import ExchangeConfig
    from exchange1c.domain.exchange import ExchangeOrchestrator

log = logging.getLogger(__name__)


class ReplayError(RuntimeError):
    """Raised when a replayed exchange call answers with ``failure``."""


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="1C catalog exchange endpoint")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Serve the exchange endpoint over HTTP")
    serve.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Interface to bind (default: %(default)s)",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind (default: %(default)s)",
    )

    replay = subparsers.add_parser(
        "replay",
        help="Run a full exchange locally with CommerceML files from disk",
    )
    replay.add_argument(
        "files",
        nargs="+",
        type=Path,
        help="import.xml / offers.xml files, classifier first",
    )

    return parser.parse_args(list(argv))


def _chunks(content: bytes, limit: int) -> Iterator[bytes]:
    if limit <= 0 or len(content) <= limit:
        yield content
        return
    for start in range(0, len(content), limit):
        yield content[start : start + limit]


def _call(orchestrator: ExchangeOrchestrator, mode: ExchangePhase, params: PhaseParams) -> str:
    response = orchestrator.handle(mode, params)
    log.info("mode=%s -> %s", mode, response.body.replace("\n", " | "))
    if not response.ok or response.body.startswith("failure"):
        raise ReplayError(f"mode={mode} failed: {response.body}")
    return response.body


def replay_files(
    orchestrator: ExchangeOrchestrator,
    config: ExchangeConfig,
    files: Sequence[Path],
) -> None:
    """Drive one exchange through every phase with the given files."""

    body = _call(
        orchestrator,
        ExchangePhase.CHECKAUTH,
        PhaseParams(login=config.login, password=config.password),
    )
    token = body.splitlines()[1]
    _call(orchestrator, ExchangePhase.INIT, PhaseParams(token=token))

    for path in files:
        content = path.read_bytes()
        for index, chunk in enumerate(_chunks(content, config.file_limit)):
            _call(
                orchestrator,
                ExchangePhase.FILE,
                PhaseParams(token=token, filename=path.name, part=index, content=chunk),
            )
    for path in files:
        _call(orchestrator, ExchangePhase.IMPORT, PhaseParams(token=token, filename=path.name))
    _call(orchestrator, ExchangePhase.COMPLETE, PhaseParams(token=token))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    if parsed_args.command == "replay":
        missing = [str(path) for path in parsed_args.files if not path.is_file()]
        if missing:
            log.error("Files not found: %s", ", ".join(missing))
            sys.exit(2)

    try:
        if parsed_args.command == "serve":
            uvicorn.run(create_app(), host=parsed_args.host, port=parsed_args.port)
        elif parsed_args.command == "replay":
            config = get_exchange_config()
            replay_files(build_exchange(config), config, parsed_args.files)
            log.info("Replayed %s files", len(parsed_args.files))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error during exchange")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)
