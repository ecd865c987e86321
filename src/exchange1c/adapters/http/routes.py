"""FastAPI transport for the 1C catalog exchange endpoint.

The ERP drives the exchange with plain GET/POST calls on one URL and reads the
line-based text answers. This module only translates requests into
:class:`PhaseParams` and the orchestrator's responses back into HTTP.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from exchange1c.domain.exchange import ExchangePhase, PhaseParams, failure_response

if TYPE_CHECKING:
    from exchange1c.config import ExchangeConfig
    from exchange1c.domain.exchange import ExchangeOrchestrator, ExchangeResponse

log = getLogger(__name__)

EXCHANGE_PATH = "/1c_exchange"
UPLOAD_FIELD = "file"

_basic = HTTPBasic(auto_error=False)


def _parse_part(value: str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Invalid part index: {value!r}") from exc


async def _read_content(request: Request) -> bytes:
    if request.method != "POST":
        return b""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get(UPLOAD_FIELD)
        if isinstance(upload, UploadFile):
            return await upload.read()
        if isinstance(upload, str):
            return upload.encode()
        return b""
    return await request.body()


def _to_http(response: ExchangeResponse) -> PlainTextResponse:
    return PlainTextResponse(response.body, status_code=response.status_code)


def create_router(orchestrator: ExchangeOrchestrator, config: ExchangeConfig) -> APIRouter:
    router = APIRouter(tags=["exchange"])

    @router.api_route(EXCHANGE_PATH, methods=["GET", "POST"], response_class=PlainTextResponse)
    async def exchange(
        request: Request,
        credentials: Annotated[HTTPBasicCredentials | None, Depends(_basic)],
    ) -> PlainTextResponse:
        query = request.query_params
        mode = query.get("mode")
        try:
            part = _parse_part(query.get("part"))
        except ValueError as exc:
            return _to_http(failure_response(exc, 400))

        login = credentials.username if credentials else query.get("login")
        password = credentials.password if credentials else query.get("password")
        params = PhaseParams(
            type=query.get("type", "catalog"),
            token=request.cookies.get(config.cookie_name) or query.get("token"),
            login=login,
            password=password,
            filename=query.get("filename"),
            part=part,
            content=await _read_content(request),
        )

        result = await run_in_threadpool(orchestrator.handle, mode, params)
        response = _to_http(result)
        if mode == ExchangePhase.CHECKAUTH and result.ok:
            token = result.body.splitlines()[1]
            response.set_cookie(
                config.cookie_name,
                token,
                max_age=config.session_ttl_seconds,
                httponly=True,
            )
        return response

    return router


def create_app(orchestrator: ExchangeOrchestrator, config: ExchangeConfig) -> FastAPI:
    app = FastAPI(title="1C catalog exchange")
    app.include_router(create_router(orchestrator, config))
    log.info("Exchange endpoint mounted at %s", EXCHANGE_PATH)
    return app
