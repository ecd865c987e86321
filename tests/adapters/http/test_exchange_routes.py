from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from exchange1c.adapters.http import EXCHANGE_PATH, create_app
from tests.support.catalog import MemoryProduct
from tests.support.documents import CLASSIFIER_XML, offers_xml

if TYPE_CHECKING:
    from exchange1c.config import ExchangeConfig
    from exchange1c.domain.exchange import ExchangeOrchestrator


@pytest.fixture
def client(orchestrator: ExchangeOrchestrator, exchange_config: ExchangeConfig) -> TestClient:
    return TestClient(create_app(orchestrator, exchange_config))


def _catalog(mode: str, **params: str) -> dict[str, str]:
    return {"type": "catalog", "mode": mode, **params}


def test_checkauth_sets_session_cookie(client: TestClient, exchange_config: ExchangeConfig) -> None:
    response = client.get(EXCHANGE_PATH, params=_catalog("checkauth"), auth=("exchange", "secret"))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    status, token = response.text.splitlines()
    assert status == "success"
    assert response.cookies.get(exchange_config.cookie_name) == token


def test_checkauth_accepts_query_credentials(client: TestClient) -> None:
    response = client.get(
        EXCHANGE_PATH,
        params=_catalog("checkauth", login="exchange", password="secret"),
    )

    assert response.text.startswith("success\n")


def test_wrong_credentials_answer_401(client: TestClient) -> None:
    response = client.get(EXCHANGE_PATH, params=_catalog("checkauth"), auth=("exchange", "nope"))

    assert response.status_code == 401
    assert response.text.startswith("failure\n")


def test_init_without_session_is_a_conflict(client: TestClient) -> None:
    response = client.get(EXCHANGE_PATH, params=_catalog("init"))

    assert response.status_code == 409


def test_token_query_parameter_is_accepted(client: TestClient) -> None:
    login = client.get(EXCHANGE_PATH, params=_catalog("checkauth"), auth=("exchange", "secret"))
    token = login.text.splitlines()[1]
    client.cookies.clear()

    response = client.get(EXCHANGE_PATH, params=_catalog("init", token=token))

    assert response.text == "zip=no\nfile_limit=0"


def test_invalid_part_index_is_rejected(client: TestClient) -> None:
    client.get(EXCHANGE_PATH, params=_catalog("checkauth"), auth=("exchange", "secret"))

    response = client.post(
        EXCHANGE_PATH,
        params=_catalog("file", filename="import.xml", part="first"),
        content=b"<xml/>",
    )

    assert response.status_code == 400
    assert "first" in response.text


def test_full_exchange_over_http(client: TestClient) -> None:
    client.get(EXCHANGE_PATH, params=_catalog("checkauth"), auth=("exchange", "secret"))
    assert client.get(EXCHANGE_PATH, params=_catalog("init")).status_code == 200

    raw = client.post(
        EXCHANGE_PATH,
        params=_catalog("file", filename="import.xml"),
        content=CLASSIFIER_XML.encode(),
    )
    multipart = client.post(
        EXCHANGE_PATH,
        params=_catalog("file", filename="offers.xml"),
        files={"file": ("offers.xml", offers_xml(stock="7").encode(), "application/xml")},
    )
    imports = [
        client.get(EXCHANGE_PATH, params=_catalog("import", filename=name)).text
        for name in ("import.xml", "offers.xml")
    ]
    complete = client.get(EXCHANGE_PATH, params=_catalog("complete"))

    assert raw.text == "success"
    assert multipart.text == "success"
    assert imports == ["success", "success"]
    assert complete.text == "success"
    assert MemoryProduct.registry["P100"].offers["P100"].stock == Decimal(7)
