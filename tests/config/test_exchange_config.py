from __future__ import annotations

from pathlib import Path

import pytest

from exchange1c.config import (
    DEFAULT_MODELS,
    ConfigurationError,
    ExchangeConfig,
    MissingConfigurationError,
    env_flag,
    env_int,
    get_database_config,
    get_exchange_config,
    require_env_var,
    require_env_vars,
)

_REQUIRED = {
    "EXCHANGE1C_IMPORT_DIR": "/tmp/exchange-import",
    "EXCHANGE1C_LOGIN": "erp",
    "EXCHANGE1C_PASSWORD": "secret",
}


@pytest.fixture
def exchange_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name, value in _REQUIRED.items():
        monkeypatch.setenv(name, value)
    for name in (
        "EXCHANGE1C_USE_ZIP",
        "EXCHANGE1C_FILE_LIMIT",
        "EXCHANGE1C_SESSION_TTL",
        "EXCHANGE1C_COOKIE_NAME",
        "EXCHANGE1C_GROUP_MODEL",
        "EXCHANGE1C_PRODUCT_MODEL",
        "EXCHANGE1C_OFFER_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_require_env_vars_reports_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FIRST_MISSING", raising=False)
    monkeypatch.setenv("SECOND_MISSING", "  ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["FIRST_MISSING", "SECOND_MISSING"])

    assert "FIRST_MISSING" in str(exc.value)
    assert "SECOND_MISSING" in str(exc.value)


def test_require_env_var_returns_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    assert require_env_var("EXAMPLE_VAR") == "value"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("yes", True), ("TRUE", True), ("0", False), ("off", False), ("", False)],
)
def test_env_flag_parses_switches(
    monkeypatch: pytest.MonkeyPatch,
    raw: str,
    expected: bool,  # noqa: FBT001
) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", raw)

    assert env_flag("EXAMPLE_FLAG") is expected


def test_env_flag_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", "maybe")

    with pytest.raises(ConfigurationError):
        env_flag("EXAMPLE_FLAG")


def test_env_int_enforces_minimum(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_INT", "-1")

    with pytest.raises(ConfigurationError):
        env_int("EXAMPLE_INT", default=0)


def test_env_int_uses_default_when_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_INT", raising=False)

    assert env_int("EXAMPLE_INT", default=7) == 7


def test_get_exchange_config_defaults(exchange_env: pytest.MonkeyPatch) -> None:
    _ = exchange_env

    config = get_exchange_config()

    assert config.import_dir == Path("/tmp/exchange-import")
    assert config.login == "erp"
    assert config.password == "secret"
    assert config.use_zip is False
    assert config.file_limit == 0
    assert config.session_ttl_seconds == 3600
    assert dict(config.models) == DEFAULT_MODELS


def test_get_exchange_config_reads_overrides(exchange_env: pytest.MonkeyPatch) -> None:
    exchange_env.setenv("EXCHANGE1C_USE_ZIP", "yes")
    exchange_env.setenv("EXCHANGE1C_FILE_LIMIT", "1024")
    exchange_env.setenv("EXCHANGE1C_SESSION_TTL", "60")
    exchange_env.setenv("EXCHANGE1C_COOKIE_NAME", "erp_session")
    exchange_env.setenv("EXCHANGE1C_OFFER_MODEL", "shop.models:Offer")

    config = get_exchange_config()

    assert config.use_zip is True
    assert config.file_limit == 1024
    assert config.session_ttl_seconds == 60
    assert config.cookie_name == "erp_session"
    assert config.models["offer"] == "shop.models:Offer"
    assert config.models["group"] == DEFAULT_MODELS["group"]


def test_get_exchange_config_requires_credentials(exchange_env: pytest.MonkeyPatch) -> None:
    exchange_env.delenv("EXCHANGE1C_PASSWORD")

    with pytest.raises(MissingConfigurationError) as exc:
        get_exchange_config()

    assert "EXCHANGE1C_PASSWORD" in str(exc.value)


def test_exchange_config_rejects_negative_file_limit(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        ExchangeConfig(import_dir=tmp_path, login="a", password="b", file_limit=-1)


def test_full_path_keeps_only_the_base_name(tmp_path: Path) -> None:
    config = ExchangeConfig(import_dir=tmp_path, login="a", password="b")

    assert config.full_path("../../etc/import.xml") == tmp_path.resolve() / "import.xml"


def test_database_uri_prefers_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")

    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"


def test_database_uri_falls_back_to_data_dir(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("EXCHANGE1C_DATA_DIR", str(tmp_path))

    uri = get_database_config().uri

    assert uri == f"sqlite+pysqlite:///{tmp_path.resolve() / 'exchange1c.db'}"
