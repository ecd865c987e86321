from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest

from exchange1c.domain.errors import AuthRequiredError
from exchange1c.domain.exchange import AuthGate

if TYPE_CHECKING:
    from exchange1c.config import ExchangeConfig


@dataclass
class FakeClock:
    now: float = 1000.0

    def __call__(self) -> float:
        return self.now


def test_authenticate_issues_a_valid_token(exchange_config: ExchangeConfig) -> None:
    gate = AuthGate(exchange_config)

    token = gate.authenticate("exchange", "secret")

    assert len(token) == 32
    assert gate.validate(token)


@pytest.mark.parametrize(
    ("login", "password"),
    [("exchange", "wrong"), ("someone", "secret"), (None, None), ("", "")],
)
def test_authenticate_rejects_bad_credentials(
    exchange_config: ExchangeConfig,
    login: str | None,
    password: str | None,
) -> None:
    gate = AuthGate(exchange_config)

    with pytest.raises(AuthRequiredError):
        gate.authenticate(login, password)


def test_new_token_revokes_the_previous_one(exchange_config: ExchangeConfig) -> None:
    gate = AuthGate(exchange_config)
    first = gate.authenticate("exchange", "secret")

    second = gate.authenticate("exchange", "secret")

    assert first != second
    assert not gate.validate(first)
    assert gate.validate(second)


def test_token_expires_after_ttl(exchange_config: ExchangeConfig) -> None:
    clock = FakeClock()
    gate = AuthGate(exchange_config, clock=clock)
    token = gate.authenticate("exchange", "secret")

    clock.now += exchange_config.session_ttl_seconds - 1
    assert gate.validate(token)

    clock.now += 1
    assert not gate.validate(token)
    assert not gate.validate(token)


def test_validate_rejects_unknown_and_missing_tokens(exchange_config: ExchangeConfig) -> None:
    gate = AuthGate(exchange_config)

    assert not gate.validate(None)
    assert not gate.validate("")
    assert not gate.validate("deadbeef")


def test_revoke_invalidates_token(exchange_config: ExchangeConfig) -> None:
    gate = AuthGate(exchange_config)
    token = gate.authenticate("exchange", "secret")

    gate.revoke(token)

    assert not gate.validate(token)
